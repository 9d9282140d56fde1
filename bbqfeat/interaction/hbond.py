"""Hydrogen-bond donor/acceptor geometry for residue pairs.

Donors are heavy atoms; the donor angle is measured at the hydrogen
(D-H...A) when the backbone amide H can be placed from the previous
residue's carbonyl, otherwise at the donor heavy atom (X-D...A, X being the
donor's antecedent).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..constants import (
    DONOR_ANTECEDENTS,
    DSSP_F,
    DSSP_MIN_ENERGY,
    DSSP_NH_LENGTH,
    DSSP_Q1Q2,
    HBOND_ACCEPTOR_ATOMS,
    HBOND_DONOR_ATOMS,
)
from ..geometry import MISSING, Measurement, bond_angle, bond_length, is_missing, place_backbone_hydrogen
from ..structure.model import Atom, Residue


@dataclass(frozen=True)
class DonorSite:
    atom: Atom
    antecedent: Optional[Atom]
    hydrogen: Optional[np.ndarray]      # placed amide H, backbone N only
    backbone: bool


@dataclass(frozen=True)
class HBondCandidate:
    donor_atom: str
    acceptor_atom: str
    distance: float
    angle: float
    uses_hydrogen: bool
    energy: Measurement


def donor_sites(residue: Residue, prev: Optional[Residue] = None) -> List[DonorSite]:
    """
    Donor atoms of ``residue`` in atom order.

    ``prev`` is the chain-connected previous residue (or None); it is needed
    to place the backbone amide hydrogen.
    """
    sites: List[DonorSite] = []
    for name, atom in residue.atoms.items():
        if name == 'N':
            if residue.res_type == 'PRO':
                continue
            hydrogen = None
            if prev is not None:
                hydrogen = place_backbone_hydrogen(
                    atom, prev.atom('C'), prev.atom('O'), DSSP_NH_LENGTH
                )
            sites.append(DonorSite(atom, residue.atom(DONOR_ANTECEDENTS['N']), hydrogen, True))
        elif (residue.res_type, name) in HBOND_DONOR_ATOMS:
            antecedent = residue.atom(DONOR_ANTECEDENTS[(residue.res_type, name)])
            sites.append(DonorSite(atom, antecedent, None, False))
    return sites


def acceptor_atoms(residue: Residue) -> List[Atom]:
    return [
        atom for name, atom in residue.atoms.items()
        if name in ('O', 'OXT') or (residue.res_type, name) in HBOND_ACCEPTOR_ATOMS
    ]


def dssp_energy(n: Atom, h: np.ndarray, o: Atom, c: Atom) -> Measurement:
    """
    DSSP electrostatic energy (kcal/mol) of N-H...O=C:
    E = q1*q2*f * (1/rON + 1/rCH - 1/rOH - 1/rCN), clipped at DSSP_MIN_ENERGY.
    """
    r_on = bond_length(o, n)
    r_ch = bond_length(c, h)
    r_oh = bond_length(o, h)
    r_cn = bond_length(c, n)
    if any(is_missing(r) for r in (r_on, r_ch, r_oh, r_cn)):
        return MISSING
    energy = DSSP_Q1Q2 * DSSP_F * (1.0 / r_on + 1.0 / r_ch - 1.0 / r_oh - 1.0 / r_cn)
    return float(max(energy, DSSP_MIN_ENERGY))


def best_hbond(
    donor_residue: Residue,
    acceptor_residue: Residue,
    donor_prev: Optional[Residue],
    distance_max: float,
    angle_min: float,
    antecedent_angle_min: float,
) -> Optional[HBondCandidate]:
    """
    Shortest qualifying donor->acceptor H-bond from ``donor_residue`` to
    ``acceptor_residue``; ties keep the first pair in atom order. None if
    no donor/acceptor pair satisfies both distance and angle criteria.
    """
    best: Optional[HBondCandidate] = None
    acceptors = acceptor_atoms(acceptor_residue)
    if not acceptors:
        return None
    for site in donor_sites(donor_residue, donor_prev):
        for acceptor in acceptors:
            distance = bond_length(site.atom, acceptor)
            if is_missing(distance) or distance > distance_max:
                continue
            if site.hydrogen is not None:
                angle = bond_angle(site.atom, site.hydrogen, acceptor)
                threshold = angle_min
                uses_hydrogen = True
            else:
                angle = bond_angle(site.antecedent, site.atom, acceptor)
                threshold = antecedent_angle_min
                uses_hydrogen = False
            if is_missing(angle) or angle < threshold:
                continue
            if best is not None and distance >= best.distance:
                continue
            energy: Measurement = MISSING
            if site.backbone and site.hydrogen is not None and acceptor.name == 'O':
                energy = dssp_energy(
                    site.atom, site.hydrogen, acceptor, acceptor_residue.atom('C')
                )
            best = HBondCandidate(
                donor_atom=site.atom.name,
                acceptor_atom=acceptor.name,
                distance=distance,
                angle=angle,
                uses_hydrogen=uses_hydrogen,
                energy=energy,
            )
    return best


def backbone_energy(
    donor_residue: Residue,
    acceptor_residue: Residue,
    donor_prev: Optional[Residue],
) -> Measurement:
    """DSSP energy of donor N-H to acceptor O=C regardless of thresholds."""
    if donor_residue.res_type == 'PRO' or donor_prev is None:
        return MISSING
    n = donor_residue.atom('N')
    h = place_backbone_hydrogen(n, donor_prev.atom('C'), donor_prev.atom('O'), DSSP_NH_LENGTH)
    o = acceptor_residue.atom('O')
    c = acceptor_residue.atom('C')
    if h is None or o is None or c is None:
        return MISSING
    return dssp_energy(n, h, o, c)