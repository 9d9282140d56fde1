"""Per-residue backbone descriptors.

Chain-boundary-aware: terms that need the previous or next residue are only
computed when that residue is chain-connected (no numbering gap and a
C(i-1)-N(i) distance within PEPTIDE_BOND_MAX); otherwise they are MISSING.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..constants import CHI1_GAMMA_ATOMS
from ..geometry import MISSING, Measurement, bond_angle, bond_length, dihedral
from ..structure.connectivity import chain_links
from ..structure.model import Chain, Residue, Structure

logger = logging.getLogger(__name__)

RESIDUE_DESCRIPTOR_NAMES: Tuple[str, ...] = (
    "phi",
    "psi",
    "omega",
    "chi1",
    "bond_n_ca",
    "bond_ca_c",
    "bond_c_o",
    "bond_c_n_next",
    "angle_n_ca_c",
    "angle_ca_c_n_next",
    "angle_c_n_ca_prev",
    "ca_virtual_angle",
    "ca_virtual_torsion",
)
NUM_RESIDUE_DESCRIPTORS = len(RESIDUE_DESCRIPTOR_NAMES)

# Indices of the backbone dihedrals inside the descriptor vector
DIHEDRAL_DESCRIPTOR_INDICES = (0, 1, 2)


@dataclass(frozen=True)
class ResidueGeometry:
    descriptors: Tuple[Measurement, ...]
    ca_coord: Optional[Tuple[float, float, float]]
    chain_break_before: bool

    def as_dict(self) -> Dict[str, Measurement]:
        return dict(zip(RESIDUE_DESCRIPTOR_NAMES, self.descriptors))


def chi1(residue: Residue) -> Measurement:
    gamma = CHI1_GAMMA_ATOMS.get(residue.res_type)
    if gamma is None:
        return MISSING
    return dihedral(residue.atom("N"), residue.atom("CA"), residue.atom("CB"), residue.atom(gamma))


def compute_residue_geometry(
    residue: Residue,
    prev: Optional[Residue] = None,
    next_: Optional[Residue] = None,
    next2: Optional[Residue] = None,
) -> ResidueGeometry:
    """
    Descriptor vector for one residue in RESIDUE_DESCRIPTOR_NAMES order.

    ``prev``/``next_`` must already be filtered for connectivity; pass None
    at chain ends and breaks. ``next2`` closes the CA virtual torsion
    CA(i-1)-CA(i)-CA(i+1)-CA(i+2).
    """
    n, ca, c, o = (residue.atom(a) for a in ("N", "CA", "C", "O"))
    prev_c = prev.atom("C") if prev is not None else None
    prev_ca = prev.atom("CA") if prev is not None else None
    next_n = next_.atom("N") if next_ is not None else None
    next_ca = next_.atom("CA") if next_ is not None else None
    next2_ca = next2.atom("CA") if next2 is not None else None

    descriptors = (
        dihedral(prev_c, n, ca, c),                 # phi
        dihedral(n, ca, c, next_n),                 # psi
        dihedral(prev_ca, prev_c, n, ca),           # omega (peptide bond preceding i)
        chi1(residue),
        bond_length(n, ca),
        bond_length(ca, c),
        bond_length(c, o),
        bond_length(c, next_n),
        bond_angle(n, ca, c),
        bond_angle(ca, c, next_n),
        bond_angle(prev_c, n, ca),
        bond_angle(prev_ca, ca, next_ca),
        dihedral(prev_ca, ca, next_ca, next2_ca),
    )

    return ResidueGeometry(
        descriptors=descriptors,
        ca_coord=ca.coords if ca is not None else None,
        chain_break_before=False,
    )


def compute_chain_geometry(chain: Chain, source_id: str = "") -> List[ResidueGeometry]:
    residues = chain.residues
    count = len(residues)
    links = chain_links(chain)

    results: List[ResidueGeometry] = []
    for i, residue in enumerate(residues):
        prev = residues[i - 1] if i > 0 and links[i] else None
        next_ = residues[i + 1] if i + 1 < count and links[i + 1] else None
        next2 = residues[i + 2] if next_ is not None and i + 2 < count and links[i + 2] else None

        geom = compute_residue_geometry(residue, prev, next_, next2)
        if geom.ca_coord is None:
            logger.warning(f"{source_id}: CA atom missing for residue {chain.chain_id}{residue.res_id}")
        results.append(ResidueGeometry(
            descriptors=geom.descriptors,
            ca_coord=geom.ca_coord,
            chain_break_before=i > 0 and not links[i],
        ))
    return results


def compute_structure_geometry(structure: Structure) -> Dict[Tuple[int, int], ResidueGeometry]:
    """Per-residue geometry keyed by (chain_index, residue_index)."""
    geometry: Dict[Tuple[int, int], ResidueGeometry] = {}
    for ci, chain in enumerate(structure.chains):
        for ri, geom in enumerate(compute_chain_geometry(chain, structure.source_id)):
            geometry[(ci, ri)] = geom
    return geometry
