"""Shared test fixtures for bbqfeat."""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from bbqfeat.config import FeaturizerConfig
from bbqfeat.structure import ParsedAtom, ParsedChain, ParsedResidue, ParsedStructure, adapt

# Ideal backbone internal coordinates (Engh & Huber)
BOND_N_CA = 1.458
BOND_CA_C = 1.525
BOND_C_N = 1.329
BOND_C_O = 1.231
ANGLE_N_CA_C = 111.2
ANGLE_CA_C_N = 116.2
ANGLE_C_N_CA = 121.7
ANGLE_CA_C_O = 120.5

ALPHA_HELIX = (-57.0, -47.0)
BETA_STRAND = (-120.0, 130.0)


def place_atom(a, b, c, bond: float, angle: float, torsion: float) -> np.ndarray:
    """NeRF: position of d with |cd| = bond, angle b-c-d and torsion a-b-c-d (degrees)."""
    a, b, c = (np.asarray(p, dtype=np.float64) for p in (a, b, c))
    bc = c - b
    bc /= np.linalg.norm(bc)
    n = np.cross(b - a, bc)
    n /= np.linalg.norm(n)
    m = np.cross(n, bc)
    theta = math.radians(angle)
    phi = math.radians(torsion)
    d2 = np.array([
        -bond * math.cos(theta),
        bond * math.sin(theta) * math.cos(phi),
        bond * math.sin(theta) * math.sin(phi),
    ])
    return c + d2[0] * bc + d2[1] * m + d2[2] * n


def ideal_backbone(
    n_res: int,
    phi: float = ALPHA_HELIX[0],
    psi: float = ALPHA_HELIX[1],
    omega: float = 180.0,
    origin: Sequence[float] = (0.0, 0.0, 0.0),
) -> List[Dict[str, np.ndarray]]:
    """N/CA/C/O coordinates of a chain with constant phi/psi/omega."""
    offset = np.asarray(origin, dtype=np.float64)
    n = np.zeros(3)
    ca = np.array([BOND_N_CA, 0.0, 0.0])
    t = math.radians(180.0 - ANGLE_N_CA_C)
    c = ca + BOND_CA_C * np.array([math.cos(t), math.sin(t), 0.0])

    residues = []
    for i in range(n_res):
        o = place_atom(n, ca, c, BOND_C_O, ANGLE_CA_C_O, psi + 180.0)
        residues.append({'N': n + offset, 'CA': ca + offset, 'C': c + offset, 'O': o + offset})
        if i + 1 < n_res:
            n_next = place_atom(n, ca, c, BOND_C_N, ANGLE_CA_C_N, psi)
            ca_next = place_atom(ca, c, n_next, BOND_N_CA, ANGLE_C_N_CA, omega)
            c_next = place_atom(c, n_next, ca_next, BOND_CA_C, ANGLE_N_CA_C, phi)
            n, ca, c = n_next, ca_next, c_next
    return residues


def parsed_residue(
    res_name: str,
    res_num: int,
    atoms: Dict[str, Sequence[float]],
    insertion_code: str = '',
    hetero: bool = False,
) -> ParsedResidue:
    return ParsedResidue(
        res_name=res_name,
        res_num=res_num,
        insertion_code=insertion_code,
        hetero=hetero,
        atoms=[
            ParsedAtom(atom_name=name, coords=tuple(float(x) for x in xyz), element=name[0])
            for name, xyz in atoms.items()
        ],
    )


def parsed_chain(
    chain_id: str,
    n_res: int,
    res_name: str = 'ALA',
    phi: float = ALPHA_HELIX[0],
    psi: float = ALPHA_HELIX[1],
    origin: Sequence[float] = (0.0, 0.0, 0.0),
    start: int = 1,
) -> ParsedChain:
    backbone = ideal_backbone(n_res, phi, psi, origin=origin)
    return ParsedChain(
        chain_id=chain_id,
        residues=[parsed_residue(res_name, start + i, atoms) for i, atoms in enumerate(backbone)],
    )


def pdb_atom_line(
    serial: int,
    name: str,
    res_name: str,
    chain: str,
    res_num: int,
    xyz: Sequence[float],
    element: str = '',
    record: str = 'ATOM',
    altloc: str = '',
    icode: str = '',
    occupancy: float = 1.0,
) -> str:
    padded = name if len(name) == 4 else f" {name:<3s}"
    element = element or name[0]
    x, y, z = xyz
    return (
        f"{record:<6s}{serial:5d} {padded:<4s}{altloc:1s}{res_name:>3s} {chain:1s}"
        f"{res_num:4d}{icode:1s}   {x:8.3f}{y:8.3f}{z:8.3f}{occupancy:6.2f}{0.0:6.2f}"
        f"          {element:>2s}\n"
    )


def write_pdb(path, chains: Dict[str, List[Tuple[str, int, Dict[str, Sequence[float]]]]],
              hetatm: Optional[List[str]] = None) -> str:
    """Write ATOM records for ``chains`` (chain -> [(res_name, res_num, atoms)]) plus raw HETATM lines."""
    lines = []
    serial = 1
    for chain_id, residues in chains.items():
        for res_name, res_num, atoms in residues:
            for name, xyz in atoms.items():
                lines.append(pdb_atom_line(serial, name, res_name, chain_id, res_num, xyz))
                serial += 1
        lines.append("TER\n")
    lines.extend(hetatm or [])
    lines.append("END\n")
    with open(path, 'w') as f:
        f.writelines(lines)
    return str(path)


@pytest.fixture
def default_config() -> FeaturizerConfig:
    return FeaturizerConfig()


@pytest.fixture
def helix_parsed() -> ParsedStructure:
    """Single 10-residue ideal alpha helix (chain A, ALA)."""
    return ParsedStructure(source_id='helix', chains=[parsed_chain('A', 10)])


@pytest.fixture
def helix_structure(helix_parsed):
    return adapt(helix_parsed)


@pytest.fixture
def two_chain_parsed() -> ParsedStructure:
    """Helix in chain A and a strand in chain B placed 30 A away."""
    return ParsedStructure(
        source_id='pair',
        chains=[
            parsed_chain('A', 6),
            parsed_chain('B', 5, res_name='GLY', phi=BETA_STRAND[0], psi=BETA_STRAND[1],
                         origin=(30.0, 0.0, 0.0)),
        ],
    )


@pytest.fixture
def mini_pdb(tmp_path) -> str:
    """
    Two-chain PDB: 6-residue helix (A), 5-residue strand (B), one HETATM
    ligand, one water and an alternate location on A2 CA.
    """
    chain_a = [('ALA', i + 1, atoms) for i, atoms in enumerate(ideal_backbone(6))]
    chain_b = [
        ('GLY', i + 1, atoms)
        for i, atoms in enumerate(ideal_backbone(5, *BETA_STRAND, origin=(30.0, 0.0, 0.0)))
    ]
    ca2 = chain_a[1][2]['CA']
    hetatm = [
        pdb_atom_line(900, 'CA', 'ALA', 'A', 2, ca2 + np.array([0.3, 0.0, 0.0]),
                      element='C', altloc='B', occupancy=0.30),
        pdb_atom_line(901, 'C1', 'LIG', 'A', 101, (50.0, 50.0, 50.0), record='HETATM'),
        pdb_atom_line(902, 'C2', 'LIG', 'A', 101, (51.5, 50.0, 50.0), record='HETATM'),
        pdb_atom_line(903, 'O', 'HOH', 'A', 201, (60.0, 60.0, 60.0), record='HETATM'),
    ]
    return write_pdb(tmp_path / "mini.pdb", {'A': chain_a, 'B': chain_b}, hetatm)
