"""
PDB Structure Source.

Reads PDB-format files (optionally gzip-compressed) into a
:class:`~bbqfeat.structure.parsed.ParsedStructure`.

Preprocessing done here, so the adapter receives clean data:
- only the first model is read (stops at the first ENDMDL)
- hydrogens and water molecules are skipped
- HETATM groups outside the polymer (ligands, metal ions) are removed and
  counted when ``remove_ligands`` is set
- SEQRES records, when present, give each residue its count of unobserved
  residues just before it
- alternate locations are kept, with their occupancies, for the adapter
"""

import gzip
import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple

from ..constants import (
    AMINO_ACID_LETTERS,
    POLYMER_BACKBONE_ATOMS,
    RESIDUE_NAME_MAPPING,
    WATER_RESIDUES,
)
from ..errors import InputError
from ..structure.parsed import ParsedAtom, ParsedChain, ParsedResidue, ParsedStructure, StructureSource
from ..structure.sequence import align_to_sequence, annotate_gaps

logger = logging.getLogger(__name__)


# ============================================================================
# Low-level Parsing Functions
# ============================================================================

def is_atom_record(line: str) -> bool:
    """Check if a PDB line is an ATOM record."""
    if len(line) < 6:
        return False
    return line[:6].strip() == 'ATOM'


def is_hetatm_record(line: str) -> bool:
    """Check if a PDB line is a HETATM record."""
    if len(line) < 6:
        return False
    return line[:6].strip() == 'HETATM'


def is_hydrogen(line: str) -> bool:
    """Check if atom is hydrogen based on PDB line."""
    if len(line) < 14:
        return False
    # Check element column (77-78) first
    if len(line) > 77:
        element = line[76:78].strip()
        if element:
            return element.upper() in ('H', 'D')
    # Fallback: check atom name (column 13-16)
    atom_name = line[12:16].strip()
    return bool(atom_name) and atom_name[0] == 'H'


def _infer_element(atom_name: str) -> str:
    """Infer element symbol from atom name."""
    element = ''.join(c for c in atom_name if c.isalpha())
    if not element:
        return 'C'
    return element[0].upper()


def parse_pdb_line(line: str) -> Tuple[str, str, str, int, str, ParsedAtom]:
    """
    Parse a PDB ATOM/HETATM line.

    PDB format columns:
        13-16: Atom name
        17:    Alternate location indicator
        18-20: Residue name
        22:    Chain identifier
        23-26: Residue sequence number
        27:    Code for insertion of residues
        31-54: X, Y, Z coordinates
        55-60: Occupancy
        61-66: Temperature factor
        77-78: Element symbol

    Returns:
        (chain_id, res_name, insertion_code, res_num, record_type, ParsedAtom)

    Raises:
        InputError: If the residue number or coordinates cannot be read
    """
    record_type = line[:6].strip()
    atom_name = line[12:16].strip()
    altloc = line[16].strip() if len(line) > 16 else ''
    res_name = line[17:20].strip()
    chain_id = line[21].strip() if len(line) > 21 else ''
    insertion_code = line[26].strip() if len(line) > 26 else ''

    try:
        res_num = int(line[22:26])
        coords = (float(line[30:38]), float(line[38:46]), float(line[46:54]))
    except ValueError as e:
        raise InputError(f"Malformed coordinate record: {line.rstrip()!r}") from e

    # Occupancy (columns 55-60) and B-factor (columns 61-66) default when blank
    try:
        occupancy = float(line[54:60])
    except ValueError:
        occupancy = 1.0
    try:
        b_factor = float(line[60:66])
    except ValueError:
        b_factor = 0.0

    element = line[76:78].strip().upper() if len(line) > 76 else ''
    if not element:
        element = _infer_element(atom_name)

    atom = ParsedAtom(
        atom_name=atom_name,
        coords=coords,
        element=element,
        altloc=altloc,
        occupancy=occupancy,
        b_factor=b_factor,
    )
    return chain_id, res_name, insertion_code, res_num, record_type, atom


def is_amino_acid_name(res_name: str) -> bool:
    """Standard amino acid or a known variant/modified residue."""
    res_name = res_name.strip().upper()
    return RESIDUE_NAME_MAPPING.get(res_name, res_name) in AMINO_ACID_LETTERS


def parse_seqres_line(line: str) -> Tuple[str, List[str]]:
    """'SEQRES   1 A   21  GLY ILE VAL ...' -> ('A', ['GLY', 'ILE', 'VAL', ...])."""
    chain_id = line[11].strip() if len(line) > 11 else ''
    return chain_id, line[19:].split()


def has_backbone(atoms: Sequence[ParsedAtom]) -> bool:
    """Whether a residue carries the N, CA and C atoms of a polymer residue."""
    names = {atom.atom_name for atom in atoms}
    return all(name in names for name in POLYMER_BACKBONE_ATOMS)


def structure_id_from_path(path: str) -> str:
    """'/data/pdb1abc.ent.gz' -> '1abc', '/data/2GB1.cif' -> '2GB1'."""
    name = os.path.basename(path)
    if name.lower().endswith('.gz'):
        name = name[:-3]
    stem, ext = os.path.splitext(name)
    if ext.lower() == '.ent' and stem.lower().startswith('pdb'):
        stem = stem[3:]
    return stem


def open_text(path: str):
    if path.lower().endswith('.gz'):
        return gzip.open(path, 'rt')
    return open(path, 'r')


# ============================================================================
# PDBSource - Main API
# ============================================================================

class PDBSource(StructureSource):
    """
    PDB reader producing ParsedStructures.

    A HETATM group belongs to the polymer when it carries backbone N/CA/C
    atoms or is followed by its chain's TER record; such groups go to the
    adapter, which keeps or drops them by residue type. Other HETATM groups
    are ligands.

    Attributes:
        remove_ligands: Drop HETATM groups that are not part of the polymer
    """

    def __init__(self, remove_ligands: bool = True):
        self.remove_ligands = remove_ligands

    def read(self, path: str, chain_id: Optional[str] = None) -> ParsedStructure:
        """
        Read the first model of a PDB file.

        Args:
            path: Path to a .pdb/.ent file, optionally gzip-compressed
            chain_id: Keep only this chain

        Raises:
            InputError: If the file is missing, unreadable or has no atoms
        """
        if not os.path.exists(path):
            raise InputError(f"PDB file not found: {path}")

        try:
            with open_text(path) as f:
                lines = f.readlines()
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Failed to read PDB file {path}: {e}") from e

        source_id = structure_id_from_path(path)
        chains: Dict[str, ParsedChain] = {}
        residues: Dict[Tuple[str, int, str], ParsedResidue] = {}
        seqres: Dict[str, List[str]] = {}
        # TER records seen per chain, and the count when each hetero group started
        ter_count: Dict[str, int] = {}
        het_ter: Dict[Tuple[str, int, str], int] = {}
        last_chain = ''

        for line in lines:
            if line.startswith('ENDMDL'):
                break
            if line.startswith('SEQRES'):
                seq_chain, names = parse_seqres_line(line)
                seqres.setdefault(seq_chain, []).extend(names)
                continue
            if line.startswith('TER'):
                ter_chain = line[21].strip() if len(line) > 21 else ''
                ter_chain = ter_chain or last_chain
                ter_count[ter_chain] = ter_count.get(ter_chain, 0) + 1
                continue
            hetero = is_hetatm_record(line)
            if not (is_atom_record(line) or hetero):
                continue
            if is_hydrogen(line):
                continue

            chain, res_name, icode, res_num, _, atom = parse_pdb_line(line)
            last_chain = chain
            if chain_id is not None and chain != chain_id:
                continue
            if res_name in WATER_RESIDUES:
                continue

            key = (chain, res_num, icode)
            residue = residues.get(key)
            if residue is None:
                residue = ParsedResidue(
                    res_name=res_name,
                    res_num=res_num,
                    insertion_code=icode,
                    hetero=hetero,
                )
                residues[key] = residue
                if hetero and not is_amino_acid_name(res_name):
                    het_ter[key] = ter_count.get(chain, 0)
                if chain not in chains:
                    chains[chain] = ParsedChain(chain_id=chain)
                chains[chain].residues.append(residue)
            residue.atoms.append(atom)

        ligands = set()
        if self.remove_ligands:
            for key, ter_before in het_ter.items():
                followed_by_ter = ter_count.get(key[0], 0) > ter_before
                if not (followed_by_ter or has_backbone(residues[key].atoms)):
                    ligands.add(key)

        parsed_chains = []
        n_atoms = 0
        for chain in chains.values():
            chain.residues = [
                r for r in chain.residues
                if (chain.chain_id, r.res_num, r.insertion_code) not in ligands
            ]
            if not chain.residues:
                continue
            if chain.chain_id in seqres:
                positions = align_to_sequence(
                    [r.res_name for r in chain.residues], seqres[chain.chain_id]
                )
                annotate_gaps(chain, positions)
            n_atoms += sum(len(r.atoms) for r in chain.residues)
            parsed_chains.append(chain)

        if n_atoms == 0:
            if chain_id is not None:
                raise InputError(f"Chain {chain_id!r} not found in {path}")
            raise InputError(f"No atoms found in {path}")

        if ligands:
            logger.debug(f"{source_id}: removed {len(ligands)} ligand group(s)")

        return ParsedStructure(
            source_id=source_id,
            chains=parsed_chains,
            source_path=path,
            ligands_removed=len(ligands),
        )
