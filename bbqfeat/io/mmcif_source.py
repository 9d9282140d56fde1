"""
mmCIF Structure Source.

Reads mmCIF files (optionally gzip-compressed) through Biopython's
``MMCIFParser``. Chain polymer types are taken from ``_entity_poly`` when the
file declares them; otherwise the adapter infers them from residue names.
``_pdbx_poly_seq_scheme`` places residues on the entity sequence: hetero
groups listed there are polymer residues, and unobserved entries become
per-residue gap counts.
"""

import logging
import os
from typing import Dict, Optional, Tuple

from Bio.PDB import MMCIFParser
from Bio.PDB.MMCIF2Dict import MMCIF2Dict

from ..constants import (
    POLYDEOXYRIBONUCLEOTIDE,
    POLYPEPTIDE,
    POLYRIBONUCLEOTIDE,
    WATER_RESIDUES,
)
from ..errors import InputError
from ..structure.parsed import ParsedAtom, ParsedChain, ParsedResidue, ParsedStructure, StructureSource
from ..structure.sequence import annotate_gaps
from .pdb_source import has_backbone, is_amino_acid_name, open_text, structure_id_from_path

logger = logging.getLogger(__name__)


def normalize_entity_poly_type(poly_type: str) -> str:
    """'polypeptide(L)' -> 'polypeptide'; other types are lowercased as declared."""
    value = poly_type.strip().strip("'\"").lower()
    if value.startswith('polypeptide'):
        return POLYPEPTIDE
    if value == POLYDEOXYRIBONUCLEOTIDE:
        return POLYDEOXYRIBONUCLEOTIDE
    if value == POLYRIBONUCLEOTIDE:
        return POLYRIBONUCLEOTIDE
    return value


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def declared_polymer_types(mmcif_dict: Dict) -> Dict[str, str]:
    """Map author chain id -> polymer type from ``_entity_poly``."""
    types = _as_list(mmcif_dict.get('_entity_poly.type'))
    strands = _as_list(mmcif_dict.get('_entity_poly.pdbx_strand_id'))
    declared: Dict[str, str] = {}
    for poly_type, strand_ids in zip(types, strands):
        for chain_id in strand_ids.split(','):
            chain_id = chain_id.strip()
            if chain_id:
                declared[chain_id] = normalize_entity_poly_type(poly_type)
    return declared


def _ins_code(value: str) -> str:
    value = value.strip()
    return '' if value in ('.', '?') else value


def poly_seq_positions(mmcif_dict: Dict) -> Dict[str, Dict[Tuple[int, str], int]]:
    """
    Map author chain id -> {(author number, insertion code): sequence index}
    from ``_pdbx_poly_seq_scheme``.

    Indices are zero-based positions in the entity sequence; unobserved
    residues keep their slot, so index differences count them.
    """
    strands = _as_list(mmcif_dict.get('_pdbx_poly_seq_scheme.pdb_strand_id'))
    seq_ids = _as_list(mmcif_dict.get('_pdbx_poly_seq_scheme.seq_id'))
    numbers = _as_list(mmcif_dict.get('_pdbx_poly_seq_scheme.pdb_seq_num'))
    icodes = _as_list(mmcif_dict.get('_pdbx_poly_seq_scheme.pdb_ins_code'))
    if len(icodes) != len(numbers):
        icodes = ['.'] * len(numbers)

    positions: Dict[str, Dict[Tuple[int, str], int]] = {}
    for strand, seq_id, number, icode in zip(strands, seq_ids, numbers, icodes):
        try:
            key = (int(number), _ins_code(icode))
            index = int(seq_id) - 1
        except ValueError:
            continue
        # Microheterogeneity repeats a seq_id; the first monomer keeps the slot.
        positions.setdefault(strand.strip(), {}).setdefault(key, index)
    return positions


class MMCIFSource(StructureSource):
    """
    mmCIF reader producing ParsedStructures (first model only).

    Attributes:
        remove_ligands: Drop hetero groups that are not part of the polymer
    """

    def __init__(self, remove_ligands: bool = True):
        self.remove_ligands = remove_ligands
        self._parser = MMCIFParser(QUIET=True)

    def read(self, path: str, chain_id: Optional[str] = None) -> ParsedStructure:
        if not os.path.exists(path):
            raise InputError(f"mmCIF file not found: {path}")

        source_id = structure_id_from_path(path)
        try:
            with open_text(path) as handle:
                mmcif_dict = MMCIF2Dict(handle)
            with open_text(path) as handle:
                structure = self._parser.get_structure(source_id, handle)
        except Exception as exc:  # Biopython parser internals
            raise InputError(f"Failed to parse mmCIF file {path}: {exc}") from exc

        try:
            model = next(structure.get_models())
        except StopIteration as exc:
            raise InputError(f"mmCIF file {path} does not contain any models") from exc

        declared = declared_polymer_types(mmcif_dict)
        sequence_positions = poly_seq_positions(mmcif_dict)
        chains = []
        ligands = 0
        n_atoms = 0

        for bio_chain in model:
            if chain_id is not None and bio_chain.id != chain_id:
                continue
            parsed_chain = ParsedChain(
                chain_id=bio_chain.id, polymer_type=declared.get(bio_chain.id)
            )
            chain_positions = sequence_positions.get(bio_chain.id, {})
            positions = []
            for bio_residue in bio_chain:
                hetflag, res_num, icode = bio_residue.id
                res_name = bio_residue.get_resname().strip()
                if hetflag == 'W' or res_name in WATER_RESIDUES:
                    continue
                hetero = hetflag.startswith('H_')
                key = (int(res_num), icode.strip())

                atoms = [
                    ParsedAtom(
                        atom_name=atom.get_id(),
                        coords=tuple(float(c) for c in atom.get_coord()),
                        element=(atom.element or '').upper(),
                        altloc=atom.get_altloc().strip(),
                        occupancy=float(atom.get_occupancy() if atom.get_occupancy() is not None else 1.0),
                        b_factor=float(atom.get_bfactor() or 0.0),
                    )
                    for atom in bio_residue.get_unpacked_list()
                    if (atom.element or '').upper() not in ('H', 'D')
                ]
                if not atoms:
                    continue
                in_polymer = key in chain_positions or has_backbone(atoms)
                if hetero and self.remove_ligands and not in_polymer \
                        and not is_amino_acid_name(res_name):
                    ligands += 1
                    continue

                parsed_chain.residues.append(ParsedResidue(
                    res_name=res_name,
                    res_num=key[0],
                    insertion_code=key[1],
                    hetero=hetero,
                    atoms=atoms,
                ))
                positions.append(chain_positions.get(key))
                n_atoms += len(atoms)
            if parsed_chain.residues:
                if chain_positions:
                    annotate_gaps(parsed_chain, positions)
                chains.append(parsed_chain)

        if n_atoms == 0:
            if chain_id is not None:
                raise InputError(f"Chain {chain_id!r} not found in {path}")
            raise InputError(f"No atoms found in {path}")

        if ligands:
            logger.debug(f"{source_id}: removed {ligands} ligand group(s)")

        return ParsedStructure(
            source_id=source_id,
            chains=chains,
            source_path=path,
            ligands_removed=ligands,
        )
