"""
Input resolution: PDB codes, list files and structure file lookup.

Structure files are looked up mmCIF first, then PDB, in the search
directory itself and in the two-letter divided layout used by PDB mirrors
(``<dir>/gb/2gb1.cif``).
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..constants import STRUCTURE_FILE_PATTERNS
from ..errors import InputError
from ..structure.parsed import ParsedStructure, StructureSource
from .mmcif_source import MMCIFSource
from .pdb_source import PDBSource, structure_id_from_path

logger = logging.getLogger(__name__)

MMCIF_SUFFIXES = ('.cif', '.cif.gz', '.mmcif', '.mmcif.gz')


@dataclass(frozen=True)
class StructureInput:
    """One unit of batch work: a structure file and an optional chain."""
    path: str
    chain_id: Optional[str] = None

    @property
    def structure_id(self) -> str:
        return structure_id_from_path(self.path)

    @property
    def name(self) -> str:
        """Identifier used for output files and diagnostics."""
        if self.chain_id:
            return f"{self.structure_id}_{self.chain_id}"
        return self.structure_id


def parse_code_and_chain(token: str) -> Tuple[str, Optional[str]]:
    """
    Split a PDB identifier into code and chain.

    Examples:
        '2gb1A'  -> ('2gb1', 'A')
        '2gb1:A' -> ('2gb1', 'A')
        '2gb1_A' -> ('2gb1', 'A')
        '2gb1'   -> ('2gb1', None)
    """
    token = token.strip()
    for sep in (':', '_'):
        if sep in token:
            code, chain = token.split(sep, 1)
            return code, (chain or None)
    if len(token) > 4:
        return token[:4], token[4:]
    return token, None


def find_structure_file(code: str, path: str = '') -> Optional[str]:
    """Locate the file for a PDB code; None if nothing matches."""
    directory = path or '.'
    variants = []
    for v in (code, code.lower(), code.upper()):
        if v not in variants:
            variants.append(v)
    directories = [directory]
    if len(code) >= 3:
        directories.append(os.path.join(directory, code[1:3].lower()))

    for pattern in STRUCTURE_FILE_PATTERNS:
        for d in directories:
            for variant in variants:
                candidate = os.path.join(d, pattern.format(code=variant))
                if os.path.isfile(candidate):
                    return candidate
    return None


def read_list_file(list_file: str, search_dir: str = '') -> List[StructureInput]:
    """
    Resolve every PDB identifier of a list file (first whitespace-delimited
    token per line; blank lines and '#' comments are ignored).

    Raises:
        InputError: If the list file cannot be read
    """
    try:
        with open(list_file, 'r') as f:
            lines = f.readlines()
    except OSError as e:
        raise InputError(f"Can't open list file {list_file}: {e}") from e

    logger.debug(f"Loading a list-file: {list_file}")
    inputs: List[StructureInput] = []
    for line in lines:
        tokens = line.split()
        if not tokens or tokens[0].startswith('#'):
            continue
        code, chain = parse_code_and_chain(tokens[0])
        fname = find_structure_file(code, search_dir)
        if fname is None:
            logger.warning(
                f"Can't find a structure file for PDB ID {code!r}; "
                f"specify the folder with --path"
            )
            continue
        inputs.append(StructureInput(fname, chain))
    logger.info(f"{len(inputs)} input files found in {list_file}")
    return inputs


def source_for_path(path: str, remove_ligands: bool = True) -> StructureSource:
    """mmCIF reader for .cif/.mmcif files, PDB reader otherwise."""
    if path.lower().endswith(MMCIF_SUFFIXES):
        return MMCIFSource(remove_ligands=remove_ligands)
    return PDBSource(remove_ligands=remove_ligands)


def read_structure(
    path: str, chain_id: Optional[str] = None, remove_ligands: bool = True
) -> ParsedStructure:
    return source_for_path(path, remove_ligands).read(path, chain_id)
