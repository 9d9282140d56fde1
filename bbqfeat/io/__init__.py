"""Structure readers, input resolution and feature writers."""

from .pdb_source import PDBSource, parse_pdb_line, structure_id_from_path
from .mmcif_source import MMCIFSource
from .inputs import (
    StructureInput,
    find_structure_file,
    parse_code_and_chain,
    read_list_file,
    read_structure,
    source_for_path,
)
from .writers import format_value, tsv_header, tsv_row, write_records, write_torch, write_tsv

__all__ = [
    "PDBSource",
    "MMCIFSource",
    "parse_pdb_line",
    "structure_id_from_path",
    "StructureInput",
    "find_structure_file",
    "parse_code_and_chain",
    "read_list_file",
    "read_structure",
    "source_for_path",
    "format_value",
    "tsv_header",
    "tsv_row",
    "write_records",
    "write_torch",
    "write_tsv",
]
