from .model import Atom, Chain, Residue, ResidueId, Structure
from .parsed import ParsedAtom, ParsedChain, ParsedResidue, ParsedStructure, StructureSource
from .validator import ResidueNameValidator, SequenceValidator
from .adapter import StructureAdapter, adapt, select_altlocs
from .connectivity import chain_links, is_connected, sequence_consecutive
from .sequence import align_to_sequence, annotate_gaps, gaps_from_positions, one_letter

__all__ = [
    "Atom",
    "Chain",
    "Residue",
    "ResidueId",
    "Structure",
    "ParsedAtom",
    "ParsedChain",
    "ParsedResidue",
    "ParsedStructure",
    "StructureSource",
    "SequenceValidator",
    "ResidueNameValidator",
    "StructureAdapter",
    "adapt",
    "select_altlocs",
    "chain_links",
    "is_connected",
    "sequence_consecutive",
    "align_to_sequence",
    "annotate_gaps",
    "gaps_from_positions",
    "one_letter",
]
