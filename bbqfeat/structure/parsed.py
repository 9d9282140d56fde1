"""
Parsed (pre-adaptation) structure records.

This is the narrow in-memory form produced by a :class:`StructureSource`:
every atom record as read, alternate locations and hetero residues included.
The adapter turns it into an immutable :class:`~bbqfeat.structure.model.Structure`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class ParsedAtom:
    """Single parsed atom record."""
    atom_name: str          # e.g., 'CA', 'CB', 'N'
    coords: Tuple[float, float, float]
    element: str = ''       # Element symbol (C, N, O, S, etc.)
    altloc: str = ''        # Alternate location indicator, '' if none
    occupancy: float = 1.0
    b_factor: float = 0.0


@dataclass
class ParsedResidue:
    res_name: str           # Residue name as found in the file, e.g. 'MSE'
    res_num: int
    insertion_code: str = ''
    hetero: bool = False
    atoms: List[ParsedAtom] = field(default_factory=list)
    gap_before: int = 0     # unobserved entity residues just before this one


@dataclass
class ParsedChain:
    chain_id: str
    residues: List[ParsedResidue] = field(default_factory=list)
    polymer_type: Optional[str] = None   # None: let the adapter infer it


@dataclass
class ParsedStructure:
    source_id: str
    chains: List[ParsedChain] = field(default_factory=list)
    source_path: Optional[str] = None
    ligands_removed: int = 0     # hetero groups removed by the source


class StructureSource(ABC):
    """Capability interface for anything that can produce a ParsedStructure."""

    @abstractmethod
    def read(self, path: str, chain_id: Optional[str] = None) -> ParsedStructure:
        """Read one structure, optionally restricted to a single chain."""
