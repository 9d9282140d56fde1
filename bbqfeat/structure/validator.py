"""Residue-name canonicalization and support checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..constants import (
    AMINO_ACID_LETTERS,
    DNA_RESIDUES,
    POLYDEOXYRIBONUCLEOTIDE,
    POLYPEPTIDE,
    POLYRIBONUCLEOTIDE,
    RESIDUE_NAME_MAPPING,
    RNA_RESIDUES,
    STANDARD_RESIDUE_TYPES,
)


class SequenceValidator(ABC):
    """Capability interface consumed by the structure adapter."""

    @abstractmethod
    def canonicalize(self, res_name: str) -> str:
        """Map a residue name to its canonical type token."""

    @abstractmethod
    def is_supported(self, res_type: str) -> bool:
        """Whether a canonical residue type is accepted."""

    def infer_polymer_type(self, res_names: Iterable[str]) -> Optional[str]:
        """Majority polymer class of the residue names; None when none is recognized."""
        counts = {POLYPEPTIDE: 0, POLYDEOXYRIBONUCLEOTIDE: 0, POLYRIBONUCLEOTIDE: 0}
        for name in res_names:
            name = name.strip().upper()
            if self.canonicalize(name) in AMINO_ACID_LETTERS:
                counts[POLYPEPTIDE] += 1
            elif name in DNA_RESIDUES:
                counts[POLYDEOXYRIBONUCLEOTIDE] += 1
            elif name in RNA_RESIDUES:
                counts[POLYRIBONUCLEOTIDE] += 1
        if not any(counts.values()):
            # Only unknown monomers: no polymer class can be asserted.
            return None
        # Ties resolve in declaration order (polypeptide first).
        return max(counts, key=lambda k: counts[k])


class ResidueNameValidator(SequenceValidator):
    """
    Canonicalizes residue names with RESIDUE_NAME_MAPPING and checks them
    against a set of supported residue type tokens.
    """

    def __init__(self, supported_types: Optional[Iterable[str]] = None):
        if supported_types is None:
            supported_types = STANDARD_RESIDUE_TYPES
        self.supported_types = frozenset(t.strip().upper() for t in supported_types)

    def canonicalize(self, res_name: str) -> str:
        res_name = res_name.strip().upper()
        return RESIDUE_NAME_MAPPING.get(res_name, res_name)

    def is_supported(self, res_type: str) -> bool:
        return res_type in self.supported_types
