"""
Structure Representation

Immutable chain/residue/atom model consumed by every featurization stage.
Instances are created by :func:`bbqfeat.structure.adapter.adapt` and never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

import numpy as np


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class Atom:
    """Single atom with its 3-D coordinate."""
    name: str                               # e.g., 'CA', 'CB', 'N'
    coords: Tuple[float, float, float]
    element: str = ''
    occupancy: float = 1.0
    altloc: str = ''                        # Alternate location kept, '' if none

    @property
    def xyz(self) -> np.ndarray:
        return np.asarray(self.coords, dtype=np.float64)


@dataclass(frozen=True, order=True)
class ResidueId:
    """Residue sequence number with optional insertion code."""
    number: int
    insertion_code: str = ''

    def __str__(self) -> str:
        return f"{self.number}{self.insertion_code}"


@dataclass(frozen=True)
class Residue:
    res_id: ResidueId
    res_type: str                           # canonical 3-letter type, e.g. 'ALA'
    atoms: Mapping[str, Atom] = field(default_factory=dict)
    hetero: bool = False
    gap_before: int = 0                     # unobserved entity residues before this one

    def __post_init__(self) -> None:
        if not isinstance(self.atoms, MappingProxyType):
            object.__setattr__(self, "atoms", MappingProxyType(dict(self.atoms)))

    def atom(self, name: str) -> Optional[Atom]:
        return self.atoms.get(name)

    def has_atoms(self, *names: str) -> bool:
        return all(n in self.atoms for n in names)

    @property
    def number(self) -> int:
        return self.res_id.number

    @property
    def insertion_code(self) -> str:
        return self.res_id.insertion_code

    def __hash__(self) -> int:
        return hash((self.res_id, self.res_type, tuple(self.atoms)))

    def __reduce__(self):
        # mappingproxy is not picklable; rebuild from a plain dict.
        return (
            Residue,
            (self.res_id, self.res_type, dict(self.atoms), self.hetero, self.gap_before),
        )


@dataclass(frozen=True)
class Chain:
    chain_id: str
    residues: Tuple[Residue, ...] = ()
    polymer_type: str = 'polypeptide'

    def __len__(self) -> int:
        return len(self.residues)

    def __iter__(self) -> Iterator[Residue]:
        return iter(self.residues)


@dataclass(frozen=True)
class Structure:
    """
    Ordered sequence of chains identified by a source identifier.

    ``dropped_residues`` and ``ligands_removed`` are diagnostic counters
    filled by the adapter; they are never written into feature records.
    """
    source_id: str
    chains: Tuple[Chain, ...] = ()
    dropped_residues: int = 0
    ligands_removed: int = 0

    def __iter__(self) -> Iterator[Chain]:
        return iter(self.chains)

    @property
    def num_residues(self) -> int:
        return sum(len(c) for c in self.chains)

    @property
    def num_atoms(self) -> int:
        return sum(len(r.atoms) for c in self.chains for r in c.residues)

    def residue_keys(self) -> Iterator[Tuple[int, int]]:
        """Yield (chain_index, residue_index) in canonical order."""
        for ci, chain in enumerate(self.chains):
            for ri in range(len(chain.residues)):
                yield (ci, ri)

    def residue(self, key: Tuple[int, int]) -> Residue:
        ci, ri = key
        return self.chains[ci].residues[ri]

    def chain_ids(self) -> Tuple[str, ...]:
        return tuple(c.chain_id for c in self.chains)
