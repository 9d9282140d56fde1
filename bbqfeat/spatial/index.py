"""
Spatial index over the atoms of one structure.

Wraps ``scipy.spatial.cKDTree``. KD-tree queries run at ``radius + slack``
and are then filtered with an exact NumPy distance check, so the
``distance <= radius`` boundary is inclusive and exact regardless of
tree rounding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.spatial import cKDTree

from ..constants import SPATIAL_QUERY_SLACK
from ..errors import IndexBuildError
from ..structure.model import Atom, Structure


@dataclass(frozen=True)
class AtomRef:
    """Reference to one indexed atom."""
    index: int              # position in the index (stable input order)
    chain_index: int
    residue_index: int
    atom_name: str

    @property
    def residue_key(self) -> Tuple[int, int]:
        return (self.chain_index, self.residue_index)


class SpatialIndex:
    """
    Read-only spatial view of a structure snapshot.

    Built once per structure; all query methods are side-effect free so
    concurrent reads need no synchronization.
    """

    def __init__(self, coords: np.ndarray, refs: Sequence[AtomRef]):
        coords = np.array(coords, dtype=np.float64).reshape(-1, 3)
        if coords.shape[0] == 0:
            raise IndexBuildError("Cannot build a spatial index over zero atoms")
        if coords.shape[0] != len(refs):
            raise IndexBuildError(
                f"Coordinate/reference count mismatch: {coords.shape[0]} vs {len(refs)}"
            )
        if not np.all(np.isfinite(coords)):
            raise IndexBuildError("Atom coordinates contain non-finite values")
        coords.setflags(write=False)
        self._coords = coords
        self._refs: Tuple[AtomRef, ...] = tuple(refs)
        self._tree = cKDTree(coords)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, source: Union[Structure, Iterable[Atom]]) -> "SpatialIndex":
        """Index every atom of a Structure, or a bare sequence of Atoms."""
        coords: List[Tuple[float, float, float]] = []
        refs: List[AtomRef] = []
        if isinstance(source, Structure):
            for ci, chain in enumerate(source.chains):
                for ri, residue in enumerate(chain.residues):
                    for name, atom in residue.atoms.items():
                        refs.append(AtomRef(len(refs), ci, ri, name))
                        coords.append(atom.coords)
        else:
            for atom in source:
                refs.append(AtomRef(len(refs), -1, -1, atom.name))
                coords.append(atom.coords)
        return cls(np.asarray(coords, dtype=np.float64), refs)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._refs)

    @property
    def coords(self) -> np.ndarray:
        return self._coords

    @property
    def refs(self) -> Tuple[AtomRef, ...]:
        return self._refs

    def ref(self, index: int) -> AtomRef:
        return self._refs[index]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query_within(self, point, radius: float) -> List[AtomRef]:
        """All atoms with distance <= radius from ``point``, in input order."""
        p = np.asarray(getattr(point, "coords", point), dtype=np.float64)
        if radius < 0:
            return []
        candidates = self._tree.query_ball_point(p, radius + SPATIAL_QUERY_SLACK)
        if not candidates:
            return []
        idx = np.asarray(sorted(candidates), dtype=np.int64)
        d = np.linalg.norm(self._coords[idx] - p, axis=1)
        return [self._refs[i] for i in idx[d <= radius]]

    def query_nearest(self, atom: Union[AtomRef, int], k: int) -> List[AtomRef]:
        """
        The ``k`` atoms nearest to an indexed atom (itself excluded), ascending
        distance with ties broken by input order.
        """
        index = atom.index if isinstance(atom, AtomRef) else int(atom)
        n_other = len(self._refs) - 1
        k = min(int(k), n_other)
        if k <= 0:
            return []
        p = self._coords[index]
        # k+1 includes the atom itself; the k-th neighbour's distance bounds all ties.
        dists, _ = self._tree.query(p, k=k + 1)
        bound = float(np.atleast_1d(dists)[-1])
        candidates = np.asarray(
            self._tree.query_ball_point(p, bound + SPATIAL_QUERY_SLACK), dtype=np.int64
        )
        candidates = candidates[candidates != index]
        d = np.linalg.norm(self._coords[candidates] - p, axis=1)
        order = np.lexsort((candidates, d))
        return [self._refs[i] for i in candidates[order][:k]]

    def pairs_within(self, radius: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Atom index pairs (i < j) with distance <= radius.

        Returns (i, j, distance) arrays sorted by (i, j).
        """
        pairs = self._tree.query_pairs(radius + SPATIAL_QUERY_SLACK, output_type='ndarray')
        if pairs.size == 0:
            empty = np.empty(0, dtype=np.int64)
            return empty, empty.copy(), np.empty(0, dtype=np.float64)
        pairs = np.sort(pairs.astype(np.int64), axis=1)
        d = np.linalg.norm(self._coords[pairs[:, 0]] - self._coords[pairs[:, 1]], axis=1)
        keep = d <= radius
        pairs, d = pairs[keep], d[keep]
        order = np.lexsort((pairs[:, 1], pairs[:, 0]))
        return pairs[order, 0], pairs[order, 1], d[order]

    def distance(self, i: int, j: int) -> float:
        return float(np.linalg.norm(self._coords[i] - self._coords[j]))


def build_index(source: Union[Structure, Iterable[Atom]]) -> SpatialIndex:
    return SpatialIndex.build(source)
