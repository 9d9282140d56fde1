"""Stateless geometric computation functions for protein structures.

Pure functions with no class dependencies, safe to call from any thread.
Every function returns :data:`MISSING` instead of NaN/Inf when an input atom
is absent or an intermediate vector is shorter than ``GEOMETRY_EPSILON``.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import numpy as np

from .constants import GEOMETRY_EPSILON


class MissingValue:
    """Sentinel for an undefined descriptor (absent atom or degenerate geometry)."""

    _instance: Optional["MissingValue"] = None

    def __new__(cls) -> "MissingValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (MissingValue, ())


MISSING = MissingValue()

Measurement = Union[float, MissingValue]


def is_missing(value: Any) -> bool:
    return value is MISSING


def _as_point(p: Any) -> Optional[np.ndarray]:
    """Atom, coordinate triple or array -> (3,) float array; None for absent."""
    if p is None or p is MISSING:
        return None
    coords = getattr(p, "coords", p)
    arr = np.asarray(coords, dtype=np.float64)
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        return None
    return arr


def _points(*args: Any) -> Optional[Sequence[np.ndarray]]:
    points = [_as_point(a) for a in args]
    if any(p is None for p in points):
        return None
    return points


def bond_length(a: Any, b: Any, eps: float = GEOMETRY_EPSILON) -> Measurement:
    """Distance between two atoms in Angstrom."""
    points = _points(a, b)
    if points is None:
        return MISSING
    d = float(np.linalg.norm(points[1] - points[0]))
    if d < eps:
        return MISSING
    return d


def bond_angle(a: Any, b: Any, c: Any, eps: float = GEOMETRY_EPSILON) -> Measurement:
    """Angle a-b-c at ``b`` in degrees, within [0, 180]."""
    points = _points(a, b, c)
    if points is None:
        return MISSING
    pa, pb, pc = points
    v1 = pa - pb
    v2 = pc - pb
    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 < eps or n2 < eps:
        return MISSING
    cos_angle = np.dot(v1, v2) / (n1 * n2)
    return float(np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0))))


def dihedral(a: Any, b: Any, c: Any, d: Any, eps: float = GEOMETRY_EPSILON) -> Measurement:
    """
    Torsion angle a-b-c-d in degrees, within [-180, 180].

    Uses the atan2 form (IUPAC sign convention). Collinear a-b-c or b-c-d
    triples make a plane normal vanish and yield MISSING.
    """
    points = _points(a, b, c, d)
    if points is None:
        return MISSING
    p0, p1, p2, p3 = points
    b1 = p1 - p0
    b2 = p2 - p1
    b3 = p3 - p2

    b2_norm = np.linalg.norm(b2)
    if np.linalg.norm(b1) < eps or b2_norm < eps or np.linalg.norm(b3) < eps:
        return MISSING

    n1 = np.cross(b1, b2)
    n2 = np.cross(b2, b3)
    n1_norm = np.linalg.norm(n1)
    n2_norm = np.linalg.norm(n2)
    if n1_norm < eps or n2_norm < eps:
        return MISSING
    n1 /= n1_norm
    n2 /= n2_norm

    m1 = np.cross(n1, b2 / b2_norm)
    x = np.dot(n1, n2)
    y = np.dot(m1, n2)
    return float(np.degrees(np.arctan2(-y, x)))


def place_backbone_hydrogen(
    n: Any, prev_c: Any, prev_o: Any, bond_length_nh: float = 1.0, eps: float = GEOMETRY_EPSILON
) -> Optional[np.ndarray]:
    """
    Amide hydrogen position from the previous residue's carbonyl (DSSP rule):
    H = N + unit(C_prev - O_prev) * bond_length_nh. None when undefined.
    """
    points = _points(n, prev_c, prev_o)
    if points is None:
        return None
    pn, pc, po = points
    co = pc - po
    norm = np.linalg.norm(co)
    if norm < eps:
        return None
    return pn + co / norm * bond_length_nh
