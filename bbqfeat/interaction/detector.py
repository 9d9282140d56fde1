"""
Residue-pair interaction detection.

Candidate residue pairs come from one spatial-index pair query at the
neighbour radius; each candidate pair is then classified as
backbone-adjacent, contact and/or candidate hydrogen bond. Records are
emitted in a deterministic order so that repeated runs over the same
structure and thresholds produce identical output.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..config import FeaturizerConfig
from ..geometry import MISSING, Measurement
from ..spatial.index import SpatialIndex
from ..structure.connectivity import chain_links, sequence_consecutive
from ..structure.model import Residue, Structure
from .hbond import best_hbond

logger = logging.getLogger(__name__)

ResidueKey = Tuple[int, int]

DONOR_FIRST = 'first'
DONOR_SECOND = 'second'


class InteractionKind(enum.IntEnum):
    """Interaction categories, in emission order."""
    BACKBONE_ADJACENT = 0
    CONTACT = 1
    CANDIDATE_HBOND = 2


@dataclass(frozen=True)
class InteractionRecord:
    """
    One detected interaction between two residues.

    ``first``/``second`` are (chain_index, residue_index) positions with
    ``first < second``. ``distance`` is the minimum inter-atom distance for
    adjacency/contact records and the donor-acceptor distance for H-bonds.
    """
    first: ResidueKey
    second: ResidueKey
    kind: InteractionKind
    distance: Measurement
    angle: Measurement = MISSING
    energy: Measurement = MISSING
    donor: Optional[str] = None             # 'first' / 'second' for H-bonds

    @property
    def sort_key(self) -> Tuple:
        donor_rank = {None: 0, DONOR_FIRST: 0, DONOR_SECOND: 1}[self.donor]
        return (self.first, self.second, int(self.kind), donor_rank)

    def involves(self, key: ResidueKey) -> bool:
        return key == self.first or key == self.second

    def partner_of(self, key: ResidueKey) -> ResidueKey:
        return self.second if key == self.first else self.first


@dataclass(frozen=True)
class Thresholds:
    contact_radius: float
    hbond_distance_max: float
    hbond_angle_min: float
    hbond_antecedent_angle_min: float
    neighbor_radius: float

    def __post_init__(self) -> None:
        floor = max(self.contact_radius, self.hbond_distance_max)
        if self.neighbor_radius is None or self.neighbor_radius < floor:
            object.__setattr__(self, "neighbor_radius", floor)

    @classmethod
    def from_config(cls, config: FeaturizerConfig) -> "Thresholds":
        return cls(
            contact_radius=float(config.contact_radius),
            hbond_distance_max=float(config.hbond_distance_max),
            hbond_angle_min=float(config.hbond_angle_min),
            hbond_antecedent_angle_min=float(config.hbond_antecedent_angle_min),
            neighbor_radius=float(config.effective_neighbor_radius),
        )


# ============================================================================
# Candidate pairs
# ============================================================================

def candidate_residue_pairs(
    structure: Structure, index: SpatialIndex, radius: float
) -> List[Tuple[int, int, float]]:
    """
    Residue pairs (global positions ``a < b``) with any atom pair within
    ``radius``, together with their minimum inter-atom distance.
    """
    offsets = np.cumsum([0] + [len(c) for c in structure.chains])
    residue_of_atom = np.fromiter(
        (offsets[ref.chain_index] + ref.residue_index for ref in index.refs),
        dtype=np.int64,
        count=len(index),
    )

    i, j, d = index.pairs_within(radius)
    a = residue_of_atom[i]
    b = residue_of_atom[j]
    keep = a != b
    lo = np.minimum(a, b)[keep]
    hi = np.maximum(a, b)[keep]
    d = d[keep]
    if lo.size == 0:
        return []

    # Group by (lo, hi); shortest distance first inside each group.
    order = np.lexsort((d, hi, lo))
    lo, hi, d = lo[order], hi[order], d[order]
    head = np.ones(lo.size, dtype=bool)
    head[1:] = (lo[1:] != lo[:-1]) | (hi[1:] != hi[:-1])
    return [(int(x), int(y), float(z)) for x, y, z in zip(lo[head], hi[head], d[head])]


# ============================================================================
# Detection
# ============================================================================

def _connected_prev(structure: Structure) -> Dict[ResidueKey, Optional[Residue]]:
    prev: Dict[ResidueKey, Optional[Residue]] = {}
    for ci, chain in enumerate(structure.chains):
        links = chain_links(chain)
        for ri in range(len(chain)):
            prev[(ci, ri)] = chain.residues[ri - 1] if links[ri] else None
    return prev


def _hbond_record(
    first: ResidueKey,
    second: ResidueKey,
    donor_res: Residue,
    acceptor_res: Residue,
    donor_prev: Optional[Residue],
    donor_side: str,
    thresholds: Thresholds,
) -> Optional[InteractionRecord]:
    hb = best_hbond(
        donor_res,
        acceptor_res,
        donor_prev,
        thresholds.hbond_distance_max,
        thresholds.hbond_angle_min,
        thresholds.hbond_antecedent_angle_min,
    )
    if hb is None:
        return None
    return InteractionRecord(
        first=first,
        second=second,
        kind=InteractionKind.CANDIDATE_HBOND,
        distance=hb.distance,
        angle=hb.angle,
        energy=hb.energy,
        donor=donor_side,
    )


def detect(
    structure: Structure,
    index: SpatialIndex,
    thresholds: Thresholds,
) -> List[InteractionRecord]:
    """
    Detect residue-pair interactions of ``structure``.

    ``index`` must have been built from the same structure. Pairs for which
    a criterion cannot be evaluated (absent atoms, degenerate geometry)
    simply yield no record of that kind.

    Returns:
        Records sorted by (first, second), then kind, then donor side
    """
    keys: List[ResidueKey] = list(structure.residue_keys())
    prev_of = _connected_prev(structure)
    records: List[InteractionRecord] = []

    for a, b, min_dist in candidate_residue_pairs(structure, index, thresholds.neighbor_radius):
        first, second = keys[a], keys[b]
        res_first = structure.residue(first)
        res_second = structure.residue(second)

        if (
            first[0] == second[0]
            and second[1] == first[1] + 1
            and sequence_consecutive(res_first, res_second)
        ):
            records.append(InteractionRecord(
                first, second, InteractionKind.BACKBONE_ADJACENT, min_dist
            ))

        if min_dist <= thresholds.contact_radius:
            records.append(InteractionRecord(first, second, InteractionKind.CONTACT, min_dist))

        if min_dist <= thresholds.hbond_distance_max:
            for donor_key, acceptor_key, side in (
                (first, second, DONOR_FIRST),
                (second, first, DONOR_SECOND),
            ):
                record = _hbond_record(
                    first,
                    second,
                    structure.residue(donor_key),
                    structure.residue(acceptor_key),
                    prev_of[donor_key],
                    side,
                    thresholds,
                )
                if record is not None:
                    records.append(record)

    records.sort(key=lambda r: r.sort_key)
    logger.debug(
        f"{structure.source_id}: {len(records)} interaction records "
        f"({sum(r.kind == InteractionKind.CANDIDATE_HBOND for r in records)} H-bond candidates)"
    )
    return records
