"""
Feature Assembler.

Joins per-residue geometry and residue-pair interactions into one
:class:`FeatureRecord` per residue, with a partner list of bounded length
and an optional sequence-context window.

Window padding policies:
    pad-sentinel  partners padded with PAD_PARTNER to exactly max_partners,
                  context padded with PAD_TOKEN past chain ends
    report-count  no padding; partner_count is authoritative and context
                  windows are truncated at chain ends
    None          no partner padding; context windows are shifted to stay
                  inside the chain, which must hold 2w+1 residues
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import PAD_SENTINEL, REPORT_COUNT, FeaturizerConfig
from ..constants import PAD_TOKEN, RESIDUE_TOKEN, UNK_RESIDUE_TOKEN
from ..errors import InconsistentWindowConfig
from ..geometry import MISSING, Measurement, bond_length
from ..interaction.detector import InteractionKind, InteractionRecord, ResidueKey
from ..interaction.hbond import backbone_energy
from ..structure.connectivity import chain_links
from ..structure.model import Residue, Structure
from .residue_geometry import ResidueGeometry

logger = logging.getLogger(__name__)

PARTNER_FIELD_NAMES: Tuple[str, ...] = (
    "chain_id",
    "residue_number",
    "insertion_code",
    "min_distance",
    "ca_distance",
    "sequence_separation",
    "same_chain",
    "is_adjacent",
    "is_contact",
    "is_hbond",
    "hbond_distance",
    "hbond_angle",
    "hbond_energy_out",
    "hbond_energy_in",
)

FEATURE_FIELD_NAMES: Tuple[str, ...] = (
    "structure_id",
    "chain_id",
    "residue_number",
    "insertion_code",
    "residue_type",
    "ca_coord",
    "descriptors",
    "chain_break_before",
    "gap_before",
    "context",
    "partner_count",
    "partners",
)


# ============================================================================
# Records
# ============================================================================

@dataclass(frozen=True)
class PartnerDescriptor:
    """
    Interaction summary of one partner residue, seen from the owning residue.

    ``position`` is the partner's global residue position (chain order, then
    residue order) or -1 for padding; it is not part of PARTNER_FIELD_NAMES.
    """
    chain_id: Union[str, object] = MISSING
    residue_number: Union[int, object] = MISSING
    insertion_code: Union[str, object] = MISSING
    min_distance: Measurement = MISSING
    ca_distance: Measurement = MISSING
    sequence_separation: Union[int, object] = MISSING   # same chain only
    same_chain: Union[bool, object] = MISSING
    is_adjacent: Union[bool, object] = MISSING
    is_contact: Union[bool, object] = MISSING
    is_hbond: Union[bool, object] = MISSING
    hbond_distance: Measurement = MISSING
    hbond_angle: Measurement = MISSING
    hbond_energy_out: Measurement = MISSING
    hbond_energy_in: Measurement = MISSING
    position: int = field(default=-1)

    @property
    def is_pad(self) -> bool:
        return self.position < 0

    def values(self) -> Tuple:
        return tuple(getattr(self, name) for name in PARTNER_FIELD_NAMES)


PAD_PARTNER = PartnerDescriptor()


@dataclass(frozen=True)
class FeatureRecord:
    structure_id: str
    chain_id: str
    residue_number: int
    insertion_code: str
    residue_type: str
    ca_coord: Union[Tuple[float, float, float], object]
    descriptors: Tuple[Measurement, ...]
    chain_break_before: bool
    gap_before: int                 # unobserved entity residues just before
    context: Tuple[int, ...]
    partner_count: int
    partners: Tuple[PartnerDescriptor, ...]

    def values(self) -> Tuple:
        return tuple(getattr(self, name) for name in FEATURE_FIELD_NAMES)


def residue_token(res_type: str) -> int:
    return RESIDUE_TOKEN.get(res_type, UNK_RESIDUE_TOKEN)


# ============================================================================
# Helpers
# ============================================================================

def min_atom_distance(a: Residue, b: Residue) -> Measurement:
    """Shortest heavy-atom distance between two residues."""
    if not a.atoms or not b.atoms:
        return MISSING
    xa = np.asarray([atom.coords for atom in a.atoms.values()], dtype=np.float64)
    xb = np.asarray([atom.coords for atom in b.atoms.values()], dtype=np.float64)
    d = np.linalg.norm(xa[:, None, :] - xb[None, :, :], axis=-1)
    return float(d.min())


def context_window(
    tokens: Sequence[int], i: int, w: int, policy: Optional[str]
) -> Tuple[int, ...]:
    """Sequence-context tokens for position ``i`` of one chain."""
    n = len(tokens)
    if policy == PAD_SENTINEL:
        return tuple(tokens[j] if 0 <= j < n else PAD_TOKEN for j in range(i - w, i + w + 1))
    if policy == REPORT_COUNT:
        return tuple(tokens[max(0, i - w):min(n, i + w + 1)])
    width = 2 * w + 1
    if n < width:
        raise InconsistentWindowConfig(
            f"Chain of {n} residues is shorter than the sequence window ({width}) "
            f"and window_padding_policy is None"
        )
    start = min(max(0, i - w), n - width)
    return tuple(tokens[start:start + width])


def _group_by_residue(
    interactions: Iterable[InteractionRecord],
) -> Dict[ResidueKey, Dict[ResidueKey, List[InteractionRecord]]]:
    grouped: Dict[ResidueKey, Dict[ResidueKey, List[InteractionRecord]]] = {}
    for record in interactions:
        grouped.setdefault(record.first, {}).setdefault(record.second, []).append(record)
        grouped.setdefault(record.second, {}).setdefault(record.first, []).append(record)
    return grouped


def _best_hbond(records: Sequence[InteractionRecord]) -> Optional[InteractionRecord]:
    hbonds = [r for r in records if r.kind == InteractionKind.CANDIDATE_HBOND]
    if not hbonds:
        return None
    return min(hbonds, key=lambda r: (r.distance, r.sort_key))


# ============================================================================
# Assembly
# ============================================================================

class FeatureAssembler:
    """Builds FeatureRecords for one structure."""

    def __init__(self, config: FeaturizerConfig):
        if isinstance(config.max_partners, bool) or not isinstance(config.max_partners, int) \
                or config.max_partners < 1:
            raise InconsistentWindowConfig(
                f"max_partners must be an integer >= 1, got {config.max_partners!r}"
            )
        self.config = config

    def assemble(
        self,
        structure: Structure,
        geometry: Mapping[ResidueKey, ResidueGeometry],
        interactions: Iterable[InteractionRecord],
    ) -> List[FeatureRecord]:
        config = self.config
        keys = list(structure.residue_keys())
        position = {key: i for i, key in enumerate(keys)}
        grouped = _group_by_residue(interactions)

        prev_of: Dict[ResidueKey, Optional[Residue]] = {}
        chain_tokens: List[List[int]] = []
        for ci, chain in enumerate(structure.chains):
            links = chain_links(chain)
            for ri in range(len(chain)):
                prev_of[(ci, ri)] = chain.residues[ri - 1] if links[ri] else None
            chain_tokens.append([residue_token(r.res_type) for r in chain.residues])

        records: List[FeatureRecord] = []
        for key in keys:
            ci, ri = key
            chain = structure.chains[ci]
            residue = chain.residues[ri]
            geom = geometry[key]

            partners = [
                self._describe_partner(structure, key, other, recs, prev_of, position)
                for other, recs in grouped.get(key, {}).items()
            ]
            partners.sort(key=lambda p: (
                p.min_distance if p.min_distance is not MISSING else float('inf'),
                p.position,
            ))
            partners = partners[:config.max_partners]
            partner_count = len(partners)
            if config.window_padding_policy == PAD_SENTINEL:
                partners.extend([PAD_PARTNER] * (config.max_partners - partner_count))

            records.append(FeatureRecord(
                structure_id=structure.source_id,
                chain_id=chain.chain_id,
                residue_number=residue.number,
                insertion_code=residue.insertion_code,
                residue_type=residue.res_type,
                ca_coord=geom.ca_coord if geom.ca_coord is not None else MISSING,
                descriptors=tuple(geom.descriptors),
                chain_break_before=geom.chain_break_before,
                gap_before=residue.gap_before,
                context=context_window(
                    chain_tokens[ci], ri, config.sequence_window, config.window_padding_policy
                ),
                partner_count=partner_count,
                partners=tuple(partners),
            ))

        logger.debug(f"{structure.source_id}: assembled {len(records)} feature records")
        return records

    @staticmethod
    def _describe_partner(
        structure: Structure,
        key: ResidueKey,
        other: ResidueKey,
        records: Sequence[InteractionRecord],
        prev_of: Mapping[ResidueKey, Optional[Residue]],
        position: Mapping[ResidueKey, int],
    ) -> PartnerDescriptor:
        residue = structure.residue(key)
        partner = structure.residue(other)
        same_chain = key[0] == other[0]
        kinds = {r.kind for r in records}
        hb = _best_hbond(records)
        return PartnerDescriptor(
            chain_id=structure.chains[other[0]].chain_id,
            residue_number=partner.number,
            insertion_code=partner.insertion_code,
            min_distance=min_atom_distance(residue, partner),
            ca_distance=bond_length(residue.atom("CA"), partner.atom("CA")),
            sequence_separation=abs(other[1] - key[1]) if same_chain else MISSING,
            same_chain=same_chain,
            is_adjacent=InteractionKind.BACKBONE_ADJACENT in kinds,
            is_contact=InteractionKind.CONTACT in kinds,
            is_hbond=hb is not None,
            hbond_distance=hb.distance if hb is not None else MISSING,
            hbond_angle=hb.angle if hb is not None else MISSING,
            hbond_energy_out=backbone_energy(residue, partner, prev_of[key]),
            hbond_energy_in=backbone_energy(partner, residue, prev_of[other]),
            position=position[other],
        )


def assemble(
    structure: Structure,
    geometry: Mapping[ResidueKey, ResidueGeometry],
    interactions: Iterable[InteractionRecord],
    config: Optional[FeaturizerConfig] = None,
) -> List[FeatureRecord]:
    """One FeatureRecord per residue of ``structure``, in residue order."""
    return FeatureAssembler(config or FeaturizerConfig()).assemble(
        structure, geometry, interactions
    )
