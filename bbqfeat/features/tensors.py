"""Fixed-shape tensor layout of assembled feature records.

Every MISSING value becomes FILL_VALUE with a matching boolean mask, so no
tensor ever contains NaN. Partner and context dimensions are padded to the
configured window regardless of the padding policy; the masks and
``partner_count`` tell real entries from padding.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

import torch

from ..config import FeaturizerConfig
from ..constants import DEFAULT_RBF_BINS, DEFAULT_RBF_D_MAX, FILL_VALUE, PAD_TOKEN
from ..geometry import is_missing
from .assembler import FeatureRecord, residue_token
from .residue_geometry import (
    DIHEDRAL_DESCRIPTOR_INDICES,
    NUM_RESIDUE_DESCRIPTORS,
    RESIDUE_DESCRIPTOR_NAMES,
)

# Numeric partner fields, in PARTNER_FIELD_NAMES order
PARTNER_TENSOR_FIELDS = (
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


def rbf_encode(
    distances: torch.Tensor,
    d_min: float = 0.0,
    d_max: float = DEFAULT_RBF_D_MAX,
    num_rbf: int = DEFAULT_RBF_BINS,
) -> torch.Tensor:
    """Gaussian Radial Basis Function encoding of distances.

    Args:
        distances: Arbitrary-shape distance tensor.
        d_min: Minimum center value.
        d_max: Maximum center value.
        num_rbf: Number of Gaussian basis functions.

    Returns:
        Encoded tensor with shape (*distances.shape, num_rbf).
    """
    mu = torch.linspace(d_min, d_max, num_rbf, device=distances.device)
    sigma = (d_max - d_min) / num_rbf
    return torch.exp(-((distances.unsqueeze(-1) - mu) ** 2) / (2 * sigma ** 2))


def _value(x: Any) -> float:
    if is_missing(x):
        return FILL_VALUE
    return float(x)


def _mask(x: Any) -> bool:
    return not is_missing(x)


def records_to_tensors(
    records: Sequence[FeatureRecord],
    config: Optional[FeaturizerConfig] = None,
) -> Dict[str, Any]:
    """
    Stack feature records of one structure into tensors.

    Returns:
        Dict with residue_descriptors, residue_descriptor_mask,
        dihedrals_sincos, dihedrals_mask, ca_coords, ca_mask,
        partner_features, partner_mask, partner_index, partner_distance_rbf,
        context_tokens, partner_count, chain_break_before, gap_before, residue_tokens,
        residue_numbers, and the identity lists chain_ids, insertion_codes,
        residue_types, descriptor_names, partner_feature_names.
    """
    config = config or FeaturizerConfig()
    n = len(records)
    num_partners = config.max_partners
    context_len = 2 * config.sequence_window + 1
    num_fields = len(PARTNER_TENSOR_FIELDS)

    descriptors = torch.full((n, NUM_RESIDUE_DESCRIPTORS), FILL_VALUE, dtype=torch.float32)
    descriptor_mask = torch.zeros(n, NUM_RESIDUE_DESCRIPTORS, dtype=torch.bool)
    ca_coords = torch.full((n, 3), FILL_VALUE, dtype=torch.float32)
    ca_mask = torch.zeros(n, dtype=torch.bool)
    partner_features = torch.full((n, num_partners, num_fields), FILL_VALUE, dtype=torch.float32)
    partner_field_mask = torch.zeros(n, num_partners, num_fields, dtype=torch.bool)
    partner_mask = torch.zeros(n, num_partners, dtype=torch.bool)
    partner_index = torch.full((n, num_partners), -1, dtype=torch.long)
    context_tokens = torch.full((n, context_len), PAD_TOKEN, dtype=torch.long)

    for i, record in enumerate(records):
        for d, value in enumerate(record.descriptors):
            if _mask(value):
                descriptors[i, d] = _value(value)
                descriptor_mask[i, d] = True

        if _mask(record.ca_coord):
            ca_coords[i] = torch.tensor(record.ca_coord, dtype=torch.float32)
            ca_mask[i] = True

        real = [p for p in record.partners if not p.is_pad][:num_partners]
        for j, partner in enumerate(real):
            partner_mask[i, j] = True
            partner_index[i, j] = partner.position
            for f, name in enumerate(PARTNER_TENSOR_FIELDS):
                value = getattr(partner, name)
                if _mask(value):
                    partner_features[i, j, f] = _value(value)
                    partner_field_mask[i, j, f] = True

        context = list(record.context)[:context_len]
        if context:
            context_tokens[i, :len(context)] = torch.tensor(context, dtype=torch.long)

    # Sin/cos encoding of phi/psi/omega (N, 6), zero where undefined
    dihedral_idx = list(DIHEDRAL_DESCRIPTOR_INDICES)
    dihedrals_mask = descriptor_mask[:, dihedral_idx]
    radians = descriptors[:, dihedral_idx] * (math.pi / 180.0)
    dihedrals_sincos = torch.zeros(n, 2 * len(dihedral_idx))
    dihedrals_sincos[:, 0::2] = torch.sin(radians)
    dihedrals_sincos[:, 1::2] = torch.cos(radians)
    dihedrals_sincos *= dihedrals_mask.repeat_interleave(2, dim=1).float()

    min_dist_col = PARTNER_TENSOR_FIELDS.index("min_distance")
    partner_distance_rbf = rbf_encode(partner_features[:, :, min_dist_col])
    partner_distance_rbf = partner_distance_rbf * partner_mask.unsqueeze(-1).float()

    chain_ids: List[str] = [r.chain_id for r in records]
    return {
        'residue_descriptors': descriptors,
        'residue_descriptor_mask': descriptor_mask,
        'dihedrals_sincos': dihedrals_sincos,
        'dihedrals_mask': dihedrals_mask,
        'ca_coords': ca_coords,
        'ca_mask': ca_mask,
        'partner_features': partner_features,
        'partner_feature_mask': partner_field_mask,
        'partner_mask': partner_mask,
        'partner_index': partner_index,
        'partner_distance_rbf': partner_distance_rbf,
        'context_tokens': context_tokens,
        'partner_count': torch.tensor([r.partner_count for r in records], dtype=torch.long),
        'chain_break_before': torch.tensor(
            [r.chain_break_before for r in records], dtype=torch.bool
        ),
        'gap_before': torch.tensor([r.gap_before for r in records], dtype=torch.long),
        'residue_tokens': torch.tensor(
            [residue_token(r.residue_type) for r in records], dtype=torch.long
        ),
        'residue_numbers': torch.tensor([r.residue_number for r in records], dtype=torch.long),
        'chain_ids': chain_ids,
        'insertion_codes': [r.insertion_code for r in records],
        'residue_types': [r.residue_type for r in records],
        'descriptor_names': list(RESIDUE_DESCRIPTOR_NAMES),
        'partner_feature_names': list(PARTNER_TENSOR_FIELDS),
        'num_residues': n,
    }
