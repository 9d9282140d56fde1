"""
Feature record serializers.

- ``pt``:  ``torch.save`` of the tensor layout from
  :func:`bbqfeat.features.tensors.records_to_tensors` plus metadata
- ``tsv``: one row per residue, fields in declared order, MISSING as ``NA``
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import torch

from ..config import FeaturizerConfig
from ..constants import OUTPUT_FORMATS, TSV_MISSING_TOKEN
from ..errors import ConfigError
from ..features.assembler import PAD_PARTNER, PARTNER_FIELD_NAMES, FeatureRecord
from ..features.residue_geometry import RESIDUE_DESCRIPTOR_NAMES
from ..features.tensors import records_to_tensors
from ..geometry import is_missing

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def format_value(value: Any) -> str:
    """Text form of one field: NA for MISSING, 1/0 for flags, %.3f for floats."""
    if is_missing(value):
        return TSV_MISSING_TOKEN
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def tsv_header(config: FeaturizerConfig) -> List[str]:
    columns = [
        'structure_id', 'chain_id', 'residue_number', 'insertion_code', 'residue_type',
        'ca_x', 'ca_y', 'ca_z',
    ]
    columns.extend(RESIDUE_DESCRIPTOR_NAMES)
    columns.extend(['chain_break_before', 'gap_before', 'context', 'partner_count'])
    for k in range(config.max_partners):
        columns.extend(f"partner{k}_{name}" for name in PARTNER_FIELD_NAMES)
    return columns


def tsv_row(record: FeatureRecord, config: FeaturizerConfig) -> List[str]:
    if is_missing(record.ca_coord):
        ca = [TSV_MISSING_TOKEN] * 3
    else:
        ca = [format_value(float(c)) for c in record.ca_coord]
    row = [
        record.structure_id,
        record.chain_id,
        format_value(record.residue_number),
        record.insertion_code,
        record.residue_type,
        *ca,
    ]
    row.extend(format_value(v) for v in record.descriptors)
    row.append(format_value(record.chain_break_before))
    row.append(format_value(record.gap_before))
    row.append(','.join(str(t) for t in record.context))
    row.append(format_value(record.partner_count))

    partners = list(record.partners[:config.max_partners])
    partners.extend([PAD_PARTNER] * (config.max_partners - len(partners)))
    for partner in partners:
        row.extend(format_value(v) for v in partner.values())
    return row


def write_tsv(
    records: Sequence[FeatureRecord],
    path: PathLike,
    config: Optional[FeaturizerConfig] = None,
) -> Path:
    config = config or FeaturizerConfig()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write('\t'.join(tsv_header(config)) + '\n')
        for record in records:
            f.write('\t'.join(tsv_row(record, config)) + '\n')
    return path


def write_torch(
    records: Sequence[FeatureRecord],
    path: PathLike,
    config: Optional[FeaturizerConfig] = None,
) -> Path:
    config = config or FeaturizerConfig()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    save_dict = records_to_tensors(records, config)
    save_dict['structure_id'] = records[0].structure_id if records else ''
    save_dict['config'] = config.to_dict()
    torch.save(save_dict, path)
    return path


def write_records(
    records: Sequence[FeatureRecord],
    path: PathLike,
    fmt: str = 'pt',
    config: Optional[FeaturizerConfig] = None,
) -> Path:
    """Write records in ``fmt`` ('pt' or 'tsv')."""
    if fmt == 'pt':
        return write_torch(records, path, config)
    if fmt == 'tsv':
        return write_tsv(records, path, config)
    raise ConfigError(f"Unsupported output format: {fmt!r}. Allowed: {list(OUTPUT_FORMATS)}")
