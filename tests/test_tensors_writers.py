"""Tests for bbqfeat/features/tensors.py and bbqfeat/io/writers.py."""

import pytest
import torch

from bbqfeat.config import FeaturizerConfig
from bbqfeat.constants import PAD_TOKEN
from bbqfeat.errors import ConfigError
from bbqfeat.features import (
    NUM_RESIDUE_DESCRIPTORS,
    PARTNER_FIELD_NAMES,
    PARTNER_TENSOR_FIELDS,
    RESIDUE_DESCRIPTOR_NAMES,
    rbf_encode,
    records_to_tensors,
)
from bbqfeat.geometry import MISSING
from bbqfeat.io import format_value, tsv_header, write_records, write_torch, write_tsv
from bbqfeat.pipeline import featurize_structure


@pytest.fixture
def helix_records(helix_structure):
    return featurize_structure(helix_structure, FeaturizerConfig(max_partners=8, sequence_window=1))


def _read_tsv(path):
    with open(path) as f:
        lines = [line.rstrip('\n').split('\t') for line in f]
    return lines[0], lines[1:]


class TestRbfEncode:
    def test_shape(self):
        out = rbf_encode(torch.tensor([[1.0, 2.0], [3.0, 4.0]]))
        assert out.shape == (2, 2, 16)

    def test_peak_at_center(self):
        out = rbf_encode(torch.tensor([0.0]), d_min=0.0, d_max=10.0, num_rbf=11)
        assert out[0, 0].item() == pytest.approx(1.0)
        assert out[0].argmax().item() == 0


class TestRecordsToTensors:
    def test_shapes(self, helix_records):
        config = FeaturizerConfig(max_partners=8, sequence_window=1)
        t = records_to_tensors(helix_records, config)
        n = len(helix_records)
        assert t['num_residues'] == n == 10
        assert t['residue_descriptors'].shape == (n, NUM_RESIDUE_DESCRIPTORS)
        assert t['residue_descriptor_mask'].shape == (n, NUM_RESIDUE_DESCRIPTORS)
        assert t['dihedrals_sincos'].shape == (n, 6)
        assert t['ca_coords'].shape == (n, 3)
        assert t['partner_features'].shape == (n, 8, len(PARTNER_TENSOR_FIELDS))
        assert t['partner_mask'].shape == (n, 8)
        assert t['partner_index'].shape == (n, 8)
        assert t['partner_distance_rbf'].shape == (n, 8, 16)
        assert t['context_tokens'].shape == (n, 3)
        assert t['descriptor_names'] == list(RESIDUE_DESCRIPTOR_NAMES)

    def test_no_nan(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        for key, value in t.items():
            if isinstance(value, torch.Tensor) and value.is_floating_point():
                assert torch.isfinite(value).all(), key

    def test_missing_values_masked(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        phi = RESIDUE_DESCRIPTOR_NAMES.index('phi')
        assert not t['residue_descriptor_mask'][0, phi]
        assert t['residue_descriptors'][0, phi].item() == 0.0
        assert t['residue_descriptor_mask'][1, phi]
        # First residue: phi undefined, sin/cos both zero.
        assert t['dihedrals_sincos'][0, 0].item() == 0.0
        assert t['dihedrals_sincos'][0, 1].item() == 0.0
        assert not t['dihedrals_mask'][0, 0]

    def test_sincos_values(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        sin_phi, cos_phi = t['dihedrals_sincos'][3, 0].item(), t['dihedrals_sincos'][3, 1].item()
        assert sin_phi ** 2 + cos_phi ** 2 == pytest.approx(1.0, abs=1e-5)
        assert sin_phi < 0.0

    def test_partner_masks(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        counts = t['partner_count']
        for i in range(len(helix_records)):
            k = int(counts[i])
            assert t['partner_mask'][i, :k].all()
            assert not t['partner_mask'][i, k:].any()
            assert (t['partner_index'][i, k:] == -1).all()
            assert (t['partner_distance_rbf'][i, k:] == 0).all()

    def test_context_padding(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        assert t['context_tokens'][0].tolist() == [PAD_TOKEN, 0, 0]
        assert t['context_tokens'][5].tolist() == [0, 0, 0]

    def test_report_count_padded_in_tensors(self, helix_structure):
        config = FeaturizerConfig(max_partners=8, sequence_window=1, window_padding_policy='report-count')
        records = featurize_structure(helix_structure, config)
        t = records_to_tensors(records, config)
        assert t['partner_features'].shape[1] == 8
        assert t['context_tokens'][0].tolist() == [0, 0, PAD_TOKEN]

    def test_identity(self, helix_records):
        t = records_to_tensors(helix_records, FeaturizerConfig(max_partners=8, sequence_window=1))
        assert t['chain_ids'] == ['A'] * 10
        assert t['residue_numbers'].tolist() == list(range(1, 11))
        assert t['residue_tokens'].tolist() == [0] * 10
        assert t['chain_break_before'].tolist() == [False] * 10
        assert t['gap_before'].tolist() == [0] * 10


class TestFormatValue:
    def test_values(self):
        assert format_value(MISSING) == 'NA'
        assert format_value(True) == '1'
        assert format_value(False) == '0'
        assert format_value(7) == '7'
        assert format_value(1.23456) == '1.235'
        assert format_value('A') == 'A'


class TestWriters:
    def test_tsv_header(self):
        config = FeaturizerConfig(max_partners=2)
        header = tsv_header(config)
        assert header[:5] == ['structure_id', 'chain_id', 'residue_number', 'insertion_code', 'residue_type']
        assert 'phi' in header
        assert header[-1] == f"partner1_{PARTNER_FIELD_NAMES[-1]}"
        assert len(header) == 8 + len(RESIDUE_DESCRIPTOR_NAMES) + 4 + 2 * len(PARTNER_FIELD_NAMES)

    def test_write_tsv(self, helix_records, tmp_path):
        config = FeaturizerConfig(max_partners=8, sequence_window=1)
        path = write_tsv(helix_records, tmp_path / "helix.tsv", config)
        header, rows = _read_tsv(path)
        assert len(rows) == 10
        assert all(len(row) == len(header) for row in rows)
        first = dict(zip(header, rows[0]))
        assert first['structure_id'] == 'helix'
        assert first['phi'] == 'NA'
        assert first['gap_before'] == '0'
        assert first['context'] == f"{PAD_TOKEN},0,0"
        assert first['partner7_chain_id'] == 'NA'
        assert 'nan' not in '\t'.join(rows[0]).lower()

    def test_write_torch(self, helix_records, tmp_path):
        config = FeaturizerConfig(max_partners=8, sequence_window=1)
        path = write_torch(helix_records, tmp_path / "helix.pt", config)
        data = torch.load(path)
        assert data['structure_id'] == 'helix'
        assert data['num_residues'] == 10
        assert data['config']['max_partners'] == 8
        assert data['partner_features'].shape == (10, 8, len(PARTNER_TENSOR_FIELDS))

    def test_write_records_dispatch(self, helix_records, tmp_path):
        assert write_records(helix_records, tmp_path / "a.tsv", 'tsv').exists()
        assert write_records(helix_records, tmp_path / "a.pt", 'pt').exists()

    def test_unknown_format(self, helix_records, tmp_path):
        with pytest.raises(ConfigError):
            write_records(helix_records, tmp_path / "a.csv", 'csv')
