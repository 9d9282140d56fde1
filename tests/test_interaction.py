"""Tests for bbqfeat/interaction (hbond.py and detector.py)."""

import numpy as np
import pytest

from bbqfeat.config import FeaturizerConfig
from bbqfeat.constants import DSSP_F, DSSP_MIN_ENERGY, DSSP_Q1Q2
from bbqfeat.geometry import MISSING
from bbqfeat.interaction import (
    InteractionKind,
    InteractionRecord,
    Thresholds,
    backbone_energy,
    best_hbond,
    candidate_residue_pairs,
    detect,
    dssp_energy,
)
from bbqfeat.interaction.hbond import acceptor_atoms, donor_sites
from bbqfeat.spatial import SpatialIndex
from bbqfeat.structure import Atom, Chain, Residue, ResidueId, Structure

DEFAULT_THRESHOLDS = Thresholds(
    contact_radius=4.0,
    hbond_distance_max=3.5,
    hbond_angle_min=120.0,
    hbond_antecedent_angle_min=90.0,
    neighbor_radius=4.0,
)


def _res(num, res_type, atoms):
    return Residue(
        res_id=ResidueId(num),
        res_type=res_type,
        atoms={name: Atom(name, tuple(float(x) for x in xyz)) for name, xyz in atoms.items()},
    )


def _structure(**chains):
    return Structure('t', tuple(Chain(cid, tuple(residues)) for cid, residues in chains.items()))


def _detect(structure, thresholds=DEFAULT_THRESHOLDS):
    return detect(structure, SpatialIndex.build(structure), thresholds)


def _kinds(records, first, second):
    return [r.kind for r in records if r.first == first and r.second == second]


class TestDsspEnergy:
    def test_linear_arrangement(self):
        n = (0.0, 0.0, 0.0)
        h = np.array([1.0, 0.0, 0.0])
        o = (2.9, 0.0, 0.0)
        c = (4.13, 0.0, 0.0)
        expected = DSSP_Q1Q2 * DSSP_F * (1 / 2.9 + 1 / 3.13 - 1 / 1.9 - 1 / 4.13)
        energy = dssp_energy(n, h, o, c)
        assert energy == pytest.approx(expected)
        assert energy == pytest.approx(-2.904, abs=1e-3)

    def test_clipped(self):
        energy = dssp_energy((0, 0, 0), np.array([1.0, 0, 0]), (1.1, 0, 0), (2.3, 0, 0))
        assert energy == DSSP_MIN_ENERGY

    def test_degenerate(self):
        assert dssp_energy((0, 0, 0), np.array([1.0, 0, 0]), (1.0, 0, 0), (2.2, 0, 0)) is MISSING


class TestDonorsAcceptors:
    def test_proline_has_no_backbone_donor(self):
        prev = _res(1, 'ALA', {'C': (0, 0, 0), 'O': (0, 1.23, 0)})
        pro = _res(2, 'PRO', {'N': (1.3, 0, 0), 'CA': (2.0, -1.2, 0)})
        assert donor_sites(pro, prev) == []
        assert backbone_energy(pro, prev, prev) is MISSING

    def test_backbone_hydrogen_needs_prev(self):
        res = _res(2, 'ALA', {'N': (1.3, 0, 0), 'CA': (2.0, -1.2, 0)})
        sites = donor_sites(res, None)
        assert len(sites) == 1
        assert sites[0].hydrogen is None
        assert sites[0].antecedent.name == 'CA'

    def test_side_chain_donor(self):
        ser = _res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})
        sites = donor_sites(ser)
        assert [s.atom.name for s in sites] == ['OG']
        assert not sites[0].backbone

    def test_acceptors(self):
        asp = _res(1, 'ASP', {'O': (0, 0, 0), 'OD1': (1, 0, 0), 'OD2': (2, 0, 0), 'CG': (3, 0, 0)})
        assert [a.name for a in acceptor_atoms(asp)] == ['O', 'OD1', 'OD2']


class TestBestHBond:
    def test_side_chain_pair(self):
        ser = _res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})
        asp = _res(1, 'ASP', {'OD1': (4.13, 0, 0)})
        hb = best_hbond(ser, asp, None, 3.5, 120.0, 90.0)
        assert hb.donor_atom == 'OG'
        assert hb.acceptor_atom == 'OD1'
        assert hb.distance == pytest.approx(2.7)
        assert hb.angle == pytest.approx(180.0)
        assert hb.uses_hydrogen is False
        assert hb.energy is MISSING

    def test_antecedent_angle_too_small(self):
        ser = _res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})
        asp = _res(1, 'ASP', {'OD1': (0.5, 2.5, 0)})
        assert best_hbond(ser, asp, None, 3.5, 120.0, 90.0) is None

    def test_too_far(self):
        ser = _res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})
        asp = _res(1, 'ASP', {'OD1': (5.0, 0, 0)})
        assert best_hbond(ser, asp, None, 3.5, 120.0, 90.0) is None

    def test_no_acceptors(self):
        ser = _res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})
        ala = _res(1, 'ALA', {'CB': (3.0, 0, 0)})
        assert best_hbond(ser, ala, None, 3.5, 120.0, 90.0) is None


class TestThresholds:
    def test_neighbor_radius_floor(self):
        t = Thresholds(4.0, 3.5, 120.0, 90.0, neighbor_radius=2.0)
        assert t.neighbor_radius == 4.0

    def test_from_config(self):
        t = Thresholds.from_config(FeaturizerConfig(neighbor_radius=8.0))
        assert t.neighbor_radius == 8.0
        assert t.contact_radius == 4.0
        assert t.hbond_distance_max == 3.5

    def test_from_config_default_radius(self):
        t = Thresholds.from_config(FeaturizerConfig(contact_radius=5.0))
        assert t.neighbor_radius == 5.0


class TestCandidatePairs:
    def test_min_distance_per_pair(self):
        structure = _structure(
            A=[_res(1, 'ALA', {'CA': (0, 0, 0), 'CB': (1.0, 0, 0)})],
            B=[_res(1, 'ALA', {'CA': (4.0, 0, 0), 'CB': (3.0, 0, 0)})],
        )
        pairs = candidate_residue_pairs(structure, SpatialIndex.build(structure), 4.0)
        assert pairs == [(0, 1, pytest.approx(2.0))]

    def test_same_residue_excluded(self):
        structure = _structure(A=[_res(1, 'ALA', {'CA': (0, 0, 0), 'CB': (1.0, 0, 0)})])
        assert candidate_residue_pairs(structure, SpatialIndex.build(structure), 4.0) == []


class TestDetect:
    def test_contact_within_radius(self):
        structure = _structure(
            A=[_res(1, 'ALA', {'CA': (0, 0, 0)})],
            B=[_res(1, 'ALA', {'CA': (3.5, 0, 0)})],
        )
        records = _detect(structure)
        assert len(records) == 1
        record = records[0]
        assert record.kind == InteractionKind.CONTACT
        assert (record.first, record.second) == ((0, 0), (1, 0))
        assert record.distance == pytest.approx(3.5)

    def test_contact_boundary_inclusive(self):
        structure = _structure(
            A=[_res(1, 'ALA', {'CA': (0, 0, 0)})],
            B=[_res(1, 'ALA', {'CA': (4.0, 0, 0)})],
        )
        assert [r.kind for r in _detect(structure)] == [InteractionKind.CONTACT]

    def test_no_contact_beyond_radius(self):
        structure = _structure(
            A=[_res(1, 'ALA', {'CA': (0, 0, 0)})],
            B=[_res(1, 'ALA', {'CA': (4.5, 0, 0)})],
        )
        assert _detect(structure) == []

    def test_side_chain_hbond(self):
        structure = _structure(
            A=[_res(1, 'SER', {'CB': (0, 0, 0), 'OG': (1.43, 0, 0)})],
            B=[_res(1, 'ASP', {'OD1': (4.13, 0, 0), 'CG': (5.3, 0.5, 0)})],
        )
        records = _detect(structure)
        hbonds = [r for r in records if r.kind == InteractionKind.CANDIDATE_HBOND]
        assert len(hbonds) == 1
        assert hbonds[0].donor == 'first'
        assert hbonds[0].distance == pytest.approx(2.7)
        assert hbonds[0].energy is MISSING

    def test_helix_adjacency(self, helix_structure):
        records = _detect(helix_structure)
        for i in range(9):
            assert InteractionKind.BACKBONE_ADJACENT in _kinds(records, (0, i), (0, i + 1))
        adjacent = [r for r in records if r.kind == InteractionKind.BACKBONE_ADJACENT]
        assert len(adjacent) == 9

    def test_helix_backbone_hbonds(self, helix_structure):
        records = _detect(helix_structure)
        i_to_i4 = [
            r for r in records
            if r.kind == InteractionKind.CANDIDATE_HBOND and r.second[1] - r.first[1] == 4
        ]
        assert i_to_i4
        for record in i_to_i4:
            assert record.donor == 'second'
            assert record.distance <= 3.5
            assert record.angle >= 120.0
            assert record.energy < 0.0

    def test_canonical_pairs_and_order(self, helix_structure):
        records = _detect(helix_structure)
        assert all(r.first < r.second for r in records)
        assert records == sorted(records, key=lambda r: r.sort_key)

    def test_deterministic(self, helix_structure):
        assert _detect(helix_structure) == _detect(helix_structure)

    def test_no_adjacency_across_numbering_gap(self):
        structure = _structure(A=[
            _res(1, 'ALA', {'CA': (0, 0, 0), 'C': (1.5, 0, 0)}),
            _res(5, 'ALA', {'N': (2.8, 0, 0), 'CA': (3.5, 1.0, 0)}),
        ])
        kinds = _kinds(_detect(structure), (0, 0), (0, 1))
        assert InteractionKind.BACKBONE_ADJACENT not in kinds
        assert InteractionKind.CONTACT in kinds


class TestInteractionRecord:
    def test_partner_of(self):
        record = InteractionRecord((0, 1), (1, 3), InteractionKind.CONTACT, 3.0)
        assert record.partner_of((0, 1)) == (1, 3)
        assert record.partner_of((1, 3)) == (0, 1)
        assert record.involves((1, 3))
        assert not record.involves((0, 0))

    def test_sort_key(self):
        contact = InteractionRecord((0, 0), (0, 4), InteractionKind.CONTACT, 3.0)
        second = InteractionRecord((0, 0), (0, 4), InteractionKind.CANDIDATE_HBOND, 3.0, donor='second')
        first = InteractionRecord((0, 0), (0, 4), InteractionKind.CANDIDATE_HBOND, 3.0, donor='first')
        assert sorted([second, first, contact], key=lambda r: r.sort_key) == [contact, first, second]
