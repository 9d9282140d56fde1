"""Tests for bbqfeat/io/inputs.py."""

import pytest

from bbqfeat.errors import InputError
from bbqfeat.io import (
    MMCIFSource,
    PDBSource,
    StructureInput,
    find_structure_file,
    parse_code_and_chain,
    read_list_file,
    source_for_path,
)


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return str(path)


class TestParseCodeAndChain:
    @pytest.mark.parametrize("token,expected", [
        ('2gb1A', ('2gb1', 'A')),
        ('2gb1:B', ('2gb1', 'B')),
        ('2gb1_C', ('2gb1', 'C')),
        ('2gb1', ('2gb1', None)),
        ('2gb1_', ('2gb1', None)),
        ('  1abc  ', ('1abc', None)),
    ])
    def test_parse(self, token, expected):
        assert parse_code_and_chain(token) == expected


class TestFindStructureFile:
    def test_cif_preferred(self, tmp_path):
        _touch(tmp_path / "2gb1.pdb")
        cif = _touch(tmp_path / "2gb1.cif")
        assert find_structure_file('2gb1', str(tmp_path)) == cif

    def test_pdb_fallback(self, tmp_path):
        pdb = _touch(tmp_path / "2gb1.pdb")
        assert find_structure_file('2gb1', str(tmp_path)) == pdb

    def test_ent_gz(self, tmp_path):
        ent = _touch(tmp_path / "pdb2gb1.ent.gz")
        assert find_structure_file('2gb1', str(tmp_path)) == ent

    def test_divided_layout(self, tmp_path):
        cif = _touch(tmp_path / "gb" / "2gb1.cif.gz")
        assert find_structure_file('2gb1', str(tmp_path)) == cif

    def test_case_variants(self, tmp_path):
        cif = _touch(tmp_path / "2GB1.cif")
        assert find_structure_file('2gb1', str(tmp_path)) == cif

    def test_not_found(self, tmp_path):
        assert find_structure_file('9zzz', str(tmp_path)) is None


class TestReadListFile:
    def test_resolves_and_skips(self, tmp_path, caplog):
        _touch(tmp_path / "2gb1.cif")
        _touch(tmp_path / "1ubq.pdb")
        list_file = tmp_path / "ids.txt"
        list_file.write_text("# header\n2gb1A\n\n1ubq extra columns\n9zzz\n")
        with caplog.at_level('INFO'):
            inputs = read_list_file(str(list_file), str(tmp_path))
        assert [(i.structure_id, i.chain_id) for i in inputs] == [('2gb1', 'A'), ('1ubq', None)]
        assert "Can't find a structure file for PDB ID '9zzz'" in caplog.text
        assert "2 input files found" in caplog.text

    def test_missing_list_file(self, tmp_path):
        with pytest.raises(InputError):
            read_list_file(str(tmp_path / "nope.txt"))


class TestStructureInput:
    def test_name(self):
        assert StructureInput('/data/2gb1.cif', 'A').name == '2gb1_A'
        assert StructureInput('/data/pdb1abc.ent.gz').name == '1abc'

    def test_source_for_path(self):
        assert isinstance(source_for_path('x.cif'), MMCIFSource)
        assert isinstance(source_for_path('x.CIF.gz'), MMCIFSource)
        assert isinstance(source_for_path('x.pdb'), PDBSource)
        assert source_for_path('x.pdb', remove_ligands=False).remove_ligands is False
