"""
Tests for moldesc_toolkit.tools.descriptors_cli.

Run with: pytest tests/test_descriptors_cli.py -v
"""

import json
import logging

import pandas as pd
import pytest

# Skip all tests if RDKit not available
rdkit = pytest.importorskip("rdkit")

from rdkit import Chem

from moldesc_toolkit.tools.descriptors_cli import main, parse_bool


@pytest.fixture(autouse=True)
def _clean_logging():
    root = logging.getLogger()
    before = root.handlers[:]
    yield
    for h in root.handlers[:]:
        if h not in before:
            root.removeHandler(h)
            h.close()


@pytest.fixture
def input_sdf(tmp_path):
    path = tmp_path / "input.sdf"
    w = Chem.SDWriter(str(path))
    for smi, name in [("CCO", "ethanol"), ("c1ccccc1O", "phenol"), ("CC(=O)O", "acetic acid")]:
        m = Chem.MolFromSmiles(smi)
        m.SetProp("_Name", name)
        m.SetProp("ID", name.upper())
        w.write(m)
    w.close()
    return path


def _read(path):
    return [m for m in Chem.SDMolSupplier(str(path), removeHs=False)]


class TestInformational:
    """Tests for help and listing."""

    def test_no_arguments_prints_help(self, capsys):
        assert main([]) == 0
        assert "moldesc-descriptors" in capsys.readouterr().out

    def test_list(self, capsys):
        assert main(["--list"]) == 0
        out = capsys.readouterr().out
        assert "SmallRingCount" in out
        assert "--rings" in out

    @pytest.mark.parametrize("value,expected", [("true", True), ("False", False), ("1", True), ("no", False)])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected


class TestRun:
    """Tests for annotating an SD-file from the command line."""

    def test_flags_select_descriptors(self, tmp_path, input_sdf, capsys):
        out = tmp_path / "out" / "annotated.sdf"
        assert main(["-i", str(input_sdf), "-o", str(out), "--tpsa", "--hbd"]) == 0

        mols = _read(out)
        assert [m.GetProp("_Name") for m in mols] == ["ethanol", "phenol", "acetic acid"]
        for m in mols:
            assert m.HasProp("TPSA")
            assert m.HasProp("HBD")
            assert not m.HasProp("ALogP")
            assert m.HasProp("ID")

        assert "Processed 3 molecules, 0 errors." in capsys.readouterr().out

        meta = json.loads((tmp_path / "out" / "annotated.metadata.json").read_text())
        assert meta["usage"]["processed"] == 3
        assert meta["usage"]["errors"] == 0
        assert meta["usage"]["cost"] == 6
        assert meta["usage"]["execution_stats"] == {"RDKit.TPSA": 3, "RDKit.HBondDonorCount": 3}
        assert meta["usage"]["property_names"] == ["TPSA", "HBD"]

    def test_all_with_explicit_hydrogens(self, tmp_path, input_sdf):
        out = tmp_path / "annotated.sdf"
        assert main(["-i", str(input_sdf), "-o", str(out), "--all", "--addhs", "true", "--no-metadata"]) == 0

        mols = _read(out)
        # ethanol written with its 6 hydrogens
        assert mols[0].GetNumAtoms() == 9
        for m in mols:
            assert m.HasProp("ALogP")
            assert m.HasProp("RingCount")
        assert not (tmp_path / "annotated.metadata.json").exists()

    def test_implicit_hydrogens_output(self, tmp_path, input_sdf):
        out = tmp_path / "annotated.sdf"
        assert main(["-i", str(input_sdf), "-o", str(out), "--alogp", "--addhs", "false"]) == 0
        mols = _read(out)
        assert mols[0].GetNumAtoms() == 3
        assert mols[0].HasProp("ALogP")

    def test_config_and_table(self, tmp_path, input_sdf):
        cfg = tmp_path / "descriptors.yaml"
        cfg.write_text("descriptors: [TPSA]\nproperty_names:\n  TPSA: [TPSA_RDKit]\n")
        out = tmp_path / "annotated.sdf"
        table = tmp_path / "desc.csv"

        assert main(["-i", str(input_sdf), "-o", str(out), "--config", str(cfg), "--rotb", "--table", str(table)]) == 0

        df = pd.read_csv(table)
        assert list(df.columns) == ["Name", "TPSA_RDKit", "ROTB"]
        assert df["Name"].tolist() == ["ethanol", "phenol", "acetic acid"]
        assert df.loc[0, "TPSA_RDKit"] == pytest.approx(20.23, abs=0.01)

    def test_no_descriptors_exits(self, tmp_path, input_sdf):
        with pytest.raises(SystemExit) as exc:
            main(["-i", str(input_sdf), "-o", str(tmp_path / "out.sdf")])
        assert "No descriptors specified" in str(exc.value.code)

    def test_non_sdf_input_warns(self, tmp_path, input_sdf, caplog):
        renamed = tmp_path / "input.txt"
        renamed.write_bytes(input_sdf.read_bytes())
        with caplog.at_level("WARNING"):
            assert main(["-i", str(renamed), "-o", str(tmp_path / "out.sdf"), "--hba"]) == 0
        assert "does not look like an SD-file" in caplog.text
