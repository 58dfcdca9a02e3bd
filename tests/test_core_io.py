"""
Tests for moldesc_toolkit.core.io module.

Run with: pytest tests/test_core_io.py -v
"""

import gzip

import pandas as pd
import pytest

# Skip all tests if RDKit not available
rdkit = pytest.importorskip("rdkit")

from rdkit import Chem

from moldesc_toolkit.core.errors import OutputError
from moldesc_toolkit.core.io import (
    SDFSink,
    SDFSource,
    detect_table_format,
    looks_like_sdf,
    write_table,
)
from moldesc_toolkit.core.metadata import metadata_sidecar_path


def _write_sdf(path, smiles_names):
    w = Chem.SDWriter(str(path))
    for smi, name in smiles_names:
        m = Chem.MolFromSmiles(smi)
        m.SetProp("_Name", name)
        w.write(m)
    w.close()


class TestFormatDetection:
    """Tests for file format detection."""

    def test_detect_table_format(self):
        assert detect_table_format("a.parquet") == "parquet"
        assert detect_table_format("a.tsv") == "tsv"
        assert detect_table_format("a.csv") == "csv"
        assert detect_table_format("a.txt", "tsv") == "tsv"
        with pytest.raises(ValueError):
            detect_table_format("a.csv", "xlsx")

    def test_looks_like_sdf(self):
        assert looks_like_sdf("in.sdf")
        assert looks_like_sdf("in.SDF.gz")
        assert not looks_like_sdf("in.smi")

    def test_metadata_sidecar_path(self):
        assert metadata_sidecar_path("out/results.sdf").name == "results.metadata.json"
        assert metadata_sidecar_path("out/results.sdf.gz").name == "results.metadata.json"


class TestSDFSource:
    """Tests for streaming SD input."""

    def test_gzipped_input(self, tmp_path):
        plain = tmp_path / "in.sdf"
        _write_sdf(plain, [("CCO", "a")])
        gz = tmp_path / "in.sdf.gz"
        with gzip.open(gz, "wb") as f:
            f.write(plain.read_bytes())

        with SDFSource(gz) as source:
            mols = list(source)
        assert [m.GetProp("_Name") for m in mols] == ["a"]

    def test_unreadable_entries_are_skipped(self, tmp_path):
        src = tmp_path / "in.sdf"
        _write_sdf(src, [("CCO", "a")])
        good = src.read_text()
        broken = good.replace("a\n", "broken\n", 1).replace(" C ", " Xx", 1)
        src.write_text(good + broken + good)

        with SDFSource(src) as source:
            mols = list(source)
        assert len(mols) == 2
        assert source.skipped == 1

    def test_source_requires_context(self, tmp_path):
        src = tmp_path / "in.sdf"
        _write_sdf(src, [("CCO", "a")])
        with pytest.raises(RuntimeError):
            list(SDFSource(src))


class TestSDFSink:
    """Tests for SD output."""

    def test_copy_keeps_order(self, tmp_path):
        src = tmp_path / "in.sdf"
        _write_sdf(src, [("CCO", "a"), ("c1ccccc1", "b"), ("CCN", "c")])

        out = tmp_path / "nested" / "dir" / "out.sdf"
        with SDFSource(src) as source, SDFSink(out) as sink:
            for mol in source:
                sink.write(mol)

        assert source.read == 3
        assert sink.written == 3
        names = [m.GetProp("_Name") for m in Chem.SDMolSupplier(str(out))]
        assert names == ["a", "b", "c"]

    def test_sink_wraps_write_failures(self, tmp_path):
        with SDFSink(tmp_path / "out.sdf") as sink:
            with pytest.raises(OutputError):
                sink.write(None)
        assert sink.written == 0


class TestWriteTable:
    """Tests for descriptor table export."""

    def test_tsv_output(self, tmp_path):
        df = pd.DataFrame({"Name": ["a", "b"], "TPSA": [20.23, 0.0]})
        p = tmp_path / "t" / "desc.tsv"
        write_table(df, str(p))
        back = pd.read_csv(p, sep="\t")
        assert list(back.columns) == ["Name", "TPSA"]
        assert back["TPSA"].tolist() == pytest.approx([20.23, 0.0])

    def test_csv_output_has_no_index(self, tmp_path):
        df = pd.DataFrame({"Name": ["a"], "HBD": [1]})
        p = tmp_path / "desc.csv"
        write_table(df, str(p))
        assert p.read_text().splitlines() == ["Name,HBD", "a,1"]
