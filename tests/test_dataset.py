"""Tests for benchmark data: lazy Datasets and the BenchData view."""

import numpy as np
import pandas as pd
import pytest

from benchdesign.bench.dataset import Dataset, BenchData, as_bench_data
from benchdesign.errors import ConfigurationError


class TestDataset:
    """Datasets describe themselves and load lazily."""

    def test_define(self):
        ds = Dataset(name="pvals", ftype="csv", origin="/tmp/pvals.csv",
                     description="simulated p-values")
        defn = ds.define()
        assert defn["name"] == "pvals"
        assert defn["origin"] == "/tmp/pvals.csv"
        assert defn["class"] == "Dataset"

    def test_loads_from_origin_on_first_access(self, tmp_path):
        path = tmp_path / "pvals.csv"
        pd.DataFrame({"pval": [0.01, 0.2]}).to_csv(path, index=False)

        ds = Dataset(name="pvals", ftype="csv", origin=path)
        assert list(ds.value["pval"]) == [0.01, 0.2]

    def test_yaml_loader(self, tmp_path):
        path = tmp_path / "values.yaml"
        path.write_text("x: [1, 2, 3]\n")
        ds = Dataset(name="values", ftype="yaml", origin=path)
        assert ds.value == {"x": [1, 2, 3]}

    def test_with_data(self):
        ds = Dataset(name="inmem", ftype="csv").with_data(pd.DataFrame({"a": [1]}))
        assert len(ds.value) == 1

    def test_no_origin_no_data(self):
        ds = Dataset(name="nothing", ftype="csv")
        with pytest.raises(RuntimeError, match="no data"):
            ds.value


class TestBenchData:
    """Every data form reduces to a read-only field mapping."""

    def test_from_dataframe(self):
        df = pd.DataFrame({"pval": [0.1, 0.2], "gene": ["a", "b"]})
        data = as_bench_data(df)
        assert list(data) == ["pval", "gene"]
        assert isinstance(data["pval"], pd.Series)
        assert data.source_class == "DataFrame"

    def test_from_mapping(self):
        data = as_bench_data({"x": [1, 2, 3], "k": 5})
        assert data["k"] == 5
        assert len(data) == 2

    def test_from_lazy_dataset(self):
        ds = Dataset(name="lazy", ftype="csv").with_data(pd.DataFrame({"x": [1]}))
        assert list(as_bench_data(ds)) == ["x"]

    def test_none_stays_none(self):
        assert as_bench_data(None) is None

    def test_unsupported_type(self):
        with pytest.raises(ConfigurationError, match="Unsupported"):
            as_bench_data(42)

    def test_read_only(self):
        data = as_bench_data({"x": [1]})
        with pytest.raises(TypeError):
            data["y"] = [2]

    def test_fields_is_a_copy(self):
        data = as_bench_data({"x": [1]})
        fields = data.fields()
        fields["y"] = 2
        assert "y" not in data

    def test_column_drops_index(self):
        df = pd.DataFrame({"x": [3, 4]}, index=["g1", "g2"])
        np.testing.assert_array_equal(as_bench_data(df).column("x"), [3, 4])

    def test_missing(self):
        data = BenchData({"x": [1], "y": [2]})
        assert data.missing(["x", "z", "w"]) == ["z", "w"]

    def test_frame_renames_and_indexes(self):
        data = BenchData({"truth": [0, 1], "id": ["g1", "g2"]})
        frame = data.frame(["truth"], names=["bench"], index=pd.Index(["g1", "g2"]))
        assert list(frame.columns) == ["bench"]
        assert list(frame.index) == ["g1", "g2"]
        assert frame.loc["g2", "bench"] == 1
