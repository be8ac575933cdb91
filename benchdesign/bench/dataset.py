"""Benchmark data: lazy on-disc datasets and the read-only field view.

A design may be declared before its data exists. The data slot of a
BenchDesign therefore accepts a DataFrame, a plain mapping of columns, or a
lazy Dataset that only loads from disc when a build asks for its .value.
At build time every form is reduced to a BenchData: an immutable mapping
of field names to columns, which is what deferred expressions see.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import numpy as np
import pandas as pd

from benchdesign.errors import ConfigurationError
from benchdesign.utils import get_logger

LOG = get_logger("dataset")


def _default_loaders():
    """File-type → loader function mapping."""
    import json
    import yaml

    def load_json(path):
        with open(path, "r") as f:
            return json.load(f)

    def load_yaml(path):
        with open(path, "r") as f:
            return yaml.safe_load(f)

    return {
        "csv": pd.read_csv,
        "tsv": lambda p: pd.read_csv(p, sep="\t"),
        "json": load_json,
        "yaml": load_yaml,
        "feather": pd.read_feather,
        "parquet": pd.read_parquet,
    }


@dataclass
class Dataset:
    """A named dataset that loads itself on first access.

    Parameters
    ----------
    name : str
        Human-readable name.
    ftype : str
        File extension / format key (e.g., "csv", "tsv", "yaml").
    origin : Path or str, optional
        Where the data lives on disc.
    loader : callable, optional
        Function path → data. If None, resolved from ftype defaults.
    description : str, optional
        What this dataset contains.
    """

    name: str
    ftype: str
    origin: Any = None
    loader: Callable = None
    description: str = None

    def __post_init__(self):
        if isinstance(self.origin, str):
            self.origin = Path(self.origin)
        if self.loader is None:
            self.loader = _default_loaders().get(self.ftype)

    def define(self):
        """Serializable definition of this dataset, for provenance."""
        return {
            "class": self.__class__.__qualname__,
            "name": self.name,
            "ftype": self.ftype,
            "origin": str(self.origin) if self.origin else None,
            "description": self.description or "Not provided",
        }

    def load(self, path=None):
        """Load data from a path (default: the origin)."""
        path = Path(path) if path is not None else self.origin
        if path is None:
            raise RuntimeError(
                f"Dataset '{self.name}' has no data and no origin to load from. "
                "Call .load(path) or .with_data(data) first.")
        if self.loader is None:
            raise ValueError(f"No loader for dataset '{self.name}' (ftype={self.ftype})")
        LOG.info("Loading dataset '%s' from %s", self.name, path)
        self._value = self.loader(path)
        return self._value

    @property
    def value(self):
        """Lazy access to the dataset's data."""
        try:
            return self._value
        except AttributeError:
            return self.load()

    def with_data(self, data):
        """Attach in-memory data to this dataset. Returns self for chaining."""
        self._value = data
        return self


class BenchData(Mapping):
    """Read-only mapping of field names to columns.

    Columns keep the type they had in the source (pandas Series for a
    DataFrame, whatever was stored for a mapping).
    """

    def __init__(self, fields, source=None):
        self._fields = dict(fields)
        self._source_class = type(source).__qualname__ if source is not None else "dict"

    def __getitem__(self, name):
        return self._fields[name]

    def __iter__(self):
        return iter(self._fields)

    def __len__(self):
        return len(self._fields)

    def __repr__(self):
        return f"BenchData({self._source_class}: {', '.join(map(str, self))})"

    @property
    def source_class(self):
        return self._source_class

    def fields(self):
        """A fresh dict of the fields, safe to hand to evaluation code."""
        return dict(self._fields)

    def missing(self, names):
        """Names in `names` that are not fields of this data."""
        return [n for n in names if n not in self._fields]

    def column(self, name):
        """A field as a 1-D numpy array, ignoring any index it carries."""
        values = self._fields[name]
        if isinstance(values, (pd.Series, pd.Index)):
            return values.to_numpy()
        return np.atleast_1d(np.asarray(values))

    def frame(self, columns, names=None, index=None):
        """Build a DataFrame from selected fields.

        Parameters
        ----------
        columns : list of str
            Fields to include, in order.
        names : list of str, optional
            Column names for the result (default: the field names).
        index : array-like, optional
            Row index for the result.
        """
        names = list(names) if names is not None else list(columns)
        data = {name: self.column(col) for name, col in zip(names, columns)}
        return pd.DataFrame(data, columns=names, index=index)


def as_bench_data(data):
    """Reduce any supported data form to a BenchData (None stays None)."""
    if data is None or isinstance(data, BenchData):
        return data
    if isinstance(data, pd.DataFrame):
        return BenchData({col: data[col] for col in data.columns}, source=data)
    if isinstance(data, Mapping):
        return BenchData(data, source=data)
    if hasattr(data, "value"):
        LOG.debug("Materializing lazy dataset %s", getattr(data, "name", data))
        return as_bench_data(data.value)
    raise ConfigurationError(
        f"Unsupported benchmark data of type {type(data).__qualname__}. "
        "Use a DataFrame, a mapping of columns, or a Dataset.")
