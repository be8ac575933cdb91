"""The product of a build: tables ready for a benchmark result container."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd


@dataclass
class BenchResult:
    """Tables produced by build_bench().

    Parameters
    ----------
    assays : dict of str → pd.DataFrame
        One table per output channel; rows are features, columns methods.
    col_data : pd.DataFrame
        Method metadata, one row per method (index: label).
    performance_metrics : dict of str → dict
        One empty slot per channel, for metrics computed later.
    ground_truth : pd.DataFrame, optional
        Ground truth, one column per channel, rows aligned with the assays.
    features : pd.DataFrame, optional
        Requested data columns, rows aligned with the assays.
    failures : list of EvaluationFailure
        Methods whose evaluation failed (their columns are all NaN).
    """

    assays: Dict[str, pd.DataFrame]
    col_data: pd.DataFrame
    performance_metrics: Dict[str, dict] = field(default_factory=dict)
    ground_truth: Optional[pd.DataFrame] = None
    features: Optional[pd.DataFrame] = None
    failures: List = field(default_factory=list)

    @property
    def assay_names(self):
        return list(self.assays)

    @property
    def methods(self):
        return list(self.col_data.index)

    def assay(self, name=None):
        """One assay table; the only one when `name` is omitted."""
        if name is None:
            if len(self.assays) != 1:
                raise KeyError(f"Several assays, choose one of: {', '.join(self.assays)}")
            return next(iter(self.assays.values()))
        return self.assays[name]

    def __repr__(self):
        shapes = ", ".join(f"{name}: {table.shape}" for name, table in self.assays.items())
        return (f"BenchResult(assays={{{shapes}}}, methods={self.methods!r}, "
                f"failures={len(self.failures)})")
