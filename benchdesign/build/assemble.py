"""Combine per-method outputs into one table per output channel.

Rows are features, columns are methods in design order. Outputs are lined
up by position when ids are not used: every method must then return the
same number of values. With id alignment, every method returns a mapping
(or Series) of id → value, and the rows are the union of all ids, with NaN
wherever a method did not report an id. A method that failed contributes
NaN throughout its column.
"""

from collections.abc import Mapping
from itertools import chain

import numpy as np
import pandas as pd

from benchdesign.config import BY_COLUMN
from benchdesign.errors import AssemblyInconsistency

_FAILED = object()


def assemble_assays(outcomes, channels, multi, alignment, data=None):
    """One DataFrame per channel from the outcomes of a build.

    Parameters
    ----------
    outcomes : list of Outcome
        In design order.
    channels : list of str
        Output channel names; a single name unless `multi`.
    multi : bool
        Whether each successful outcome is a dict of channel → output.
    alignment : IdAlignment
    data : BenchData, optional
        Needed when rows follow a data column.

    Returns
    -------
    dict of str → pd.DataFrame
    """
    labels = [o.label for o in outcomes]
    assays = {}
    for channel in channels:
        outputs = {o.label: _channel_output(o, channel, multi) for o in outcomes}
        if not alignment.by_id:
            assays[channel] = _by_position(outputs, labels)
            continue
        table = _by_id(outputs, labels)
        if alignment.mode == BY_COLUMN:
            table = expand_rows(table, data.column(alignment.column), name=alignment.column)
        assays[channel] = table
    return assays


def _channel_output(outcome, channel, multi):
    if not outcome.ok:
        return _FAILED
    return outcome.value[channel] if multi else outcome.value


def _as_vector(output, label):
    if isinstance(output, pd.Series):
        values = output.to_numpy()
    elif isinstance(output, Mapping):
        values = np.asarray(list(output.values()))
    else:
        try:
            values = np.asarray(output)
        except ValueError as e:
            raise AssemblyInconsistency(
                f"Output of method '{label}' is not a vector: {e}") from None
    if values.ndim == 0:
        return values.reshape(1)
    if values.ndim > 1:
        raise AssemblyInconsistency(
            f"Output of method '{label}' has shape {values.shape}; "
            "methods must return a scalar or a one-dimensional vector.")
    return values


def _by_position(outputs, labels):
    vectors = {label: _as_vector(out, label)
               for label, out in outputs.items() if out is not _FAILED}
    lengths = {len(v) for v in vectors.values()}
    if len(lengths) > 1:
        detail = ", ".join(f"{label}: {len(v)}" for label, v in vectors.items())
        raise AssemblyInconsistency(
            f"Not all methods returned a list or vector of the same length ({detail}). "
            "If this is expected, consider setting sort_ids=True and "
            "having all methods return mappings of id → value.")
    n_rows = lengths.pop() if lengths else 1
    columns = {label: vectors[label] if label in vectors else np.full(n_rows, np.nan)
               for label in labels}
    return pd.DataFrame(columns, columns=labels)


def _as_id_series(output, label):
    if isinstance(output, pd.Series):
        series = output
    elif isinstance(output, Mapping):
        series = pd.Series(dict(output), dtype=None if output else float)
    else:
        raise AssemblyInconsistency(
            f"Method '{label}' returned {type(output).__qualname__}. "
            "If sort_ids is set, all methods must return a mapping or Series of id → value.")
    if not series.index.is_unique:
        dupes = series.index[series.index.duplicated()].unique().tolist()
        raise AssemblyInconsistency(f"Method '{label}' returned duplicate ids: {dupes}")
    return series


def _by_id(outputs, labels):
    series = {label: _as_id_series(out, label)
              for label, out in outputs.items() if out is not _FAILED}
    ids = dict.fromkeys(chain.from_iterable(s.index for s in series.values()))
    index = pd.Index(list(ids))
    columns = {label: series[label].reindex(index) if label in series
               else pd.Series(np.nan, index=index)
               for label in labels}
    return pd.DataFrame(columns, index=index, columns=labels)


def expand_rows(table, ids, name=None):
    """Rows of `table` for exactly `ids`, in that order.

    Ids not in the table become all-missing rows; rows whose id is not in
    `ids` are dropped. Ids may repeat.
    """
    return table.reindex(pd.Index(ids, name=name))


def side_table(data, columns, names, alignment):
    """A table of data columns, row-aligned with the assays.

    Parameters
    ----------
    data : BenchData
    columns : list of str
        Data columns to take.
    names : list of str
        Column names in the result.
    alignment : IdAlignment
        By position the rows keep the data's order; by column they are
        indexed by that column's values, like the assays.
    """
    index = None
    if alignment.mode == BY_COLUMN:
        index = pd.Index(data.column(alignment.column), name=alignment.column)
    return data.frame(columns, names=names, index=index)
