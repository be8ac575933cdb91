"""Checks run before any method of a build is evaluated.

Each failed check raises a ConfigurationError naming what is wrong. A
build that passes them all is described by a BuildPlan.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import List, Optional

from benchdesign.config import IdAlignment
from benchdesign.design.post import MULTI
from benchdesign.errors import ConfigurationError

DEFAULT_CHANNEL = "bench"


@dataclass(frozen=True)
class BuildPlan:
    """What a validated build will produce."""

    channels: List[str]
    multi: bool
    alignment: IdAlignment
    truth_cols: Optional[List[str]]
    ft_cols: Optional[List[str]]


def plan_build(design, data, options):
    """Validate a build request.

    Parameters
    ----------
    design : BenchDesign
    data : BenchData or None
        The data the build will use, already resolved.
    options : BuildOptions

    Returns
    -------
    BuildPlan
    """
    if data is None:
        raise ConfigurationError(
            "data in BenchDesign is None. "
            "Please specify a non-None data set to build the benchmark.")
    if len(design) == 0:
        raise ConfigurationError(
            "list of methods in BenchDesign is empty. "
            "Please specify at least one method to build the benchmark.")

    multi = _post_style(design)
    channels = _channel_names(design) if multi else None

    alignment = options.alignment
    if alignment.column is not None and alignment.column not in data:
        raise ConfigurationError(
            f"Specified 'sort_ids' column '{alignment.column}' is not in the data set.")

    truth_cols = _truth_columns(options.truth_cols, data, channels, multi)
    if not multi:
        channels = [truth_cols[0]] if truth_cols else [DEFAULT_CHANNEL]
    if truth_cols and alignment.by_id and alignment.column is None:
        raise ConfigurationError(
            "If 'truth_cols' is specified, 'sort_ids' can not simply be True. "
            "Instead, name a data column to order the method outputs to match "
            "the ground truth.")

    ft_cols = _feature_columns(options.ft_cols, data)
    if ft_cols and alignment.by_id and alignment.column is None:
        raise ConfigurationError(
            "If 'ft_cols' is specified, 'sort_ids' can not simply be True. "
            "Name a data column to order the method outputs to match the features.")

    _check_flags(options)
    return BuildPlan(channels=channels, multi=multi, alignment=alignment,
                     truth_cols=truth_cols, ft_cols=ft_cols)


def _post_style(design):
    kinds = {method.post.kind for method in design}
    if len(kinds) > 1:
        shown = ", ".join(f"{m.label}: {m.post.kind}" for m in design)
        raise ConfigurationError(
            "Inconsistent post specification style across methods. "
            "Either no method has post, every method has a single post "
            "function, or every method has post as a mapping "
            f"({shown}).")
    return kinds.pop() == MULTI


def _channel_names(design):
    methods = list(design)
    if len({len(m.post.channels) for m in methods}) > 1:
        raise ConfigurationError(
            "Inconsistent post length across methods. "
            "If post is specified as a mapping for any method, it must be "
            "a mapping of the same length for all methods.")
    reference = methods[0].post.channels
    if any(set(m.post.channels) != set(reference) for m in methods):
        raise ConfigurationError(
            "Inconsistent post naming across methods. "
            "If post is specified as a mapping for any method, it must be "
            "a mapping with the same names for all methods.")
    return list(reference)


def _truth_columns(truth_cols, data, channels, multi):
    if truth_cols is None:
        return None
    if multi:
        if not isinstance(truth_cols, Mapping) or set(truth_cols) != set(channels):
            raise ConfigurationError(
                "Invalid 'truth_cols' specification. If post is specified as a "
                "mapping, 'truth_cols' must be a mapping with names matching post: "
                f"{', '.join(channels)}.")
        columns = [truth_cols[name] for name in channels]
        n_channels = len(channels)
    else:
        if isinstance(truth_cols, Mapping):
            raise ConfigurationError(
                "'truth_cols' can only be a mapping when post is specified as a mapping.")
        columns = _as_list(truth_cols, "truth_cols")
        n_channels = 1

    missing = data.missing(columns)
    if missing:
        raise ConfigurationError(f"'truth_cols' not in the data set: {', '.join(map(str, missing))}")
    if len(columns) != n_channels:
        raise ConfigurationError(
            f"'truth_cols' names {len(columns)} columns but the methods produce "
            f"{n_channels} output channel(s).")
    return columns


def _feature_columns(ft_cols, data):
    if ft_cols is None:
        return None
    columns = _as_list(ft_cols, "ft_cols")
    missing = data.missing(columns)
    if missing:
        raise ConfigurationError(
            "Invalid 'ft_cols' specification. 'ft_cols' must be a subset of the "
            f"column names of the input data; missing: {', '.join(map(str, missing))}")
    return columns


def _as_list(columns, option):
    if isinstance(columns, str):
        return [columns]
    try:
        columns = list(columns)
    except TypeError:
        raise ConfigurationError(f"'{option}' must be a column name or a list of them") from None
    if not columns:
        raise ConfigurationError(f"'{option}' must name at least one column")
    return columns


def _check_flags(options):
    for flag in ("ptabular", "parallel"):
        if not isinstance(getattr(options, flag), bool):
            raise ConfigurationError(f"'{flag}' must be True or False")
    n_jobs = options.n_jobs
    if n_jobs is not None and (isinstance(n_jobs, bool) or not isinstance(n_jobs, int)
                               or n_jobs < 1):
        raise ConfigurationError(f"'n_jobs' must be a positive integer, got {n_jobs!r}")
