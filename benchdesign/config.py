"""Options for building a benchmark.

Everything a build needs besides the design itself travels in one
BuildOptions object: there is no process-wide default executor or data.
Options can be written in code, loaded from a dict, or read from a yaml
file (the data itself is always passed in code).
"""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from benchdesign.errors import ConfigurationError

OFF = "off"
ON = "on"
BY_COLUMN = "column"


@dataclass(frozen=True)
class IdAlignment:
    """How method outputs are combined into rows.

    off: by position, every output must have the same length.
    on: by id, every output maps ids to values; rows are the union of ids.
    column: as on, then rows follow the values of a data column.
    """

    mode: str = OFF
    column: Optional[str] = None

    @classmethod
    def parse(cls, sort_ids):
        """Read the ``sort_ids`` option: False/None, True, or a column name."""
        if isinstance(sort_ids, cls):
            return sort_ids
        if sort_ids is None or sort_ids is False:
            return cls(OFF)
        if sort_ids is True:
            return cls(ON)
        if isinstance(sort_ids, str) and sort_ids:
            return cls(BY_COLUMN, sort_ids)
        raise ConfigurationError(
            f"'sort_ids' must be True, False, or the name of a data column; got {sort_ids!r}")

    @property
    def by_id(self):
        return self.mode != OFF


@dataclass(frozen=True)
class BuildOptions:
    """Everything build_bench() needs to know besides the design.

    Parameters
    ----------
    data : DataFrame, Mapping, or Dataset, optional
        Overrides the data the design was created with.
    truth_cols : str, list of str, or Mapping, optional
        Data columns holding ground truth, one per output channel. For
        designs with named post-processing channels, a mapping from
        channel name to column.
    ft_cols : list of str, optional
        Data columns returned as per-row feature data.
    ptabular : bool
        One metadata column per method parameter (True), or all parameters
        in one ``name=text`` column (False).
    sort_ids : bool or str
        Id alignment, see IdAlignment.parse().
    parallel : bool
        Evaluate methods in a pool of worker processes.
    n_jobs : int, optional
        Worker count when parallel; at most one worker per method is used.
    """

    data: Any = None
    truth_cols: Any = None
    ft_cols: Any = None
    ptabular: bool = True
    sort_ids: Any = False
    parallel: bool = False
    n_jobs: Optional[int] = None

    @property
    def alignment(self):
        return IdAlignment.parse(self.sort_ids)

    @classmethod
    def names(cls):
        return [f.name for f in fields(cls)]

    def updated(self, **overrides):
        """A copy with some options replaced; unknown names are an error."""
        unknown = sorted(set(overrides) - set(self.names()))
        if unknown:
            raise ConfigurationError(f"Unknown build options: {', '.join(unknown)}")
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, options):
        if options is None:
            return cls()
        if not isinstance(options, dict):
            raise ConfigurationError(
                f"Build options must be a mapping, got {type(options).__qualname__}")
        return cls().updated(**options)

    @classmethod
    def from_yaml(cls, path):
        """Read options from a yaml file holding a single mapping."""
        with open(Path(path), "r") as f:
            return cls.from_dict(yaml.safe_load(f))
