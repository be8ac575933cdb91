"""BenchDesign: an ordered set of methods, optionally bound to data.

A BenchDesign is never changed in place. Every mutation in
benchdesign.design.mutate returns a new design, so a design can be
branched, expanded and built repeatedly without the copies interfering.
"""

from collections import OrderedDict
from collections.abc import Mapping

import pandas as pd

from benchdesign.design.deferred import source_text
from benchdesign.design.method import MethodSpec
from benchdesign.errors import DefinitionError, UnknownLabel


class BenchDesign:
    """Methods to benchmark, and (optionally) the data to run them on.

    Parameters
    ----------
    data : DataFrame, Mapping, or Dataset, optional
        Benchmark data. May be left out and supplied when building.
    methods : iterable of MethodSpec, optional
        Initial methods, in order. Labels must be unique.
    """

    def __init__(self, data=None, methods=None):
        self._data = data
        self._methods = OrderedDict()
        for method in methods or ():
            if not isinstance(method, MethodSpec):
                raise DefinitionError(f"Expected a MethodSpec, got {type(method).__qualname__}")
            if method.label in self._methods:
                raise DefinitionError(f"Method label '{method.label}' is used more than once")
            self._methods[method.label] = method

    @property
    def data(self):
        return self._data

    @property
    def methods(self):
        """Label → MethodSpec, in insertion order (a copy)."""
        return OrderedDict(self._methods)

    @property
    def labels(self):
        return list(self._methods)

    def __len__(self):
        return len(self._methods)

    def __contains__(self, label):
        return label in self._methods

    def __iter__(self):
        return iter(self._methods.values())

    def __getitem__(self, label):
        return self.method(label)

    def method(self, label):
        """The MethodSpec for `label`; UnknownLabel if there is none."""
        try:
            return self._methods[label]
        except KeyError:
            raise UnknownLabel(
                f"Specified method is not defined in BenchDesign: '{label}'") from None

    def with_data(self, data):
        """A copy of this design bound to other data."""
        return BenchDesign(data, self._methods.values())

    def with_methods(self, methods):
        """A copy of this design holding `methods` instead."""
        return BenchDesign(self._data, methods)

    def __repr__(self):
        return f"BenchDesign(methods={self.labels!r})"

    def __str__(self):
        max_c = 20
        lines = ["BenchDesign object ".ljust(60, "-"), "  benchmark data:"]
        data = self._data
        if data is None:
            lines.append("    NULL")
        else:
            lines.append(f"    class:  {type(data).__qualname__}")
            if isinstance(data, (pd.DataFrame, Mapping)):
                lines.append(f"    names:  {', '.join(map(str, _keys(data)))}")
            elif hasattr(data, "name"):
                lines.append(f"    name:  {data.name}")
        lines.append("  benchmark methods:")
        if not self._methods:
            lines.append("    none")
            return "\n".join(lines)

        shown = list(self._methods.values())[:5]
        funcs = [_truncate(source_text(m.primary).replace("\n", ";"), max_c) for m in shown]
        w_label = min(max(len(m.label) for m in shown), max_c) + 1
        w_func = min(max(len(f) for f in funcs), max_c) + 1
        for method, func in zip(shown, funcs):
            label = _truncate(method.label, max_c).rjust(w_label)
            lines.append(f"    method: {label}; func: {func.rjust(w_func)}")
        if len(self._methods) > 5:
            lines.append(f"    ... and {len(self._methods) - 5} more methods.")
        return "\n".join(lines)


def _keys(data):
    return data.columns if isinstance(data, pd.DataFrame) else data.keys()


def _truncate(text, width):
    return text if len(text) <= width else text[:width - 3] + "..."


def create_design(data=None):
    """An empty BenchDesign, optionally bound to data."""
    return BenchDesign(data)
