"""Metadata table describing each method of a build.

One row per method, in design order, indexed by label. The row records the
method's source (function, post-processing, parameters), where the
function comes from (library name and version), and any user metadata.

Provenance is decided in this order: a probe function given as
``meta["pkg_func"]`` (the library of that function is used), a manual
``pkg_name``/``pkg_vers`` pair in meta, the library defining the primary
function, and finally "unknown" for anonymous functions.
"""

import functools
import importlib.metadata
import platform
import sys
import warnings
from collections.abc import Mapping

import numpy as np
import pandas as pd

from benchdesign.design.deferred import Deferred, source_text
from benchdesign.utils import get_logger

LOG = get_logger("metadata")

RESERVED_META = ("pkg_name", "pkg_vers", "pkg_func")
MAX_PROBE_TEXT = 100


class MetaWarning(UserWarning):
    """Method metadata was malformed and has been ignored."""


def method_metadata(design, ptabular=True, fields=None):
    """Build the metadata table for every method of a design.

    Parameters
    ----------
    design : BenchDesign
    ptabular : bool
        One ``param.<name>`` column per parameter (True), or a single
        ``params`` column of ``name=text`` pairs (False).
    fields : Mapping, optional
        Data fields, used to resolve primary functions and meta values
        given as expr().

    Returns
    -------
    pd.DataFrame
    """
    rows = [method_row(method, ptabular=ptabular, fields=fields) for method in design]
    return pd.DataFrame(rows, index=pd.Index(design.labels, name="label"))


def method_row(method, ptabular=True, fields=None):
    """The metadata of one method, as a column → value dict."""
    meta = _clean_meta(method.meta, method.label)
    post = method.post.describe()
    row = {
        "func": _fold(source_text(method.primary)),
        "post": _fold(post) if post is not None else np.nan,
    }
    row.update(function_provenance(method.primary, meta, fields=fields))

    if ptabular:
        row.update({f"param.{name}": _fold(param.text)
                    for name, param in method.params.items()})
    elif method.params:
        row["params"] = ", ".join(f"{name}={_fold(param.text)}"
                                  for name, param in method.params.items())

    row.update({f"meta.{key}": _meta_value(val, fields)
                for key, val in meta.items() if key not in RESERVED_META})
    if "pkg_func" in meta:
        probe = _fold(source_text(meta["pkg_func"]))
        if len(probe) > MAX_PROBE_TEXT:
            probe = probe[:MAX_PROBE_TEXT - 3] + "..."
        row["pkg_func"] = probe
    return row


def function_provenance(primary, meta=None, fields=None):
    """Where a method's function comes from.

    Returns
    -------
    dict
        func_anon, vers_src, pkg_name, pkg_vers.
    """
    meta = meta or {}
    func = _try_resolve(primary, fields)
    anonymous = func is None or is_anonymous(func)

    if "pkg_func" in meta:
        source = "meta_func"
        name, version = library_of(_try_resolve(meta["pkg_func"], fields))
    elif "pkg_name" in meta or "pkg_vers" in meta:
        source = "meta_manual"
        name, version = meta.get("pkg_name", np.nan), meta.get("pkg_vers", np.nan)
    elif not anonymous:
        source = "func"
        name, version = library_of(func)
    else:
        source = "unknown"
        name, version = np.nan, np.nan
    return {"func_anon": anonymous, "vers_src": source,
            "pkg_name": name, "pkg_vers": version}


def is_anonymous(func):
    """True for lambdas and for functions without an importable module."""
    if getattr(func, "__name__", None) == "<lambda>":
        return True
    module = _module_of(func)
    return module is None or module == "__main__"


def library_of(func):
    """(library name, version) of the module defining `func`; NaN when unknown."""
    module = _module_of(func) if func is not None else None
    if module is None:
        return np.nan, np.nan
    top = module.split(".")[0]
    return top, _version_of(top)


def _module_of(func):
    module = getattr(func, "__module__", None)
    if not isinstance(module, str):
        module = getattr(type(func), "__module__", None)
    return module


@functools.lru_cache(maxsize=None)
def _distributions():
    return importlib.metadata.packages_distributions()


def _version_of(top):
    if top == "builtins" or top in sys.stdlib_module_names:
        return platform.python_version()
    for dist in _distributions().get(top, ()):
        try:
            return importlib.metadata.version(dist)
        except importlib.metadata.PackageNotFoundError:
            continue
    version = getattr(sys.modules.get(top), "__version__", None)
    return version if isinstance(version, str) else np.nan


def _try_resolve(obj, fields):
    if not isinstance(obj, Deferred):
        return obj
    try:
        return obj.resolve(fields)
    except Exception as e:
        LOG.debug("Could not resolve `%s` for provenance: %s", obj.text, e)
        return None


def _clean_meta(meta, label):
    if meta is None:
        return {}
    flat = (isinstance(meta, Mapping)
            and all(isinstance(k, str) and k for k in meta)
            and not any(isinstance(v, (Mapping, list, tuple, set)) for v in meta.values()))
    if not flat:
        warnings.warn(f"meta specified for method '{label}' will not be used. "
                      "meta must be a flat mapping of named entries.",
                      MetaWarning, stacklevel=3)
        return {}
    return dict(meta)


def _meta_value(val, fields):
    if not isinstance(val, Deferred):
        return val
    resolved = _try_resolve(val, fields)
    return _fold(val.text) if resolved is None else resolved


def _fold(text):
    return text.replace("\n", ";")
