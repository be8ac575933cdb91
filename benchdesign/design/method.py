"""A single benchmark method: a function, its deferred parameters,
optional post-processing and free-form metadata.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Dict

from benchdesign.design.deferred import Deferred, value
from benchdesign.design.post import PostSpec, NoPost, as_post
from benchdesign.errors import DefinitionError

#: Update keys that replace a method field instead of naming a parameter.
RESERVED = ("primary", "post", "meta")


@dataclass(frozen=True)
class MethodSpec:
    """Definition of one method in a BenchDesign.

    Parameters
    ----------
    label : str
        Unique name of the method within its design.
    primary : Deferred
        The function to call (or an expression that evaluates to it).
    params : dict of str → Deferred
        Keyword arguments for the primary function, in declaration order.
    post : PostSpec
        Post-processing applied to the primary function's result.
    meta : object, optional
        Metadata reported with the method. Should be a flat mapping;
        anything else is dropped (with a warning) when the table of
        method metadata is built.
    """

    label: str
    primary: Deferred
    params: Dict[str, Deferred] = field(default_factory=dict)
    post: PostSpec = field(default_factory=NoPost)
    meta: Any = None

    @classmethod
    def define(cls, label, primary, params=None, post=None, meta=None):
        """Build a MethodSpec, wrapping plain objects as literals."""
        if not isinstance(label, str) or not label:
            raise DefinitionError(f"Method label must be a non-empty string, got {label!r}")
        return cls(label=label,
                   primary=value(primary),
                   params=_params(params),
                   post=as_post(post),
                   meta=meta)

    def updated(self, updates, overwrite_params=False):
        """A copy with `updates` applied.

        Reserved keys (primary, post, meta) replace the matching field.
        Every other key is a parameter: merged into the existing ones, or
        replacing all of them when `overwrite_params` is True.
        """
        if not isinstance(updates, Mapping):
            raise DefinitionError(
                f"Updates for method '{self.label}' must be a mapping, "
                f"got {type(updates).__qualname__}")
        changes = {}
        if "primary" in updates:
            changes["primary"] = value(updates["primary"])
        if "post" in updates:
            changes["post"] = as_post(updates["post"])
        if "meta" in updates:
            changes["meta"] = updates["meta"]

        new_params = _params({k: v for k, v in updates.items() if k not in RESERVED})
        if overwrite_params:
            changes["params"] = new_params
        else:
            changes["params"] = {**self.params, **new_params}
        return replace(self, **changes)

    def relabeled(self, label):
        return replace(self, label=label, params=dict(self.params))


def _params(params):
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise DefinitionError(f"Method parameters must be a mapping, got {type(params).__qualname__}")
    bad = [k for k in params if not isinstance(k, str) or not k.isidentifier()]
    if bad:
        raise DefinitionError(f"Parameter names must be valid identifiers, got {bad}")
    return {name: value(param) for name, param in params.items()}
