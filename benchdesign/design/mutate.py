"""Operations that derive a new BenchDesign from an existing one.

None of these functions modify their input. Each returns a new design in
which only the named method(s) changed; every other method is carried over
as the same (immutable) MethodSpec, in the same position.
"""

from collections.abc import Mapping

from benchdesign.design.method import MethodSpec, RESERVED
from benchdesign.errors import InvalidVariantSpec, LabelCollision
from benchdesign.utils import get_logger

LOG = get_logger("design")


def add_method(design, label, primary, params=None, post=None, meta=None):
    """Append a method to a design.

    Parameters
    ----------
    design : BenchDesign
    label : str
        Name of the new method; must not already be defined.
    primary : callable or Deferred
        Function to benchmark, or an expr() evaluating to one.
    params : Mapping, optional
        Keyword arguments for `primary`. Values may be expr() objects,
        evaluated against the data when the benchmark is built.
    post : callable, Deferred, or Mapping, optional
        Post-processing of the primary result. A mapping of names to
        functions produces one output channel per name.
    meta : Mapping, optional
        Metadata reported alongside the method. The keys pkg_name and
        pkg_vers (or pkg_func, a function from the same library) override
        the library recorded for `primary`.

    Returns
    -------
    BenchDesign
    """
    if label in design:
        raise LabelCollision(
            f"Method '{label}' is already defined in BenchDesign. "
            "Use modify_method() to change it.")
    method = MethodSpec.define(label, primary, params=params, post=post, meta=meta)
    LOG.debug("Adding method '%s'", label)
    return design.with_methods(list(design) + [method])


def modify_method(design, label, updates, overwrite_params=False):
    """Change the definition of one method.

    Parameters
    ----------
    design : BenchDesign
    label : str
        Method to modify; UnknownLabel if it is not defined.
    updates : Mapping
        Reserved keys primary, post and meta replace those fields. Other
        keys are parameters for the primary function.
    overwrite_params : bool
        If True, the parameters in `updates` replace all previous ones;
        otherwise they are merged in, replacing only matching names.
    """
    method = design.method(label).updated(updates, overwrite_params=overwrite_params)
    return design.with_methods([method if m.label == label else m for m in design])


def expand_method(design, label, variants, param=None, replace=False,
                  overwrite_params=False):
    """Derive several new methods from one template method.

    Parameters
    ----------
    design : BenchDesign
    label : str
        The template method.
    variants : Mapping or sequence of (label, spec) pairs
        New label → spec. With `param`, each spec is the new value of that
        one parameter. Without it, each spec is an updates mapping as
        accepted by modify_method().
    param : str, optional
        The single parameter that varies between variants. Not one of
        the reserved keys primary, post or meta.
    replace : bool
        Drop the template, keeping only the variants.
    overwrite_params : bool
        As in modify_method(), for updates-mapping variants.

    Returns
    -------
    BenchDesign
        The variants follow the template's position in the method order.
    """
    template = design.method(label)
    pairs = _variant_pairs(variants)
    _check_variant_labels(design, label, [name for name, _ in pairs], replace)

    if param is not None:
        if not isinstance(param, str):
            raise InvalidVariantSpec(f"'param' must name one parameter, got {param!r}")
        if param in RESERVED:
            raise InvalidVariantSpec(
                f"'{param}' is not a parameter. To vary {param}, pass each variant "
                f"as an updates mapping, e.g. {{'{param}': ...}}, without 'param'.")
        new = [template.updated({param: spec}).relabeled(name) for name, spec in pairs]
    else:
        not_mappings = [name for name, spec in pairs if not isinstance(spec, Mapping)]
        if not_mappings:
            raise InvalidVariantSpec(
                f"Variants {not_mappings} are not mappings of updates. "
                "Pass 'param' to vary a single parameter with bare values.")
        new = [template.updated(spec, overwrite_params=overwrite_params).relabeled(name)
               for name, spec in pairs]

    methods = []
    for method in design:
        if method.label == label:
            if not replace:
                methods.append(method)
            methods.extend(new)
        else:
            methods.append(method)
    LOG.debug("Expanded method '%s' into %s", label, [m.label for m in new])
    return design.with_methods(methods)


def drop_method(design, label):
    """Remove one method; UnknownLabel if it is not defined."""
    design.method(label)
    return design.with_methods([m for m in design if m.label != label])


def _variant_pairs(variants):
    if isinstance(variants, Mapping):
        pairs = list(variants.items())
    else:
        try:
            pairs = [tuple(pair) for pair in variants]
        except TypeError:
            raise InvalidVariantSpec(
                "Variants must be a mapping or a sequence of (label, spec) pairs") from None
        if any(len(pair) != 2 for pair in pairs):
            raise InvalidVariantSpec("Each variant must be a (label, spec) pair")
    if not pairs:
        raise InvalidVariantSpec("At least one variant must be specified")
    return pairs


def _check_variant_labels(design, label, new_labels, replace):
    unnamed = [n for n in new_labels if not isinstance(n, str) or not n]
    if unnamed:
        raise InvalidVariantSpec("New methods must be named with non-empty string labels")
    if len(set(new_labels)) != len(new_labels):
        raise LabelCollision("New method labels must be unique")
    taken = [n for n in new_labels if n in design and (n != label or not replace)]
    if taken:
        raise LabelCollision(
            f"New method labels should not overlap with existing methods: {taken}")

