"""Human-readable descriptions of the methods in a design."""

from benchdesign.design.deferred import source_text


def describe_method(design, label):
    """Describe one method: function, post-processing, metadata, parameters.

    Returns
    -------
    str
    """
    method = design.method(label)
    post = method.post.describe()
    if method.post.is_multi:
        post = ", ".join(f"{name}: {func.text}" for name, func in method.post.funcs)
    lines = [f"  {label}",
             f"    func:  {source_text(method.primary)}",
             f"    post:  {post if post is not None else 'none'}",
             f"    meta:  {_meta_text(method.meta)}",
             "    parameters:"]
    if method.params:
        width = max(len(name) for name in method.params)
        lines.extend(f"      {name.ljust(width)} : {param.text}"
                     for name, param in method.params.items())
    else:
        lines.append("      none")
    return "\n".join(lines)


def describe_all(design):
    """Describe every method of a design, in order."""
    if not len(design):
        return "  no methods defined"
    return "\n".join(describe_method(design, label) for label in design.labels)


def _meta_text(meta):
    if meta is None:
        return "none"
    try:
        return ", ".join(f"{k}={source_text(v)}" for k, v in meta.items())
    except AttributeError:
        return repr(meta)
