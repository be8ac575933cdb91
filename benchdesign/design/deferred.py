"""Deferred expressions: code captured now, evaluated against data later.

A method is declared before the data it runs on is known, so its
parameters cannot be computed at definition time. ``expr("pval / 2")``
stores the expression text together with the variables visible where it
was written. At build time the expression is evaluated with the dataset's
fields in front of that captured scope: a name that is a field of the data
resolves to the column, anything else falls back to the definition site.

Objects that are not expressions (functions, numbers, strings...) are held
as literals and resolve to themselves.
"""

import ast
import builtins
import inspect
import textwrap
from collections import ChainMap

from benchdesign.errors import DefinitionError

_LITERAL = object()


class Deferred:
    """An expression or object whose evaluation is postponed.

    Use expr() and value() rather than building one directly.
    """

    __slots__ = ("_text", "_obj", "_scope")

    def __init__(self, text=None, scope=None, obj=_LITERAL):
        if (text is None) == (obj is _LITERAL):
            raise DefinitionError("A Deferred holds either expression text or an object")
        self._text = text
        self._obj = obj
        self._scope = dict(scope or {})

    @property
    def is_literal(self):
        return self._text is None

    @property
    def obj(self):
        """The wrapped object (literals only)."""
        if self.is_literal:
            return self._obj
        raise AttributeError("expression has no object until it is resolved")

    @property
    def scope(self):
        return dict(self._scope)

    @property
    def text(self):
        """Source text: the expression, or a rendering of the literal."""
        if self.is_literal:
            return source_text(self._obj)
        return self._text

    @property
    def names(self):
        """Free names the expression refers to (empty for literals)."""
        if self.is_literal:
            return frozenset()
        return _referenced_names(self._text)

    def resolve(self, fields=None):
        """Evaluate against the data fields, falling back to the captured scope.

        Parameters
        ----------
        fields : Mapping, optional
            Dataset fields; they shadow captured names.
        """
        if self.is_literal:
            return self._obj
        namespace = dict(ChainMap(dict(fields or {}), self._scope))
        namespace.setdefault("__builtins__", builtins)
        code = compile(self._text, "<benchdesign expr>", "eval")
        return eval(code, namespace)

    def __eq__(self, other):
        if not isinstance(other, Deferred):
            return NotImplemented
        if self.is_literal != other.is_literal:
            return False
        if not self.is_literal:
            return self._text == other._text
        if self._obj is other._obj:
            return True
        try:
            return bool(self._obj == other._obj)
        except (TypeError, ValueError):
            return False

    def __hash__(self):
        return hash(("expr", self._text)) if not self.is_literal else hash("literal")

    def __repr__(self):
        if self.is_literal:
            return f"value({self.text})"
        return f"expr({self._text!r})"

    def __getstate__(self):
        return {"text": self._text, "obj": self._obj, "scope": self._scope}

    def __setstate__(self, state):
        self._text = state["text"]
        self._obj = state["obj"]
        self._scope = state["scope"]


def _parse(text):
    try:
        return ast.parse(text.strip(), mode="eval")
    except SyntaxError as e:
        raise DefinitionError(f"Invalid expression {text!r}: {e.msg}") from None


def _referenced_names(text):
    return frozenset(node.id for node in ast.walk(_parse(text))
                     if isinstance(node, ast.Name))


def expr(text, scope=None):
    """Capture an expression to be evaluated when the benchmark is built.

    Parameters
    ----------
    text : str
        A Python expression, e.g. ``"pval / 2"`` or ``"np.log(x)"``.
    scope : Mapping, optional
        Names available to the expression besides the data fields. By
        default the caller's locals and globals are captured, restricted
        to the names the expression uses.

    Returns
    -------
    Deferred
    """
    if not isinstance(text, str):
        raise DefinitionError(f"expr() needs expression text, got {type(text).__qualname__}")
    names = _referenced_names(text)
    if scope is None:
        frame = inspect.currentframe().f_back
        try:
            scope = _capture(frame, names)
        finally:
            del frame
    return Deferred(text=text.strip(), scope=scope)


def _capture(frame, names):
    captured = {}
    for name in names:
        if name in frame.f_locals:
            captured[name] = frame.f_locals[name]
        elif name in frame.f_globals:
            captured[name] = frame.f_globals[name]
    return captured


def value(obj):
    """Wrap an object so it resolves to itself."""
    return obj if isinstance(obj, Deferred) else Deferred(obj=obj)


def source_text(obj):
    """Render an object the way it would read in a method definition.

    Named callables render as their qualified name, lambdas as their
    source, other objects as their repr.
    """
    if isinstance(obj, Deferred):
        return obj.text
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if callable(obj) and name == "<lambda>":
        return _lambda_text(obj)
    if callable(obj) and isinstance(name, str):
        return name.rpartition("<locals>.")[2]
    return repr(obj)


def _lambda_text(func):
    try:
        lines, first = inspect.getsourcelines(func)
    except (OSError, TypeError):
        return "<lambda>"
    src = textwrap.dedent("".join(lines))
    target = func.__code__.co_firstlineno - first + 1
    try:
        tree = ast.parse(src)
    except SyntaxError:
        return _scan_lambda(src) or "<lambda>"
    for node in ast.walk(tree):
        if isinstance(node, ast.Lambda) and node.lineno == target:
            segment = ast.get_source_segment(src, node)
            if segment:
                return " ".join(segment.split())
    return _scan_lambda(src) or "<lambda>"


def _scan_lambda(src):
    """Find the longest parseable lambda starting at the first 'lambda'."""
    start = src.find("lambda")
    if start < 0:
        return None
    text = src[start:]
    for end in range(len(text), 0, -1):
        try:
            tree = ast.parse(text[:end], mode="eval")
        except SyntaxError:
            continue
        if isinstance(tree.body, ast.Lambda):
            return " ".join(text[:end].split())
    return None
