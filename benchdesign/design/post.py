"""Post-processing attached to a method.

A method's raw output can be passed through unchanged (NoPost), through one
function (SinglePost), or through several named functions at once
(MultiPost), each producing its own output channel. The shape is fixed when
the method is defined; the build dispatches on ``kind``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Tuple

from benchdesign.design.deferred import Deferred, value
from benchdesign.errors import DefinitionError

NONE = "none"
SINGLE = "single"
MULTI = "multi"


class PostSpec:
    """Base class of the three post-processing shapes."""

    kind = None

    @property
    def channels(self):
        """Channel names produced, or None for a single implicit channel."""
        return None

    @property
    def is_multi(self):
        return self.kind == MULTI


@dataclass(frozen=True)
class NoPost(PostSpec):
    kind = NONE

    def describe(self):
        return None


@dataclass(frozen=True)
class SinglePost(PostSpec):
    func: Deferred
    kind = SINGLE

    def describe(self):
        return self.func.text


@dataclass(frozen=True)
class MultiPost(PostSpec):
    funcs: Tuple[Tuple[str, Deferred], ...]
    kind = MULTI

    @property
    def channels(self):
        return [name for name, _ in self.funcs]

    def describe(self):
        return ";".join(self.channels)


def as_post(post):
    """Build the PostSpec for what a caller passed as ``post``.

    None gives NoPost, a mapping of names to functions gives MultiPost, and
    any other function or expression gives SinglePost.
    """
    if post is None:
        return NoPost()
    if isinstance(post, PostSpec):
        return post
    if isinstance(post, Mapping):
        if not post:
            raise DefinitionError("post given as a mapping must name at least one channel")
        bad = [k for k in post if not isinstance(k, str) or not k]
        if bad:
            raise DefinitionError(f"post channel names must be non-empty strings, got {bad}")
        return MultiPost(tuple((name, value(func)) for name, func in post.items()))
    return SinglePost(value(post))
