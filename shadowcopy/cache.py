"""Per-wrapper memo of nested wrappers, keyed by the identity of raw values."""

from __future__ import annotations

from collections.abc import Hashable
from typing import Generic, TypeVar

import types
import weakref


__all__ = ["IdentityCache", "bound_self"]

_W = TypeVar("_W")


def bound_self(value: object) -> object | None:
    """Return the object a method is bound to, or None for anything else.

    Builtin functions such as `len` report their module as `__self__`; they
    are not bound to anything.

    """
    if isinstance(value, types.MethodType):
        return value.__self__
    if isinstance(value, types.BuiltinMethodType) and not isinstance(
        value.__self__,
        (types.ModuleType, type(None)),
    ):
        return value.__self__
    return None


def _identity(value: object) -> Hashable:
    # Each attribute read of a method builds a new bound method object, so
    # methods are identified by what they bind rather than by id().
    if isinstance(value, types.MethodType):
        return (id(value.__self__), id(value.__func__))
    owner = bound_self(value)
    if owner is not None:
        return (id(owner), _method_name(value))
    return id(value)


def _method_name(value: object) -> str:
    return getattr(value, "__name__", "")


class IdentityCache(Generic[_W]):
    """Maps raw values, by identity, to the wrapper created for them.

    Wrappers are held weakly: an entry disappears as soon as nothing else
    references its wrapper. A live wrapper references its raw value, so an
    `id()` used as a key here cannot be recycled for a different object
    while the entry exists.

    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: weakref.WeakValueDictionary[Hashable, _W] = (
            weakref.WeakValueDictionary()
        )

    def get(self, raw: object) -> _W | None:
        """Return the live wrapper stored for `raw`, or None."""
        return self._entries.get(_identity(raw))

    def put(self, raw: object, wrapper: _W) -> None:
        self._entries[_identity(raw)] = wrapper

    def evict(self, raw: object) -> None:
        """Forget the wrapper stored for `raw`; unknown values are ignored."""
        self._entries.pop(_identity(raw), None)

    def __contains__(self, raw: object) -> bool:
        return self.get(raw) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self)} entries)"
