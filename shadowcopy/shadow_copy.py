"""Transparent interception proxies that nest through a whole object graph.

This module provides ShadowCopy, a wrapper that behaves exactly like the object
it wraps except for the operations a caller chooses to intercept with traps.
Any object reached through a ShadowCopy is itself wrapped with the same traps,
lazily and once, so interception follows the graph as deep as it is walked.

Example:
    ```python
    def set_(target, key, value):
        print("set", current_path(), "=", value)
        setattr(target, key, value)

    config = SimpleNamespace(db=SimpleNamespace(host="localhost"))
    shadow = ShadowCopy(config, {"set": set_})

    shadow.db.host = "example.org"   # prints: set ('db', 'host') = example.org
    assert shadow.db is shadow.db    # nested wrappers are cached
    assert config.db.host == "example.org"
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Generic, TypeVar, cast

import numbers
import types

from typing_extensions import override

import wrapt

from shadowcopy import context
from shadowcopy.cache import IdentityCache, bound_self
from shadowcopy.custom_types import (
    ERASING_OPS,
    KEYED_OPS,
    Key,
    Op,
    Path,
    PropertyDescriptor,
    Traps,
    TrapsLike,
)
from shadowcopy.paths import format_path


__all__ = [
    "ShadowCopy",
    "define_property",
    "get_own_property_descriptor",
    "is_leaf",
    "nest",
    "path_of",
    "unwrap",
]

_T = TypeVar("_T")

_MISSING: Any = object()

_LEAF_TYPES = (type(None), str, bytes, numbers.Number)


def is_leaf(value: object) -> bool:
    """Return True for values that are never wrapped (None, str, bytes, numbers)."""
    return isinstance(value, _LEAF_TYPES)


# Note: wrapt.ObjectProxy is generic in type stubs but not subscriptable at runtime.
# We use Generic[_T] to provide type parameters and declare __wrapped__: _T.
class ShadowCopy(wrapt.ObjectProxy, Generic[_T]):  # pyright: ignore[reportMissingTypeArgument]
    """An interception proxy over one object of a graph.

    Operations with no trap behave as on the wrapped object, except that
    attribute and item reads come back wrapped when they produce an object.
    Every operation, trapped or not, runs inside a dispatch that publishes the
    target, the key and the path from the root (see `current_path()`).

    Attributes:
      __wrapped__: The wrapped target. It is never copied; all mutations
        through the proxy land on it.

    """

    __wrapped__: _T

    # wrapt convention: proxy-private state uses the _self_ prefix so that it
    # never shadows an attribute of the wrapped object.
    _self_traps: Traps
    _self_cache: IdentityCache[ShadowCopy[Any]]
    _self_path: Path
    _self_debug: bool
    _self_parent: ShadowCopy[Any] | None

    def __init__(
        self,
        wrapped: _T,
        traps: TrapsLike = None,
        path: Sequence[Key] = (),
        *,
        debug: bool = False,
        parent: ShadowCopy[Any] | None = None,
    ) -> None:
        """Initialize an interception proxy.

        Args:
          wrapped: The object or callable to wrap.
          traps: Callbacks overriding default behavior, as a `Traps` or a
            mapping from operation name to callback.
          path: Keys leading from the conceptual root to `wrapped`.
          debug: Print one line per dispatched operation. Inherited by every
            nested proxy.
          parent: The proxy this one was read from. Nested proxies keep it
            alive, and methods read from it run with it as `self`.

        """
        # wrapt.ObjectProxy.__init__ type is partially unknown in stubs
        super().__init__(wrapped)  # pyright: ignore[reportUnknownMemberType]
        self._self_traps = Traps.coerce(traps)
        self._self_cache = IdentityCache()
        self._self_path = tuple(path)
        self._self_debug = debug
        self._self_parent = parent

    # -------------------------------------------------------------------------
    # Trap composition
    # -------------------------------------------------------------------------

    def _self_dispatch(self, op: Op, *args: object) -> Any:
        """Run the trap for `op`, or its default, inside a published dispatch.

        For key-bearing operations `args[0]` is the key.

        """
        target = self.__wrapped__
        if op in KEYED_OPS:
            key = args[0]
            path = (*self._self_path, key)
        else:
            key = None
            path = self._self_path

        if self._self_debug:
            where = format_path(path) or "<root>"
            print(f"  {op}: {type(target).__name__} @ {where}")

        dispatch = context.Dispatch(
            op=op,
            target=target,
            key=key,
            path=path,
            traps=self._self_traps,
            cache=self._self_cache,
            debug=self._self_debug,
            proxy=self,
        )
        with context.dispatching(dispatch):
            # Invalidate before mutating. A failing trap leaves the entry
            # evicted.
            if op in ERASING_OPS:
                self._self_cache.evict(_peek(dispatch))
            trap = self._self_traps.lookup(op) or _DEFAULTS[op]
            return trap(target, *args)

    # -------------------------------------------------------------------------
    # Attribute access
    # -------------------------------------------------------------------------

    def __getattr__(self, key: str) -> Any:
        if key.startswith("_self_") or key == "__wrapped__":
            # This shouldn't happen with wrapt, but just in case
            raise AttributeError(key)
        return self._self_dispatch(Op.GET, key)

    @override
    def __setattr__(self, key: str, value: object) -> None:
        # Let wrapt handle its internal attributes
        if key.startswith("_self_") or key == "__wrapped__":
            super().__setattr__(key, value)
            return
        result = self._self_dispatch(Op.SET, key, value)
        _ensure_accepted(Op.SET, key, result)

    @override
    def __delattr__(self, key: str) -> None:
        if key.startswith("_self_") or key == "__wrapped__":
            super().__delattr__(key)
            return
        result = self._self_dispatch(Op.DELETE_PROPERTY, key)
        _ensure_accepted(Op.DELETE_PROPERTY, key, result)

    # -------------------------------------------------------------------------
    # Item access (for sequences, mappings)
    # -------------------------------------------------------------------------

    def __getitem__(self, key: object) -> Any:
        return self._self_dispatch(Op.GET_ITEM, key)

    def __setitem__(self, key: object, value: object) -> None:
        result = self._self_dispatch(Op.SET_ITEM, key, value)
        _ensure_accepted(Op.SET_ITEM, key, result)

    def __delitem__(self, key: object) -> None:
        result = self._self_dispatch(Op.DELETE_ITEM, key)
        _ensure_accepted(Op.DELETE_ITEM, key, result)

    def __contains__(self, key: object) -> bool:
        return bool(self._self_dispatch(Op.HAS, key))

    @override
    def __iter__(self) -> Iterator[Any]:
        """Iterate sequences element by element through `get_item`.

        Mappings, sets and other iterables yield what the target yields; for
        mappings those are keys, and `proxy[key]` reads the value wrapped.

        """
        target: Any = self.__wrapped__
        if not _is_sequence(target):
            return iter(target)
        return self._self_elements(0, 1)

    @override
    def __reversed__(self) -> Iterator[Any]:
        target: Any = self.__wrapped__
        if not _is_sequence(target):
            return reversed(target)
        return self._self_elements(len(target) - 1, -1)

    def _self_elements(self, index: int, step: int) -> Iterator[Any]:
        # Length is re-read every step, as list iterators do.
        while 0 <= index < len(self.__wrapped__):  # pyright: ignore[reportArgumentType]
            yield self._self_dispatch(Op.GET_ITEM, index)
            index += step

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def __call__(self, *args: object, **kwargs: object) -> Any:
        """Construct when wrapping a class, apply otherwise.

        A method read through a proxy is applied with that proxy as
        `this_arg`, so the method's own reads and writes on `self` are
        intercepted too.

        """
        target = self.__wrapped__
        if isinstance(target, type):
            return self._self_dispatch(Op.CONSTRUCT, args, kwargs)
        return self._self_dispatch(Op.APPLY, self._self_this_arg(), args, kwargs)

    def _self_this_arg(self) -> object:
        owner = bound_self(self.__wrapped__)
        parent = self._self_parent
        if owner is not None and parent is not None and parent.__wrapped__ is owner:
            return parent
        return owner

    # -------------------------------------------------------------------------
    # Representation
    # -------------------------------------------------------------------------

    @override
    def __dir__(self) -> list[str]:
        return list(self._self_dispatch(Op.OWN_KEYS))

    @override
    def __repr__(self) -> str:
        return repr(self.__wrapped__)


# -----------------------------------------------------------------------------
# Nesting
# -----------------------------------------------------------------------------


def nest(value: object = _MISSING) -> Any:
    """Wrap a value with the traps of the operation being dispatched.

    Meant to be called from inside a trap. A `get` trap that wants the read
    value to stay intercepted returns `nest()`; it may also return
    `nest(something_else)` to hand out a synthesized object that is
    intercepted as if it lived at the key just read.

    Args:
      value: Raw value to wrap. Defaults to the value currently stored at the
        key being accessed.

    Returns:
      wrapped: The cached proxy for `value` if the current proxy already made
        one, else a new proxy whose path is `current_path()`. Leaves (None,
        str, bytes, numbers) are returned unchanged.

    Raises:
      RuntimeError: Called outside of a trap dispatch.
      TypeError: `value` omitted during a dispatch that has no key.

    """
    dispatch = context.current_dispatch()
    if value is _MISSING:
        value = dispatch.resolve()
    if is_leaf(value):
        return value

    cached = dispatch.cache.get(value)
    if cached is not None:
        return cached

    shadow: ShadowCopy[Any] = ShadowCopy(
        value,
        dispatch.traps,
        dispatch.path,
        debug=dispatch.debug,
        parent=dispatch.proxy,
    )
    dispatch.cache.put(value, shadow)
    return shadow


# -----------------------------------------------------------------------------
# Descriptor operations (no dedicated syntax in Python)
# -----------------------------------------------------------------------------


def define_property(obj: object, key: str, descriptor: PropertyDescriptor) -> bool:
    """Define attribute `key` on `obj`, bypassing any custom `__setattr__`.

    On a ShadowCopy this dispatches the `define_property` trap.

    Returns:
      defined: False if the object refuses instance attributes (e.g. builtins
        or classes with __slots__ lacking `key`).

    """
    if isinstance(obj, ShadowCopy):
        proxy = cast(ShadowCopy[Any], obj)
        return bool(proxy._self_dispatch(Op.DEFINE_PROPERTY, key, descriptor))  # noqa: SLF001
    return _default_define_property(obj, key, descriptor)


def get_own_property_descriptor(obj: object, key: str) -> PropertyDescriptor | None:
    """Describe attribute `key` held by `obj` itself, not inherited from its class.

    On a ShadowCopy this dispatches the `get_own_property_descriptor` trap.

    """
    if isinstance(obj, ShadowCopy):
        proxy = cast(ShadowCopy[Any], obj)
        return cast(
            PropertyDescriptor | None,
            proxy._self_dispatch(Op.GET_OWN_PROPERTY_DESCRIPTOR, key),  # noqa: SLF001
        )
    return _default_get_own_property_descriptor(obj, key)


def unwrap(obj: _T | ShadowCopy[_T]) -> _T:
    """Return the object behind a ShadowCopy, or `obj` itself."""
    if isinstance(obj, ShadowCopy):
        return cast(ShadowCopy[_T], obj).__wrapped__
    return obj


def path_of(proxy: ShadowCopy[Any]) -> Path:
    """Return the path from the root at which `proxy` was created."""
    return proxy._self_path  # noqa: SLF001


# -----------------------------------------------------------------------------
# Default behaviors
# -----------------------------------------------------------------------------


def _ensure_accepted(op: Op, key: object, result: object) -> None:
    if result is False:
        raise TypeError(f"'{op}' trap returned False for key {key!r}")


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(
        value,
        (str, bytes, bytearray),
    )


def _peek(dispatch: context.Dispatch) -> object:
    """Return the value about to be replaced, or _MISSING if there is none."""
    try:
        return dispatch.resolve()
    except (AttributeError, LookupError):
        return _MISSING


def _default_get(target: object, key: str) -> object:
    return nest(getattr(target, key))


def _default_set(target: object, key: str, value: object) -> bool:
    setattr(target, key, value)
    return True


def _default_delete_property(target: object, key: str) -> bool:
    delattr(target, key)
    return True


def _default_get_item(target: Any, key: object) -> object:
    return nest(target[key])


def _default_set_item(target: Any, key: object, value: object) -> bool:
    target[key] = value
    return True


def _default_delete_item(target: Any, key: object) -> bool:
    del target[key]
    return True


def _default_has(target: Any, key: object) -> bool:
    return key in target


def _default_define_property(
    target: object,
    key: str,
    descriptor: PropertyDescriptor,
) -> bool:
    setter = type.__setattr__ if isinstance(target, type) else object.__setattr__
    try:
        setter(target, key, descriptor.value)
    except (AttributeError, TypeError):
        return False
    return True


def _default_get_own_property_descriptor(
    target: object,
    key: str,
) -> PropertyDescriptor | None:
    namespace = getattr(target, "__dict__", None)
    if isinstance(namespace, Mapping) and key in namespace:
        return PropertyDescriptor(cast(Mapping[str, object], namespace)[key])
    for cls in type(target).__mro__:
        slots = getattr(cls, "__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        if key in slots:
            try:
                return PropertyDescriptor(getattr(target, key))
            except AttributeError:
                # Declared but unset slot.
                return None
    return None


def _default_own_keys(target: object) -> list[str]:
    return dir(target)


def _default_apply(
    target: Any,
    this_arg: object,
    args: tuple[object, ...],
    kwargs: dict[str, object],
) -> object:
    if isinstance(target, types.MethodType) and this_arg is not None:
        # Rebind, so that `self` inside the method may be a proxy.
        return target.__func__(this_arg, *args, **kwargs)
    return target(*args, **kwargs)


def _default_construct(
    target: Any,
    args: tuple[object, ...],
    kwargs: dict[str, object],
) -> object:
    return target(*args, **kwargs)


_DEFAULTS: dict[Op, Callable[..., object]] = {
    Op.GET: _default_get,
    Op.SET: _default_set,
    Op.DELETE_PROPERTY: _default_delete_property,
    Op.GET_ITEM: _default_get_item,
    Op.SET_ITEM: _default_set_item,
    Op.DELETE_ITEM: _default_delete_item,
    Op.HAS: _default_has,
    Op.DEFINE_PROPERTY: _default_define_property,
    Op.GET_OWN_PROPERTY_DESCRIPTOR: _default_get_own_property_descriptor,
    Op.OWN_KEYS: _default_own_keys,
    Op.APPLY: _default_apply,
    Op.CONSTRUCT: _default_construct,
}
