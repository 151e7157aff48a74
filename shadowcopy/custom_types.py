"""Operation kinds, trap sets and descriptors shared across shadowcopy."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Self, TypeAlias

import dataclasses
import enum


__all__ = [
    "ERASING_OPS",
    "ITEM_OPS",
    "KEYED_OPS",
    "Key",
    "Path",
    "Op",
    "PropertyDescriptor",
    "Trap",
    "Traps",
    "TrapsLike",
]

# Attribute names are str; item keys are whatever the target accepts.
Key: TypeAlias = object
Path: TypeAlias = tuple[Key, ...]
Trap: TypeAlias = Callable[..., object]


class Op(enum.StrEnum):
    """Operation kinds a trap set may intercept."""

    GET = "get"
    SET = "set"
    DELETE_PROPERTY = "delete_property"
    GET_ITEM = "get_item"
    SET_ITEM = "set_item"
    DELETE_ITEM = "delete_item"
    HAS = "has"
    DEFINE_PROPERTY = "define_property"
    GET_OWN_PROPERTY_DESCRIPTOR = "get_own_property_descriptor"
    OWN_KEYS = "own_keys"
    APPLY = "apply"
    CONSTRUCT = "construct"


KEYED_OPS: frozenset[Op] = frozenset(Op) - {Op.OWN_KEYS, Op.APPLY, Op.CONSTRUCT}

# Operations after which the value previously stored at the key may be gone.
ERASING_OPS: frozenset[Op] = frozenset({
    Op.SET,
    Op.DELETE_PROPERTY,
    Op.DEFINE_PROPERTY,
    Op.SET_ITEM,
    Op.DELETE_ITEM,
})

ITEM_OPS: frozenset[Op] = frozenset({Op.GET_ITEM, Op.SET_ITEM, Op.DELETE_ITEM})


@dataclasses.dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """The value held directly by an object under one attribute name."""

    value: object


@dataclasses.dataclass(frozen=True, slots=True)
class Traps:
    """An immutable set of interception callbacks, at most one per `Op`.

    Every field left as None falls back to the default behavior for its
    operation kind. One instance is shared by every wrapper of a tree.

    Signatures:
      get(target, key) -> value
      set(target, key, value) -> bool | None
      delete_property(target, key) -> bool | None
      get_item(target, key) -> value
      set_item(target, key, value) -> bool | None
      delete_item(target, key) -> bool | None
      has(target, key) -> bool
      define_property(target, key, descriptor) -> bool
      get_own_property_descriptor(target, key) -> PropertyDescriptor | None
      own_keys(target) -> Iterable[str]
      apply(target, this_arg, args, kwargs) -> value
      construct(target, args, kwargs) -> object

    """

    get: Trap | None = None
    set: Trap | None = None
    delete_property: Trap | None = None
    get_item: Trap | None = None
    set_item: Trap | None = None
    delete_item: Trap | None = None
    has: Trap | None = None
    define_property: Trap | None = None
    get_own_property_descriptor: Trap | None = None
    own_keys: Trap | None = None
    apply: Trap | None = None
    construct: Trap | None = None

    def lookup(self, op: Op) -> Trap | None:
        """Return the callback registered for `op`, if any."""
        return getattr(self, op.value)

    @classmethod
    def coerce(cls, traps: TrapsLike) -> Self:
        """Build a trap set from a `Traps`, a name -> callback mapping, or None.

        Args:
          traps: Existing trap set (returned as is), mapping or None.

        Returns:
          traps: The equivalent `Traps`.

        Raises:
          TypeError: A mapping names an unknown operation kind or maps one to
            something that is not callable.

        """
        if isinstance(traps, cls):
            return traps
        if traps is None:
            return cls()
        kwargs: dict[str, Trap] = {}
        for name, trap in traps.items():
            try:
                op = Op(name)
            except ValueError:
                raise TypeError(
                    f"Unsupported trap {name!r}; expected one of "
                    f"{', '.join(sorted(Op))}",
                ) from None
            if not callable(trap):
                raise TypeError(f"Trap {name!r} must be callable, got {trap!r}")
            kwargs[op.value] = trap
        return cls(**kwargs)


TrapsLike: TypeAlias = Traps | Mapping[str, Trap] | None
