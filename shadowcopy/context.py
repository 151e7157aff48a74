"""Invocation context and path tracking for trap dispatches.

Every operation on a `ShadowCopy` runs its trap (or default behavior) inside a
`dispatching()` block. The block publishes a `Dispatch` record describing the
operation so that helpers called from within the trap, `nest()` and
`current_path()`, can find out what was just accessed without being told.

The record lives in a `contextvars.ContextVar` and is reset when the block
exits. Nested dispatches (a trap touching another wrapper) therefore see their
own record and hand the outer one back when they return, and threads or
asyncio tasks never observe each other's dispatches.

Example:
    ```python
    def get(target, key):
        print(current_path())  # ("a", "b") while evaluating w.a.b
        return nest()

    w = ShadowCopy(SimpleNamespace(a=SimpleNamespace(b=1)), {"get": get})
    w.a.b
    ```

"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, NamedTuple

import contextlib
import contextvars

from shadowcopy.custom_types import ITEM_OPS, KEYED_OPS


if TYPE_CHECKING:
    from shadowcopy.cache import IdentityCache
    from shadowcopy.custom_types import Key, Op, Path, Traps
    from shadowcopy.shadow_copy import ShadowCopy


__all__ = [
    "Dispatch",
    "current_dispatch",
    "current_path",
    "dispatching",
]


class Dispatch(NamedTuple):
    """What the innermost in-flight operation is acting on."""

    op: Op
    target: object
    key: Key
    path: Path
    traps: Traps
    cache: IdentityCache
    debug: bool = False
    proxy: ShadowCopy[Any] | None = None

    def resolve(self) -> object:
        """Read the raw value currently stored at `key` on `target`.

        Returns:
          value: `target[key]` for item operations, `getattr(target, key)`
            otherwise.

        Raises:
          TypeError: The operation being dispatched has no key.

        """
        if self.op not in KEYED_OPS:
            raise TypeError(f"{self.op!r} dispatches carry no key to resolve")
        if self.op in ITEM_OPS:
            return self.target[self.key]  # pyright: ignore[reportIndexIssue]  # ty: ignore[not-subscriptable]
        return getattr(self.target, self.key)  # pyright: ignore[reportArgumentType]


_CURRENT: contextvars.ContextVar[Dispatch | None] = contextvars.ContextVar(
    "shadowcopy_dispatch",
    default=None,
)


@contextlib.contextmanager
def dispatching(dispatch: Dispatch) -> Iterator[Dispatch]:
    """Publish `dispatch` as the current one until the block exits."""
    token = _CURRENT.set(dispatch)
    try:
        yield dispatch
    finally:
        _CURRENT.reset(token)


def current_dispatch() -> Dispatch:
    """Return the innermost in-flight dispatch.

    Raises:
      RuntimeError: Called outside of any trap or default handler.

    """
    dispatch = _CURRENT.get()
    if dispatch is None:
        raise RuntimeError("No ShadowCopy operation is being dispatched")
    return dispatch


def current_path() -> Path:
    """Return the keys from the root wrapper to the key just accessed.

    Key-bearing operations report the wrapper's path plus the key; `apply`,
    `construct` and `own_keys` report the wrapper's own path. Outside of any
    dispatch the path is empty.

    """
    dispatch = _CURRENT.get()
    return () if dispatch is None else dispatch.path
