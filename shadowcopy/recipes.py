"""Ready-made trap sets for common interception jobs.

Each recipe returns a ShadowCopy; the traps it installs follow the whole graph
reachable from the wrapped object.

Example:
    ```python
    changes = []
    state = watch({"user": {"name": "ada"}}, changes.append)
    state["user"]["name"] = "grace"
    # changes == [Change(op=Op.SET_ITEM, path=("user", "name"),
    #                    old="ada", new="grace")]
    ```

"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Final, NamedTuple, TypeVar

from shadowcopy.context import current_dispatch, current_path
from shadowcopy.custom_types import Key, Op, Path, Traps
from shadowcopy.paths import format_path, should_report_path
from shadowcopy.shadow_copy import ShadowCopy, nest


__all__ = [
    "ABSENT",
    "Change",
    "fluent",
    "guard_private",
    "watch",
]

_T = TypeVar("_T")
_R = TypeVar("_R")


class _Absent:
    """Marks the missing side of a creation or a deletion."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()


class Change(NamedTuple):
    """One mutation observed by `watch`."""

    op: Op
    path: Path
    old: object
    new: object


def _value_before() -> object:
    try:
        return current_dispatch().resolve()
    except (AttributeError, LookupError):
        return ABSENT


def watch(
    target: _T,
    on_change: Callable[[Change], object],
    *,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] = (),
    debug: bool = False,
) -> ShadowCopy[_T]:
    """Report every assignment and deletion made anywhere through the proxy.

    `on_change` runs before the mutation is applied; raising from it vetoes the
    mutation.

    Args:
      target: Root of the graph to watch.
      on_change: Called with a `Change` per mutation.
      include: Glob patterns (see `path_matches_pattern`) of paths to report.
        None reports every path.
      exclude: Glob patterns of paths never to report.
      debug: Forwarded to ShadowCopy.

    Returns:
      proxy: The watching proxy over `target`.

    """
    include = None if include is None else tuple(include)
    exclude = tuple(exclude)

    def report(op: Op, new: object) -> None:
        path = current_path()
        if should_report_path(path, include, exclude):
            on_change(Change(op, path, _value_before(), new))

    def set_(target: object, key: str, value: object) -> bool:
        report(Op.SET, value)
        setattr(target, key, value)
        return True

    def delete_property(target: object, key: str) -> bool:
        report(Op.DELETE_PROPERTY, ABSENT)
        delattr(target, key)
        return True

    def set_item(target: Any, key: Key, value: object) -> bool:
        report(Op.SET_ITEM, value)
        target[key] = value
        return True

    def delete_item(target: Any, key: Key) -> bool:
        report(Op.DELETE_ITEM, ABSENT)
        del target[key]
        return True

    traps = Traps(
        set=set_,
        delete_property=delete_property,
        set_item=set_item,
        delete_item=delete_item,
    )
    return ShadowCopy(target, traps, debug=debug)


def guard_private(target: _T, prefix: str = "_") -> ShadowCopy[_T]:
    """Forbid assigning or deleting members whose name starts with `prefix`.

    Attributes raise AttributeError, string item keys raise KeyError. All other
    writes pass through to the wrapped graph.

    """

    def check(key: Key, error: type[Exception]) -> None:
        if isinstance(key, str) and key.startswith(prefix):
            owner = format_path(current_path()[:-1]) or "<root>"
            raise error(f"Invalid attempt to modify private {key!r} of {owner}")

    def set_(target: object, key: str, value: object) -> bool:
        check(key, AttributeError)
        setattr(target, key, value)
        return True

    def delete_property(target: object, key: str) -> bool:
        check(key, AttributeError)
        delattr(target, key)
        return True

    def set_item(target: Any, key: Key, value: object) -> bool:
        check(key, KeyError)
        target[key] = value
        return True

    def delete_item(target: Any, key: Key) -> bool:
        check(key, KeyError)
        del target[key]
        return True

    traps = Traps(
        set=set_,
        delete_property=delete_property,
        set_item=set_item,
        delete_item=delete_item,
    )
    return ShadowCopy(target, traps)


class _Link:
    """A node of a fluent chain; children are created on first access."""

    __slots__ = ("children",)

    def __init__(self) -> None:
        self.children: dict[str, _Link] = {}


def fluent(
    on_call: Callable[[Path, tuple[object, ...], dict[str, object]], _R],
) -> Any:
    """Build a proxy on which any attribute chain can be called.

    Example:
        ```python
        db = fluent(lambda path, args, kwargs: (path, args))
        db.select.frm.where("a == b")
        # (("select", "frm", "where"), ("a == b",))
        ```

    Args:
      on_call: Receives the attribute path, positional and keyword arguments
        of every call; its return value is the call's result.

    Returns:
      proxy: Root of the chain. Repeated reads of the same name return the
        same proxy.

    """

    def get(target: _Link, key: str) -> object:
        if key not in target.children:
            target.children[key] = _Link()
        return nest(target.children[key])

    def apply(
        target: _Link,
        this_arg: object,
        args: tuple[object, ...],
        kwargs: dict[str, object],
    ) -> _R:
        del target, this_arg
        return on_call(current_path(), args, kwargs)

    return ShadowCopy(_Link(), Traps(get=get, apply=apply))
