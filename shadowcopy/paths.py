"""Formatting and glob matching of proxy paths.

Paths are the key tuples reported by `current_path()`. Patterns are written
against their dotted form, e.g. ``("db", "hosts", 0)`` is ``"db.hosts.0"``.
"""

from __future__ import annotations

from collections.abc import Iterable

import re


__all__ = [
    "format_path",
    "path_matches_pattern",
    "should_report_path",
]


def format_path(path: Iterable[object]) -> str:
    """Join the keys of `path` with dots."""
    return ".".join(str(key) for key in path)


def path_matches_pattern(path: tuple[object, ...] | str, pattern: str) -> bool:
    """Check if a path matches a glob pattern.

    Supported patterns:
      "key": the path starts with `key` (prefix match on whole keys).
      "key.*", "key.*.bar": `*` stands for exactly one key; full match.
      "**": every path.

    Args:
      path: Path as tuple or dot-separated string.
      pattern: Glob pattern to match against.

    Returns:
      match: True if path matches pattern.

    """
    path_str = path if isinstance(path, str) else format_path(path)

    if pattern == "**":
        return True

    regex_pattern = r"\.".join(
        r"[^.]+" if part == "*" else re.escape(part) for part in pattern.split(".")
    )
    if "*" in pattern:
        regex_pattern = f"^{regex_pattern}$"
    else:
        regex_pattern = f"^{regex_pattern}(?:\\.|$)"

    return re.match(regex_pattern, path_str) is not None


def should_report_path(
    path: tuple[object, ...],
    include: Iterable[str] | None,
    exclude: Iterable[str],
) -> bool:
    """Decide whether a path passes include/exclude filters.

    Args:
      path: Path of the operation.
      include: Patterns of which at least one must match (None means all).
      exclude: Patterns of which none may match.

    Returns:
      report: True if the path is included and not excluded.

    """
    path_str = format_path(path)

    if any(path_matches_pattern(path_str, p) for p in exclude):
        return False

    if include is None:
        return True

    return any(path_matches_pattern(path_str, p) for p in include)
