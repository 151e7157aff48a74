"""Shadowcopy: transparent, recursively nesting interception proxies."""

from __future__ import annotations

from shadowcopy.cache import IdentityCache
from shadowcopy.context import current_path
from shadowcopy.custom_types import Op, PropertyDescriptor, Traps
from shadowcopy.paths import format_path, path_matches_pattern
from shadowcopy.recipes import ABSENT, Change, fluent, guard_private, watch
from shadowcopy.shadow_copy import (
    ShadowCopy,
    define_property,
    get_own_property_descriptor,
    is_leaf,
    nest,
    path_of,
    unwrap,
)


__all__ = [
    "ABSENT",
    "Change",
    "IdentityCache",
    "Op",
    "PropertyDescriptor",
    "ShadowCopy",
    "Traps",
    "current_path",
    "define_property",
    "fluent",
    "format_path",
    "get_own_property_descriptor",
    "guard_private",
    "is_leaf",
    "nest",
    "path_matches_pattern",
    "path_of",
    "unwrap",
    "watch",
]
