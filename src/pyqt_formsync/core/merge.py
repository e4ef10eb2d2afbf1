"""Deep merge for control configuration."""

from collections.abc import Mapping
from typing import Any


def merge_deep(*objs: Any) -> Any:
    """
    Merge configuration objects left to right.

    - Mappings are merged recursively.
    - Lists are combined with the newer list first, so newer error messages
      take precedence in ordered tables.
    - Anything else is replaced by the newer value.

    Example:
        >>> merge_deep({"errors": [("a", "A")]}, {"errors": [("b", "B")]})
        {'errors': [('b', 'B'), ('a', 'A')]}
    """
    result: Any = {}
    for obj in objs:
        if obj is None:
            continue
        result = _merge_pair(result, obj)
    return result


def _merge_pair(dest: Any, src: Any) -> Any:
    if isinstance(dest, list) and isinstance(src, list):
        return list(src) + list(dest)

    if isinstance(dest, Mapping) and isinstance(src, Mapping):
        merged = dict(dest)
        for key, value in src.items():
            merged[key] = _merge_pair(merged[key], value) if key in merged else value
        return merged

    return src
