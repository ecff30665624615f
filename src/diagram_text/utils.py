"""Small helpers shared by the parser, validation rules and reconciler."""

from __future__ import annotations

import copy
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from diagram_text.ir.ast import ParsedElement, walk


def new_id() -> str:
    """Return a short random element id."""
    return uuid.uuid4().hex[:7]


def collect_element_ids(elements: Iterable[ParsedElement]) -> dict[str, list[int]]:
    """Map every id in a parsed forest (children included) to the lines it appears on."""
    ids: dict[str, list[int]] = {}
    for element in walk(list(elements)):
        ids.setdefault(element.id, []).append(element.line)
    return ids


def deep_merge(target: dict[str, Any], source: Mapping[str, Any], override: bool = True) -> dict[str, Any]:
    """Merge ``source`` into ``target`` in place and return ``target``.

    Nested mappings are merged key by key. When both sides hold a scalar for
    the same key, ``override`` decides whether the source value wins.
    """
    for key, value in source.items():
        current = target.get(key)
        if isinstance(value, Mapping):
            if isinstance(current, dict):
                deep_merge(current, value, override)
            elif current is None or override:
                target[key] = deep_merge({}, value, override)
        elif key not in target or override:
            target[key] = copy.deepcopy(value)
    return target
