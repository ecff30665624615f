"""Codec for the ``key.path=value;...`` strings used by ``props:`` and ``metadata:``.

A backslash escapes the next character, so ``;``, ``=`` and ``\\`` can appear
in keys and values. A value written with any escape is kept as a string; the
serializer escapes the first character of a string that would otherwise read
back as a bool or a number. Dots in prop keys always nest.
"""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"-?\d+")
_FLOAT_RE = re.compile(r"-?(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?")
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_SPECIAL_RE = re.compile(r"([\\;=])")


def _coerce(value: str) -> Any:
    if value == "true":
        return True
    if value == "false":
        return False
    if _INT_RE.fullmatch(value):
        return int(value)
    if _FLOAT_RE.fullmatch(value):
        return float(value)
    return value


def _split(text: str, sep: str, maxsplit: int = -1) -> list[str]:
    """Split on ``sep`` where it is not escaped; pieces keep their escapes."""
    parts: list[str] = []
    buf: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            buf.append(text[i : i + 2])
            i += 2
            continue
        if ch == sep and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return parts


def _unescape(raw: str) -> tuple[str, bool]:
    return _ESCAPE_RE.sub(r"\1", raw), _ESCAPE_RE.search(raw) is not None


def _pairs(text: str) -> list[tuple[str, str, bool]]:
    """Decode pairs as ``(key, value, value_was_escaped)``."""
    pairs: list[tuple[str, str, bool]] = []
    for part in _split(text, ";"):
        part = part.strip()
        if not part:
            continue
        pieces = _split(part, "=", maxsplit=1)
        key = pieces[0].strip()
        if len(pieces) < 2 or not key:
            logger.debug("skipping malformed pair %r", part)
            continue
        value, escaped = _unescape(pieces[1].strip())
        pairs.append((_unescape(key)[0], value, escaped))
    return pairs


def parse_props_string(text: str) -> dict[str, Any]:
    """Decode ``fill.color=#ff0000;stroke.width=2`` into nested dicts.

    Dotted keys nest, scalar values are coerced to bool/int/float where they
    look like one and carry no escape. A pair that cannot be decoded is
    skipped.
    """
    props: dict[str, Any] = {}
    for key, value, escaped in _pairs(text):
        path = key.split(".")
        if any(not segment for segment in path):
            logger.debug("skipping pair with empty key segment %r", key)
            continue
        target = props
        for segment in path[:-1]:
            nested = target.get(segment)
            if not isinstance(nested, dict):
                nested = {}
                target[segment] = nested
            target = nested
        target[path[-1]] = value if escaped else _coerce(value)
    return props


def parse_metadata_string(text: str) -> dict[str, str]:
    """Decode ``key=value;...`` into a flat dict of strings."""
    return {key: value for key, value, _ in _pairs(text)}


def _escape(text: str) -> str:
    return _SPECIAL_RE.sub(r"\\\1", text)


def _format_value(value: Any, typed: bool = True) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = _escape(value)
        # "10" or "true" as strings must not read back as a number or a bool
        if typed and value and not escaped.startswith("\\") and not isinstance(_coerce(value), str):
            escaped = "\\" + escaped
        return escaped
    return str(value)


def flatten_props(props: dict[str, Any], prefix: str = "") -> list[str]:
    """Flatten nested props into ``key.path=value`` entries, depth-first."""
    result: list[str] = []
    for key, value in props.items():
        if isinstance(value, dict):
            result.extend(flatten_props(value, f"{prefix}{_escape(key)}."))
        elif value is not None:
            result.append(f"{prefix}{_escape(key)}={_format_value(value)}")
    return result


def serialize_props(props: dict[str, Any] | None) -> str | None:
    if not props:
        return None
    entries = flatten_props(props)
    return ";".join(entries) if entries else None


def serialize_metadata(metadata: dict[str, Any] | None, exclude: frozenset[str] = frozenset()) -> str | None:
    if not metadata:
        return None
    entries = [
        f"{_escape(k)}={_format_value(v, typed=False)}" for k, v in metadata.items() if k not in exclude and v is not None
    ]
    return ";".join(entries) if entries else None
