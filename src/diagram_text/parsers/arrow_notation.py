"""Arrow notation: a compact symbolic form of an edge's line and arrowheads.

A notation is ``<left symbol><line pattern><right symbol>``, e.g. ``<|#--#|>``
or ``o..>``. The line pattern encodes stroke width and dash pattern, the
symbols encode the arrowhead type at each end.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Arrowhead type -> (symbol at the start of the line, symbol at the end)
ARROW_SYMBOLS: dict[str, tuple[str, str]] = {
    "SQUARE_ARROW_FILLED": ("<|#", "#|>"),
    "SQUARE_ARROW_OUTLINE": ("<|", "|>"),
    "BALL_FILLED": ("o#", "#o"),
    "BALL_OUTLINE": ("o", "o"),
    "BALL_PLUS_OUTLINE": ("o+", "+o"),
    "SQUARE_DOUBLE_ARROW_FILLED": ("<|<|#", "#|>|>"),
    "SQUARE_DOUBLE_ARROW_OUTLINE": ("<|<|", "|>|>"),
    "BOX_FILLED": ("[]#", "#[]"),
    "BOX_OUTLINE": ("[]", "[]"),
    "DIAMOND_FILLED": ("<>#", "#<>"),
    "DIAMOND_OUTLINE": ("<>", "<>"),
    "FORK": ("E", "E"),
    "SQUARE_STICK_ARROW": ("<", ">"),
    "SQUARE_DOUBLE_STICK_ARROW": ("<<", ">>"),
    "BAR": ("-|", "|-"),
    "BAR_END": ("|", "|"),
    "BAR_DOUBLE": ("||", "||"),
    "CROWS_FEET": (">", "<"),
    "CROWS_FEET_BAR": (">|", "|<"),
    "CROWS_FEET_BALL": (">o", "o<"),
    "CROWS_FEET_BALL_FILLED": (">o#", "#o<"),
    "BAR_BALL": ("|o", "o|"),
    "BAR_BALL_FILLED": ("|o#", "#o|"),
    "ARROW_DIMENSION_STICK_ARROW": ("|<", ">|"),
    "SOCKET": (")", "("),
    "SLASH": ("/", "/"),
    "CROSS": ("x", "x"),
}

LEFT_ARROWS: dict[str, str] = {left: arrow_type for arrow_type, (left, _) in ARROW_SYMBOLS.items()}
RIGHT_ARROWS: dict[str, str] = {right: arrow_type for arrow_type, (_, right) in ARROW_SYMBOLS.items()}

# Line pattern symbol -> (stroke width, stroke pattern); None is a solid line
LINE_PATTERNS: dict[str, tuple[float, str | None]] = {
    "--": (1, None),
    "..": (1, "dotted"),
    "-.": (1, "dashed"),
    "==": (2, None),
    "::": (2, "dotted"),
    "=:": (2, "dashed"),
}

# Longest first; ties keep table order
_PATTERN_SEARCH_ORDER: list[str] = sorted(LINE_PATTERNS, key=len, reverse=True)

# Every character that may appear in a notation
ARROW_CHARS: frozenset[str] = frozenset("".join(LINE_PATTERNS) + "".join(s for pair in ARROW_SYMBOLS.values() for s in pair))


@dataclass
class ArrowNotation:
    stroke_width: float
    stroke_pattern: str | None = None
    left_arrow: str | None = None
    right_arrow: str | None = None


def _split(notation: str) -> tuple[str, str, str] | None:
    """Find the (left, line pattern, right) split whose sides are known symbols."""
    for pattern in _PATTERN_SEARCH_ORDER:
        idx = notation.find(pattern)
        while idx != -1:
            left = notation[:idx]
            right = notation[idx + len(pattern) :]
            if (not left or left in LEFT_ARROWS) and (not right or right in RIGHT_ARROWS):
                return left, pattern, right
            idx = notation.find(pattern, idx + 1)
    return None


def parse_arrow_notation(notation: str) -> ArrowNotation | None:
    """Decode a notation string, or return None if it is not arrow notation."""
    parts = _split(notation)
    if parts is None:
        return None
    left, pattern, right = parts
    width, stroke_pattern = LINE_PATTERNS[pattern]
    return ArrowNotation(
        stroke_width=width,
        stroke_pattern=stroke_pattern,
        left_arrow=LEFT_ARROWS[left] if left else None,
        right_arrow=RIGHT_ARROWS[right] if right else None,
    )


def serialize_arrow_notation(notation: ArrowNotation) -> str | None:
    """Encode an ArrowNotation; None when width/pattern or an arrow type has no symbol."""
    line = next(
        (
            symbol
            for symbol, (width, pattern) in LINE_PATTERNS.items()
            if width == notation.stroke_width and pattern == notation.stroke_pattern
        ),
        None,
    )
    if line is None:
        return None

    left = ""
    if notation.left_arrow and notation.left_arrow != "NONE":
        if notation.left_arrow not in ARROW_SYMBOLS:
            return None
        left = ARROW_SYMBOLS[notation.left_arrow][0]

    right = ""
    if notation.right_arrow and notation.right_arrow != "NONE":
        if notation.right_arrow not in ARROW_SYMBOLS:
            return None
        right = ARROW_SYMBOLS[notation.right_arrow][1]

    return left + line + right


def arrow_notation_to_props(notation: ArrowNotation) -> dict[str, Any]:
    """Convert a decoded notation into an edge props fragment."""
    stroke: dict[str, Any] = {"width": notation.stroke_width}
    if notation.stroke_pattern:
        stroke["pattern"] = notation.stroke_pattern
    props: dict[str, Any] = {"stroke": stroke}

    arrow: dict[str, Any] = {}
    if notation.left_arrow and notation.left_arrow != "NONE":
        arrow["start"] = {"type": notation.left_arrow}
    if notation.right_arrow and notation.right_arrow != "NONE":
        arrow["end"] = {"type": notation.right_arrow}
    if arrow:
        props["arrow"] = arrow
    return props


def props_to_arrow_notation(props: dict[str, Any] | None) -> str | None:
    """Derive a notation from edge props, or None if they have no standard form."""
    props = props or {}
    stroke = props.get("stroke") or {}
    arrow = props.get("arrow") or {}
    notation = ArrowNotation(
        stroke_width=stroke.get("width", 1),
        stroke_pattern=stroke.get("pattern"),
        left_arrow=(arrow.get("start") or {}).get("type"),
        right_arrow=(arrow.get("end") or {}).get("type"),
    )
    return serialize_arrow_notation(notation)


def parse_arrow_notation_to_props(notation: str) -> dict[str, Any] | None:
    parsed = parse_arrow_notation(notation)
    if parsed is None:
        return None
    return arrow_notation_to_props(parsed)
