"""Text format registry: named bundles of parse / serialize / highlight."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from diagram_text.ir.ast import ParseResult
from diagram_text.model.elements import DiagramElement
from diagram_text.parsers.base import Parser
from diagram_text.parsers.default import DefaultParser
from diagram_text.serializers.base import Serializer
from diagram_text.serializers.default import DefaultSerializer
from diagram_text.serializers.highlight import highlight_syntax

Highlighter = Callable[[list[str], Mapping[int, str]], list[str]]


@dataclass(frozen=True)
class TextFormat:
    name: str
    parse: Callable[[str], ParseResult]
    serialize: Callable[[list[DiagramElement]], list[str]]
    highlight_syntax: Highlighter | None = None

    @classmethod
    def new(cls, name: str, parser: Parser, serializer: Serializer, highlighter: Highlighter | None = None) -> TextFormat:
        return cls(name, parser.parse, serializer.serialize, highlighter)


_FORMATS: dict[str, TextFormat] = {}


def register_format(fmt: TextFormat) -> None:
    if fmt.name in _FORMATS:
        raise ValueError(f"Text format already registered: {fmt.name}")
    _FORMATS[fmt.name] = fmt


def get_format(name: str = "default") -> TextFormat:
    """Look up a registered format.

    Raises:
        ValueError: If no format is registered under ``name``.
    """
    fmt = _FORMATS.get(name)
    if fmt is None:
        raise ValueError(f"Unsupported text format: {name}")
    return fmt


def available_formats() -> list[str]:
    return sorted(_FORMATS)


register_format(TextFormat.new("default", DefaultParser(), DefaultSerializer(), highlight_syntax))
