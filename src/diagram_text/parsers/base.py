"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from diagram_text.ir.ast import ParseResult


class Parser(Protocol):
    """Protocol that all text format parsers must implement."""

    def parse(self, src: str) -> ParseResult:
        """Parse source text into a parsed element forest and its errors."""
        ...
