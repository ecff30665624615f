"""Parsers for diagram text formats."""

from __future__ import annotations

from diagram_text.parsers.default import DefaultParser, parse

__all__ = ["DefaultParser", "parse"]
