"""Intermediate representation: the parsed element forest."""

from diagram_text.ir.ast import ParsedEdge, ParsedElement, ParsedNode, ParseErrors, ParseResult, walk

__all__ = [
    "ParseErrors",
    "ParseResult",
    "ParsedEdge",
    "ParsedElement",
    "ParsedNode",
    "walk",
]
