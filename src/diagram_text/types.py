"""Shared type definitions for diagram-text.

Enums used across the lexer, parser, serializer and document model.
"""

from __future__ import annotations

from enum import Enum


class TokenKind(Enum):
    ID = "ID"
    KEYWORD = "KEYWORD"  # edge, props, metadata, stylesheet
    STRING = "STRING"
    ARROW = "ARROW"  # ->
    ARROW_NOTATION = "ARROW_NOTATION"  # <|--|>
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    COLON = "COLON"
    SLASH = "SLASH"
    NEWLINE = "NEWLINE"
    EOF = "EOF"


class ElementKind(Enum):
    Node = "node"
    Edge = "edge"


KEYWORDS: frozenset[str] = frozenset({"edge", "props", "metadata", "stylesheet"})
