"""Default text format parser: hand-rolled recursive descent.

Grammar (one element per line, bodies may nest)::

    element   := (ID | STRING | ) ':' (edgeBody | nodeBody)
    edgeBody  := 'edge' [endpoint] [connector [endpoint]] [STRING] body?
    nodeBody  := shapeId [STRING] body?
    body      := '{' (propsLine | metadataLine | stylesheetLine | element)* '}'
    connector := '->' | ARROW_NOTATION

Example::

    e1: edge 3 <|--|> 4 "Connects to" {
      props: "stroke.color=#ff0000"
    }

    3: rounded-rect "Lorem" {
      stylesheet: / h1
    }

    "my node": rect

The parser never raises on bad input. Each error is recorded against its
source line and parsing resumes at the next line.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from diagram_text.ir.ast import ParsedEdge, ParsedElement, ParsedNode, ParseErrors, ParseResult
from diagram_text.parsers.arrow_notation import parse_arrow_notation_to_props
from diagram_text.parsers.lexer import Token, tokenize
from diagram_text.parsers.props import parse_metadata_string, parse_props_string
from diagram_text.parsers.validation import VALIDATION_RULES, ValidationRule
from diagram_text.types import TokenKind
from diagram_text.utils import deep_merge, new_id

_EOF_TOKEN = Token(TokenKind.EOF, "", -1, -1)
_ID_KINDS = (TokenKind.ID, TokenKind.STRING)
_CONNECTOR_KINDS = (TokenKind.ARROW, TokenKind.ARROW_NOTATION)
_LINE_END_KINDS = (TokenKind.NEWLINE, TokenKind.LBRACE, TokenKind.EOF)


@dataclass
class _Body:
    props: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None
    stylesheet: str | None = None
    text_stylesheet: str | None = None
    text_stylesheet_line: int | None = None
    children: list[ParsedElement] = field(default_factory=list)


@dataclass
class _Cursor:
    """Stateful parser cursor over the token stream."""

    tokens: list[Token]
    errors: ParseErrors
    pos: int = 0

    # ── Primitive helpers ─────────────────────────────────────────────────────

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        return self.tokens[idx] if idx < len(self.tokens) else _EOF_TOKEN

    def at(self, *kinds: TokenKind) -> bool:
        return self.peek().kind in kinds

    def next(self) -> Token:
        token = self.peek()
        self.pos += 1
        return token

    def expect(self, kind: TokenKind, message: str) -> Token | None:
        """Consume a token of ``kind`` or record ``message`` and skip the line."""
        if not self.at(kind):
            self.errors.add(self.peek().line, message)
            self.skip_to_next_line()
            return None
        return self.next()

    def skip_newlines(self) -> None:
        while self.at(TokenKind.NEWLINE):
            self.next()

    def skip_to_next_line(self) -> None:
        while not self.at(TokenKind.NEWLINE, TokenKind.EOF):
            self.next()
        if self.at(TokenKind.NEWLINE):
            self.next()

    def expect_line_end(self, message: str) -> None:
        if not self.at(*_LINE_END_KINDS):
            self.errors.add(self.peek().line, message)
            self.skip_to_next_line()

    # ── Elements ──────────────────────────────────────────────────────────────

    def parse_element(self) -> ParsedElement | None:
        token = self.peek()
        if token.kind == TokenKind.EOF:
            return None

        if token.kind == TokenKind.COLON:
            element_id = new_id()
        elif token.kind in _ID_KINDS:
            element_id = self.next().value
        else:
            self.errors.add(token.line, f"Expected element ID, got {token.kind.value}")
            self.skip_to_next_line()
            return None

        if self.expect(TokenKind.COLON, 'Expected ":" after element ID') is None:
            return None

        if self.at(TokenKind.KEYWORD) and self.peek().value == "edge":
            return self.parse_edge(element_id, token.line)
        return self.parse_node(element_id, token.line)

    def parse_node(self, element_id: str, line: int) -> ParsedNode | None:
        if not self.at(TokenKind.ID, TokenKind.KEYWORD):
            self.errors.add(self.peek().line, "Expected node type")
            self.skip_to_next_line()
            return None

        node = ParsedNode.new(element_id, self.next().value, line)
        if self.at(TokenKind.STRING):
            node.name = self.next().value
        self.expect_line_end("Unexpected token after node definition")

        body = self.parse_body()
        node.props = body.props
        node.metadata = body.metadata
        node.stylesheet = body.stylesheet
        node.text_stylesheet = body.text_stylesheet
        node.children = body.children or None
        return node

    def parse_edge(self, element_id: str, line: int) -> ParsedEdge:
        self.next()  # 'edge'
        edge = ParsedEdge.new(element_id, line=line)
        notation_props: dict[str, Any] | None = None

        # A quoted string only names the start node when a connector follows it
        if self.at(TokenKind.ID) or (self.at(TokenKind.STRING) and self.peek(1).kind in _CONNECTOR_KINDS):
            edge.from_id = self.next().value

        if self.at(*_CONNECTOR_KINDS):
            connector = self.next()
            if connector.kind == TokenKind.ARROW_NOTATION:
                notation_props = parse_arrow_notation_to_props(connector.value)
            if self.at(*_ID_KINDS):
                edge.to_id = self.next().value

        if self.at(TokenKind.STRING):
            edge.label = self.next().value
        self.expect_line_end("Unexpected token after edge definition")

        body = self.parse_body()
        if body.text_stylesheet is not None:
            self.errors.add(body.text_stylesheet_line, "Edges cannot have textStylesheet")

        if notation_props is not None:
            # Explicit props win over the notation, key by key
            edge.props = deep_merge(notation_props, body.props or {})
        else:
            edge.props = body.props
        edge.metadata = body.metadata
        edge.stylesheet = body.stylesheet
        edge.children = body.children or None
        return edge

    # ── Body ──────────────────────────────────────────────────────────────────

    def parse_keyword_string(self, keyword: str) -> str | None:
        self.next()  # keyword
        if self.expect(TokenKind.COLON, f'Expected ":" after {keyword}:') is None:
            return None
        token = self.expect(TokenKind.STRING, f"Expected string after {keyword}:")
        return token.value if token is not None else None

    def parse_stylesheet(self, body: _Body) -> None:
        keyword = self.next()
        if self.expect(TokenKind.COLON, 'Expected ":" after stylesheet:') is None:
            return
        if self.at(TokenKind.ID):
            body.stylesheet = self.next().value
        if self.at(TokenKind.SLASH):
            self.next()
            if self.at(TokenKind.ID):
                body.text_stylesheet = self.next().value
                body.text_stylesheet_line = keyword.line
        self.skip_to_next_line()

    def parse_body(self) -> _Body:
        body = _Body()
        if not self.at(TokenKind.LBRACE):
            return body
        self.next()

        while not self.at(TokenKind.RBRACE, TokenKind.EOF):
            token = self.peek()
            if token.kind == TokenKind.NEWLINE:
                self.next()
            elif token.kind == TokenKind.KEYWORD and token.value == "props":
                text = self.parse_keyword_string("props")
                if text is not None:
                    body.props = deep_merge(body.props or {}, parse_props_string(text))
            elif token.kind == TokenKind.KEYWORD and token.value == "metadata":
                text = self.parse_keyword_string("metadata")
                if text is not None:
                    body.metadata = {**(body.metadata or {}), **parse_metadata_string(text)}
            elif token.kind == TokenKind.KEYWORD and token.value == "stylesheet":
                self.parse_stylesheet(body)
            elif token.kind == TokenKind.KEYWORD:
                self.errors.add(token.line, f"Unknown keyword: {token.value}")
                self.skip_to_next_line()
            elif token.kind in (*_ID_KINDS, TokenKind.COLON):
                child = self.parse_element()
                if child is not None:
                    body.children.append(child)
            else:
                self.errors.add(token.line, f"Unexpected token in body: {token.kind.value}")
                self.skip_to_next_line()

        if self.at(TokenKind.RBRACE):
            self.next()
        elif self.pos > 0:
            # Point at the last thing the user actually wrote
            self.errors.add(self.tokens[self.pos - 1].line, "Expected closing brace")
        return body

    # ── Top-level parse ───────────────────────────────────────────────────────

    def parse_forest(self) -> list[ParsedElement]:
        elements: list[ParsedElement] = []
        while not self.at(TokenKind.EOF):
            self.skip_newlines()
            element = self.parse_element()
            if element is not None:
                elements.append(element)
        return elements


class DefaultParser:
    """Parser for the default diagram text format."""

    def __init__(self, rules: list[ValidationRule] | None = None) -> None:
        self.rules = rules

    def parse(self, src: str) -> ParseResult:
        tokens, errors = tokenize(src)
        cursor = _Cursor(tokens=tokens, errors=errors)
        elements = cursor.parse_forest()
        rules: list[Callable[[list[ParsedElement]], dict[int, str]]] = (
            self.rules if self.rules is not None else VALIDATION_RULES
        )
        for rule in rules:
            errors.merge(rule(elements))
        return ParseResult(elements=elements, errors=errors)


def parse(src: str) -> ParseResult:
    """Parse diagram text into a forest of parsed elements plus per-line errors."""
    return DefaultParser().parse(src)
