"""Line-oriented tokenizer for the diagram text format.

Every source line ends with a NEWLINE token (blank lines included) and the
stream ends with a single EOF token. String literals cannot span lines.
"""

from __future__ import annotations

from dataclasses import dataclass

from diagram_text.ir.ast import ParseErrors
from diagram_text.parsers.arrow_notation import ARROW_CHARS, parse_arrow_notation
from diagram_text.types import KEYWORDS, TokenKind

_ID_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-")
_WHITESPACE = frozenset(" \t\r")
# Characters that may directly follow an arrow notation run
_NOTATION_TERMINATORS = _WHITESPACE | frozenset('"{')

_SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    ":": TokenKind.COLON,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "/": TokenKind.SLASH,
}

_ESCAPES: dict[str, str] = {"n": "\n"}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    line: int
    column: int


def _ends_token(line: str, pos: int) -> bool:
    return pos >= len(line) or line[pos] in _NOTATION_TERMINATORS


@dataclass
class _LineScanner:
    """Cursor over a single source line."""

    text: str
    line_no: int
    tokens: list[Token]
    errors: ParseErrors
    pos: int = 0

    def emit(self, kind: TokenKind, value: str, column: int) -> None:
        self.tokens.append(Token(kind, value, self.line_no, column))

    def scan_string(self) -> None:
        start = self.pos
        self.pos += 1
        buf: list[str] = []
        closed = False
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == '"':
                closed = True
                self.pos += 1
                break
            if ch == "\\" and self.pos + 1 < len(self.text):
                nxt = self.text[self.pos + 1]
                buf.append(_ESCAPES.get(nxt, nxt))
                self.pos += 2
            else:
                buf.append(ch)
                self.pos += 1
        self.emit(TokenKind.STRING, "".join(buf), start)
        if not closed and self.line_no not in self.errors:
            self.errors.add(self.line_no, "Unterminated string literal")

    def try_scan_arrow(self) -> bool:
        """Scan ``->`` or an arrow notation run at the cursor, if there is one."""
        start = self.pos
        if self.text.startswith("->", start) and _ends_token(self.text, start + 2):
            self.emit(TokenKind.ARROW, "->", start)
            self.pos += 2
            return True

        end = start
        while end < len(self.text) and self.text[end] in ARROW_CHARS:
            end += 1
        run = self.text[start:end]
        if not run:
            return False
        if run == "->":
            self.emit(TokenKind.ARROW, run, start)
            self.pos = end
            return True
        if _ends_token(self.text, end) and parse_arrow_notation(run) is not None:
            self.emit(TokenKind.ARROW_NOTATION, run, start)
            self.pos = end
            return True
        return False

    def scan_identifier(self) -> None:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in _ID_CHARS:
            self.pos += 1
        value = self.text[start : self.pos]
        kind = TokenKind.KEYWORD if value in KEYWORDS else TokenKind.ID
        self.emit(kind, value, start)

    def scan(self) -> None:
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch in _WHITESPACE:
                self.pos += 1
                continue
            if ch == '"':
                self.scan_string()
                continue
            if ch in ARROW_CHARS and self.try_scan_arrow():
                continue
            if ch in _SINGLE_CHAR_TOKENS:
                self.emit(_SINGLE_CHAR_TOKENS[ch], ch, self.pos)
                self.pos += 1
                continue
            if ch in _ID_CHARS:
                self.scan_identifier()
                continue
            # Unknown character
            self.pos += 1
        self.emit(TokenKind.NEWLINE, "\n", len(self.text))


def tokenize(text: str) -> tuple[list[Token], ParseErrors]:
    """Tokenize ``text`` line by line.

    Returns:
        The token stream (always terminated by EOF) and the lexical errors
        found, keyed by 0-based line.
    """
    tokens: list[Token] = []
    errors = ParseErrors()
    lines = text.split("\n")
    for line_no, line in enumerate(lines):
        _LineScanner(text=line, line_no=line_no, tokens=tokens, errors=errors).scan()
    last_line = len(lines) - 1
    tokens.append(Token(TokenKind.EOF, "", last_line, len(lines[-1])))
    return tokens, errors
