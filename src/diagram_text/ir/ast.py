"""AST data structures for the diagram text format.

These types represent the parsed form of the input DSL: a forest of
ParsedNode / ParsedEdge elements plus the per-line ParseErrors map.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from diagram_text.types import ElementKind


@dataclass
class ParsedNode:
    id: str
    line: int
    shape: str
    name: str | None = None
    props: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None
    stylesheet: str | None = None
    text_stylesheet: str | None = None
    children: list[ParsedElement] | None = None

    kind = ElementKind.Node

    @classmethod
    def new(cls, id: str, shape: str, line: int = 0) -> ParsedNode:
        return cls(id=id, line=line, shape=shape)


@dataclass
class ParsedEdge:
    id: str
    line: int
    from_id: str | None = None
    to_id: str | None = None
    label: str | None = None
    props: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None
    stylesheet: str | None = None
    children: list[ParsedElement] | None = None

    kind = ElementKind.Edge

    @classmethod
    def new(cls, id: str, from_id: str | None = None, to_id: str | None = None, line: int = 0) -> ParsedEdge:
        return cls(id=id, line=line, from_id=from_id, to_id=to_id)


ParsedElement = Union[ParsedNode, ParsedEdge]


def walk(elements: list[ParsedElement]) -> Iterator[ParsedElement]:
    """Traverse a parsed forest depth-first, yielding parents before children."""
    for element in elements:
        yield element
        if element.children:
            yield from walk(element.children)


class ParseErrors(Mapping[int, str]):
    """Errors keyed by 0-based source line.

    Every distinct message recorded for a line is kept in order; the mapping
    value joins them with "; " so a line with a single error reads as that
    error alone.
    """

    def __init__(self) -> None:
        self._messages: dict[int, list[str]] = {}

    def add(self, line: int, message: str) -> None:
        messages = self._messages.setdefault(line, [])
        if message not in messages:
            messages.append(message)

    def merge(self, errors: Mapping[int, str]) -> None:
        for line, message in errors.items():
            self.add(line, message)

    def messages(self, line: int) -> list[str]:
        return list(self._messages.get(line, []))

    def __getitem__(self, line: int) -> str:
        return "; ".join(self._messages[line])

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"ParseErrors({dict(self.items())!r})"


@dataclass
class ParseResult:
    elements: list[ParsedElement] = field(default_factory=list)
    errors: ParseErrors = field(default_factory=ParseErrors)
