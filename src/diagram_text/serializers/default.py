"""Serializer for the default diagram text format.

Output is canonical: every top-level element is followed by a blank line,
bodies are indented by ``TextConfig.indent`` per level, and body entries come
in a fixed order (stylesheet, props, metadata, children).
"""

from __future__ import annotations

import copy
import re
from typing import Any

from diagram_text.config import TextConfig
from diagram_text.model.elements import ConnectedEndpoint, DiagramEdge, DiagramElement, DiagramNode
from diagram_text.parsers.arrow_notation import props_to_arrow_notation
from diagram_text.parsers.props import serialize_metadata, serialize_props
from diagram_text.types import KEYWORDS

_PLAIN_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
_STYLE_KEYS = frozenset({"style", "textStyle"})
_PLAIN_CONNECTOR = "--"


def quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def format_id(element_id: str) -> str:
    if _PLAIN_ID_RE.fullmatch(element_id) and element_id not in KEYWORDS:
        return element_id
    return quote(element_id)


def _strip_notation_props(props: dict[str, Any]) -> dict[str, Any]:
    """Drop what the connector already says, pruning emptied sub-objects."""
    props = copy.deepcopy(props)
    arrow = props.get("arrow")
    if isinstance(arrow, dict):
        for end in ("start", "end"):
            if isinstance(arrow.get(end), dict):
                arrow[end].pop("type", None)
                if not arrow[end]:
                    del arrow[end]
        if not arrow:
            del props["arrow"]
    stroke = props.get("stroke")
    if isinstance(stroke, dict):
        stroke.pop("width", None)
        stroke.pop("pattern", None)
        if not stroke:
            del props["stroke"]
    return props


class DefaultSerializer:
    """Serializer for the default diagram text format."""

    def __init__(self, config: TextConfig | None = None) -> None:
        self.config = config or TextConfig()

    def serialize(self, elements: list[DiagramElement]) -> list[str]:
        lines: list[str] = []
        for element in elements:
            self.write_element(element, lines, "")
            lines.append("")
        return lines

    # ── Shared ────────────────────────────────────────────────────────────────

    def style_line(self, element: DiagramElement) -> str | None:
        style = element.metadata.get("style")
        text_style = element.metadata.get("textStyle") if isinstance(element, DiagramNode) else None
        if style in self.config.default_styles:
            style = None
        if text_style in self.config.default_styles:
            text_style = None
        if not style and not text_style:
            return None
        left = f"{style} " if style else ""
        right = f" {text_style}" if text_style else ""
        return f"stylesheet: {left}/{right}"

    def write_block(self, head: str, body: list[str], children: list[DiagramElement], lines: list[str], indent: str) -> None:
        inner = indent + self.config.indent
        sublines = [inner + entry for entry in body]
        for child in children:
            self.write_element(child, sublines, inner)
        if sublines:
            lines.append(f"{head} {{")
            lines.extend(sublines)
            lines.append(f"{indent}}}")
        else:
            lines.append(head)

    def body_entries(self, element: DiagramElement, props: dict[str, Any]) -> list[str]:
        body: list[str] = []
        style = self.style_line(element)
        if style:
            body.append(style)
        props_s = serialize_props(props)
        if props_s:
            body.append(f"props: {quote(props_s)}")
        metadata_s = serialize_metadata(element.metadata, exclude=_STYLE_KEYS)
        if metadata_s:
            body.append(f"metadata: {quote(metadata_s)}")
        return body

    def write_element(self, element: DiagramElement, lines: list[str], indent: str) -> None:
        if isinstance(element, DiagramEdge):
            self.write_edge(element, lines, indent)
        elif isinstance(element, DiagramNode):
            self.write_node(element, lines, indent)

    # ── Nodes ─────────────────────────────────────────────────────────────────

    def write_node(self, node: DiagramNode, lines: list[str], indent: str) -> None:
        head = f"{indent}{format_id(node.id)}: {node.node_type}"
        if node.text:
            head += f" {quote(node.text)}"
        self.write_block(head, self.body_entries(node, node.props), node.children, lines, indent)

    # ── Edges ─────────────────────────────────────────────────────────────────

    def write_edge(self, edge: DiagramEdge, lines: list[str], indent: str) -> None:
        head = f"{indent}{format_id(edge.id)}: edge"
        props = edge.props
        notation = props_to_arrow_notation(props)
        connected = edge.start.is_connected or edge.end.is_connected
        with_connector = connected or (notation is not None and notation != _PLAIN_CONNECTOR)

        if with_connector:
            if notation is not None:
                props = _strip_notation_props(props)
            if isinstance(edge.start, ConnectedEndpoint):
                head += f" {format_id(edge.start.node.id)}"
            head += f" {notation or _PLAIN_CONNECTOR}"
            if isinstance(edge.end, ConnectedEndpoint):
                head += f" {format_id(edge.end.node.id)}"

        children = list(edge.children)
        labels = edge.label_nodes
        # After a connector with no end node, a string would read as the end id
        if len(labels) == 1 and not (with_connector and not edge.end.is_connected):
            head += f" {quote(labels[0].text)}"
            children.remove(labels[0])

        self.write_block(head, self.body_entries(edge, props), children, lines, indent)


def serialize(elements: list[DiagramElement], config: TextConfig | None = None) -> list[str]:
    """Serialize top-level document elements into default-format lines."""
    return DefaultSerializer(config).serialize(elements)
