"""Diagram elements: nodes, edges, endpoints and the geometry they carry.

Elements are long-lived and owned by a Document. Every mutation primitive
takes the active UnitOfWork and snapshots the element before changing it, so
the unit of work can classify and undo the change.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from diagram_text.types import ElementKind

if TYPE_CHECKING:
    from diagram_text.model.document import Document
    from diagram_text.model.uow import UnitOfWork


# ─── Geometry ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    w: float
    h: float
    r: float = 0

    @property
    def center(self) -> Point:
        return Point(self.x + self.w / 2, self.y + self.h / 2)

    def grow(self, amount: float) -> Bounds:
        return Bounds(self.x - amount, self.y - amount, self.w + 2 * amount, self.h + 2 * amount, self.r)

    def intersects(self, other: Bounds) -> bool:
        return (
            self.x < other.x + other.w
            and self.x + self.w > other.x
            and self.y < other.y + other.h
            and self.y + self.h > other.y
        )

    @classmethod
    def from_points(cls, a: Point, b: Point) -> Bounds:
        x, y = min(a.x, b.x), min(a.y, b.y)
        return cls(x, y, abs(a.x - b.x), abs(a.y - b.y))


# ─── Endpoints ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FreeEndpoint:
    position: Point

    @property
    def is_connected(self) -> bool:
        return False


@dataclass(frozen=True)
class ConnectedEndpoint:
    node: DiagramNode
    anchor: str = "c"

    @property
    def is_connected(self) -> bool:
        return True

    @property
    def position(self) -> Point:
        return self.node.bounds.center


Endpoint = Union[FreeEndpoint, ConnectedEndpoint]


def _endpoint_state(endpoint: Endpoint) -> dict[str, Any]:
    pos = endpoint.position
    state: dict[str, Any] = {"x": pos.x, "y": pos.y}
    if isinstance(endpoint, ConnectedEndpoint):
        state["node"] = endpoint.node.id
        state["anchor"] = endpoint.anchor
    return state


@dataclass(frozen=True)
class LabelInfo:
    """How a label node tracks the path of the edge it belongs to."""

    type: str = "perpendicular"
    offset: Point = Point(0, 0)
    time_offset: float = 0.5


# ─── Elements ────────────────────────────────────────────────────────────────


class DiagramElement:
    kind: ElementKind

    def __init__(
        self,
        id: str,
        props: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.id = id
        self.props: dict[str, Any] = copy.deepcopy(props) if props else {}
        self.metadata: dict[str, Any] = dict(metadata) if metadata else {}
        self.parent: DiagramElement | None = None
        self.children: list[DiagramElement] = []
        self.document: Document | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    def _touch(self, uow: UnitOfWork) -> None:
        uow.snapshot(self)
        uow.update_element(self)

    def update_props(self, fn: Callable[[dict[str, Any]], object], uow: UnitOfWork) -> None:
        self._touch(uow)
        fn(self.props)

    def update_metadata(self, fn: Callable[[dict[str, Any]], object], uow: UnitOfWork) -> None:
        self._touch(uow)
        fn(self.metadata)

    def add_child(self, child: DiagramElement, uow: UnitOfWork) -> None:
        assert self.document is not None, "element must belong to a document"
        self._touch(uow)
        self.document.attach(child, self, uow)

    def remove_child(self, child: DiagramElement, uow: UnitOfWork) -> None:
        assert self.document is not None, "element must belong to a document"
        if child.parent is not self:
            raise ValueError(f"{child!r} is not a child of {self!r}")
        self.document.remove_element(child, uow)

    def snapshot(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "id": self.id,
            "parent": self.parent.id if self.parent is not None else None,
            "children": [c.id for c in self.children],
            "props": copy.deepcopy(self.props),
            "metadata": copy.deepcopy(self.metadata),
        }

    def restore_fields(self, state: dict[str, Any]) -> None:
        self.props = copy.deepcopy(state["props"])
        self.metadata = copy.deepcopy(state["metadata"])


class DiagramNode(DiagramElement):
    kind = ElementKind.Node

    def __init__(
        self,
        id: str,
        node_type: str,
        bounds: Bounds,
        text: str = "",
        props: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(id, props, metadata)
        self.node_type = node_type
        self.bounds = bounds
        self.text = text
        self.label_info: LabelInfo | None = None

    @property
    def is_label(self) -> bool:
        return self.label_info is not None and isinstance(self.parent, DiagramEdge)

    def set_text(self, text: str, uow: UnitOfWork) -> None:
        self._touch(uow)
        self.text = text

    def set_node_type(self, node_type: str, uow: UnitOfWork) -> None:
        self._touch(uow)
        self.node_type = node_type

    def snapshot(self) -> dict[str, Any]:
        state = super().snapshot()
        state["node_type"] = self.node_type
        state["bounds"] = (self.bounds.x, self.bounds.y, self.bounds.w, self.bounds.h, self.bounds.r)
        state["text"] = self.text
        if self.label_info is not None:
            info = self.label_info
            state["label"] = {
                "type": info.type,
                "offset": (info.offset.x, info.offset.y),
                "time_offset": info.time_offset,
            }
        else:
            state["label"] = None
        return state

    def restore_fields(self, state: dict[str, Any]) -> None:
        super().restore_fields(state)
        self.node_type = state["node_type"]
        self.bounds = Bounds(*state["bounds"])
        self.text = state["text"]
        label = state["label"]
        self.label_info = (
            LabelInfo(label["type"], Point(*label["offset"]), label["time_offset"]) if label is not None else None
        )


class DiagramEdge(DiagramElement):
    kind = ElementKind.Edge

    def __init__(
        self,
        id: str,
        start: Endpoint,
        end: Endpoint,
        props: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(id, props, metadata)
        self.start: Endpoint = start
        self.end: Endpoint = end

    @property
    def bounds(self) -> Bounds:
        return Bounds.from_points(self.start.position, self.end.position)

    @property
    def label_nodes(self) -> list[DiagramNode]:
        return [c for c in self.children if isinstance(c, DiagramNode) and c.label_info is not None]

    def set_start(self, endpoint: Endpoint, uow: UnitOfWork) -> None:
        self._touch(uow)
        self.start = endpoint
        if self.document is not None:
            self.document.sync_connections(self)

    def set_end(self, endpoint: Endpoint, uow: UnitOfWork) -> None:
        self._touch(uow)
        self.end = endpoint
        if self.document is not None:
            self.document.sync_connections(self)

    def add_label_node(self, node: DiagramNode, info: LabelInfo, uow: UnitOfWork) -> None:
        uow.snapshot(node)
        node.label_info = info
        uow.update_element(node)
        if node.parent is not self:
            self.add_child(node, uow)

    def set_label_nodes(self, nodes: list[DiagramNode], uow: UnitOfWork) -> None:
        """Keep exactly ``nodes`` flagged as labels; other children lose the flag."""
        keep = {n.id for n in nodes}
        for current in self.label_nodes:
            if current.id not in keep:
                uow.snapshot(current)
                current.label_info = None
                uow.update_element(current)
        for node in nodes:
            if node.label_info is None or node.parent is not self:
                self.add_label_node(node, node.label_info or LabelInfo(), uow)

    def snapshot(self) -> dict[str, Any]:
        state = super().snapshot()
        state["start"] = _endpoint_state(self.start)
        state["end"] = _endpoint_state(self.end)
        return state
