"""Document: the live element store behind the text view.

Containment and connections are kept in a networkx MultiDiGraph keyed by
element id. Arc keys distinguish the relations:

    parent ──child──▶ child
    edge   ──start──▶ node
    edge   ──end────▶ node

The ``elements`` list holds the top-level elements in insertion order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import networkx as nx

from diagram_text.model.elements import (
    Bounds,
    ConnectedEndpoint,
    DiagramEdge,
    DiagramElement,
    DiagramNode,
    Endpoint,
    FreeEndpoint,
    Point,
)
from diagram_text.model.undo import UndoManager
from diagram_text.model.uow import UnitOfWork

logger = logging.getLogger(__name__)

CHILD = "child"
START = "start"
END = "end"

Listener = Callable[[str, list[str]], None]


class Selection:
    """The set of currently selected elements."""

    def __init__(self) -> None:
        self.elements: list[DiagramElement] = []

    def set_elements(self, elements: Iterable[DiagramElement]) -> None:
        self.elements = list(elements)

    def __contains__(self, element: object) -> bool:
        return element in self.elements

    def __len__(self) -> int:
        return len(self.elements)


class Document:
    def __init__(self, bounds: Bounds | None = None) -> None:
        self.bounds = bounds if bounds is not None else Bounds(0, 0, 1000, 1000)
        self.graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self.elements: list[DiagramElement] = []
        self.selection = Selection()
        self.undo_manager = UndoManager()
        self._listeners: list[Listener] = []

    # ── Queries ───────────────────────────────────────────────────────────────

    def lookup(self, element_id: str) -> DiagramElement | None:
        if element_id not in self.graph:
            return None
        return self.graph.nodes[element_id]["data"]

    def __contains__(self, element_id: object) -> bool:
        return element_id in self.graph

    def __iter__(self) -> Iterator[DiagramElement]:
        """Iterate over every element, nested ones included."""
        for _, data in self.graph.nodes(data="data"):
            yield data

    def nodes(self) -> list[DiagramNode]:
        return [el for el in self if isinstance(el, DiagramNode)]

    def subtree(self, element: DiagramElement) -> list[DiagramElement]:
        """The element and its descendants, parents first."""
        containment = nx.subgraph_view(self.graph, filter_edge=lambda u, v, k: k == CHILD)
        order = nx.dfs_preorder_nodes(containment, element.id)
        return [self.graph.nodes[n]["data"] for n in order]

    def connected_edges(self, node: DiagramNode) -> list[DiagramEdge]:
        edges = {u for u, _, k in self.graph.in_edges(node.id, keys=True) if k in (START, END)}
        return [self.graph.nodes[u]["data"] for u in sorted(edges)]

    # ── Structure ─────────────────────────────────────────────────────────────

    def add_element(self, element: DiagramElement, uow: UnitOfWork, parent: DiagramElement | None = None) -> None:
        """Register a new element, nested under ``parent`` or at the top level."""
        if element.id in self.graph:
            raise ValueError(f"Element {element.id!r} already exists")
        uow.add_element(element)
        element.document = self
        self.graph.add_node(element.id, data=element)
        if parent is not None:
            parent.add_child(element, uow)
        else:
            self.elements.append(element)
        if isinstance(element, DiagramEdge):
            self.sync_connections(element)

    def attach(self, element: DiagramElement, parent: DiagramElement | None, uow: UnitOfWork | None = None) -> None:
        """Move ``element`` under ``parent`` (None for top level)."""
        self._detach(element, uow)
        if parent is not None:
            parent.children.append(element)
            element.parent = parent
            self.graph.add_edge(parent.id, element.id, key=CHILD)
        else:
            self.elements.append(element)

    def _detach(self, element: DiagramElement, uow: UnitOfWork | None) -> None:
        old = element.parent
        if old is not None:
            if uow is not None:
                uow.snapshot(old)
                uow.update_element(old)
            old.children = [c for c in old.children if c is not element]
            if self.graph.has_edge(old.id, element.id, key=CHILD):
                self.graph.remove_edge(old.id, element.id, key=CHILD)
            element.parent = None
        elif element in self.elements:
            self.elements.remove(element)

    def remove_element(self, element: DiagramElement, uow: UnitOfWork) -> None:
        """Remove ``element`` with its subtree.

        Edges left behind that were attached to a removed node keep their
        last position as a free endpoint.
        """
        doomed = self.subtree(element)
        doomed_ids = {el.id for el in doomed}
        for el in doomed:
            uow.snapshot(el)

        for el in doomed:
            if not isinstance(el, DiagramNode):
                continue
            for edge in self.connected_edges(el):
                if edge.id in doomed_ids:
                    continue
                if isinstance(edge.start, ConnectedEndpoint) and edge.start.node is el:
                    edge.set_start(FreeEndpoint(edge.start.position), uow)
                if isinstance(edge.end, ConnectedEndpoint) and edge.end.node is el:
                    edge.set_end(FreeEndpoint(edge.end.position), uow)

        self._detach(element, uow)
        for el in doomed:
            uow.remove_element(el)
            el.document = None
        self.graph.remove_nodes_from(doomed_ids)
        logger.debug("Removed %s with %d descendant(s)", element, len(doomed) - 1)

    def sync_connections(self, edge: DiagramEdge) -> None:
        """Mirror the edge's endpoints as start/end arcs in the graph."""
        for key, endpoint in ((START, edge.start), (END, edge.end)):
            for _, v, k in list(self.graph.out_edges(edge.id, keys=True)):
                if k == key:
                    self.graph.remove_edge(edge.id, v, key=k)
            if isinstance(endpoint, ConnectedEndpoint) and endpoint.node.id in self.graph:
                self.graph.add_edge(edge.id, endpoint.node.id, key=key)

    # ── State restore (undo / redo) ───────────────────────────────────────────

    def apply_states(self, states: dict[str, dict[str, Any] | None]) -> None:
        """Bring the listed elements to the given states in one step.

        A None state means the element must not exist. References to
        elements that are missing after the restore are dropped: a dangling
        parent puts the element at the top level, a dangling endpoint
        becomes free at its recorded position.
        """
        uow = UnitOfWork(self, track_changes=False)
        for element_id, state in states.items():
            if state is None and (element := self.lookup(element_id)) is not None:
                self.remove_element(element, uow)

        restored: list[tuple[DiagramElement, dict[str, Any]]] = []
        for element_id, state in states.items():
            if state is None:
                continue
            element = self.lookup(element_id)
            if element is None:
                element = _element_from_state(state)
                element.document = self
                self.graph.add_node(element.id, data=element)
                self.elements.append(element)
            element.restore_fields(state)
            restored.append((element, state))

        for element, state in restored:
            parent = self.lookup(state["parent"]) if state["parent"] is not None else None
            if parent is not element.parent or (parent is None and element not in self.elements):
                self.attach(element, parent)

        for element, state in restored:
            ordered = [c for c in (self.lookup(cid) for cid in state["children"]) if c is not None and c.parent is element]
            element.children = ordered + [c for c in element.children if c not in ordered]

        for element, state in restored:
            if isinstance(element, DiagramEdge):
                element.start = self._endpoint_from_state(state["start"])
                element.end = self._endpoint_from_state(state["end"])
                self.sync_connections(element)

        self.emit("diagramChange", list(states))

    def _endpoint_from_state(self, state: dict[str, Any]) -> Endpoint:
        node = self.lookup(state["node"]) if "node" in state else None
        if isinstance(node, DiagramNode):
            return ConnectedEndpoint(node, state.get("anchor", "c"))
        return FreeEndpoint(Point(state["x"], state["y"]))

    # ── Events ────────────────────────────────────────────────────────────────

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def emit(self, event: str, element_ids: list[str]) -> None:
        for listener in list(self._listeners):
            listener(event, element_ids)


def _element_from_state(state: dict[str, Any]) -> DiagramElement:
    if state["kind"] == "edge":
        start = FreeEndpoint(Point(state["start"]["x"], state["start"]["y"]))
        end = FreeEndpoint(Point(state["end"]["x"], state["end"]["y"]))
        return DiagramEdge(state["id"], start, end)
    return DiagramNode(state["id"], state["node_type"], Bounds(*state["bounds"]))
