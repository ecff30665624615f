"""Reconcile a parsed element forest into a live document.

One call is one transaction: elements missing from the text are removed,
known ids are updated in place, unknown ids are created. The whole pass is
recorded as a single compound undo step.

Example:
    >>> from diagram_text.model import Document
    >>> from diagram_text.parsers.default import parse
    >>> doc = Document()
    >>> result = reconcile(parse("a: rect").elements, doc)
    >>> sorted(result.added)
    ['a']
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field

from diagram_text.config import TextConfig
from diagram_text.ir.ast import ParsedEdge, ParsedElement, ParsedNode
from diagram_text.model.document import Document
from diagram_text.model.elements import (
    Bounds,
    ConnectedEndpoint,
    DiagramEdge,
    DiagramElement,
    DiagramNode,
    Endpoint,
    FreeEndpoint,
    LabelInfo,
    Point,
)
from diagram_text.model.placement import place_node
from diagram_text.model.undo import CompoundAction, ElementAddAction, ElementDeleteAction, SnapshotUpdateAction
from diagram_text.model.uow import UnitOfWork
from diagram_text.utils import collect_element_ids, deep_merge, new_id

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    added: set[str] = field(default_factory=set)
    updated: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.added or self.updated or self.removed)


def update_or_create_label_node(
    edge: DiagramElement,
    text: str,
    uow: UnitOfWork,
    document: Document,
    config: TextConfig | None = None,
    keep: Collection[str] = (),
) -> DiagramNode:
    """Make ``text`` the single inline label of ``edge``.

    Label nodes whose ids are in ``keep`` (children written out in the text)
    are left alone. Of the others, a lone one is reused; several are
    collapsed: all are removed and one fresh node is created.

    Raises:
        TypeError: If ``edge`` is not an edge.
    """
    if not isinstance(edge, DiagramEdge):
        raise TypeError("Element is not an edge")
    config = config or TextConfig()

    labels = [n for n in edge.label_nodes if n.id not in keep]
    if len(labels) == 1:
        labels[0].set_text(text, uow)
        return labels[0]

    if labels:
        for node in labels:
            document.remove_element(node, uow)
        edge.set_label_nodes([n for n in edge.label_nodes if n.id in keep], uow)

    node = DiagramNode(new_id(), config.label_shape, edge.bounds, text=text)
    document.add_element(node, uow, parent=edge)
    edge.add_label_node(node, LabelInfo(config.label_type, Point(0, 0), config.label_time_offset), uow)
    return node


class _Reconciler:
    def __init__(self, document: Document, uow: UnitOfWork, config: TextConfig) -> None:
        self.document = document
        self.uow = uow
        self.config = config
        self.last_reference: DiagramNode | None = None

    # ── Shared ────────────────────────────────────────────────────────────────

    def apply_styles(self, element: DiagramElement, parsed: ParsedElement) -> None:
        if parsed.metadata:
            element.update_metadata(lambda m: m.update(parsed.metadata), self.uow)
        if parsed.stylesheet:
            element.update_metadata(lambda m: m.__setitem__("style", parsed.stylesheet), self.uow)
        if isinstance(parsed, ParsedNode) and parsed.text_stylesheet:
            element.update_metadata(lambda m: m.__setitem__("textStyle", parsed.text_stylesheet), self.uow)

    def resolve(self, node_id: str | None) -> DiagramNode | None:
        if node_id is None:
            return None
        element = self.document.lookup(node_id)
        return element if isinstance(element, DiagramNode) else None

    def process(self, parsed: ParsedElement, parent: DiagramElement | None) -> None:
        existing = self.document.lookup(parsed.id)
        if existing is None:
            element = self.create(parsed, parent)
        elif isinstance(parsed, ParsedNode) and isinstance(existing, DiagramNode):
            element = self.update_node(existing, parsed)
        elif isinstance(parsed, ParsedEdge) and isinstance(existing, DiagramEdge):
            element = self.update_edge(existing, parsed)
        else:
            logger.warning("Element %r changed kind; leaving it untouched", parsed.id)
            return

        if isinstance(element, DiagramNode) and element.parent is None:
            self.last_reference = element
        for child in parsed.children or []:
            self.process(child, element)

    # ── Updates ───────────────────────────────────────────────────────────────

    def update_node(self, node: DiagramNode, parsed: ParsedNode) -> DiagramNode:
        logger.debug("Updating node %s", node.id)
        self.uow.snapshot(node)
        if parsed.shape != node.node_type:
            node.set_node_type(parsed.shape, self.uow)
        if parsed.name is not None and parsed.name != node.text:
            node.set_text(parsed.name, self.uow)
        if parsed.props:
            node.update_props(lambda p: deep_merge(p, parsed.props), self.uow)
        self.apply_styles(node, parsed)
        return node

    def update_edge(self, edge: DiagramEdge, parsed: ParsedEdge) -> DiagramEdge:
        logger.debug("Updating edge %s", edge.id)
        self.uow.snapshot(edge)
        if parsed.props:
            edge.update_props(lambda p: deep_merge(p, parsed.props), self.uow)
        self.apply_styles(edge, parsed)

        # Ids that do not resolve leave the endpoint as it is
        start = self.resolve(parsed.from_id)
        if start is not None:
            edge.set_start(ConnectedEndpoint(start), self.uow)
        end = self.resolve(parsed.to_id)
        if end is not None:
            edge.set_end(ConnectedEndpoint(end), self.uow)

        listed = {c.id for c in parsed.children or []}
        if parsed.label is not None:
            update_or_create_label_node(edge, parsed.label, self.uow, self.document, self.config, keep=listed)
        elif edge.label_nodes:
            kept = [n for n in edge.label_nodes if n.id in listed]
            for node in edge.label_nodes:
                if node.id not in listed:
                    self.document.remove_element(node, self.uow)
            edge.set_label_nodes(kept, self.uow)
        return edge

    # ── Creation ──────────────────────────────────────────────────────────────

    def new_node_bounds(self) -> Bounds:
        w, h = self.config.default_node_size
        if self.last_reference is not None:
            return place_node(
                Bounds(0, 0, w, h),
                self.last_reference,
                self.document,
                min_distance=self.config.placement_min_distance,
            )
        center = self.document.bounds.center
        return Bounds(center.x - w / 2, center.y - h / 2, w, h)

    def endpoint(self, node_id: str | None, free: tuple[float, float], unresolved: tuple[float, float]) -> Endpoint:
        if node_id is None:
            return FreeEndpoint(Point(*free))
        node = self.resolve(node_id)
        if node is None:
            logger.debug("Endpoint %r does not resolve; leaving it free", node_id)
            return FreeEndpoint(Point(*unresolved))
        return ConnectedEndpoint(node)

    def create(self, parsed: ParsedElement, parent: DiagramElement | None) -> DiagramElement:
        element: DiagramElement
        if isinstance(parsed, ParsedNode):
            logger.debug("Creating node %s", parsed.id)
            element = DiagramNode(
                parsed.id,
                parsed.shape,
                self.new_node_bounds(),
                text=parsed.name or "",
                props=parsed.props,
                metadata=parsed.metadata,
            )
        else:
            logger.debug("Creating edge %s", parsed.id)
            cfg = self.config
            element = DiagramEdge(
                parsed.id,
                self.endpoint(parsed.from_id, cfg.free_start_point, cfg.unresolved_start_point),
                self.endpoint(parsed.to_id, cfg.free_end_point, cfg.unresolved_end_point),
                props=parsed.props,
                metadata=parsed.metadata,
            )
        if parsed.stylesheet:
            element.metadata["style"] = parsed.stylesheet
        if isinstance(parsed, ParsedNode) and parsed.text_stylesheet:
            element.metadata["textStyle"] = parsed.text_stylesheet

        self.document.add_element(element, self.uow, parent=parent)
        if isinstance(parent, DiagramEdge) and isinstance(element, DiagramNode):
            parent.add_label_node(element, self.label_info(), self.uow)
        if isinstance(element, DiagramEdge) and parsed.label is not None:
            update_or_create_label_node(element, parsed.label, self.uow, self.document, self.config)
        return element

    def label_info(self) -> LabelInfo:
        return LabelInfo(self.config.label_type, Point(0, 0), self.config.label_time_offset)


def reconcile(
    elements: list[ParsedElement],
    document: Document,
    config: TextConfig | None = None,
) -> ReconcileResult:
    """Apply a parsed forest to ``document`` as one undoable transaction.

    The forest is assumed to have been checked already; callers should not
    reconcile text whose parse errors have not been shown to the user.
    Endpoint ids that do not resolve never raise: the endpoint stays free.

    Args:
        elements: Top-level parsed elements.
        document: The live document to mutate.
        config: Sizes, fallback points and label defaults.

    Returns:
        The ids that were added, updated and removed.
    """
    config = config or TextConfig()
    uow = UnitOfWork(document)
    parsed_ids = collect_element_ids(elements)

    for element in list(document.elements):
        if element.id not in parsed_ids:
            logger.debug("Removing %s", element.id)
            document.remove_element(element, uow)

    reconciler = _Reconciler(document, uow, config)
    for parsed in elements:
        reconciler.process(parsed, None)

    snapshot = uow.commit()
    removed = snapshot.only_removed()
    added = snapshot.only_added()
    updated = snapshot.only_updated()
    result = ReconcileResult(set(added.ids), set(updated.ids), set(removed.ids))

    if result.removed:
        remaining = [e for e in document.selection.elements if e.id not in result.removed]
        if len(remaining) != len(document.selection):
            document.selection.set_elements(remaining)

    action = CompoundAction("Update diagram", document)
    if len(removed):
        action.add_action(ElementDeleteAction(document, removed))
    if len(added):
        action.add_action(ElementAddAction(document, added))
    if len(updated):
        action.add_action(SnapshotUpdateAction(document, updated))
    if action.has_actions():
        document.undo_manager.add(action)

    logger.info(
        "Reconciled %d element(s): %d added, %d updated, %d removed",
        len(parsed_ids),
        len(result.added),
        len(result.updated),
        len(result.removed),
    )
    return result
