"""In-memory document model the reconciler writes into."""

from diagram_text.model.document import Document, Selection
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
from diagram_text.model.undo import (
    CompoundAction,
    ElementAddAction,
    ElementDeleteAction,
    SnapshotUpdateAction,
    UndoManager,
)
from diagram_text.model.uow import ElementsSnapshot, UnitOfWork

__all__ = [
    "Bounds",
    "CompoundAction",
    "ConnectedEndpoint",
    "DiagramEdge",
    "DiagramElement",
    "DiagramNode",
    "Document",
    "ElementAddAction",
    "ElementDeleteAction",
    "ElementsSnapshot",
    "Endpoint",
    "FreeEndpoint",
    "LabelInfo",
    "Point",
    "Selection",
    "SnapshotUpdateAction",
    "UndoManager",
    "UnitOfWork",
    "place_node",
]
