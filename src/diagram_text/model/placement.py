"""Free-space placement for newly created nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from diagram_text.model.elements import Bounds, DiagramNode

if TYPE_CHECKING:
    from diagram_text.model.document import Document


def _candidates(bounds: Bounds, reference: Bounds, distance: float) -> list[Bounds]:
    w, h = bounds.w, bounds.h
    return [
        Bounds(reference.x + reference.w + distance, reference.y, w, h),  # right
        Bounds(reference.x, reference.y + reference.h + distance, w, h),  # below
        Bounds(reference.x - w - distance, reference.y, w, h),  # left
        Bounds(reference.x, reference.y - h - distance, w, h),  # above
    ]


def place_node(
    bounds: Bounds,
    reference: DiagramNode,
    document: Document,
    min_distance: float = 10,
    max_rings: int = 50,
) -> Bounds:
    """Find a spot for ``bounds`` next to ``reference`` that overlaps nothing.

    Candidates are tried right, below, left and above the reference, moving
    one step further out on every ring. Each candidate keeps ``min_distance``
    away from every other node in the document.

    Args:
        bounds: Size of the node to place; its position is ignored.
        reference: Node to place next to.
        document: Document whose nodes must not be overlapped.
        min_distance: Gap between the placed node and anything else.
        max_rings: How far out to search before giving up.

    Returns:
        The placed bounds. When every candidate is taken, the spot right of
        all other nodes on the reference's row.
    """
    taken = [n.bounds for n in document.nodes() if not n.is_label]
    if reference.bounds not in taken:
        taken.append(reference.bounds)
    step = max(bounds.w, bounds.h) + min_distance
    for ring in range(max_rings):
        for candidate in _candidates(bounds, reference.bounds, min_distance + ring * step):
            padded = candidate.grow(min_distance)
            if not any(padded.intersects(other) for other in taken):
                return candidate
    rightmost = max(b.x + b.w for b in taken)
    return Bounds(rightmost + min_distance, reference.bounds.y, bounds.w, bounds.h)
