"""Centralized configuration for diagram-text."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TextConfig:
    """Configuration for parsing, serialization and reconciliation."""

    indent: str = "  "
    # Style names that serialize as "absent"
    default_styles: frozenset[str] = field(
        default_factory=lambda: frozenset({"default", "default-text", "default-edge", "default-text-default"})
    )
    default_node_size: tuple[float, float] = (100, 100)
    # Endpoints of new edges with no from/to
    free_start_point: tuple[float, float] = (100, 100)
    free_end_point: tuple[float, float] = (200, 200)
    # Endpoints of new edges whose from/to id does not resolve to a node
    unresolved_start_point: tuple[float, float] = (0, 0)
    unresolved_end_point: tuple[float, float] = (200, 200)
    placement_min_distance: float = 10
    label_shape: str = "text"
    label_type: str = "perpendicular"
    label_time_offset: float = 0.5
    # Shift applied when the same content is pasted again
    paste_offset: float = 10
