"""Base serializer protocol."""

from __future__ import annotations

from typing import Protocol

from diagram_text.model.elements import DiagramElement


class Serializer(Protocol):
    """Protocol that all text format serializers must implement."""

    def serialize(self, elements: list[DiagramElement]) -> list[str]:
        """Serialize top-level document elements to source lines."""
        ...
