"""Per-document text editing session."""

from __future__ import annotations

import logging
from typing import Any

from diagram_text.config import TextConfig
from diagram_text.formats import TextFormat, get_format
from diagram_text.ir.ast import ParseErrors
from diagram_text.model.document import Document
from diagram_text.model.elements import DiagramElement, DiagramNode, Point
from diagram_text.model.undo import SnapshotUpdateAction
from diagram_text.model.uow import UnitOfWork
from diagram_text.reconcile import ReconcileResult, reconcile

logger = logging.getLogger(__name__)

_STYLE_KEYS = ("style", "textStyle")


class TextSession:
    """Text view of one document.

    Holds the current lines and their errors, plus the editor state that
    must not leak between documents (last paste point, last copied style).
    """

    def __init__(self, document: Document, format_name: str = "default", config: TextConfig | None = None) -> None:
        self.document = document
        self.format: TextFormat = get_format(format_name)
        self.config = config or TextConfig()
        self.lines: list[str] = []
        self.errors: ParseErrors = ParseErrors()
        self.last_paste_point: Point | None = None
        self.last_copied_style: dict[str, Any] | None = None
        self._last_paste_content: str | None = None
        self.refresh()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def refresh(self) -> list[str]:
        """Re-serialize the document into ``lines`` and clear errors."""
        self.lines = self.format.serialize(self.document.elements)
        self.errors = ParseErrors()
        return self.lines

    def check(self, text: str) -> ParseErrors:
        self.lines = text.split("\n")
        self.errors = self.format.parse(text).errors
        return self.errors

    def apply(self, text: str) -> ReconcileResult | None:
        """Parse ``text`` and reconcile it into the document if it is clean.

        Returns:
            The reconcile result, or None when the text has errors; the
            errors are then available on ``errors``.
        """
        self.lines = text.split("\n")
        result = self.format.parse(text)
        self.errors = result.errors
        if result.errors:
            logger.info("Not applying text with %d error line(s)", len(result.errors))
            return None
        return reconcile(result.elements, self.document, self.config)

    def highlighted(self) -> list[str]:
        if self.format.highlight_syntax is None:
            return list(self.lines)
        return self.format.highlight_syntax(self.lines, self.errors)

    # ── Paste and style state ─────────────────────────────────────────────────

    def next_paste_point(self, content: str, point: Point) -> Point:
        """Where pasted ``content`` goes.

        Pasting the same content again lands ``paste_offset`` down and to the
        right of the previous paste instead of on top of it.
        """
        if content == self._last_paste_content and self.last_paste_point is not None:
            offset = self.config.paste_offset
            self.last_paste_point = Point(self.last_paste_point.x + offset, self.last_paste_point.y + offset)
        else:
            self._last_paste_content = content
            self.last_paste_point = point
        return self.last_paste_point

    def copy_style(self, element: DiagramElement) -> dict[str, Any]:
        self.last_copied_style = {k: element.metadata[k] for k in _STYLE_KEYS if k in element.metadata}
        return self.last_copied_style

    def paste_style(self, elements: list[DiagramElement]) -> bool:
        """Apply the last copied style to ``elements`` as one undo step.

        Returns:
            Whether any element changed.
        """
        if not self.last_copied_style:
            return False
        style = self.last_copied_style

        def change(uow: UnitOfWork) -> None:
            for element in elements:
                values = style if isinstance(element, DiagramNode) else {k: v for k, v in style.items() if k != "textStyle"}
                element.update_metadata(lambda m, values=values: m.update(values), uow)

        _, snapshot = UnitOfWork.execute(self.document, change)
        updated = snapshot.only_updated()
        if len(updated):
            self.document.undo_manager.add(SnapshotUpdateAction(self.document, updated))
        return len(updated) > 0
