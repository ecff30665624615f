"""Unit of work: groups document mutations and classifies what changed.

Mutation primitives snapshot an element before touching it. On commit the
first snapshot of each element is compared with its current state, giving
the added / updated / removed sets. Listeners hear about the change once,
on commit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from diagram_text.model.document import Document
    from diagram_text.model.elements import DiagramElement

logger = logging.getLogger(__name__)

T = TypeVar("T")

State = dict[str, Any]


@dataclass
class ElementsSnapshot:
    """Before/after states per element id. None means "did not exist"."""

    before: dict[str, State | None] = field(default_factory=dict)
    after: dict[str, State | None] = field(default_factory=dict)

    def _filtered(self, keep: Callable[[State | None, State | None], bool]) -> ElementsSnapshot:
        ids = [i for i in self.before if keep(self.before[i], self.after.get(i))]
        return ElementsSnapshot({i: self.before[i] for i in ids}, {i: self.after.get(i) for i in ids})

    def only_added(self) -> ElementsSnapshot:
        return self._filtered(lambda b, a: b is None and a is not None)

    def only_updated(self) -> ElementsSnapshot:
        return self._filtered(lambda b, a: b is not None and a is not None and a != b)

    def only_removed(self) -> ElementsSnapshot:
        return self._filtered(lambda b, a: b is not None and a is None)

    @property
    def ids(self) -> list[str]:
        return list(self.before)

    def __len__(self) -> int:
        return len(self.before)


class UnitOfWork:
    def __init__(self, document: Document, track_changes: bool = True) -> None:
        self.document = document
        self.track_changes = track_changes
        self.committed = False
        self._before: dict[str, State | None] = {}

    @classmethod
    def execute(cls, document: Document, fn: Callable[[UnitOfWork], T]) -> tuple[T, ElementsSnapshot]:
        """Run ``fn`` inside a fresh unit of work and commit it."""
        uow = cls(document)
        result = fn(uow)
        return result, uow.commit()

    def _check_open(self) -> None:
        if self.committed:
            raise RuntimeError("Unit of work has already been committed")

    def snapshot(self, element: DiagramElement) -> None:
        """Record the element's state unless it was already recorded."""
        self._check_open()
        if self.track_changes and element.id not in self._before:
            self._before[element.id] = element.snapshot()

    def add_element(self, element: DiagramElement) -> None:
        self._check_open()
        if self.track_changes and element.id not in self._before:
            self._before[element.id] = None

    def update_element(self, element: DiagramElement) -> None:
        self._check_open()
        if self.track_changes and element.id not in self._before:
            raise RuntimeError(f"Must snapshot {element!r} before updating it")

    def remove_element(self, element: DiagramElement) -> None:
        self._check_open()
        if self.track_changes and element.id not in self._before:
            raise RuntimeError(f"Must snapshot {element!r} before removing it")

    def commit(self) -> ElementsSnapshot:
        self._check_open()
        self.committed = True
        after: dict[str, State | None] = {}
        for element_id in self._before:
            element = self.document.lookup(element_id)
            after[element_id] = element.snapshot() if element is not None else None
        result = ElementsSnapshot(dict(self._before), after)

        added = result.only_added().ids
        updated = result.only_updated().ids
        removed = result.only_removed().ids
        logger.debug("Committed: %d added, %d updated, %d removed", len(added), len(updated), len(removed))
        if added:
            self.document.emit("elementAdd", added)
        if updated:
            self.document.emit("elementChange", updated)
        if removed:
            self.document.emit("elementRemove", removed)
        return result
