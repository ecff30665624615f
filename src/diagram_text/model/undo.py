"""Undoable actions and the undo manager.

Every action is a pair of state maps (element id -> state or None). A
CompoundAction merges the maps of its parts and applies them in one step,
so one undo reverts a whole reconcile pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from diagram_text.model.document import Document
    from diagram_text.model.uow import ElementsSnapshot

States = dict[str, "dict[str, Any] | None"]


class UndoableAction(Protocol):
    description: str

    def undo(self) -> None: ...

    def redo(self) -> None: ...


class StateChangeAction:
    def __init__(self, description: str, document: Document, snapshot: ElementsSnapshot) -> None:
        self.description = description
        self.document = document
        self.before: States = dict(snapshot.before)
        self.after: States = dict(snapshot.after)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.description!r}, {sorted(self.before)})"

    def undo(self) -> None:
        self.document.apply_states(self.before)

    def redo(self) -> None:
        self.document.apply_states(self.after)


class ElementAddAction(StateChangeAction):
    def __init__(self, document: Document, snapshot: ElementsSnapshot) -> None:
        super().__init__("Add elements", document, snapshot)


class ElementDeleteAction(StateChangeAction):
    def __init__(self, document: Document, snapshot: ElementsSnapshot) -> None:
        super().__init__("Delete elements", document, snapshot)


class SnapshotUpdateAction(StateChangeAction):
    def __init__(self, document: Document, snapshot: ElementsSnapshot) -> None:
        super().__init__("Update elements", document, snapshot)


class CompoundAction:
    def __init__(self, description: str, document: Document) -> None:
        self.description = description
        self.document = document
        self.actions: list[StateChangeAction] = []

    def add_action(self, action: StateChangeAction) -> None:
        self.actions.append(action)

    def has_actions(self) -> bool:
        return bool(self.actions)

    def _merged(self, attr: str) -> States:
        merged: States = {}
        for action in self.actions:
            merged.update(getattr(action, attr))
        return merged

    def undo(self) -> None:
        self.document.apply_states(self._merged("before"))

    def redo(self) -> None:
        self.document.apply_states(self._merged("after"))


class UndoManager:
    def __init__(self) -> None:
        self.undoable: list[UndoableAction] = []
        self.redoable: list[UndoableAction] = []

    def add(self, action: UndoableAction) -> None:
        self.undoable.append(action)
        self.redoable.clear()

    def can_undo(self) -> bool:
        return bool(self.undoable)

    def can_redo(self) -> bool:
        return bool(self.redoable)

    def undo(self) -> UndoableAction | None:
        if not self.undoable:
            return None
        action = self.undoable.pop()
        action.undo()
        self.redoable.append(action)
        return action

    def redo(self) -> UndoableAction | None:
        if not self.redoable:
            return None
        action = self.redoable.pop()
        action.redo()
        self.undoable.append(action)
        return action
