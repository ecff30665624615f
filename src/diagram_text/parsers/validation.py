"""Post-parse validation rules over the whole parsed forest.

A rule takes the forest and returns errors keyed by source line. Rules are
data: append to VALIDATION_RULES (or pass ``rules=`` to the parser) to add
checks without touching the parser.
"""

from __future__ import annotations

from collections.abc import Callable

from diagram_text.ir.ast import ParsedElement
from diagram_text.utils import collect_element_ids

ValidationRule = Callable[[list[ParsedElement]], dict[int, str]]


def duplicate_id_rule(elements: list[ParsedElement]) -> dict[int, str]:
    """Report every line of an id that is defined more than once, nesting included."""
    errors: dict[int, str] = {}
    for element_id, lines in collect_element_ids(elements).items():
        if len(lines) > 1:
            for line in lines:
                errors[line] = f'Duplicate element ID: "{element_id}"'
    return errors


VALIDATION_RULES: list[ValidationRule] = [duplicate_id_rule]


def register_rule(rule: ValidationRule) -> None:
    VALIDATION_RULES.append(rule)
