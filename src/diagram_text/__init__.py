"""diagram-text: a line-oriented text DSL for diagrams, reconciled into a live document."""

from diagram_text.config import TextConfig
from diagram_text.formats import TextFormat, available_formats, get_format, register_format
from diagram_text.ir.ast import ParsedEdge, ParsedElement, ParsedNode, ParseErrors, ParseResult
from diagram_text.model.document import Document
from diagram_text.parsers.default import parse
from diagram_text.reconcile import ReconcileResult, reconcile, update_or_create_label_node
from diagram_text.serializers.default import serialize
from diagram_text.serializers.highlight import highlight_syntax
from diagram_text.session import TextSession


def text_to_document(src: str, document: Document | None = None) -> tuple[Document, ParseErrors]:
    """Parse ``src`` and reconcile it into ``document`` (a new one by default).

    Args:
        src: Diagram text in the default format.
        document: Document to update; a fresh empty one when omitted.

    Returns:
        The document and the parse errors. When there are errors the
        document is left untouched.
    """
    document = document if document is not None else Document()
    result = parse(src)
    if not result.errors:
        reconcile(result.elements, document)
    return document, result.errors


def document_to_text(document: Document) -> str:
    """Serialize the top-level elements of ``document`` to default-format text."""
    return "\n".join(serialize(document.elements))


__all__ = [
    "Document",
    "ParseErrors",
    "ParseResult",
    "ParsedEdge",
    "ParsedElement",
    "ParsedNode",
    "ReconcileResult",
    "TextConfig",
    "TextFormat",
    "TextSession",
    "available_formats",
    "document_to_text",
    "get_format",
    "highlight_syntax",
    "parse",
    "reconcile",
    "register_format",
    "serialize",
    "text_to_document",
    "update_or_create_label_node",
]
