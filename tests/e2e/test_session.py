"""End-to-end: a text session editing a live document."""

import pytest

from diagram_text import Document, TextSession
from diagram_text.model import Point


@pytest.fixture
def session():
    return TextSession(Document())


def test_new_session_on_empty_document(session):
    assert session.lines == []
    assert session.text == ""
    assert not session.errors


def test_apply_then_refresh(session):
    result = session.apply('a:  rect "A"\nb: circle')
    assert result.added == {"a", "b"}
    session.refresh()
    assert session.text == 'a: rect "A"\n\nb: circle\n'


def test_apply_with_errors_does_not_touch_document(session):
    session.apply("a: rect")
    assert session.apply("a: rect\nb rect") is None
    assert session.errors[1] == 'Expected ":" after element ID'
    assert [el.id for el in session.document.elements] == ["a"]
    assert session.lines == ["a: rect", "b rect"]


def test_check_only_reports(session):
    errors = session.check('n: text "open')
    assert errors[0] == "Unterminated string literal"
    assert session.document.elements == []


def test_highlighted_marks_error_lines(session):
    session.check("a: rect\nbad")
    highlighted = session.highlighted()
    assert highlighted[0] == "a: rect"
    assert highlighted[1].startswith('<span class="syntax-error" title="Expected &quot;:&quot; after element ID">')


def test_refresh_clears_errors(session):
    session.check("bad")
    assert session.errors
    session.refresh()
    assert not session.errors


def test_session_wraps_existing_document():
    doc = Document()
    TextSession(doc).apply("n: rect")
    assert TextSession(doc).text == "n: rect\n"


def test_repeated_paste_is_offset(session):
    assert session.next_paste_point("a: rect", Point(10, 10)) == Point(10, 10)
    assert session.next_paste_point("a: rect", Point(10, 10)) == Point(20, 20)
    assert session.next_paste_point("a: rect", Point(10, 10)) == Point(30, 30)
    assert session.next_paste_point("b: rect", Point(50, 50)) == Point(50, 50)


def test_copy_and_paste_style(session):
    session.apply('a: rect {\n  stylesheet: s1 / t1\n}\nb: rect\ne: edge')
    doc = session.document
    assert session.copy_style(doc.lookup("a")) == {"style": "s1", "textStyle": "t1"}

    assert session.paste_style([doc.lookup("b"), doc.lookup("e")])
    assert doc.lookup("b").metadata == {"style": "s1", "textStyle": "t1"}
    assert doc.lookup("e").metadata == {"style": "s1"}

    doc.undo_manager.undo()
    assert doc.lookup("b").metadata == {}
    assert doc.lookup("e").metadata == {}


def test_paste_style_without_copy(session):
    session.apply("b: rect")
    assert not session.paste_style([session.document.lookup("b")])
    assert len(session.document.undo_manager.undoable) == 1


def test_editor_state_is_per_session():
    first = TextSession(Document())
    second = TextSession(Document())
    first.apply("n: rect {\n  stylesheet: s1 /\n}")
    first.next_paste_point("x", Point(10, 10))
    first.next_paste_point("x", Point(10, 10))
    first.copy_style(first.document.lookup("n"))
    assert first.last_copied_style == {"style": "s1"}
    assert second.last_paste_point is None
    assert second.last_copied_style is None
    assert second.next_paste_point("x", Point(10, 10)) == Point(10, 10)


def test_unknown_format():
    with pytest.raises(ValueError, match="Unsupported text format"):
        TextSession(Document(), format_name="yaml")
