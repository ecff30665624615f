"""Tests for diagram_text.reconcile."""

import pytest

from diagram_text.config import TextConfig
from diagram_text.model import (
    Bounds,
    ConnectedEndpoint,
    DiagramEdge,
    DiagramNode,
    Document,
    FreeEndpoint,
    LabelInfo,
    Point,
    UnitOfWork,
)
from diagram_text.parsers.default import parse
from diagram_text.reconcile import reconcile, update_or_create_label_node


def _apply(src, doc=None):
    doc = doc if doc is not None else Document()
    result = parse(src)
    assert not result.errors, dict(result.errors)
    return doc, reconcile(result.elements, doc)


def _edge_with_labels(*texts):
    doc = Document()
    edge = DiagramEdge("e", FreeEndpoint(Point(0, 0)), FreeEndpoint(Point(100, 0)))
    uow = UnitOfWork(doc)
    doc.add_element(edge, uow)
    for i, text in enumerate(texts):
        label = DiagramNode(f"l{i}", "text", Bounds(0, 0, 10, 10), text=text)
        doc.add_element(label, uow, parent=edge)
        edge.add_label_node(label, LabelInfo(), uow)
    uow.commit()
    return doc, edge


class TestLabelNodes:
    def test_updates_existing_single_label(self):
        doc, edge = _edge_with_labels("old")
        node = UnitOfWork.execute(doc, lambda uow: update_or_create_label_node(edge, "new", uow, doc))[0]
        assert node.id == "l0"
        assert node.text == "new"
        assert edge.label_nodes == [node]

    def test_creates_label_when_none_exists(self):
        doc, edge = _edge_with_labels()
        node = UnitOfWork.execute(doc, lambda uow: update_or_create_label_node(edge, "Hi", uow, doc))[0]
        assert node.text == "Hi"
        assert node.node_type == "text"
        assert node.parent is edge
        assert node.label_info == LabelInfo("perpendicular", Point(0, 0), 0.5)
        assert node.bounds == edge.bounds

    def test_replaces_multiple_labels_with_one(self):
        doc, edge = _edge_with_labels("one", "two")
        node = UnitOfWork.execute(doc, lambda uow: update_or_create_label_node(edge, "both", uow, doc))[0]
        assert edge.label_nodes == [node]
        assert node.id not in ("l0", "l1")
        assert doc.lookup("l0") is None
        assert doc.lookup("l1") is None

    def test_kept_labels_are_not_collapsed(self):
        doc, edge = _edge_with_labels("inline", "child")
        node = UnitOfWork.execute(
            doc, lambda uow: update_or_create_label_node(edge, "new", uow, doc, keep={"l1"})
        )[0]
        assert node.id == "l0"
        assert node.text == "new"
        assert [n.id for n in edge.label_nodes] == ["l0", "l1"]

    def test_rejects_non_edge(self):
        doc, _ = _apply("n: rect")
        node = doc.lookup("n")
        uow = UnitOfWork(doc)
        with pytest.raises(TypeError, match="Element is not an edge"):
            update_or_create_label_node(node, "x", uow, doc)


class TestAdd:
    def test_adds_simple_node(self):
        doc, result = _apply("1: rect")
        node = doc.lookup("1")
        assert isinstance(node, DiagramNode)
        assert node.node_type == "rect"
        assert node.bounds == Bounds(450, 450, 100, 100)
        assert result.added == {"1"}
        assert not result.updated and not result.removed

    def test_adds_node_with_text_props_and_styles(self):
        doc, _ = _apply('1: rect "Hello" {\n  props: "fill.color=#ff0000"\n  stylesheet: s1 / t1\n}')
        node = doc.lookup("1")
        assert node.text == "Hello"
        assert node.props == {"fill": {"color": "#ff0000"}}
        assert node.metadata == {"style": "s1", "textStyle": "t1"}

    def test_second_node_is_placed_next_to_first(self):
        doc, _ = _apply("a: rect\nb: rect")
        assert doc.lookup("b").bounds == Bounds(560, 450, 100, 100)

    def test_adds_connected_edge(self):
        doc, result = _apply('a: rect\nb: rect\ne: edge a -> b "Hi"')
        edge = doc.lookup("e")
        assert edge.start.node is doc.lookup("a")
        assert edge.end.node is doc.lookup("b")
        assert [n.text for n in edge.label_nodes] == ["Hi"]
        label = edge.label_nodes[0]
        assert label.label_info.type == "perpendicular"
        assert label.label_info.time_offset == 0.5
        assert label not in doc.elements
        assert result.added == {"a", "b", "e", label.id}

    def test_free_edge_uses_fixed_points(self):
        doc, _ = _apply("e: edge")
        edge = doc.lookup("e")
        assert edge.start == FreeEndpoint(Point(100, 100))
        assert edge.end == FreeEndpoint(Point(200, 200))

    def test_unresolved_endpoints_fall_back(self):
        doc, _ = _apply("e: edge a -> b\na: rect\nb: rect")
        edge = doc.lookup("e")
        assert edge.start == FreeEndpoint(Point(0, 0))
        assert edge.end == FreeEndpoint(Point(200, 200))

    def test_edge_notation_props(self):
        doc, _ = _apply("a: rect\nb: rect\ne: edge a ..> b")
        assert doc.lookup("e").props == {
            "stroke": {"width": 1, "pattern": "dotted"},
            "arrow": {"end": {"type": "SQUARE_STICK_ARROW"}},
        }

    def test_nested_children(self):
        doc, _ = _apply('t: table {\n  r: tableRow {\n    c: text "A"\n  }\n}')
        assert [el.id for el in doc.elements] == ["t"]
        assert doc.lookup("r").parent is doc.lookup("t")
        assert doc.lookup("c").parent is doc.lookup("r")

    def test_edge_children_become_labels(self):
        doc, _ = _apply('e: edge {\n  l1: text "one"\n  l2: text "two"\n}')
        edge = doc.lookup("e")
        assert [n.id for n in edge.label_nodes] == ["l1", "l2"]

    def test_custom_config(self):
        doc = Document()
        config = TextConfig(default_node_size=(40, 20), label_shape="label")
        reconcile(parse('n: rect\ne: edge "x"').elements, doc, config)
        assert doc.lookup("n").bounds == Bounds(480, 490, 40, 20)
        assert doc.lookup("e").label_nodes[0].node_type == "label"


class TestUpdate:
    def test_updates_node_text(self):
        doc, _ = _apply('1: rect "A"')
        _, result = _apply('1: rect "B"', doc)
        assert doc.lookup("1").text == "B"
        assert result.updated == {"1"}
        assert not result.added and not result.removed

    def test_updates_node_type(self):
        doc, _ = _apply("1: rect")
        _apply("1: circle", doc)
        assert doc.lookup("1").node_type == "circle"

    def test_deep_merges_props(self):
        doc, _ = _apply('1: rect {\n  props: "fill.color=red;fill.enabled=true"\n}')
        _apply('1: rect {\n  props: "fill.color=blue"\n}', doc)
        assert doc.lookup("1").props == {"fill": {"color": "blue", "enabled": True}}

    def test_plainer_notation_keeps_merged_arrow(self):
        doc, _ = _apply("a: rect\nb: rect\ne: edge a --> b")
        _apply("a: rect\nb: rect\ne: edge a -- b", doc)
        assert doc.lookup("e").props["arrow"] == {"end": {"type": "SQUARE_STICK_ARROW"}}

    def test_keeps_position(self):
        doc, _ = _apply("1: rect")
        before = doc.lookup("1").bounds
        _apply('1: rect "moved?"', doc)
        assert doc.lookup("1").bounds == before

    def test_updates_edge_connections(self):
        doc, _ = _apply("a: rect\nb: rect\nc: rect\ne: edge a -> b")
        _apply("a: rect\nb: rect\nc: rect\ne: edge a -> c", doc)
        assert doc.lookup("e").end.node is doc.lookup("c")

    def test_unresolved_endpoint_is_left_unchanged(self):
        doc, _ = _apply("a: rect\nb: rect\ne: edge a -> b")
        _apply("a: rect\nb: rect\ne: edge a -> nowhere", doc)
        assert doc.lookup("e").end.node is doc.lookup("b")

    def test_updates_edge_label(self):
        doc, _ = _apply('e: edge "one"')
        label_id = doc.lookup("e").label_nodes[0].id
        _, result = _apply('e: edge "two"', doc)
        labels = doc.lookup("e").label_nodes
        assert [(n.id, n.text) for n in labels] == [(label_id, "two")]
        assert result.updated == {label_id}

    def test_removes_labels_when_text_has_none(self):
        doc, _ = _apply('e: edge "one"')
        label_id = doc.lookup("e").label_nodes[0].id
        _, result = _apply("e: edge", doc)
        assert doc.lookup("e").label_nodes == []
        assert doc.lookup(label_id) is None
        assert label_id in result.removed

    def test_updates_nested_children(self):
        doc, _ = _apply('t: table {\n  c: text "A"\n}')
        _apply('t: table {\n  c: text "B"\n}', doc)
        assert doc.lookup("c").text == "B"
        assert doc.lookup("c").parent is doc.lookup("t")

    def test_kind_change_is_ignored(self):
        doc, _ = _apply("x: rect")
        _, result = _apply("x: edge", doc)
        assert isinstance(doc.lookup("x"), DiagramNode)
        assert not result


class TestRemove:
    def test_removes_elements_not_in_text(self):
        doc, _ = _apply("1: rect\n2: rect")
        _, result = _apply("1: rect", doc)
        assert doc.lookup("2") is None
        assert result.removed == {"2"}
        assert [el.id for el in doc.elements] == ["1"]

    def test_removing_node_frees_edge(self):
        doc, _ = _apply("a: rect\nb: rect\ne: edge a -> b")
        _apply("b: rect\ne: edge -> b", doc)
        edge = doc.lookup("e")
        assert not edge.start.is_connected
        assert edge.start.position == Point(500, 500)
        assert edge.end.node is doc.lookup("b")

    def test_selection_safety(self):
        doc, _ = _apply("1: rect\n2: rect\n3: rect")
        doc.selection.set_elements([doc.lookup("1"), doc.lookup("2"), doc.lookup("3")])
        _apply("1: rect", doc)
        assert [el.id for el in doc.selection.elements] == ["1"]
        assert len(doc.selection) == 1


class TestTransaction:
    SRC = (
        'a: rect "A" {\n  props: "fill.color=red"\n}\n'
        "b: circle\n"
        'e: edge a <|--|> b "link"\n'
        't: table {\n  c: text "cell"\n}\n'
    )

    @pytest.mark.parametrize(
        "src",
        [
            SRC,
            'a: rect\nf: edge a -- {\n  l1: text "one"\n}',
            'e: edge "x" {\n  l1: text "y"\n}',
            'a: rect\nb: rect\ne: edge a -> b "x" {\n  l1: text "y"\n  l2: text "z"\n}',
        ],
    )
    def test_idempotent(self, src):
        doc, first = _apply(src)
        assert first
        _, second = _apply(src, doc)
        assert not second
        assert len(doc.undo_manager.undoable) == 1

    def test_inline_label_next_to_child_labels(self):
        src = 'e: edge "x" {\n  l1: text "y"\n}'
        doc, _ = _apply(src)
        edge = doc.lookup("e")
        inline = next(n for n in edge.label_nodes if n.id != "l1")
        assert inline.text == "x"

        _apply('e: edge "x2" {\n  l1: text "y"\n}', doc)
        assert doc.lookup("l1").parent is edge
        assert {n.id: n.text for n in edge.label_nodes} == {inline.id: "x2", "l1": "y"}

    def test_one_undo_step_per_reconcile(self):
        doc, _ = _apply('1: rect "A"\n2: rect')
        _apply('1: rect "B"\n3: rect', doc)
        assert len(doc.undo_manager.undoable) == 2

        doc.undo_manager.undo()
        assert doc.lookup("1").text == "A"
        assert doc.lookup("2") is not None
        assert doc.lookup("3") is None

        doc.undo_manager.redo()
        assert doc.lookup("1").text == "B"
        assert doc.lookup("2") is None
        assert doc.lookup("3") is not None

    def test_undo_restores_connections(self):
        doc, _ = _apply("a: rect\nb: rect\ne: edge a -> b")
        _apply("b: rect\ne: edge -> b", doc)
        doc.undo_manager.undo()
        edge = doc.lookup("e")
        assert isinstance(edge.start, ConnectedEndpoint)
        assert edge.start.node is doc.lookup("a")
        assert doc.connected_edges(doc.lookup("a")) == [edge]

    def test_undo_first_reconcile_empties_document(self):
        doc, _ = _apply(self.SRC)
        doc.undo_manager.undo()
        assert doc.elements == []
        assert list(doc) == []

    def test_undo_restores_removed_subtree(self):
        doc, _ = _apply('t: table {\n  c: text "cell"\n}')
        _apply("", doc)
        assert doc.lookup("c") is None
        doc.undo_manager.undo()
        assert doc.lookup("c").parent is doc.lookup("t")
        assert doc.lookup("t").children == [doc.lookup("c")]

    def test_listeners_notified_after_commit(self):
        doc = Document()
        events = []
        doc.add_listener(lambda event, ids: events.append((event, sorted(ids))))
        _apply("a: rect\nb: rect", doc)
        assert events == [("elementAdd", ["a", "b"])]
