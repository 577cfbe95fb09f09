"""Tests for markdown rendering of item trees."""

from dynalist_tree.core.tree.index import DocumentIndex
from dynalist_tree.core.tree.markdown import render_tree_as_markdown
from dynalist_tree.core.tree.planner import build_tree
from dynalist_tree.models.node import Node


def test_render_full_tree_indents_children(tree_index: DocumentIndex) -> None:
    md = render_tree_as_markdown(build_tree(tree_index))
    lines = md.splitlines()
    assert lines[:4] == ["- Groceries", "    - Fruits", "        - Apples", "        - Bananas"]
    assert "- Tasks" in lines
    assert "... (" not in md


def test_render_with_depth_limit_shows_truncation(tree_index: DocumentIndex) -> None:
    """Items at the depth boundary with children show a truncation indicator."""
    md = render_tree_as_markdown(build_tree(tree_index, max_depth=1))
    assert "Fruits" not in md
    assert "    - ... (2 more children, id=groceries)" in md
    assert "    - ... (2 more children, id=tasks)" in md


def test_render_subtree_starts_at_zero_indent(tree_index: DocumentIndex) -> None:
    md = render_tree_as_markdown(build_tree(tree_index, "fruits"))
    assert md == "- Apples\n- Bananas\n"


def test_render_checkboxes_and_notes() -> None:
    index = DocumentIndex(
        [
            Node(id="root", children=("a", "b", "c")),
            Node(id="a", content="Buy milk", checked=True),
            Node(id="b", content="Buy bread", checkbox=True),
            Node(id="c", content="Buy butter", note="Unsalted preferred\nSalted ok"),
        ]
    )
    tree = build_tree(index)

    md = render_tree_as_markdown(tree)
    assert md.splitlines() == [
        "- [x] Buy milk",
        "- [ ] Buy bread",
        "- Buy butter",
        "  > Unsalted preferred",
        "  > Salted ok",
    ]
    assert "Unsalted" not in render_tree_as_markdown(tree, include_notes=False)


def test_render_multiline_content() -> None:
    index = DocumentIndex(
        [Node(id="root", children=("a",)), Node(id="a", content="first\nsecond")]
    )
    assert render_tree_as_markdown(build_tree(index)) == "- first\n  second\n"


def test_render_empty() -> None:
    assert render_tree_as_markdown(()) == ""


def test_render_ignores_dangling_child_ids() -> None:
    """Child ids missing from the snapshot are not counted as hidden children."""
    index = DocumentIndex(
        [Node(id="root", children=("a",)), Node(id="a", content="A", children=("gone",))]
    )
    assert render_tree_as_markdown(build_tree(index, max_depth=1)) == "- A\n"

    index = DocumentIndex(
        [
            Node(id="root", children=("a",)),
            Node(id="a", content="A", children=("b", "gone")),
            Node(id="b", content="B"),
        ]
    )
    md = render_tree_as_markdown(build_tree(index, max_depth=1))
    assert md == "- A\n    - ... (1 more child, id=a)\n"
