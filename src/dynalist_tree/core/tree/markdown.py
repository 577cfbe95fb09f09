"""Render materialized trees as markdown."""

import io
from collections.abc import Sequence

from dynalist_tree.models.node import TreeItem


def render_tree_as_markdown(
    items: Sequence[TreeItem],
    *,
    include_notes: bool = True,
) -> str:
    """Render tree items and their children as indented markdown.

    Args:
        items: Top-level items, as returned by build_tree.
        include_notes: Whether to include node notes.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    out = io.StringIO()
    base_depth = items[0].depth if items else 0

    def write(item: TreeItem) -> None:
        indent = "    " * (item.depth - base_depth)

        # Format checkbox
        prefix = "- "
        if item.node.checkbox or item.checked:
            prefix = "- [x] " if item.checked else "- [ ] "

        lines = item.content.split("\n")
        out.write(f"{indent}{prefix}{lines[0]}\n")
        for line in lines[1:]:
            out.write(f"{indent}  {line}\n")

        if include_notes and item.note:
            for note_line in item.note.split("\n"):
                out.write(f"{indent}  > {note_line}\n")

        for child in item.children:
            write(child)

        # Children cut off by max_depth
        hidden = item.child_count - len(item.children)
        if hidden > 0:
            child_indent = "    " * (item.depth - base_depth + 1)
            noun = "child" if hidden == 1 else "children"
            out.write(f"{child_indent}- ... ({hidden} more {noun}, id={item.id})\n")

    for item in items:
        write(item)
    return out.getvalue()
