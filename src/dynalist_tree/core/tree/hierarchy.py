"""Two-phase creation of nested hierarchies.

The store cannot create a node together with a parent that was created in the
same batch, so a hierarchy is created flat under the root first and then moved
into shape with one restructure batch:

1. flatten the intent tree in pre-order, remembering each entry's parent position;
2. insert every entry at the bottom of the root, in flattened order;
3. move every non-root entry under the id created for its parent, at an index
   equal to the number of earlier entries sharing that parent.

The n-th id returned by the store belongs to the n-th flattened entry.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from dynalist_tree.errors import CountMismatchError
from dynalist_tree.models.changes import HierarchyNode, RestructureMove


@dataclass(frozen=True)
class FlatEntry:
    """A hierarchy node with its depth and the flat position of its parent."""

    intent: HierarchyNode
    depth: int
    parent_index: int | None


def flatten_hierarchy(nodes: Sequence[HierarchyNode]) -> list[FlatEntry]:
    """Pre-order flattening of a forest of hierarchy nodes."""
    entries: list[FlatEntry] = []
    stack: list[tuple[HierarchyNode, int, int | None]] = [(n, 0, None) for n in reversed(nodes)]
    while stack:
        node, depth, parent_index = stack.pop()
        entries.append(FlatEntry(intent=node, depth=depth, parent_index=parent_index))
        own_index = len(entries) - 1
        stack.extend((child, depth + 1, own_index) for child in reversed(node.children))
    return entries


def _check_counts(entries: Sequence[FlatEntry], created_ids: Sequence[str]) -> None:
    if len(created_ids) != len(entries):
        msg = f"Created {len(created_ids)} of {len(entries)} hierarchy nodes"
        raise CountMismatchError(msg)


def plan_hierarchy_moves(
    entries: Sequence[FlatEntry], created_ids: Sequence[str]
) -> list[RestructureMove]:
    """Moves placing each created child under its parent, keeping input sibling order."""
    _check_counts(entries, created_ids)
    seen_per_parent: Counter[int] = Counter()
    moves = []
    for entry, node_id in zip(entries, created_ids, strict=True):
        if entry.parent_index is None:
            continue
        moves.append(
            RestructureMove(
                node_id=node_id,
                new_parent=created_ids[entry.parent_index],
                new_index=seen_per_parent[entry.parent_index],
            )
        )
        seen_per_parent[entry.parent_index] += 1
    return moves


def root_ids(entries: Sequence[FlatEntry], created_ids: Sequence[str]) -> list[str]:
    """Created ids of the entries that had no parent."""
    _check_counts(entries, created_ids)
    return [
        node_id
        for entry, node_id in zip(entries, created_ids, strict=True)
        if entry.parent_index is None
    ]
