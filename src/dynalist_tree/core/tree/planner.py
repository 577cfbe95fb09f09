"""Plan flat, index-addressed edit batches from tree-shaped intents.

Every function works on one DocumentIndex taken at the start of the enclosing
serialized operation, and validates everything it can before returning changes,
so a batch is either fully planned or not sent at all.

Move indices use remove-then-insert semantics: the index of a moved node is its
position among the target parent's children with the node itself taken out.
"""

from collections.abc import Iterable, Sequence

from dynalist_tree.config import ROOT_NODE_ID
from dynalist_tree.core.tree.index import DocumentIndex
from dynalist_tree.errors import DataIntegrityError, InvalidArgumentError, NotFoundError
from dynalist_tree.models.changes import (
    DeleteChange,
    EditChange,
    InsertChange,
    InsertPosition,
    ItemEdit,
    MoveChange,
    MovePosition,
    NewItem,
    RestructureMove,
)
from dynalist_tree.models.node import ListItem, Node, TreeItem


def _require_parent(index: DocumentIndex, parent_id: str) -> None:
    # A document without a root node reads as empty; the server still accepts "root".
    if parent_id != ROOT_NODE_ID:
        index.require(parent_id, "Parent node")


# --- Reads ---


def top_level_items(index: DocumentIndex) -> list[ListItem]:
    """Children of the root node as list items."""
    return [ListItem.from_node(n) for n in index.child_nodes(ROOT_NODE_ID)]


def child_items(index: DocumentIndex, parent_id: str) -> list[ListItem]:
    """Direct children of parent_id as list items."""
    index.require(parent_id, "Parent node")
    return [ListItem.from_node(n) for n in index.child_nodes(parent_id)]


def build_tree(
    index: DocumentIndex,
    parent_id: str = ROOT_NODE_ID,
    *,
    max_depth: int | None = None,
) -> tuple[TreeItem, ...]:
    """Materialize the subtree below parent_id with depths (its children are depth 0).

    Args:
        index: Snapshot index.
        parent_id: Node whose descendants are materialized.
        max_depth: Number of levels to include (None = unlimited, at least 1).
    """
    if max_depth is not None and max_depth < 1:
        msg = f"max_depth must be at least 1, got {max_depth}"
        raise InvalidArgumentError(msg)
    _require_parent(index, parent_id)
    seen = {parent_id}

    def build(pid: str, depth: int) -> tuple[TreeItem, ...]:
        items = []
        for node in index.child_nodes(pid):
            if node.id in seen:
                msg = f"Node {node.id} appears twice in the tree below {parent_id}"
                raise DataIntegrityError(msg)
            seen.add(node.id)
            child_count = len(index.child_nodes(node.id))
            children: tuple[TreeItem, ...] = ()
            if max_depth is None or depth + 1 < max_depth:
                children = build(node.id, depth + 1)
            items.append(
                TreeItem(
                    id=node.id,
                    content=node.content,
                    note=node.note,
                    checked=node.checked,
                    depth=depth,
                    node=node,
                    children=children,
                    child_count=child_count,
                )
            )
        return tuple(items)

    return build(parent_id, 0)


def ancestor_path(index: DocumentIndex, node_id: str) -> list[Node]:
    """Ancestors of node_id from the topmost one down to its parent, root excluded."""
    index.require(node_id)
    parents = index.parent_map()
    path: list[Node] = []
    seen = {node_id}
    current = parents.get(node_id)
    while current is not None and current != ROOT_NODE_ID:
        if current in seen:
            msg = f"Cycle in ancestors of node {node_id} at {current}"
            raise DataIntegrityError(msg)
        seen.add(current)
        path.append(index.require(current))
        current = parents.get(current)
    path.reverse()
    return path


def collect_descendants(index: DocumentIndex, node_id: str) -> list[Node]:
    """All nodes reachable below node_id, depth-first, parents before children."""
    index.require(node_id)
    result: list[Node] = []
    seen = {node_id}
    stack = list(reversed(index.child_nodes(node_id)))
    while stack:
        node = stack.pop()
        if node.id in seen:
            msg = f"Node {node.id} is reachable twice below {node_id}"
            raise DataIntegrityError(msg)
        seen.add(node.id)
        result.append(node)
        stack.extend(reversed(index.child_nodes(node.id)))
    return result


# --- Inserts ---


def plan_inserts(
    index: DocumentIndex,
    parent_id: str,
    items: Sequence[NewItem],
    *,
    position: InsertPosition = "bottom",
) -> list[InsertChange]:
    """Insert changes that land items contiguously, in order, at the top or bottom of parent_id."""
    _require_parent(index, parent_id)
    if position == "top":
        base = 0
    elif position == "bottom":
        base = len(index.children_of(parent_id))
    else:
        msg = f"Invalid insert position: {position!r}"
        raise InvalidArgumentError(msg)
    return [item.insert_at(parent_id, base + offset) for offset, item in enumerate(items)]


# --- Moves ---


def resolve_move_index(
    index: DocumentIndex,
    node_id: str,
    parent_id: str,
    position: MovePosition,
) -> int:
    """Concrete index for node_id among parent_id's children (node itself excluded)."""
    current = index.children_of(parent_id)
    siblings = [c for c in current if c != node_id]

    if position.kind == "top":
        return 0
    if position.kind == "bottom":
        return len(siblings)
    if position.kind == "index":
        return max(0, min(position.index or 0, len(siblings)))

    target = position.target
    if target == node_id and node_id in current:
        return current.index(node_id)
    if target not in siblings:
        msg = f"Target '{position.kind}' node {target} not found"
        raise NotFoundError(msg)
    found = siblings.index(target)
    return found if position.kind == "before" else found + 1


def _check_movable(node_id: str) -> None:
    if node_id == ROOT_NODE_ID:
        msg = "The root node cannot be moved"
        raise InvalidArgumentError(msg)


def _check_not_into_own_subtree(index: DocumentIndex, node_id: str, parent_id: str) -> None:
    if node_id not in index:
        return
    if parent_id == node_id or any(d.id == parent_id for d in collect_descendants(index, node_id)):
        msg = f"Cannot move node {node_id} under itself or its descendant {parent_id}"
        raise InvalidArgumentError(msg)


def plan_move(
    index: DocumentIndex,
    node_id: str,
    position: MovePosition | str | int,
    parent_id: str | None = None,
) -> MoveChange:
    """Move change for one node.

    Without parent_id the node stays under its current parent (found by scanning
    the snapshot; root when no owner is found).
    """
    _check_movable(node_id)
    index.require(node_id)
    target = MovePosition.parse(position)
    if parent_id is None:
        parent_id = index.find_parent(node_id) or ROOT_NODE_ID
    else:
        _require_parent(index, parent_id)
        _check_not_into_own_subtree(index, node_id, parent_id)
    return MoveChange(
        node_id=node_id,
        parent_id=parent_id,
        index=resolve_move_index(index, node_id, parent_id, target),
    )


def plan_restructure(
    index: DocumentIndex,
    moves: Sequence[RestructureMove],
    *,
    created: Iterable[str] = (),
) -> list[MoveChange]:
    """One move change per RestructureMove, in order; a move without new_parent goes to root.

    Every node and parent id must be in the snapshot or in `created` (ids the store
    just returned within the same operation); the first unknown id aborts planning.
    """
    known = set(created)

    def exists(node_id: str) -> bool:
        return node_id in index or node_id in known

    for move in moves:
        _check_movable(move.node_id)
        if not exists(move.node_id):
            msg = f"Node {move.node_id} not found"
            raise NotFoundError(msg)
        parent = move.new_parent
        if parent is not None and parent != ROOT_NODE_ID:
            if not exists(parent):
                msg = f"Parent node {parent} not found"
                raise NotFoundError(msg)
            _check_not_into_own_subtree(index, move.node_id, parent)

    return [
        MoveChange(node_id=m.node_id, parent_id=m.new_parent or ROOT_NODE_ID, index=m.new_index)
        for m in moves
    ]


# --- Edits and deletes ---


def _unique(node_ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(node_ids))


def plan_deletes(index: DocumentIndex, node_ids: Iterable[str]) -> list[DeleteChange]:
    """Delete changes for existing nodes; duplicates are dropped."""
    ids = _unique(node_ids)
    for node_id in ids:
        index.require(node_id)
    return [DeleteChange(node_id=n) for n in ids]


def plan_edits(index: DocumentIndex, edits: Sequence[ItemEdit]) -> list[EditChange]:
    """Edit changes for existing nodes; an edit with no fields is rejected."""
    for edit in edits:
        index.require(edit.node_id)
    return [edit.to_change() for edit in edits]
