"""Id lookup over one document snapshot."""

from collections.abc import Iterable, Iterator

from dynalist_tree.errors import NotFoundError
from dynalist_tree.models.node import DocumentSnapshot, Node


class DocumentIndex:
    """Read-only id -> Node map for a single snapshot.

    Nodes carry no parent pointers. `find_parent` scans every node, O(total nodes)
    per call; code doing repeated parent lookups within one operation should use
    `parent_map`, which is computed once per index. An index lives only as long
    as the operation that read the snapshot.
    """

    def __init__(self, nodes: DocumentSnapshot | Iterable[Node]) -> None:
        if isinstance(nodes, DocumentSnapshot):
            self.version: int | None = nodes.version
            nodes = nodes.nodes
        else:
            self.version = None
        self._nodes: dict[str, Node] = {n.id: n for n in nodes}
        self._parents: dict[str, str] | None = None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def get(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def require(self, node_id: str, what: str = "Node") -> Node:
        """Return the node, or raise NotFoundError("<what> <id> not found")."""
        node = self._nodes.get(node_id)
        if node is None:
            msg = f"{what} {node_id} not found"
            raise NotFoundError(msg)
        return node

    def children_of(self, node_id: str) -> tuple[str, ...]:
        """Child ids of node_id; empty when the node is absent or has no children."""
        node = self._nodes.get(node_id)
        return node.children if node is not None else ()

    def child_nodes(self, node_id: str) -> list[Node]:
        """Resolved children of node_id. Dangling child ids are skipped."""
        return [self._nodes[c] for c in self.children_of(node_id) if c in self._nodes]

    def find_parent(self, node_id: str) -> str | None:
        """Id of the node whose children list contains node_id (linear scan)."""
        for node in self._nodes.values():
            if node_id in node.children:
                return node.id
        return None

    def parent_map(self) -> dict[str, str]:
        """Child id -> parent id for the whole snapshot, built on first use."""
        if self._parents is None:
            self._parents = {
                child_id: node.id for node in self._nodes.values() for child_id in node.children
            }
        return self._parents
