"""Domain models for Dynalist documents and lists."""

from dataclasses import dataclass
from typing import Any, Literal

FileType = Literal["document", "folder"]


@dataclass(frozen=True)
class Node:
    """A single node of a Dynalist document, as returned by doc/read."""

    id: str
    content: str = ""
    note: str | None = None
    checked: bool = False
    checkbox: bool | None = None
    heading: int | None = None
    color: int | None = None
    created: int | None = None
    modified: int | None = None
    collapsed: bool | None = None
    children: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Node":
        """Build a Node from one raw doc/read entry; missing fields get defaults."""
        return cls(
            id=raw["id"],
            content=raw.get("content") or "",
            note=raw.get("note"),
            checked=bool(raw.get("checked", False)),
            checkbox=raw.get("checkbox"),
            heading=raw.get("heading"),
            color=raw.get("color"),
            created=raw.get("created"),
            modified=raw.get("modified"),
            collapsed=raw.get("collapsed"),
            children=tuple(raw.get("children") or ()),
        )


@dataclass(frozen=True)
class DocumentSnapshot:
    """One full read of a document: its flat node list plus version."""

    file_id: str
    title: str
    version: int
    nodes: tuple[Node, ...] = ()


@dataclass(frozen=True)
class ListDescriptor:
    """A Dynalist file (document or folder) as listed by file/list."""

    id: str
    title: str
    type: FileType


@dataclass(frozen=True)
class ListItem:
    """A node seen as an item of a list."""

    id: str
    content: str
    note: str | None
    checked: bool
    node: Node

    @classmethod
    def from_node(cls, node: Node) -> "ListItem":
        return cls(
            id=node.id,
            content=node.content,
            note=node.note,
            checked=node.checked,
            node=node,
        )


@dataclass(frozen=True)
class TreeItem:
    """A list item with its depth and materialized children."""

    id: str
    content: str
    note: str | None
    checked: bool
    depth: int
    node: Node
    children: tuple["TreeItem", ...] = ()
    # Resolved children in the snapshot; may exceed len(children) when max_depth cut the tree.
    child_count: int = 0


@dataclass(frozen=True)
class EditResult:
    """Outcome of a doc/edit batch."""

    new_node_ids: tuple[str, ...] = ()
    results: tuple[bool, ...] = ()


@dataclass(frozen=True)
class FileEditResult:
    """Outcome of a file/edit batch."""

    created: tuple[str, ...] = ()
    results: tuple[bool, ...] = ()
