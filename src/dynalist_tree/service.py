"""High-level list and tree operations on Dynalist documents.

Every operation that touches a document runs under a KeyedSerializer keyed by
the document id, reads a fresh snapshot, plans one batch of changes and applies
it. Validation happens before the first mutating call; result counts are
checked right after it.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

from loguru import logger

from dynalist_tree.config import (
    CREATE_LIST_ATTEMPTS,
    CREATE_LIST_BACKOFF,
    MAX_LIST_NAME_LENGTH,
    ROOT_NODE_ID,
    TRANSIENT_ERROR_PATTERN,
)
from dynalist_tree.core.serializer import KeyedSerializer
from dynalist_tree.core.tree.hierarchy import flatten_hierarchy, plan_hierarchy_moves, root_ids
from dynalist_tree.core.tree.index import DocumentIndex
from dynalist_tree.core.tree.planner import (
    ancestor_path,
    build_tree,
    child_items,
    collect_descendants,
    plan_deletes,
    plan_edits,
    plan_inserts,
    plan_move,
    plan_restructure,
    top_level_items,
)
from dynalist_tree.errors import CountMismatchError, InvalidArgumentError, NotFoundError
from dynalist_tree.models.changes import (
    DocChange,
    EditChange,
    FileCreateChange,
    FileEditChange,
    FileMoveChange,
    HierarchyNode,
    InsertChange,
    InsertPosition,
    ItemEdit,
    MovePosition,
    NewItem,
    RestructureMove,
)
from dynalist_tree.models.node import EditResult, FileType, ListDescriptor, ListItem, Node, TreeItem
from dynalist_tree.protocols import DocumentStoreProtocol

T = TypeVar("T")


def _validate_name(name: str | None) -> str:
    title = (name or "").strip()
    if not title:
        msg = "List name is empty"
        raise InvalidArgumentError(msg)
    if len(title) > MAX_LIST_NAME_LENGTH:
        msg = f"List name is too long ({len(title)} > {MAX_LIST_NAME_LENGTH})"
        raise InvalidArgumentError(msg)
    return title


def _require_batch(batch: Sequence[Any], what: str) -> None:
    if not batch:
        msg = f"No {what} given"
        raise InvalidArgumentError(msg)


def _as_new_items(items: Sequence[NewItem | str]) -> list[NewItem]:
    return [NewItem(content=i) if isinstance(i, str) else i for i in items]


def _check_results(results: Sequence[bool], expected: int, what: str) -> None:
    """Per-item results, when reported, must cover every change and all be true."""
    if not results:
        return
    if len(results) != expected:
        msg = f"Store reported {len(results)} results for {expected} {what}"
        raise CountMismatchError(msg)
    failed = [i for i, ok in enumerate(results) if not ok]
    if failed:
        msg = f"{len(failed)} of {expected} {what} were not applied (positions {failed})"
        raise CountMismatchError(msg)


class DynalistService:
    """Serialized list/item/tree operations over a DocumentStoreProtocol."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        *,
        serializer: KeyedSerializer | None = None,
    ) -> None:
        self._store = store
        self._serializer = serializer or KeyedSerializer()

    # --- Internal helpers (never re-enter the serializer) ---

    def _run(self, key: str, operation: Callable[[], Awaitable[T]]) -> Awaitable[T]:
        return self._serializer.run(key, operation)

    async def _read_index(self, list_id: str) -> DocumentIndex:
        return DocumentIndex(await self._store.read_document(list_id))

    async def _apply(self, list_id: str, changes: Sequence[DocChange]) -> EditResult:
        result = await self._store.edit_document(list_id, changes)
        inserts = sum(1 for c in changes if isinstance(c, InsertChange))
        if len(result.new_node_ids) != inserts:
            msg = f"Inserted {len(result.new_node_ids)} of {inserts} items"
            raise CountMismatchError(msg)
        _check_results(result.results, len(changes), "changes")
        logger.info("Applied {} changes to document {}", len(changes), list_id)
        return result

    # --- Lists ---

    async def list_lists(self) -> list[ListDescriptor]:
        """List all documents and folders."""
        return await self._store.list_files()

    async def find_list(self, title: str, file_type: FileType | None = None) -> ListDescriptor:
        """First document or folder with the given title (and type, when given)."""
        for f in await self._store.list_files():
            if f.title == title and (file_type is None or f.type == file_type):
                return f
        msg = f"{file_type or 'File'} '{title}' not found"
        raise NotFoundError(msg)

    async def create_list(self, name: str, parent_id: str = ROOT_NODE_ID) -> str:
        """Create a document at the end of a folder and return its id.

        Failures that look transient (lock failures, rate limiting) are retried a
        few times with linear backoff.
        """
        title = _validate_name(name)
        parent_id = parent_id or ROOT_NODE_ID

        async def create() -> str:
            files = await self._store.list_files()
            if parent_id != ROOT_NODE_ID and not any(
                f.id == parent_id and f.type == "folder" for f in files
            ):
                msg = f"Folder {parent_id} not found"
                raise NotFoundError(msg)
            change = FileCreateChange(parent_id=parent_id, index=len(files), title=title)

            attempt = 1
            while True:
                try:
                    return await self._create_file(change)
                except Exception as e:
                    transient = re.search(TRANSIENT_ERROR_PATTERN, str(e), re.IGNORECASE)
                    if not transient or attempt >= CREATE_LIST_ATTEMPTS:
                        raise
                    logger.warning("Creating list {!r} failed ({}), retrying", title, e)
                    await asyncio.sleep(CREATE_LIST_BACKOFF * attempt)
                    attempt += 1

        return await self._run(parent_id, create)

    async def _create_file(self, change: FileCreateChange) -> str:
        result = await self._store.edit_files([change])
        if not result.created:
            msg = f"Created 0 of 1 lists named {change.title!r}"
            raise CountMismatchError(msg)
        logger.info("Created list {!r} ({})", change.title, result.created[0])
        return result.created[0]

    async def rename_list(self, list_id: str, new_name: str) -> None:
        """Rename a document."""
        title = _validate_name(new_name)

        async def rename() -> None:
            result = await self._store.edit_files([FileEditChange(file_id=list_id, title=title)])
            _check_results(result.results, 1, "file changes")

        await self._run(list_id, rename)

    async def move_list(self, list_id: str, folder_id: str, index: int = 0) -> None:
        """Move a document into a folder at the given position."""

        async def move() -> None:
            files = {f.id: f for f in await self._store.list_files()}
            if list_id not in files:
                msg = f"List {list_id} not found"
                raise NotFoundError(msg)
            folder = files.get(folder_id)
            if folder is None or folder.type != "folder":
                msg = f"Folder {folder_id} not found"
                raise NotFoundError(msg)
            change = FileMoveChange(
                file_id=list_id, parent_id=folder_id, index=index, type=files[list_id].type
            )
            result = await self._store.edit_files([change])
            _check_results(result.results, 1, "file changes")

        await self._run(list_id, move)

    # --- Reads ---

    async def get_items(self, list_id: str) -> list[ListItem]:
        """Top-level items of a list."""

        async def read() -> list[ListItem]:
            return top_level_items(await self._read_index(list_id))

        return await self._run(list_id, read)

    async def get_items_with_tree(
        self, list_id: str, *, max_depth: int | None = None
    ) -> tuple[TreeItem, ...]:
        """All items of a list as a nested tree with depths."""

        async def read() -> tuple[TreeItem, ...]:
            return build_tree(await self._read_index(list_id), max_depth=max_depth)

        return await self._run(list_id, read)

    async def get_item_children(self, list_id: str, parent_id: str) -> list[ListItem]:
        """Direct children of an item."""

        async def read() -> list[ListItem]:
            return child_items(await self._read_index(list_id), parent_id)

        return await self._run(list_id, read)

    async def get_item_ancestors(self, list_id: str, node_id: str) -> list[Node]:
        """Ancestors of an item, topmost first, root excluded."""

        async def read() -> list[Node]:
            return ancestor_path(await self._read_index(list_id), node_id)

        return await self._run(list_id, read)

    async def get_item_descendants(self, list_id: str, node_id: str) -> list[Node]:
        """Every item below node_id in pre-order."""

        async def read() -> list[Node]:
            return collect_descendants(await self._read_index(list_id), node_id)

        return await self._run(list_id, read)

    # --- Item mutations ---

    async def add_items(
        self,
        list_id: str,
        items: Sequence[NewItem | str],
        *,
        position: InsertPosition = "bottom",
    ) -> list[str]:
        """Add top-level items in one round trip; returns new ids in input order."""
        return await self.add_sub_items(list_id, ROOT_NODE_ID, items, position=position)

    async def add_sub_items(
        self,
        list_id: str,
        parent_id: str,
        items: Sequence[NewItem | str],
        *,
        position: InsertPosition = "bottom",
    ) -> list[str]:
        """Add children under parent_id in one round trip; returns new ids in input order."""
        _require_batch(items, "items")
        new_items = _as_new_items(items)

        async def add() -> list[str]:
            index = await self._read_index(list_id)
            changes = plan_inserts(index, parent_id, new_items, position=position)
            return list((await self._apply(list_id, changes)).new_node_ids)

        return await self._run(list_id, add)

    async def move_item(
        self,
        list_id: str,
        node_id: str,
        position: MovePosition | str | int | Mapping[str, str] = "bottom",
        *,
        parent_id: str | None = None,
    ) -> None:
        """Move an item to top/bottom/an index or before/after a sibling.

        With parent_id the item is moved under that parent; otherwise it stays
        under its current parent.
        """
        target = MovePosition.parse(position)

        async def move() -> None:
            change = plan_move(await self._read_index(list_id), node_id, target, parent_id)
            await self._apply(list_id, [change])

        await self._run(list_id, move)

    async def restructure_items(self, list_id: str, moves: Sequence[RestructureMove]) -> int:
        """Apply many moves in one batch; nothing is sent if any id is unknown."""
        _require_batch(moves, "moves")

        async def restructure() -> int:
            changes = plan_restructure(await self._read_index(list_id), moves)
            await self._apply(list_id, changes)
            return len(changes)

        return await self._run(list_id, restructure)

    async def delete_items(self, list_id: str, node_ids: Sequence[str]) -> int:
        """Delete items (and their subtrees); returns the number deleted."""
        _require_batch(node_ids, "node ids")

        async def delete() -> int:
            changes = plan_deletes(await self._read_index(list_id), node_ids)
            await self._apply(list_id, changes)
            return len(changes)

        return await self._run(list_id, delete)

    async def check_items(self, list_id: str, node_ids: Sequence[str], checked: bool = True) -> int:
        """Set the checked state of items; returns the number edited."""
        _require_batch(node_ids, "node ids")
        return await self.edit_items(list_id, [ItemEdit(node_id=n, checked=checked) for n in node_ids])

    async def edit_items(self, list_id: str, edits: Sequence[ItemEdit]) -> int:
        """Apply partial attribute edits; returns the number edited."""
        _require_batch(edits, "edits")

        async def edit() -> int:
            changes: list[EditChange] = plan_edits(await self._read_index(list_id), edits)
            await self._apply(list_id, changes)
            return len(changes)

        return await self._run(list_id, edit)

    async def clear_list(self, list_id: str) -> int:
        """Delete all checked top-level items; returns the number deleted."""

        async def clear() -> int:
            index = await self._read_index(list_id)
            checked = [item.id for item in top_level_items(index) if item.checked]
            if not checked:
                return 0
            await self._apply(list_id, plan_deletes(index, checked))
            return len(checked)

        return await self._run(list_id, clear)

    async def create_list_hierarchically(
        self,
        list_id: str,
        nodes: Sequence[HierarchyNode | Mapping[str, Any]],
    ) -> list[str]:
        """Create a nested hierarchy at the bottom of a list in two batches.

        Returns the ids of the created top-level nodes.
        """
        _require_batch(nodes, "hierarchy nodes")
        entries = flatten_hierarchy(
            [n if isinstance(n, HierarchyNode) else HierarchyNode.from_dict(n) for n in nodes]
        )

        async def create() -> list[str]:
            index = await self._read_index(list_id)
            inserts = plan_inserts(
                index, ROOT_NODE_ID, [e.intent.as_new_item() for e in entries], position="bottom"
            )
            created = (await self._apply(list_id, inserts)).new_node_ids
            moves = plan_hierarchy_moves(entries, created)
            if moves:
                await self._apply(list_id, plan_restructure(index, moves, created=created))
            return root_ids(entries, created)

        return await self._run(list_id, create)
