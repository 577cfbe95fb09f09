"""Async document store over the Dynalist HTTP API."""

import asyncio
from collections.abc import Sequence
from typing import Any

from loguru import logger

from dynalist_tree.models.changes import DocChange, FileChange
from dynalist_tree.models.node import (
    DocumentSnapshot,
    EditResult,
    FileEditResult,
    ListDescriptor,
    Node,
)
from dynalist_tree.protocols import ApiProtocol


class RemoteDocumentStore:
    """DocumentStoreProtocol implementation backed by an ApiProtocol client.

    The client is synchronous; calls run in worker threads so that waiting on
    one document does not block operations on others.
    """

    def __init__(self, api: ApiProtocol) -> None:
        self._api = api

    async def _call(self, path: str, args: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._api.call, path, args)

    async def list_files(self) -> list[ListDescriptor]:
        rv = await self._call("file/list", {})
        return [
            ListDescriptor(id=f["id"], title=f.get("title", ""), type=f["type"])
            for f in rv.get("files") or ()
        ]

    async def edit_files(self, changes: Sequence[FileChange]) -> FileEditResult:
        rv = await self._call("file/edit", {"changes": [c.to_api() for c in changes]})
        return FileEditResult(
            created=tuple(rv.get("created") or ()),
            results=tuple(rv.get("results") or ()),
        )

    async def read_document(self, file_id: str) -> DocumentSnapshot:
        rv = await self._call("doc/read", {"file_id": file_id})
        nodes = tuple(Node.from_api(n) for n in rv.get("nodes") or ())
        logger.debug("Read document {}: {} nodes, version {}", file_id, len(nodes), rv.get("version"))
        return DocumentSnapshot(
            file_id=rv.get("file_id", file_id),
            title=rv.get("title", ""),
            version=rv.get("version", 0),
            nodes=nodes,
        )

    async def edit_document(self, file_id: str, changes: Sequence[DocChange]) -> EditResult:
        logger.debug("Editing document {}: {} changes", file_id, len(changes))
        rv = await self._call(
            "doc/edit", {"file_id": file_id, "changes": [c.to_api() for c in changes]}
        )
        return EditResult(
            new_node_ids=tuple(rv.get("new_node_ids") or ()),
            results=tuple(rv.get("results") or ()),
        )
