"""Protocols for dependency injection of the API transport and the document store."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from dynalist_tree.models.changes import DocChange, FileChange
from dynalist_tree.models.node import DocumentSnapshot, EditResult, FileEditResult, ListDescriptor


@runtime_checkable
class ApiProtocol(Protocol):
    """Protocol for Dynalist API clients."""

    def call(self, path: str, args: dict[str, Any]) -> dict[str, Any]:
        """Invoke an API endpoint and return the JSON response."""
        ...


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """Async whole-document reads and batched edits of a remote outline store."""

    async def list_files(self) -> list[ListDescriptor]:
        """List all documents and folders."""
        ...

    async def edit_files(self, changes: Sequence[FileChange]) -> FileEditResult:
        """Apply a batch of file create/edit/move changes."""
        ...

    async def read_document(self, file_id: str) -> DocumentSnapshot:
        """Read a whole document."""
        ...

    async def edit_document(self, file_id: str, changes: Sequence[DocChange]) -> EditResult:
        """Apply a batch of insert/edit/move/delete changes to a document."""
        ...
