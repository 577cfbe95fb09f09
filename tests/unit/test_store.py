"""Tests for RemoteDocumentStore against canned API responses."""

import pytest

from dynalist_tree.models.changes import FileEditChange, InsertChange, MoveChange
from dynalist_tree.models.node import ListDescriptor, Node
from dynalist_tree.store import RemoteDocumentStore
from tests.unit.fakes import FakeApi


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.mark.asyncio
async def test_list_files(api: FakeApi) -> None:
    api.add_response(
        "file/list",
        {
            "_code": "Ok",
            "root_file_id": "f0",
            "files": [
                {"id": "f0", "title": "Root", "type": "folder", "permission": 4},
                {"id": "d1", "title": "Notes", "type": "document", "permission": 4},
            ],
        },
    )

    files = await RemoteDocumentStore(api).list_files()

    assert files == [
        ListDescriptor(id="f0", title="Root", type="folder"),
        ListDescriptor(id="d1", title="Notes", type="document"),
    ]
    assert api.calls == [("file/list", {})]


@pytest.mark.asyncio
async def test_read_document(api: FakeApi) -> None:
    api.add_response(
        "doc/read",
        {
            "_code": "Ok",
            "file_id": "d1",
            "title": "Notes",
            "version": 12,
            "nodes": [
                {"id": "root", "content": "Notes", "children": ["a"]},
                {"id": "a", "content": "First", "checked": True, "created": 1, "modified": 2},
            ],
        },
    )

    snapshot = await RemoteDocumentStore(api).read_document("d1")

    assert (snapshot.file_id, snapshot.title, snapshot.version) == ("d1", "Notes", 12)
    assert snapshot.nodes[1] == Node(id="a", content="First", checked=True, created=1, modified=2)
    assert api.calls == [("doc/read", {"file_id": "d1"})]


@pytest.mark.asyncio
async def test_edit_document_serializes_changes_in_order(api: FakeApi) -> None:
    api.add_response("doc/edit", {"_code": "Ok", "results": [True, True], "new_node_ids": ["x"]})

    result = await RemoteDocumentStore(api).edit_document(
        "d1",
        [
            InsertChange(parent_id="root", index=0, content="New"),
            MoveChange(node_id="a", parent_id="root", index=1),
        ],
    )

    assert result.new_node_ids == ("x",)
    assert result.results == (True, True)
    ((path, args),) = api.calls
    assert path == "doc/edit"
    assert args["file_id"] == "d1"
    assert [c["action"] for c in args["changes"]] == ["insert", "move"]


@pytest.mark.asyncio
async def test_edit_files_tolerates_missing_fields(api: FakeApi) -> None:
    api.add_response("file/edit", {"_code": "Ok"})

    result = await RemoteDocumentStore(api).edit_files([FileEditChange(file_id="d1", title="T")])

    assert result.created == ()
    assert result.results == ()
    assert api.calls[0][1]["changes"] == [
        {"action": "edit", "file_id": "d1", "title": "T", "type": "document"}
    ]
