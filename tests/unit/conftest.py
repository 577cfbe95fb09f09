"""Shared test fixtures."""

import pytest

from dynalist_tree.core.tree.index import DocumentIndex
from dynalist_tree.models.node import Node
from dynalist_tree.service import DynalistService
from dynalist_tree.store import RemoteDocumentStore
from tests.unit.fakes import FakeDynalist

SHOPPING_LIST = [
    ("Buy milk", [], {"id": "milk", "checked": True}),
    ("Buy bread", [], {"id": "bread"}),
    ("Buy eggs", [], {"id": "eggs", "checked": True}),
    ("Buy butter", [], {"id": "butter", "note": "Unsalted preferred"}),
]

TREE_LIST = [
    (
        "Groceries",
        [
            ("Fruits", [("Apples", [], {"id": "apples"}), ("Bananas", [], {"id": "bananas"})], {"id": "fruits"}),
            ("Vegetables", [("Carrots", [], {"id": "carrots"}), ("Broccoli", [], {"id": "broccoli"})], {"id": "vegetables"}),
        ],
        {"id": "groceries"},
    ),
    (
        "Tasks",
        [("Call dentist", [], {"id": "dentist"}), ("Pay bills", [], {"id": "bills"})],
        {"id": "tasks"},
    ),
]


@pytest.fixture
def fake_dynalist() -> FakeDynalist:
    """Return a fake account with a flat shopping list and a nested tree list."""
    fake = FakeDynalist()
    fake.add_folder("__tests__")
    fake.add_document("Shopping", SHOPPING_LIST, file_id="shop")
    fake.add_document("Tree", TREE_LIST, file_id="tree")
    fake.add_document("Empty", file_id="empty")
    return fake


@pytest.fixture
def service(fake_dynalist: FakeDynalist) -> DynalistService:
    return DynalistService(RemoteDocumentStore(fake_dynalist))


@pytest.fixture
def tree_index(fake_dynalist: FakeDynalist) -> DocumentIndex:
    """Index over the nested tree document."""
    raw = fake_dynalist.call("doc/read", {"file_id": "tree"})
    return DocumentIndex(Node.from_api(n) for n in raw["nodes"])
