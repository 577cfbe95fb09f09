"""Concurrency-safe list and tree editing for Dynalist documents."""

from dynalist_tree.api import DynalistApi
from dynalist_tree.core.serializer import KeyedSerializer
from dynalist_tree.protocols import ApiProtocol, DocumentStoreProtocol
from dynalist_tree.service import DynalistService
from dynalist_tree.store import RemoteDocumentStore

__all__ = [
    "ApiProtocol",
    "DocumentStoreProtocol",
    "DynalistApi",
    "DynalistService",
    "KeyedSerializer",
    "RemoteDocumentStore",
]
