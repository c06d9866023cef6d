"""Store module - MongoDB connection and data access."""

from .connection import ConnectionManager, ConnectionState
from .repository import list_collections, find_documents
from .validation import validate_collection_name

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "list_collections",
    "find_documents",
    "validate_collection_name",
]
