"""Repository layer for MongoDB data access."""

from typing import Any

import structlog
from pymongo.errors import PyMongoError

from mongo_mcp.exceptions import OperationError

logger = structlog.get_logger("store.repository")


async def list_collections(db: Any) -> list[dict[str, Any]]:
    """Fetch collection descriptors in the order the server reports them.

    Args:
        db: Motor database handle.

    Returns:
        List of collection info documents, each with at least a ``name``.
    """
    try:
        cursor = await db.list_collections()
        return await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error("mongodb_operation_failed", operation="list_collections", error=str(e))
        raise OperationError("list_collections", str(e)) from e


async def find_documents(
    db: Any,
    collection: str,
    filter: dict[str, Any] | None = None,
    projection: dict[str, Any] | None = None,
    limit: int = 0,
) -> list[dict[str, Any]]:
    """Run a find against one collection.

    Args:
        db: Motor database handle.
        collection: Already validated collection name.
        filter: Query filter; ``None`` or empty matches every document.
        projection: Fields to include or exclude; empty returns all fields.
        limit: Maximum number of documents, 0 for no limit.

    Returns:
        Matching documents as plain dicts.
    """
    try:
        cursor = db.get_collection(collection).find(filter or {}, projection or None).limit(limit)
        return await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(
            "mongodb_operation_failed",
            operation="find",
            collection=collection,
            error=str(e),
        )
        raise OperationError("find", str(e)) from e
