"""Unit tests for the MongoDB repository layer."""

import pytest
from pymongo.errors import OperationFailure

from mongo_mcp.exceptions import ErrorKind, OperationError
from mongo_mcp.store.repository import find_documents, list_collections


@pytest.mark.asyncio
async def test_list_collections_keeps_server_order(fake_db):
    collections = await list_collections(fake_db)

    assert [info["name"] for info in collections] == ["alpha", "beta"]


@pytest.mark.asyncio
async def test_list_collections_wraps_driver_errors(fake_db):
    fake_db.list_error = OperationFailure("not authorized on shop")

    with pytest.raises(OperationError) as exc_info:
        await list_collections(fake_db)

    assert exc_info.value.kind is ErrorKind.OPERATION
    assert exc_info.value.operation == "list_collections"
    assert "not authorized" in exc_info.value.message


@pytest.mark.asyncio
async def test_find_documents_applies_limit(fake_db):
    documents = await find_documents(fake_db, "alpha", limit=10)

    assert len(documents) == 10
    assert fake_db.collections["alpha"].last_cursor.limit_value == 10


@pytest.mark.asyncio
async def test_find_documents_passes_filter_and_projection(fake_db):
    await find_documents(
        fake_db, "alpha", filter={"tag": "a"}, projection={"n": 1}, limit=3
    )

    assert fake_db.collections["alpha"].find_calls == [({"tag": "a"}, {"n": 1})]


@pytest.mark.asyncio
async def test_find_documents_empty_projection_returns_all_fields(fake_db):
    """An empty projection must not be sent, the driver would return only _id."""
    await find_documents(fake_db, "beta", filter={}, projection={})

    assert fake_db.collections["beta"].find_calls == [({}, None)]


@pytest.mark.asyncio
async def test_find_documents_wraps_driver_errors(fake_db):
    fake_db.collections["alpha"].error = OperationFailure("unknown operator: $bogus")

    with pytest.raises(OperationError) as exc_info:
        await find_documents(fake_db, "alpha", filter={"$bogus": 1})

    assert exc_info.value.operation == "find"
    assert "$bogus" in exc_info.value.message
