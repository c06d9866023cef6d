"""Business logic for MCP protocol handlers.

Every handler that touches the store runs inside :func:`store_session`, which
closes the output gate, makes sure the store connection exists and reopens the
gate afterwards. Handlers never raise: failures are turned into an error
envelope of the shape the protocol method expects.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import unquote, urlsplit

import structlog
from bson import json_util

from mongo_mcp.context import ServerContext
from mongo_mcp.exceptions import ValidationError, error_text
from mongo_mcp.store import find_documents, list_collections, validate_collection_name

from .schemas import (
    MCPInitializeParams,
    MCPResource,
    MCPResourceContent,
    MCPResourceListResult,
    MCPResourceReadResult,
    MCPTool,
    MCPToolCallResult,
    MCPToolListResult,
    QuerySpec,
)

logger = structlog.get_logger("mcp_transport.service")

QUERY_TOOL_NAME = "query"
JSON_MIME_TYPE = "application/json"
TEXT_MIME_TYPE = "text/plain"


def _build_query_tool() -> MCPTool:
    return MCPTool(
        name=QUERY_TOOL_NAME,
        description="Run a MongoDB query",
        inputSchema={
            "type": "object",
            "properties": {
                "collection": {"type": "string", "description": "Collection to query."},
                "filter": {"type": "object", "default": {}},
                "projection": {"type": "object", "default": {}},
                "limit": {"type": "number", "default": 100},
            },
            "required": ["collection"],
        },
    )


def _serialize_documents(documents: list[dict[str, Any]]) -> str:
    # Extended JSON keeps ObjectId and datetime values readable
    return json_util.dumps(documents, indent=2)


def collection_name_from_uri(uri: str, scheme: str) -> str:
    """Extract the collection name addressed by a resource URI.

    The path component names the collection. URIs of the form
    ``<scheme>://<name>`` carry the name in the authority instead, so an
    empty path falls back to it. If the URI cannot be parsed at all the
    ``<scheme>://`` prefix is stripped verbatim.

    Args:
        uri: Resource URI from the client.
        scheme: Resource scheme this server hands out.

    Returns:
        The (unvalidated) collection name, possibly empty.
    """
    try:
        parts = urlsplit(uri)
        name = unquote(parts.path.lstrip("/")) or unquote(parts.netloc)
    except ValueError:
        name = uri.replace(f"{scheme}://", "", 1)
    return name


@asynccontextmanager
async def store_session(ctx: ServerContext) -> AsyncIterator[Any]:
    """Open a suppressed window around store work.

    Yields:
        The connected database handle.
    """
    with ctx.gate.suppressed():
        await ctx.connection.ensure_connected()
        yield ctx.connection.database


async def handle_initialize(ctx: ServerContext, params: MCPInitializeParams) -> dict[str, Any]:
    """Handle initialize request.

    Args:
        ctx: Server context.
        params: Initialize parameters from client.

    Returns:
        Server initialization response.
    """
    logger.info("client_initialized", client=params.clientInfo.get("name"))
    return {
        "protocolVersion": ctx.settings.PROTOCOL_VERSION,
        "capabilities": {
            "resources": {},
            "tools": {},
        },
        "serverInfo": {
            "name": ctx.settings.APP_NAME,
            "version": ctx.settings.APP_VERSION,
        },
    }


async def handle_resources_list(ctx: ServerContext) -> MCPResourceListResult:
    """List every collection of the database as a resource.

    Args:
        ctx: Server context.

    Returns:
        Resources in the order the server reports them. On failure the list
        is empty and ``error`` carries the reason.
    """
    try:
        async with store_session(ctx) as db:
            collections = await list_collections(db)
    except Exception as e:
        logger.warning("list_resources_failed", error=str(e))
        return MCPResourceListResult(
            resources=[],
            error=f"Failed to list MongoDB collections: {error_text(e)}",
        )

    return MCPResourceListResult(
        resources=[
            MCPResource(
                uri=f"{ctx.scheme}://{info['name']}",
                mimeType=JSON_MIME_TYPE,
                name=f"{info['name']} collection",
            )
            for info in collections
        ]
    )


async def handle_resources_read(ctx: ServerContext, uri: str) -> MCPResourceReadResult:
    """Read the first documents of the collection addressed by ``uri``.

    Args:
        ctx: Server context.
        uri: Resource URI, e.g. ``mongodb://orders``.

    Returns:
        One JSON content item, or one plain-text error item.
    """
    try:
        name = collection_name_from_uri(uri, ctx.scheme)
        if not name:
            raise ValidationError(
                "Invalid resource URI: collection name is required", code="INVALID_URI"
            )
        safe_name = validate_collection_name(name)

        async with store_session(ctx) as db:
            documents = await find_documents(
                db, safe_name, limit=ctx.settings.READ_RESOURCE_LIMIT
            )
        text = _serialize_documents(documents)
    except Exception as e:
        logger.warning("read_resource_failed", uri=uri, error=str(e))
        return MCPResourceReadResult(
            contents=[
                MCPResourceContent(
                    uri=uri,
                    mimeType=TEXT_MIME_TYPE,
                    text=f"Error: Failed to read MongoDB resource: {error_text(e)}",
                )
            ]
        )

    return MCPResourceReadResult(
        contents=[
            MCPResourceContent(
                uri=uri,
                mimeType=JSON_MIME_TYPE,
                text=text,
            )
        ]
    )


async def handle_tools_list() -> MCPToolListResult:
    """Handle tools/list request. The tool set is static."""
    return MCPToolListResult(tools=[_build_query_tool()])


async def handle_tools_call(
    ctx: ServerContext,
    name: str,
    arguments: dict[str, Any] | None,
) -> MCPToolCallResult:
    """Handle tools/call request.

    Args:
        ctx: Server context.
        name: Tool name to invoke.
        arguments: Raw tool arguments.

    Returns:
        One content item with the JSON result array, or an error item.
    """
    arguments = arguments or {}

    if name != QUERY_TOOL_NAME:
        logger.warning("unknown_tool", tool_name=name)
        return MCPToolCallResult(
            contents=[
                MCPResourceContent(
                    uri=f"{ctx.scheme}://tool/{name}",
                    mimeType=TEXT_MIME_TYPE,
                    text=f"Error: Unknown tool: {name}",
                )
            ],
            isError=True,
        )

    try:
        query = QuerySpec.model_validate(arguments)
        safe_name = validate_collection_name(query.collection)

        async with store_session(ctx) as db:
            result = await find_documents(
                db,
                safe_name,
                filter=query.filter,
                projection=query.projection,
                limit=query.limit,
            )
        text = _serialize_documents(result)
    except Exception as e:
        logger.warning("call_tool_failed", tool_name=name, error=str(e))
        collection = arguments.get("collection") or "unknown"
        return MCPToolCallResult(
            contents=[
                MCPResourceContent(
                    uri=f"{ctx.scheme}://query/{collection}",
                    mimeType=TEXT_MIME_TYPE,
                    text=f"Error: {error_text(e)}",
                )
            ],
            isError=True,
        )

    return MCPToolCallResult(
        contents=[
            MCPResourceContent(
                uri=f"{ctx.scheme}://query/{query.collection}",
                mimeType=JSON_MIME_TYPE,
                text=text,
            )
        ],
        isError=False,
    )
