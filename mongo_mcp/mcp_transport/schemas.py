"""Pydantic schemas for MCP protocol messages."""

from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field


class MCPInitializeParams(BaseModel):
    """Parameters for initialize request."""

    protocolVersion: str = Field(default="2024-11-05", description="MCP protocol version")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    clientInfo: dict[str, Any] = Field(default_factory=dict)


class MCPResource(BaseModel):
    """A store collection exposed as a readable resource."""

    uri: str
    mimeType: str = "application/json"
    name: str


class MCPResourceListResult(BaseModel):
    """Result for resources/list.

    ``error`` is only set when listing failed; the call itself still succeeds.
    """

    resources: list[MCPResource] = Field(default_factory=list)
    error: str | None = None


class MCPResourceReadParams(BaseModel):
    """Parameters for resources/read."""

    uri: str


class MCPResourceContent(BaseModel):
    """Content item returned by resources/read and tools/call."""

    uri: str
    mimeType: str
    text: str


class MCPResourceReadResult(BaseModel):
    """Result for resources/read."""

    contents: list[MCPResourceContent]


class MCPTool(BaseModel):
    """MCP tool definition."""

    name: str
    description: str
    inputSchema: dict[str, Any]


class MCPToolListResult(BaseModel):
    """Result for tools/list."""

    tools: list[MCPTool]


class MCPToolCallParams(BaseModel):
    """Parameters for tools/call."""

    name: str
    arguments: dict[str, Any] | None = Field(default_factory=dict)


class MCPToolCallResult(BaseModel):
    """Result for tools/call."""

    contents: list[MCPResourceContent]
    isError: bool = False


class QuerySpec(BaseModel):
    """Arguments of the ``query`` tool."""

    model_config = ConfigDict(extra="ignore")

    collection: str
    filter: dict[str, Any] = Field(default_factory=dict)
    projection: dict[str, Any] = Field(default_factory=dict)
    limit: int = Field(default=100, ge=0)


class MCPJSONRPCRequest(BaseModel):
    """Generic JSON-RPC 2.0 request or notification."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None = None
    method: str
    params: dict[str, Any] | None = None


class MCPJSONRPCResponse(BaseModel):
    """Generic JSON-RPC 2.0 response."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None = None
    result: Any | None = None
    error: dict[str, Any] | None = None
