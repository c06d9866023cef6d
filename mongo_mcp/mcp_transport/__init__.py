"""MCP transport module - stdio JSON-RPC protocol and request handlers."""

from .stdio import StdioTransport, dispatch, open_stdin_reader, parse_message
from .service import (
    handle_initialize,
    handle_resources_list,
    handle_resources_read,
    handle_tools_call,
    handle_tools_list,
    store_session,
)

__all__ = [
    "StdioTransport",
    "dispatch",
    "open_stdin_reader",
    "parse_message",
    "handle_initialize",
    "handle_resources_list",
    "handle_resources_read",
    "handle_tools_call",
    "handle_tools_list",
    "store_session",
]
