"""Line-delimited stdio transport for the MCP protocol."""

import asyncio
import json
import sys
from typing import Any, Protocol

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from mongo_mcp.context import ServerContext
from mongo_mcp.exceptions import ProtocolError

from .schemas import (
    MCPInitializeParams,
    MCPJSONRPCRequest,
    MCPJSONRPCResponse,
    MCPResourceReadParams,
    MCPToolCallParams,
)
from .service import (
    handle_initialize,
    handle_resources_list,
    handle_resources_read,
    handle_tools_call,
    handle_tools_list,
)

logger = structlog.get_logger("mcp_transport.stdio")

PARSE_ERROR_CODE = -32700
INVALID_REQUEST_ERROR_CODE = -32600
METHOD_NOT_FOUND_ERROR_CODE = -32601
INVALID_PARAMS_ERROR_CODE = -32602
INTERNAL_ERROR_CODE = -32603

DEFAULT_MAX_MESSAGE_BYTES = 16 * 1024 * 1024


class LineReader(Protocol):
    async def readuntil(self, separator: bytes = ...) -> bytes: ...

    async def read(self, n: int = ...) -> bytes: ...


def _result_response(request_id: str | int | None, result: Any) -> dict[str, Any]:
    if isinstance(result, BaseModel):
        result = result.model_dump(exclude_none=True)
    return MCPJSONRPCResponse(id=request_id, result=result).model_dump(exclude={"error"})


def _error_response(request_id: str | int | None, code: int, message: str) -> dict[str, Any]:
    return MCPJSONRPCResponse(
        id=request_id,
        error={"code": code, "message": message},
    ).model_dump(exclude={"result"})


def _parse_params(model: type[BaseModel], params: dict[str, Any]) -> Any:
    try:
        return model.model_validate(params)
    except PydanticValidationError as e:
        raise ProtocolError(
            f"Invalid params: {e.error_count()} validation error(s)",
            rpc_code=INVALID_PARAMS_ERROR_CODE,
        ) from e


def parse_message(line: bytes | str) -> MCPJSONRPCRequest:
    """Decode one inbound line into a JSON-RPC request.

    Raises:
        ProtocolError: If the line is not JSON or not a JSON-RPC object.
    """
    try:
        body = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise ProtocolError(f"Parse error: {e}", rpc_code=PARSE_ERROR_CODE) from e

    if not isinstance(body, dict):
        raise ProtocolError("Message must be a JSON object")
    try:
        return MCPJSONRPCRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ProtocolError(
            f"Invalid request: {e.error_count()} validation error(s)"
        ) from e


async def dispatch(ctx: ServerContext, request: MCPJSONRPCRequest) -> dict[str, Any] | None:
    """Route one request to its handler and build the response message.

    Args:
        ctx: Server context.
        request: Parsed JSON-RPC request.

    Returns:
        The response payload, or None for notifications.
    """
    if "id" not in request.model_fields_set:
        # Notifications never get an answer
        logger.debug("notification_received", method=request.method)
        return None

    method = request.method
    params = request.params or {}

    try:
        if method == "initialize":
            init_params = _parse_params(MCPInitializeParams, params)
            result = await handle_initialize(ctx, init_params)

        elif method == "ping":
            result = {}

        elif method == "resources/list":
            result = await handle_resources_list(ctx)

        elif method == "resources/read":
            read_params = _parse_params(MCPResourceReadParams, params)
            result = await handle_resources_read(ctx, read_params.uri)

        elif method == "tools/list":
            result = await handle_tools_list()

        elif method == "tools/call":
            call_params = _parse_params(MCPToolCallParams, params)
            result = await handle_tools_call(ctx, call_params.name, call_params.arguments)

        else:
            return _error_response(
                request.id, METHOD_NOT_FOUND_ERROR_CODE, f"Method not found: {method}"
            )

    except ProtocolError as e:
        logger.warning("protocol_error", method=method, error=e.message)
        return _error_response(request.id, e.rpc_code, e.message)
    except Exception as e:
        logger.error("internal_error", method=method, error=str(e), exc_info=True)
        return _error_response(request.id, INTERNAL_ERROR_CODE, f"Internal error: {str(e)}")

    return _result_response(request.id, result)


class StdioTransport:
    """Reads one JSON-RPC message per line and answers with one line per request.

    Requests are handled strictly one after another: the next line is read
    only after the previous response has been written through the gate.
    """

    def __init__(self, ctx: ServerContext, reader: LineReader):
        self.ctx = ctx
        self._reader = reader
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def handle_line(self, line: bytes | str) -> dict[str, Any] | None:
        """Turn one inbound line into its response payload, if any."""
        try:
            request = parse_message(line)
        except ProtocolError as e:
            logger.warning("malformed_message", error=e.message)
            return _error_response(None, e.rpc_code, e.message)
        return await dispatch(self.ctx, request)

    def send(self, payload: dict[str, Any]) -> bool:
        """Write one response message through the output gate."""
        sent = self.ctx.gate.emit(json.dumps(payload))
        if not sent:
            logger.warning("response_dropped", id=payload.get("id"))
        return sent

    async def read_line(self) -> bytes:
        """Read the next line; an empty result means the input has ended.

        Raises:
            ProtocolError: If the line is longer than the reader's limit. The
                oversized line is consumed so the next read starts cleanly.
        """
        try:
            return await self._reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            return e.partial
        except asyncio.LimitOverrunError as e:
            await self._discard_line(e.consumed)
            raise ProtocolError("Message exceeds the maximum line length") from e

    async def _discard_line(self, consumed: int) -> None:
        while True:
            await self._reader.read(consumed)
            try:
                await self._reader.readuntil(b"\n")
                return
            except asyncio.IncompleteReadError:
                return
            except asyncio.LimitOverrunError as e:
                consumed = e.consumed

    async def run(self) -> None:
        """Process messages until the input stream ends or ``stop`` is called."""
        self._running = True
        logger.info("transport_started")
        try:
            while self._running:
                try:
                    line = await self.read_line()
                except ProtocolError as e:
                    logger.warning("oversized_message", error=e.message)
                    self.send(_error_response(None, e.rpc_code, e.message))
                    continue
                if not line:
                    break
                if not line.strip():
                    continue
                try:
                    response = await self.handle_line(line)
                except Exception as e:
                    logger.error("message_failed", error=str(e), exc_info=True)
                    response = _error_response(
                        None, INTERNAL_ERROR_CODE, f"Internal error: {str(e)}"
                    )
                if response is not None:
                    self.send(response)
        finally:
            self._running = False
            logger.info("transport_stopped")

    def stop(self) -> None:
        self._running = False


async def open_stdin_reader(limit: int = DEFAULT_MAX_MESSAGE_BYTES) -> asyncio.StreamReader:
    """Attach an asyncio stream reader to the process stdin.

    Args:
        limit: Longest inbound line accepted, in bytes.

    Raises:
        OSError, ValueError: If stdin cannot be used as a pipe transport.
    """
    reader = asyncio.StreamReader(limit=limit)
    loop = asyncio.get_running_loop()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader),
        sys.stdin,
    )
    return reader
