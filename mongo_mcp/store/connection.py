"""Lazy, memoized connection to the MongoDB deployment."""

import asyncio
from enum import Enum
from typing import Any, Callable

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from mongo_mcp.exceptions import StoreConnectionError
from mongo_mcp.gate import OutputGate

logger = structlog.get_logger("store.connection")

ClientFactory = Callable[..., Any]


class ConnectionState(str, Enum):
    """Lifecycle of the managed client."""

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ConnectionManager:
    """Owns the single store client for the process.

    The client is created on first demand and kept until :meth:`close`.
    Concurrent first-time callers are serialized on a lock so exactly one
    client is ever built. A failed attempt leaves the manager uninitialized
    so a later call can retry; a closed manager stays closed.

    Attributes:
        state: Current lifecycle state.
    """

    def __init__(
        self,
        url: str,
        gate: OutputGate,
        client_options: dict[str, Any] | None = None,
        default_database: str = "test",
        client_factory: ClientFactory = AsyncIOMotorClient,
    ) -> None:
        """Initialize the manager without connecting.

        Args:
            url: MongoDB connection string.
            gate: Output gate suppressed while the client is built.
            client_options: Keyword options passed unmodified to the client.
            default_database: Database used when the URL names none.
            client_factory: Callable building the client from url and options.
        """
        self.url = url
        self.gate = gate
        self.client_options = dict(client_options or {})
        self.default_database = default_database
        self.state = ConnectionState.UNINITIALIZED
        self._client_factory = client_factory
        self._client: Any | None = None
        self._lock = asyncio.Lock()

    @property
    def client(self) -> Any:
        if self._client is None or self.state is not ConnectionState.CONNECTED:
            raise StoreConnectionError("Not connected to MongoDB", code="NOT_CONNECTED")
        return self._client

    @property
    def database(self) -> Any:
        """The database named in the URL, or the configured default."""
        return self.client.get_default_database(default=self.default_database)

    async def ensure_connected(self) -> None:
        """Connect if no live client exists; a no-op once connected.

        Raises:
            StoreConnectionError: If the handshake fails or the manager was
                already closed.
        """
        if self.state is ConnectionState.CONNECTED:
            return

        async with self._lock:
            if self.state is ConnectionState.CONNECTED:
                return
            if self.state is ConnectionState.CLOSED:
                raise StoreConnectionError(
                    "Connection manager has been closed", code="CONNECTION_CLOSED"
                )

            self.state = ConnectionState.CONNECTING
            client = None
            try:
                with self.gate.suppressed():
                    client = self._client_factory(self.url, **self.client_options)
                    await client.admin.command("ping")
            except Exception as e:
                self.state = ConnectionState.UNINITIALIZED
                if client is not None:
                    with self.gate.suppressed():
                        client.close()
                logger.error("mongodb_connect_failed", error=str(e))
                raise StoreConnectionError(
                    f"Failed to connect to MongoDB: {e}", code="STORE_UNAVAILABLE"
                ) from e

            self._client = client
            self.state = ConnectionState.CONNECTED
            logger.info("mongodb_connected")

    def close(self) -> None:
        """Close the client if one is open. Safe to call repeatedly."""
        if self._client is None:
            return

        logger.info("mongodb_closing")
        client, self._client = self._client, None
        self.state = ConnectionState.CLOSED
        with self.gate.suppressed():
            client.close()
        logger.info("mongodb_closed")
