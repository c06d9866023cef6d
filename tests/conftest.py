# Test configuration
import io
from typing import Any

import pytest
import structlog
from pymongo.errors import ServerSelectionTimeoutError

from mongo_mcp.config import Settings
from mongo_mcp.context import ServerContext
from mongo_mcp.gate import OutputGate


class FakeCursor:
    """Minimal stand-in for a Motor cursor."""

    def __init__(self, documents: list[dict[str, Any]]):
        self._documents = list(documents)
        self.limit_value: int | None = None

    def limit(self, n: int) -> "FakeCursor":
        self.limit_value = n
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        documents = self._documents
        if self.limit_value:
            documents = documents[: self.limit_value]
        return [dict(document) for document in documents]


class FakeCollection:
    def __init__(self, documents: list[dict[str, Any]] | None = None):
        self.documents = list(documents or [])
        self.find_calls: list[tuple[Any, Any]] = []
        self.error: Exception | None = None
        self.last_cursor: FakeCursor | None = None

    def find(self, filter: Any = None, projection: Any = None) -> FakeCursor:
        self.find_calls.append((filter, projection))
        if self.error is not None:
            raise self.error
        self.last_cursor = FakeCursor(self.documents)
        return self.last_cursor


class FakeDatabase:
    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None):
        self.collections = {
            name: FakeCollection(documents) for name, documents in (collections or {}).items()
        }
        self.list_error: Exception | None = None

    async def list_collections(self) -> FakeCursor:
        if self.list_error is not None:
            raise self.list_error
        return FakeCursor([{"name": name, "type": "collection"} for name in self.collections])

    def get_collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class FakeAdmin:
    def __init__(self, client: "FakeClient"):
        self._client = client

    async def command(self, name: str) -> dict[str, Any]:
        self._client.commands.append(name)
        if self._client.fail_connect:
            raise ServerSelectionTimeoutError("localhost:27017: connection refused")
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, url: str, database: FakeDatabase, fail_connect: bool = False, **options):
        self.url = url
        self.options = options
        self.database = database
        self.fail_connect = fail_connect
        self.commands: list[str] = []
        self.closed = False
        self.admin = FakeAdmin(self)
        self.default_requested: str | None = None

    def get_default_database(self, default: str | None = None) -> FakeDatabase:
        self.default_requested = default
        return self.database

    def close(self) -> None:
        self.closed = True


class FakeClientFactory:
    """Callable replacing AsyncIOMotorClient; records every client it builds.

    Attributes:
        failures: Number of upcoming clients whose handshake fails.
    """

    def __init__(self, database: FakeDatabase | None = None, failures: int = 0):
        self.database = database or FakeDatabase()
        self.failures = failures
        self.instances: list[FakeClient] = []

    def __call__(self, url: str, **options) -> FakeClient:
        fail = self.failures > 0
        if fail:
            self.failures -= 1
        client = FakeClient(url, self.database, fail_connect=fail, **options)
        self.instances.append(client)
        return client


@pytest.fixture(autouse=True)
def log_events():
    """Capture structlog events so nothing is printed to the patched stdout."""
    with structlog.testing.capture_logs() as events:
        yield events


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase(
        {
            "alpha": [{"_id": i, "n": i, "tag": "a"} for i in range(15)],
            "beta": [{"_id": 1, "name": "only"}],
        }
    )


@pytest.fixture
def client_factory(fake_db: FakeDatabase) -> FakeClientFactory:
    return FakeClientFactory(fake_db)


@pytest.fixture
def settings() -> Settings:
    return Settings(MONGODB_URL="mongodb://localhost:27017/shop", PRECONNECT=False)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def gate(output: io.StringIO) -> OutputGate:
    gate = OutputGate(output)
    gate.enable()
    return gate


@pytest.fixture
def ctx(settings: Settings, gate: OutputGate, client_factory: FakeClientFactory) -> ServerContext:
    return ServerContext.create(settings, gate, client_factory=client_factory)
