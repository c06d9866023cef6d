"""Explicit server state passed into every request handler."""

from dataclasses import dataclass

from .config import Settings
from .gate import OutputGate
from .store import ConnectionManager


@dataclass
class ServerContext:
    """Everything a handler needs: settings, the output gate and the store connection."""

    settings: Settings
    gate: OutputGate
    connection: ConnectionManager

    @classmethod
    def create(cls, settings: Settings, gate: OutputGate, **connection_kwargs) -> "ServerContext":
        """Build a context whose connection manager follows ``settings``.

        Args:
            settings: Application settings.
            gate: Output gate in front of the protocol channel.
            **connection_kwargs: Extra arguments for ConnectionManager,
                e.g. a ``client_factory`` override.
        """
        connection = ConnectionManager(
            url=settings.MONGODB_URL or "",
            gate=gate,
            client_options=settings.client_options(),
            default_database=settings.MONGODB_DEFAULT_DB,
            **connection_kwargs,
        )
        return cls(settings=settings, gate=gate, connection=connection)

    @property
    def scheme(self) -> str:
        return self.settings.RESOURCE_SCHEME
