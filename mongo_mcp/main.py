"""Process entry point: startup, pre-connect, serving and shutdown."""

import argparse
import signal
import sys
from functools import partial
from typing import Any, Awaitable, Callable, TextIO

import anyio
import structlog

from .config import Settings, get_settings
from .context import ServerContext
from .exceptions import StoreConnectionError
from .gate import OutputGate
from .mcp_transport import StdioTransport, open_stdin_reader
from .mcp_transport.stdio import LineReader
from .sideband import configure_sideband_logging

logger = structlog.get_logger("main")

SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-mcp",
        description="Serve MongoDB collections over the Model Context Protocol on stdio.",
    )
    parser.add_argument("url", nargs="?", help="MongoDB connection string")
    parser.add_argument("--log-dir", help="Directory for the sideband log file")
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    """Merge command-line overrides into the environment settings."""
    args = build_parser().parse_args(argv)
    overrides: dict[str, Any] = {}
    if args.url:
        overrides["MONGODB_URL"] = args.url
    if args.log_dir:
        overrides["LOG_DIR"] = args.log_dir
    return get_settings().model_copy(update=overrides)


async def preconnect(ctx: ServerContext) -> bool:
    """Try to connect before serving so driver chatter happens while the gate is shut.

    A failure is logged and swallowed; the first request that needs the
    store will retry.
    """
    logger.info("preconnect_started")
    try:
        await ctx.connection.ensure_connected()
    except StoreConnectionError as e:
        logger.warning("preconnect_failed", error=e.message)
        return False
    logger.info("preconnect_succeeded")
    return True


def cleanup(ctx: ServerContext | None, gate: OutputGate) -> None:
    """Shut the gate and close the store connection, logging any failure."""
    gate.disable()
    if ctx is None:
        return
    try:
        ctx.connection.close()
    except Exception as e:
        logger.error("cleanup_failed", error=str(e))


async def _watch_signals(gate: OutputGate, cancel_scope: anyio.CancelScope) -> None:
    with anyio.open_signal_receiver(*SHUTDOWN_SIGNALS) as signals:
        async for signum in signals:
            logger.info("signal_received", signal=signal.Signals(signum).name)
            gate.disable()
            cancel_scope.cancel()
            return


async def serve(
    settings: Settings,
    stdout: TextIO | None = None,
    reader_factory: Callable[[], Awaitable[LineReader]] | None = None,
    **connection_kwargs,
) -> int:
    """Run the server until stdin closes or a shutdown signal arrives.

    The output gate stays shut until the transport is attached, so nothing
    written during startup reaches the protocol channel.

    Args:
        settings: Application settings.
        stdout: Real protocol output stream. Defaults to the process stdout.
        reader_factory: Coroutine function returning the inbound line reader.
            Defaults to stdin with a line limit of ``MAX_MESSAGE_BYTES``.
        **connection_kwargs: Extra arguments for the connection manager.

    Returns:
        Process exit code.
    """
    if reader_factory is None:
        reader_factory = partial(open_stdin_reader, settings.MAX_MESSAGE_BYTES)
    gate = OutputGate(stdout if stdout is not None else sys.stdout)
    gate.install()
    ctx: ServerContext | None = None
    logger.info("startup", app=settings.APP_NAME, version=settings.APP_VERSION)

    try:
        if not settings.MONGODB_URL:
            raise StoreConnectionError(
                "Please provide a MongoDB connection string", code="MISSING_URL"
            )

        ctx = ServerContext.create(settings, gate, **connection_kwargs)
        if settings.PRECONNECT:
            await preconnect(ctx)

        try:
            reader = await reader_factory()
        except (OSError, ValueError) as e:
            logger.error("transport_failed", error=str(e))
            return 1

        transport = StdioTransport(ctx, reader)
        gate.enable()
        logger.info("server_ready")

        async with anyio.create_task_group() as tg:
            tg.start_soon(_watch_signals, gate, tg.cancel_scope)
            await transport.run()
            tg.cancel_scope.cancel()

        return 0

    except StoreConnectionError as e:
        logger.error("startup_failed", error=e.message)
        return 1

    finally:
        cleanup(ctx, gate)
        gate.uninstall()
        logger.info("shutdown_complete")


def main(argv: list[str] | None = None) -> None:
    settings = load_settings(argv)
    configure_sideband_logging(settings.LOG_DIR, settings.LOG_FILE, settings.LOG_LEVEL)
    try:
        exit_code = anyio.run(serve, settings)
    except Exception as e:
        logger.error("unhandled_error", error=str(e), exc_info=True)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
