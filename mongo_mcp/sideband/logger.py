"""Best-effort file logger that never touches the protocol channel."""

import logging
from pathlib import Path

import structlog

logger = structlog.get_logger("sideband")


def _build_handler(log_dir: str, log_file: str) -> logging.Handler:
    """Create the file handler, or a null handler if the file can't be opened."""
    try:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(
            directory / log_file, mode="a", encoding="utf-8"
        )
    except OSError:
        return logging.NullHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_sideband_logging(
    log_dir: str = "logs",
    log_file: str = "server.log",
    level: str = "INFO",
) -> logging.Handler:
    """Route structlog and stdlib logging into a single append-only file.

    All stream handlers are removed from the root logger so nothing, including
    driver diagnostics, can reach stdout or stderr. Handler failures are
    swallowed by the logging module instead of being reported.

    Args:
        log_dir: Directory holding the log file; created when missing.
        log_file: File name inside ``log_dir``.
        level: Minimum level name for the root logger.

    Returns:
        The handler that was installed.
    """
    logging.raiseExceptions = False

    handler = _build_handler(log_dir, log_file)
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logger.info("sideband_logging_configured", path=str(Path(log_dir) / log_file))
    return handler
