"""Exclusive writer for the shared protocol output channel."""

import io
import sys
import threading
from contextlib import contextmanager
from typing import Iterator, TextIO


class _DiscardStream(io.TextIOBase):
    """Text stream that accepts every write and keeps nothing."""

    def writable(self) -> bool:
        return True

    def write(self, data: str) -> int:
        return len(data)


class OutputGate(io.TextIOBase):
    """Gatekeeper in front of the real stdout stream.

    The gate is the only component allowed to write to the protocol channel.
    Writes reach the real stream only while passthrough is enabled; otherwise
    they are acknowledged as successful and dropped, so a stray ``print`` from
    a library can never be interleaved with a framed protocol message.

    Passthrough is ``enabled and depth == 0``. Each :meth:`suppressed` window
    increments the depth on entry and decrements it on exit, which lets nested
    or interleaved windows compose without one window re-opening the channel
    while another is still active.
    """

    def __init__(self, stream: TextIO | None = None):
        """Initialize the gate with passthrough disabled.

        Args:
            stream: The real output stream. Defaults to the process stdout.
        """
        super().__init__()
        self._stream = stream if stream is not None else sys.stdout
        self._enabled = False
        self._depth = 0
        self._lock = threading.RLock()
        self._saved_streams: tuple[TextIO, TextIO] | None = None

    @property
    def passthrough(self) -> bool:
        """Whether writes currently reach the real stream."""
        with self._lock:
            return self._enabled and self._depth == 0

    @property
    def encoding(self) -> str:
        return getattr(self._stream, "encoding", None) or "utf-8"

    def enable(self) -> None:
        """Open the channel once the protocol transport is established."""
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        """Close the channel for good, e.g. during shutdown."""
        with self._lock:
            self._enabled = False

    @contextmanager
    def suppressed(self) -> Iterator[None]:
        """Force passthrough off for the duration of the block.

        The previous passthrough state is restored on every exit path,
        including exceptions and early returns from the enclosing code.
        """
        with self._lock:
            self._depth += 1
        try:
            yield
        finally:
            with self._lock:
                self._depth -= 1

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def write(self, data: str) -> int:
        """Forward ``data`` when passthrough is on, otherwise drop it.

        Never blocks the caller on a closed gate and never signals failure.
        """
        with self._lock:
            if self._enabled and self._depth == 0:
                self._stream.write(data)
        return len(data)

    def flush(self) -> None:
        with self._lock:
            if self._enabled and self._depth == 0:
                self._stream.flush()

    def emit(self, line: str) -> bool:
        """Write one framed protocol message.

        Args:
            line: Serialized message without a trailing newline.

        Returns:
            True if the message reached the real stream.
        """
        with self._lock:
            if not (self._enabled and self._depth == 0):
                return False
            self._stream.write(line + "\n")
            self._stream.flush()
            return True

    def install(self) -> None:
        """Put the gate in place of ``sys.stdout`` and silence ``sys.stderr``."""
        if self._saved_streams is None:
            self._saved_streams = (sys.stdout, sys.stderr)
        sys.stdout = self
        sys.stderr = _DiscardStream()

    def uninstall(self) -> None:
        """Restore the process streams replaced by :meth:`install`."""
        if self._saved_streams is not None:
            sys.stdout, sys.stderr = self._saved_streams
            self._saved_streams = None
