"""Gate module - exclusive access to the protocol output channel."""

from .gate import OutputGate

__all__ = [
    "OutputGate",
]
