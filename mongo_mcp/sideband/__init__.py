"""Sideband module - diagnostic file logging."""

from .logger import configure_sideband_logging

__all__ = [
    "configure_sideband_logging",
]
