"""Logging setup for applications embedding the adapter layer."""

from devinde_tracker.observability.logging import (
    LoggingHandle,
    LoggingSettings,
    get_active_logging_handle,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LoggingHandle",
    "LoggingSettings",
    "get_active_logging_handle",
    "setup_logging",
    "shutdown_logging",
]
