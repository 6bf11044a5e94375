"""
Monitoring for storygraph.

Components:
    StructuredLogger  - JSON / human-readable event logging
    LogLevel          - Log level enum
"""

from storygraph.monitoring.logging import (
    StructuredLogger,
    LogLevel,
    LogRecord,
    configure_logging,
    get_logger,
)

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "LogRecord",
    "configure_logging",
    "get_logger",
]
