"""
Tactile Logging Module.

Provides structured logging with Rich console output.
"""

from tactile.logging.config import (
    TactileLogger,
    console,
    get_logger,
    logger,
    setup_logging,
)
from tactile.logging.formatters import (
    CompactFormatter,
    JSONFormatter,
    create_file_handler,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "TactileLogger",
    "logger",
    "console",
    "JSONFormatter",
    "CompactFormatter",
    "create_file_handler",
]
