"""
Log Formatters - Custom formatters for structured output.
"""

import json
import logging
from datetime import UTC, datetime


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured log output.

    Useful for log aggregation and analysis.
    """

    EXTRA_FIELDS = ("action", "state", "handle")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields
        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class CompactFormatter(logging.Formatter):
    """
    Compact single-line formatter for console output.
    """

    LEVEL_SYMBOLS = {
        "DEBUG": "·",
        "INFO": "→",
        "WARNING": "⚠",
        "ERROR": "✗",
        "CRITICAL": "☠",
    }

    def format(self, record: logging.LogRecord) -> str:
        symbol = self.LEVEL_SYMBOLS.get(record.levelname, "?")
        timestamp = datetime.now().strftime("%H:%M:%S")
        prefix = f"[{record.state}] " if getattr(record, "state", None) else ""
        return f"{timestamp} {symbol} {prefix}{record.getMessage()}"


def create_file_handler(
    path: str,
    formatter: logging.Formatter | None = None,
    level: int = logging.DEBUG,
) -> logging.FileHandler:
    """
    Create a file handler with specified formatter.

    Args:
        path: Log file path
        formatter: Log formatter (defaults to JSONFormatter)
        level: Logging level

    Returns:
        Configured file handler
    """
    handler = logging.FileHandler(path)
    handler.setLevel(level)
    handler.setFormatter(formatter or JSONFormatter())
    return handler
