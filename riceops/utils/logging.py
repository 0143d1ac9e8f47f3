"""
Logging configuration for the RiceOps console.

Provides coloured console output and optional file logging for the
entity lifecycle layer. Records about one entity carry ``entity_kind`` and
``entity_id`` (and optionally ``operation``) as extras; the formatter renders
them as a ``[transporter:12 update]`` tag after the logger name.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal, MutableMapping

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}

ROOT_LOGGER_NAME = "riceops"

# Record extras rendered by ConsoleFormatter
CONTEXT_FIELDS = ("entity_kind", "entity_id", "operation")


# ============================================================================
# Custom Formatter
# ============================================================================


class ConsoleFormatter(logging.Formatter):
    """Formatter with ANSI colours, short logger names and entity context tags."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(
        self,
        use_colors: bool = True,
        include_timestamp: bool = True,
    ):
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colours (for terminals)
            include_timestamp: Whether to include timestamps
        """
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        if self.include_timestamp:
            timestamp = datetime.fromtimestamp(record.created, UTC).strftime(
                "%Y-%m-%d %H:%M:%S"
            )
            parts.append(f"[{timestamp}]")

        level = record.levelname
        if self.use_colors:
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            parts.append(f"{color}{level:8}{reset}")
        else:
            parts.append(f"{level:8}")

        name = record.name
        prefix = f"{ROOT_LOGGER_NAME}."
        if name.startswith(prefix):
            name = name[len(prefix):]
        parts.append(f"[{name:20}]")

        context = self.format_context(record)
        if context:
            parts.append(context)

        parts.append(record.getMessage())

        if record.exc_info:
            parts.append(self.formatException(record.exc_info))

        return " ".join(parts)

    @staticmethod
    def format_context(record: logging.LogRecord) -> str:
        """Render ``[kind:id operation]`` from the record's extras, or ''."""
        kind, entity_id, operation = (getattr(record, name, None) for name in CONTEXT_FIELDS)
        if not (kind or entity_id or operation):
            return ""

        tag = str(kind or "?")
        if entity_id:
            tag += f":{entity_id}"
        if operation:
            tag += f" {operation}"
        return f"[{tag}]"


# ============================================================================
# Setup Functions
# ============================================================================


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    log_dir: str | Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: str = "riceops.log",
) -> None:
    """Configure the ``riceops`` logger hierarchy.

    Args:
        level: Minimum log level to capture
        log_dir: Directory for log files (required if file_output=True)
        console_output: Whether to log to stdout
        file_output: Whether to log to a file under ``log_dir``
        log_filename: Name of the log file
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level))
    root_logger.handlers = []

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(ConsoleFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    if file_output and log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_path / log_filename,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, level))
        file_handler.setFormatter(ConsoleFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger under the ``riceops`` namespace.

    Usage:
        logger = get_logger("store.transporters")
        logger.info("Loaded 12 transporters")
    """
    if not name.startswith(f"{ROOT_LOGGER_NAME}."):
        full_name = f"{ROOT_LOGGER_NAME}.{name}"
    else:
        full_name = name

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


# ============================================================================
# Convenience Functions
# ============================================================================


def entity_context(
    entity_kind: str | None = None,
    entity_id: Any = None,
    operation: str | None = None,
) -> dict[str, Any]:
    """Build the ``extra`` mapping for a record about one entity.

    Empty values are left out so they do not shadow an adapter's defaults.
    """
    values = {"entity_kind": entity_kind, "entity_id": entity_id, "operation": operation}
    return {key: value for key, value in values.items() if value not in (None, "")}


class EntityLogger(logging.LoggerAdapter):
    """Logger adapter that stamps every record with a fixed entity kind.

    Per-call ``extra`` values are merged over the adapter's, so a store can
    add the ``entity_id`` of the record it is working on.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_entity_logger(name: str, entity_kind: str | None) -> EntityLogger:
    """Get a ``riceops`` logger whose records carry ``entity_kind``.

    Usage:
        logger = get_entity_logger("store.transporter", "transporter")
        logger.info("Updated", extra=entity_context(entity_id="12"))
    """
    return EntityLogger(get_logger(name), entity_context(entity_kind))


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    details: dict | None = None,
    entity_id: Any = None,
) -> None:
    """Log an operation with optional key/value details and entity id."""
    extra = entity_context(entity_id=entity_id)
    if details:
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
        logger.info(f"{operation}: {detail_str}", extra=extra)
    else:
        logger.info(operation, extra=extra)


# Console-only setup for early imports
setup_logging(level="INFO", console_output=True, file_output=False)
