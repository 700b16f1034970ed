"""Structured JSON logging with node execution context."""
import logging
import sys
from typing import Any, TextIO

from pythonjsonlogger.json import JsonFormatter

from src.config import get_settings


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

NODE_CONTEXT_FIELDS = ("node_type", "node_name", "item_index")


class NodeContextFilter(logging.Filter):
    """Add node execution context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default node context fields if not present."""
        for field in NODE_CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Unset context fields are left out rather than written as null
        for field in NODE_CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is None:
                log_record.pop(field, None)
            else:
                log_record[field] = value


def setup_logging(stream: TextIO | None = None) -> None:
    """
    Configure logging for the node pack (JSON or plain text per settings).

    Args:
        stream: Where records go, stdout unless given
    """
    settings = get_settings()

    handler = logging.StreamHandler(stream or sys.stdout)

    if settings.log_json:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT)
    handler.setFormatter(formatter)

    handler.addFilter(NodeContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


class NodeContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter whose per-call ``extra`` is merged over the adapter's own."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> NodeContextAdapter:
    """
    Get a logger with node context support.

    Args:
        name: Logger name (typically __name__)
        **context: Node context attached to every record

    Returns:
        Adapter that also accepts node context in the extra dict of each call
    """
    logger = logging.getLogger(name)
    return NodeContextAdapter(logger, extra=with_node_context(**context))


def with_node_context(
    node_type: str | None = None,
    node_name: str | None = None,
    item_index: int | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with node context for logging.

    Args:
        node_type: Node type identifier
        node_name: Node name inside the workflow
        item_index: Index of the input item being processed
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if node_type:
        extra["node_type"] = node_type
    if node_name:
        extra["node_name"] = node_name
    if item_index is not None:
        extra["item_index"] = item_index
    return extra
