"""Observability package."""
from src.observability.logging import (
    get_logger,
    setup_logging,
    with_node_context,
)

__all__ = ["get_logger", "setup_logging", "with_node_context"]
