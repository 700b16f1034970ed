"""
Diro-specific errors.

Both classes extend the SDK error family so hosts that only know about
NodeOperationError / NodeApiError handle them without changes.
"""

from typing import Any, Optional

from src.node_sdk.basenode import NodeApiError, NodeOperationError


class DiroValidationError(NodeOperationError):
    """User-supplied parameters are unusable; raised before any request is sent."""


class ResponseShapeError(NodeApiError):
    """The API answered with a shape the operation cannot use."""

    def __init__(
        self,
        message: str,
        payload: Any = None,
        status_code: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, status_code=status_code, description=description)
        self.payload = payload


__all__ = ["DiroValidationError", "ResponseShapeError"]
