"""
Node SDK - Python node execution semantics.

This package provides the contract every node codes against:
- BaseNode: Abstract base class for node implementations
- NodeExecutionContext: Runtime context for a node (parameters, credentials, items)
- BaseCredential: Credential type definition and test hook
- HttpClient: Timeout-bounded HTTP wrapper

All nodes execute synchronously.
"""

from .basenode import (
    BaseNode,
    NodeExecutionContext,
    NodeExecutionData,
    NodeParameter,
    NodeCredential,
    NodeParameterType,
    NodePropertyOption,
    ResourceMapperField,
    ResourceMapperFields,
    NodeOperationError,
    NodeApiError,
)
from .credentials import BaseCredential
from .http import HttpApiError, HttpClient, HttpResponse, NodeTimeoutError

__all__ = [
    "NodeExecutionData",
    # Context
    "NodeExecutionContext",
    # Base class
    "BaseNode",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    # Host callbacks
    "NodePropertyOption",
    "ResourceMapperField",
    "ResourceMapperFields",
    # Credentials
    "BaseCredential",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    "HttpApiError",
    "NodeTimeoutError",
    # HTTP
    "HttpClient",
    "HttpResponse",
]
