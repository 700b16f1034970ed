"""
Diro Node Pack - Document generation through the Diro API.

This pack provides:
- DiroNode: Generate, fetch, list and delete documents; fetch and list templates
- DiroApiCredential: API key credential (bearer token)
- DiroClient: HTTP client for the Diro REST API
"""

from .client import DiroClient
from .credentials import DiroApiCredential
from .errors import DiroValidationError, ResponseShapeError
from .manifest import CREDENTIAL_CLASSES, MANIFEST, NODE_CLASSES, register_nodes
from .nodes import DiroNode

__all__ = [
    "DiroNode",
    "DiroApiCredential",
    "DiroClient",
    "DiroValidationError",
    "ResponseShapeError",
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
