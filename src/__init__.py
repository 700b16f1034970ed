"""
Diro Node Pack

Python node pack for generating PDF/PNG documents from Diro templates,
together with the node runtime it is loaded into:

Architecture:
- node_sdk/: Node execution semantics (BaseNode, NodeExecutionContext, credentials, HTTP)
- node_registry/: Plugin discovery + node execution
- config/: Settings loaded from the environment
- observability/: Structured logging
"""

__version__ = "1.0.0"
