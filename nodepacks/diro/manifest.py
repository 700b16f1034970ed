"""
Diro Node Pack Manifest - Registration function for entry-points.
"""

from src.node_registry.models import NodePackManifest
from .credentials import DiroApiCredential
from .nodes import DiroNode


MANIFEST = NodePackManifest(
    name="n8n-nodes-diro",
    version="1.0.0",
    description="Generate PDF/PNG documents from templates using the Diro API",
    author="Diro",
    license="MIT",
    nodes=[DiroNode.type],
    credentials=[DiroApiCredential.name],
    entry_point="nodepacks.diro",
)


# Node classes by type
NODE_CLASSES = {
    DiroNode.type: DiroNode,
}

# Credential classes by name
CREDENTIAL_CLASSES = {
    DiroApiCredential.name: DiroApiCredential,
}


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes, credential_classes).
    """
    return MANIFEST, NODE_CLASSES, CREDENTIAL_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
