"""
Node Registry - Central registry for node discovery, instantiation and execution.

Supports two discovery methods:
1. Manual registration
2. Entry-points (for plugin node packs)

Once a node is registered the registry can run it over a batch of items
and call its load-options / resource-mapping methods, which is all a host
needs to drive a node pack.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Dict, Iterator, List, Optional, Type, TYPE_CHECKING

from .models import CredentialDefinition, NodeDefinition, NodePackManifest


if TYPE_CHECKING:
    from src.node_sdk.basenode import BaseNode, NodePropertyOption, ResourceMapperFields
    from src.node_sdk.credentials import BaseCredential


logger = logging.getLogger(__name__)

# Entry point group for node packs
NODE_PACK_ENTRY_POINT = "node_registry.nodepacks"


class NodeRegistry:
    """
    Central registry for discovering and instantiating nodes.

    Nodes can be registered via:
    - register_node(): Manual registration
    - discover_entry_points(): Automatic discovery via entry points
    - register_pack(): Register all nodes (and credentials) from a pack

    Usage:
        registry = NodeRegistry()
        registry.discover_entry_points()

        output = registry.execute_node(
            "n8n-nodes-diro.diro",
            parameters={"resource": "template", "operation": "getMany"},
            credentials={"diroApi": {"apiKey": "diro_..."}},
            input_data=[{"json": {}}],
        )
    """

    def __init__(self):
        """Initialize empty registry."""
        self._nodes: Dict[str, NodeDefinition] = {}
        self._node_classes: Dict[str, Type["BaseNode"]] = {}
        self._credentials: Dict[str, CredentialDefinition] = {}
        self._credential_classes: Dict[str, Type["BaseCredential"]] = {}
        self._packs: Dict[str, NodePackManifest] = {}
        self._discovered = False

    def register_node(
        self,
        node_class: Type["BaseNode"],
        node_type: Optional[str] = None,
    ) -> NodeDefinition:
        """
        Register a node class.

        Args:
            node_class: BaseNode subclass
            node_type: Override node type (uses class.type if not provided)

        Returns:
            NodeDefinition for the registered node
        """
        if node_type is None:
            node_type = getattr(node_class, "type", node_class.__name__.lower())

        definition = NodeDefinition.from_node_class(node_class)
        definition.node_type = node_type

        self._nodes[node_type] = definition
        self._node_classes[node_type] = node_class

        logger.debug(f"Registered node: {node_type}")
        return definition

    def register_credential(
        self,
        credential_class: Type["BaseCredential"],
    ) -> CredentialDefinition:
        """Register a credential type class."""
        definition = CredentialDefinition.from_credential_class(credential_class)
        self._credentials[definition.name] = definition
        self._credential_classes[definition.name] = credential_class

        logger.debug(f"Registered credential: {definition.name}")
        return definition

    def register_pack(
        self,
        manifest: NodePackManifest,
        node_classes: Dict[str, Type["BaseNode"]],
        credential_classes: Optional[Dict[str, Type["BaseCredential"]]] = None,
    ) -> None:
        """
        Register a node pack with its nodes.

        Args:
            manifest: Pack manifest
            node_classes: Map of node_type -> node class
            credential_classes: Map of credential name -> credential class
        """
        self._packs[manifest.name] = manifest

        for node_type, node_class in node_classes.items():
            definition = self.register_node(node_class, node_type)
            definition.node_pack = manifest.name

        for credential_class in (credential_classes or {}).values():
            definition = self.register_credential(credential_class)
            definition.credential_pack = manifest.name

        logger.info(f"Registered pack '{manifest.name}' with {len(node_classes)} nodes")

    def discover_entry_points(self, force: bool = False) -> int:
        """
        Discover node packs via entry points.

        Entry points are defined in pyproject.toml:

            [project.entry-points."node_registry.nodepacks"]
            diro = "nodepacks.diro:register_nodes"

        The entry point should be a function that returns:
        - (manifest, node_classes) or (manifest, node_classes, credential_classes)
        - Or just node_classes dict

        Args:
            force: Re-discover even if already done

        Returns:
            Number of packs discovered
        """
        if self._discovered and not force:
            return len(self._packs)

        count = 0

        for ep in entry_points(group=NODE_PACK_ENTRY_POINT):
            try:
                result = ep.load()()

                if isinstance(result, tuple):
                    self.register_pack(*result)
                elif isinstance(result, dict):
                    manifest = NodePackManifest(
                        name=ep.name,
                        nodes=list(result.keys()),
                    )
                    self.register_pack(manifest, result)

                count += 1
                logger.info(f"Discovered node pack: {ep.name}")

            except Exception as e:
                # One broken pack must not hide the others
                logger.error(f"Failed to load node pack '{ep.name}': {e}")

        self._discovered = True
        return count

    def get_node(self, node_type: str) -> Optional[NodeDefinition]:
        """Get node definition by type."""
        return self._nodes.get(node_type)

    def get_node_class(self, node_type: str) -> Optional[Type["BaseNode"]]:
        """Get node class by type."""
        return self._node_classes.get(node_type)

    def get_credential(self, name: str) -> Optional[CredentialDefinition]:
        """Get credential definition by name."""
        return self._credentials.get(name)

    def get_credential_class(self, name: str) -> Optional[Type["BaseCredential"]]:
        """Get credential class by name."""
        return self._credential_classes.get(name)

    def create_node(self, node_type: str) -> Optional["BaseNode"]:
        """
        Create a node instance.

        Args:
            node_type: Node type identifier

        Returns:
            Node instance or None if not found
        """
        node_class = self.get_node_class(node_type)
        if node_class:
            return node_class()
        return None

    def prepare_node(
        self,
        node_type: str,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: Optional[List[Dict[str, Any]]] = None,
        continue_on_fail: bool = False,
        node_name: Optional[str] = None,
    ) -> "BaseNode":
        """Instantiate a node and attach an execution context to it."""
        from src.node_sdk.basenode import NodeExecutionContext

        node = self.create_node(node_type)
        if node is None:
            raise ValueError(f"Unknown node type: {node_type}")

        node.continue_on_fail = continue_on_fail
        node.set_context(
            NodeExecutionContext(
                parameters=parameters,
                credentials=credentials,
                input_data=input_data if input_data is not None else [{"json": {}}],
                node_name=node_name,
            )
        )
        return node

    def execute_node(
        self,
        node_type: str,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: Optional[List[Dict[str, Any]]] = None,
        continue_on_fail: bool = False,
    ) -> List[List[Dict[str, Any]]]:
        """Run a registered node over a batch of input items."""
        node = self.prepare_node(
            node_type, parameters, credentials, input_data, continue_on_fail
        )
        logger.info(f"Executing node: {node_type}")
        return node.execute()

    def load_options(
        self,
        node_type: str,
        method_name: str,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
    ) -> List["NodePropertyOption"]:
        """Call a node's load-options method."""
        node = self.prepare_node(node_type, parameters, credentials)
        return node.load_options(method_name)

    def resource_mapping(
        self,
        node_type: str,
        method_name: str,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
    ) -> "ResourceMapperFields":
        """Call a node's resource-mapping method."""
        node = self.prepare_node(node_type, parameters, credentials)
        return node.resource_mapping(method_name)

    def test_credential(self, name: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Run the test hook of a registered credential type."""
        credential_class = self.get_credential_class(name)
        if credential_class is None:
            return {"success": False, "message": f"Unknown credential type: {name}"}
        return credential_class(data).test()

    def list_nodes(self) -> List[NodeDefinition]:
        """List all registered nodes."""
        return list(self._nodes.values())

    def list_credentials(self) -> List[CredentialDefinition]:
        """List all registered credential types."""
        return list(self._credentials.values())

    def list_packs(self) -> List[NodePackManifest]:
        """List all registered packs."""
        return list(self._packs.values())

    def list_node_types(self) -> List[str]:
        """List all registered node types."""
        return list(self._nodes.keys())

    def has_node(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return node_type in self._nodes

    def __len__(self) -> int:
        """Number of registered nodes."""
        return len(self._nodes)

    def __iter__(self) -> Iterator[NodeDefinition]:
        """Iterate over node definitions."""
        return iter(self._nodes.values())

    def __contains__(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return self.has_node(node_type)


# Global registry instance
_global_registry: Optional[NodeRegistry] = None


def get_global_registry() -> NodeRegistry:
    """Get the global node registry (lazy initialized)."""
    global _global_registry
    if _global_registry is None:
        _global_registry = NodeRegistry()
    return _global_registry


__all__ = [
    "NodeRegistry",
    "get_global_registry",
    "NODE_PACK_ENTRY_POINT",
]
