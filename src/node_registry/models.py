"""
Node Registry Models - Metadata structures for nodes, credentials and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from src.node_sdk.basenode import NodeCredential, NodeParameter


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node.

    Contains everything needed to instantiate and use a node.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    icon: str = Field("file:icon.svg", description="Node icon")
    group: List[str] = Field(default_factory=list, description="Categories")

    # Technical
    node_class: Optional[str] = Field(None, description="Fully qualified class name")
    node_pack: Optional[str] = Field(None, description="Source node pack")

    # Runtime
    inputs: List[str] = Field(default_factory=lambda: ["main"])
    outputs: List[str] = Field(default_factory=lambda: ["main"])
    credentials: List[Dict[str, Any]] = Field(default_factory=list)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    load_options_methods: List[str] = Field(default_factory=list)
    resource_mapping_methods: List[str] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type) -> "NodeDefinition":
        """Create definition from a BaseNode class."""
        node_type = getattr(node_class, "type", node_class.__name__.lower())
        description = getattr(node_class, "description", {}) or {}
        properties = getattr(node_class, "properties", {}) or {}
        methods = getattr(node_class, "methods", {}) or {}

        credentials = description.get("credentials") or properties.get("credentials", [])
        parameters = properties.get("parameters", [])

        # Malformed schemas fail at registration, not when the host renders them
        for parameter in parameters:
            NodeParameter.model_validate(parameter)
        for credential in credentials:
            NodeCredential.model_validate(credential)

        return cls(
            node_type=node_type,
            version=getattr(node_class, "version", 1),
            display_name=description.get("displayName", node_type),
            description=description.get("description", ""),
            icon=description.get("icon", "file:icon.svg"),
            group=description.get("group", []),
            node_class=f"{node_class.__module__}.{node_class.__name__}",
            inputs=description.get("inputs", ["main"]),
            outputs=description.get("outputs", ["main"]),
            credentials=credentials,
            parameters=parameters,
            load_options_methods=sorted(methods.get("loadOptions", {})),
            resource_mapping_methods=sorted(methods.get("resourceMapping", {})),
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    name: str = Field(..., description="Pack name (e.g., 'n8n-nodes-diro')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")

    # Author
    author: str = Field("", description="Author name")
    license: str = Field("MIT", description="License type")

    # Contents
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack"
    )
    credentials: List[str] = Field(
        default_factory=list,
        description="List of credential types in this pack"
    )

    # Technical
    entry_point: str = Field(
        "",
        description="Module path for node discovery (e.g., 'nodepacks.diro')"
    )


class CredentialDefinition(BaseModel):
    """
    Definition of a credential type.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Credential type name")
    display_name: str = Field(..., description="Human-readable name")
    documentation_url: Optional[str] = Field(None, description="Where to obtain the secret")

    # Fields
    properties: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Credential properties/fields"
    )

    # Authentication
    auth_type: str = Field("generic", description="Auth type: generic, oauth2, etc.")
    credential_pack: Optional[str] = Field(None, description="Source node pack")

    @classmethod
    def from_credential_class(cls, credential_class: Type) -> "CredentialDefinition":
        """Create definition from a BaseCredential class."""
        definition = credential_class.get_definition()
        return cls(
            name=definition["name"],
            display_name=definition["display_name"],
            documentation_url=definition.get("documentation_url"),
            properties=definition.get("properties", []),
            auth_type=(definition.get("authenticate") or {}).get("type", "generic"),
        )


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "CredentialDefinition",
]
