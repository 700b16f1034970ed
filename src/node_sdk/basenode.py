"""
BaseNode - Abstract base class for Python node implementations.

All nodes inherit from BaseNode and implement the execute() method.
Nodes may also expose load-options and resource-mapping methods that the
host calls while the user configures the node.

execute() is synchronous.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field


# ==============================================================================
# NodeParameterType
# ==============================================================================

NodeParameterType = Literal[
    "string", "number", "boolean", "options", "multiOptions",
    "color", "json", "collection", "dateTime", "node",
    "resourceLocator", "resourceMapper", "notice", "array", "code",
]


# ==============================================================================
# NodeParameter - Pydantic model for defining parameters
# ==============================================================================

class NodeParameter(BaseModel):
    """
    A single parameter in the node's properties.

    Can be used both as Pydantic model and as dict in properties.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Parameter key (internal name)")
    display_name: str = Field(..., alias="displayName", description="Human-readable label")
    type: NodeParameterType = Field(..., description="Parameter type")
    default: Any = Field(None, description="Default value")
    required: bool = Field(False, description="Is parameter required?")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for options/multiOptions/collection type"
    )
    type_options: Optional[Dict[str, Any]] = Field(
        None,
        alias="typeOptions",
        description="Type specific settings (loadOptionsMethod, resourceMapper, ...)"
    )
    display_options: Optional[Dict[str, Any]] = Field(
        None,
        alias="displayOptions",
        description="Conditional visibility"
    )


class NodeCredential(BaseModel):
    """Credential requirement definition."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Credential type name")
    required: bool = Field(True, description="Is credential required?")
    display_name: Optional[str] = Field(None, alias="displayName")
    display_options: Optional[Dict[str, Any]] = Field(None, alias="displayOptions")


# ==============================================================================
# Load options / resource mapper results
# ==============================================================================

class NodePropertyOption(BaseModel):
    """One entry returned by a load-options method."""
    model_config = ConfigDict(extra="forbid")

    name: str
    value: Any
    description: Optional[str] = None


class ResourceMapperField(BaseModel):
    """A field discovered by a resource-mapping method."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str
    display_name: str = Field(..., alias="displayName")
    type: Literal["string", "number", "boolean", "dateTime", "array", "object"] = "string"
    required: bool = False
    default_match: bool = Field(False, alias="defaultMatch")
    can_be_used_to_match: bool = Field(True, alias="canBeUsedToMatch")
    display: bool = True
    description: Optional[str] = None


class ResourceMapperFields(BaseModel):
    """Result of a resource-mapping method."""
    fields: List[ResourceMapperField] = Field(default_factory=list)


# ==============================================================================
# NodeExecutionData - Output data format
# ==============================================================================

class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution output data.

    Format: {"json": {...}, "binary": {...}, "pairedItem": {"item": 0}}
    """
    json: Dict[str, Any]
    binary: Optional[Dict[str, Any]]
    pairedItem: Optional[Dict[str, int]]


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all Python node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "n8n-nodes-diro.diro")
    - version: Node version number
    - description: Node metadata dict
    - properties: Parameters and credentials
    - methods: Load-options and resource-mapping callbacks by name

    And implement execute() which processes input items.

    All execution is synchronous.

    Example:

        class TelegramNode(BaseNode):
            type = "n8n-nodes-base.telegram"
            version = 1

            description = {
                "displayName": "Telegram",
                "name": "telegram",
                "group": ["output"],
                "inputs": ["main"],
                "outputs": ["main"],
            }

            properties = {
                "parameters": [
                    {
                        "displayName": "Operation",
                        "name": "operation",
                        "type": "options",
                        "default": "sendMessage",
                        "options": [
                            {"name": "Send Message", "value": "sendMessage"},
                        ],
                    },
                ],
                "credentials": [{"name": "telegramApi", "required": True}],
            }

            def execute(self) -> List[List[NodeExecutionData]]:
                items = self.get_input_data()
                results = []
                for i, item in enumerate(items):
                    results.append({"json": {"result": "ok"}, "pairedItem": {"item": i}})
                return [results]  # Single output branch
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    version: int = 1

    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties: Dict[str, Any] = {
        "parameters": [],
        "credentials": [],
    }

    # {"loadOptions": {"getThings": "get_things"}, "resourceMapping": {...}}
    methods: Dict[str, Dict[str, str]] = {}

    # Continue processing other items if one fails
    continue_on_fail: bool = False

    def __init__(self) -> None:
        """Initialize node instance."""
        self.logger = logging.getLogger(f"node.{self.type}")
        self._context: Optional[NodeExecutionContext] = None

    @abstractmethod
    def execute(self) -> List[List[NodeExecutionData]]:
        """
        Execute node operation.

        Returns:
            List[List[NodeExecutionData]]: Nested list of execution results.
            - Outer list represents output branches (usually 1)
            - Inner list represents items in that branch

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError

    # ==== Context Management ====

    def set_context(self, context: "NodeExecutionContext") -> None:
        """Set the execution context."""
        self._context = context

    # ==== Helper methods for subclasses ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """
        Get parameter value.

        Args:
            name: Parameter name, dot notation reaches into collections
                  (e.g. "options.format")
            item_index: Index of item (for expression resolution)
            default: Default if not set
        """
        if self._context is None:
            return default
        return self._context.get_node_parameter(name, item_index, default)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """
        Get credentials by type name.

        Args:
            name: Credential type name (e.g., "diroApi")

        Returns:
            Credentials dict with decrypted values
        """
        if self._context is None:
            raise NodeOperationError("No context set", node=self)
        return self._context.get_credentials(name)

    def get_input_data(self) -> List[Dict[str, Any]]:
        """
        Get input items from previous node.

        Returns:
            List of input items, each with 'json' key.
        """
        if self._context is None:
            return []
        return self._context.get_input_data()

    # ==== Host callbacks ====

    def load_options(self, method_name: str) -> List[NodePropertyOption]:
        """Run a load-options method declared in ``methods["loadOptions"]``."""
        options = self._call_method("loadOptions", method_name)
        return [NodePropertyOption.model_validate(option) for option in options]

    def resource_mapping(self, method_name: str) -> ResourceMapperFields:
        """Run a resource-mapping method declared in ``methods["resourceMapping"]``."""
        return ResourceMapperFields.model_validate(
            self._call_method("resourceMapping", method_name)
        )

    def _call_method(self, kind: str, method_name: str) -> Any:
        attr = self.methods.get(kind, {}).get(method_name)
        if attr is None or not hasattr(self, attr):
            raise NodeOperationError(
                f"Node '{self.type}' has no {kind} method '{method_name}'",
                node=self,
            )
        return getattr(self, attr)()

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get full node definition for registration."""
        return {
            "type": cls.type,
            "version": cls.version,
            "description": cls.description,
            "properties": cls.properties,
            "methods": {kind: sorted(names) for kind, names in cls.methods.items()},
        }


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

_EXPRESSION_PATTERN = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")
_MISSING = object()


class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Parameters (with {{ $json.* }} expression resolution per item)
    - Credentials
    - Input data
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: List[Dict[str, Any]],
        workflow_id: Optional[str] = None,
        node_name: Optional[str] = None,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials
        self._input_data = input_data
        self.workflow_id = workflow_id
        self.node_name = node_name

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """Get parameter value, resolving expressions against the item."""
        value = self._get_nested_parameter(name)
        if value is _MISSING:
            return default
        return self._resolve(value, item_index, name)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """Get credentials by type name."""
        if name not in self._credentials:
            raise NodeOperationError(f"Credentials '{name}' not found")
        return self._credentials[name]

    def get_input_data(self) -> List[Dict[str, Any]]:
        """Get input items."""
        return self._input_data

    def _get_nested_parameter(self, name: str) -> Any:
        """
        Get parameter value supporting dot notation with array indexing.
        Examples: 'options.format', 'filters.templateId', 'values.0.name'
        """
        current: Any = self._parameters
        for key in name.split("."):
            if key.isdigit() and isinstance(current, list):
                index = int(key)
                if index >= len(current):
                    return _MISSING
                current = current[index]
            elif isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return _MISSING
        return current

    def _resolve(self, value: Any, item_index: int, name: str) -> Any:
        if isinstance(value, dict):
            return {k: self._resolve(v, item_index, name) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve(v, item_index, name) for v in value]
        if not (isinstance(value, str) and value.startswith("=")):
            return value

        template = value[1:]
        whole = _EXPRESSION_PATTERN.fullmatch(template.strip())
        if whole:
            return self._evaluate(whole.group(1), item_index, name)

        def substitute(match: re.Match) -> str:
            resolved = self._evaluate(match.group(1), item_index, name)
            return "" if resolved is None else str(resolved)

        return _EXPRESSION_PATTERN.sub(substitute, template)

    def _evaluate(self, expression: str, item_index: int, name: str) -> Any:
        if expression == "$index":
            return item_index
        if expression == "$json" or expression.startswith("$json."):
            item_json: Any = {}
            if 0 <= item_index < len(self._input_data):
                item_json = self._input_data[item_index].get("json", {})
            for key in expression.split(".")[1:]:
                if isinstance(item_json, dict):
                    item_json = item_json.get(key)
                elif isinstance(item_json, list) and key.isdigit() and int(key) < len(item_json):
                    item_json = item_json[int(key)]
                else:
                    return None
            return item_json
        raise NodeOperationError(
            f"Unsupported expression '{{{{ {expression} }}}}' in parameter '{name}'",
            item_index=item_index,
        )


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        item_index: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        self.description = description
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from external API call."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, node, description=description)
        self.status_code = status_code
        self.response_body = response_body


# ==============================================================================
# Exports
# ==============================================================================

__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    "NodePropertyOption",
    "ResourceMapperField",
    "ResourceMapperFields",
    "NodeOperationError",
    "NodeApiError",
]
