"""
Typed request parameters for the Diro node.

DiroRequest is built once per input item from the node parameters and is
fully validated at construction, so no HTTP call is made for an item whose
parameters are unusable.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.node_sdk.basenode import NodeOperationError

from .errors import DiroValidationError

if TYPE_CHECKING:
    from src.node_sdk.basenode import BaseNode


OPERATIONS = {
    "document": ("generate", "get", "getMany", "delete"),
    "template": ("get", "getMany"),
}

DEFAULT_LIMIT = 20


class DiroRequest(BaseModel):
    """One validated Diro operation."""

    model_config = ConfigDict(frozen=True)

    resource: Literal["document", "template"]
    operation: Literal["generate", "get", "getMany", "delete"]

    template_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    format: Optional[Literal["pdf", "png"]] = None
    width: Optional[Union[int, float]] = None
    height: Optional[Union[int, float]] = None

    document_id: Optional[str] = None

    return_all: bool = False
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=100)

    @model_validator(mode="after")
    def check_required_fields(self) -> "DiroRequest":
        if self.operation not in OPERATIONS[self.resource]:
            raise ValueError(f"Unknown operation: {self.operation}")

        if self.resource == "document":
            if self.operation == "generate":
                if not self.template_id:
                    raise ValueError("Template ID is required to generate a document")
                if not self.data:
                    raise ValueError("No template data provided")
            elif self.operation in ("get", "delete") and not self.document_id:
                raise ValueError("Document ID is required")
        elif self.operation == "get" and not self.template_id:
            raise ValueError("Template ID is required")
        return self

    @classmethod
    def from_node(cls, node: "BaseNode", item_index: int) -> "DiroRequest":
        """
        Read and validate the parameters of one item.

        Raises:
            NodeOperationError: Unknown resource or operation
            DiroValidationError: Missing ids, bad JSON or empty generate data
        """
        resource = node.get_node_parameter("resource", item_index, "document")
        if resource not in OPERATIONS:
            raise NodeOperationError(
                f"Unknown resource: {resource}", node=node, item_index=item_index
            )

        default_operation = "generate" if resource == "document" else "getMany"
        operation = node.get_node_parameter("operation", item_index, default_operation)
        if operation not in OPERATIONS[resource]:
            raise NodeOperationError(
                f"Unknown operation: {operation}", node=node, item_index=item_index
            )

        fields: Dict[str, Any] = {"resource": resource, "operation": operation}

        if resource == "document" and operation == "generate":
            fields["template_id"] = node.get_node_parameter("templateId", item_index, "")
            fields["data"] = build_template_data(
                node.get_node_parameter("templateFields", item_index, {}),
                node.get_node_parameter("arrayFields", item_index, "{}"),
                node=node,
                item_index=item_index,
            )
            if not fields["data"]:
                raise DiroValidationError(
                    "No template data provided",
                    node=node,
                    item_index=item_index,
                    description=(
                        "Please provide at least one field value in Template Fields "
                        "or Array Fields. Cannot generate document with empty data."
                    ),
                )
            options = node.get_node_parameter("options", item_index, {}) or {}
            fields["format"] = options.get("format") or None
            fields["width"] = options.get("width") or None
            fields["height"] = options.get("height") or None

        elif operation in ("get", "delete"):
            if resource == "document":
                fields["document_id"] = node.get_node_parameter("documentId", item_index, "")
            else:
                fields["template_id"] = node.get_node_parameter("templateId", item_index, "")

        elif operation == "getMany":
            fields["return_all"] = bool(node.get_node_parameter("returnAll", item_index, False))
            if not fields["return_all"]:
                fields["limit"] = node.get_node_parameter("limit", item_index, DEFAULT_LIMIT)
            if resource == "document":
                filters = node.get_node_parameter("filters", item_index, {}) or {}
                fields["template_id"] = filters.get("templateId") or None

        try:
            return cls(**fields)
        except ValidationError as e:
            raise DiroValidationError(
                _first_error_message(e), node=node, item_index=item_index
            ) from e

    def generate_body(self) -> Dict[str, Any]:
        """Request body for POST /api/v1/documents."""
        body: Dict[str, Any] = {"templateId": self.template_id, "data": dict(self.data)}
        if self.format:
            body["format"] = self.format
        if self.width and self.width > 0:
            body["width"] = self.width
        if self.height and self.height > 0:
            body["height"] = self.height
        return body


def build_template_data(
    template_fields: Any,
    array_fields: Any,
    node: Optional["BaseNode"] = None,
    item_index: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Merge resource-mapper values with the Array Fields JSON object.

    Empty mapper values (None, "") are dropped. Array Fields keys win.
    """
    mapped = (template_fields or {}).get("value") if isinstance(template_fields, dict) else None
    data = {
        key: value
        for key, value in (mapped or {}).items()
        if value is not None and value != ""
    }

    if isinstance(array_fields, str):
        if array_fields.strip() and array_fields.strip() != "{}":
            try:
                array_fields = json.loads(array_fields)
            except json.JSONDecodeError as e:
                raise DiroValidationError(
                    "Invalid JSON in Array Fields",
                    node=node,
                    item_index=item_index,
                    description="Please provide valid JSON for array fields",
                ) from e
        else:
            array_fields = {}

    if array_fields is None:
        array_fields = {}
    if not isinstance(array_fields, dict):
        raise DiroValidationError(
            "Invalid JSON in Array Fields",
            node=node,
            item_index=item_index,
            description="Array fields must be a JSON object, e.g. {\"lineItems\": [...]}",
        )

    data.update(array_fields)
    return data


def _first_error_message(error: ValidationError) -> str:
    first = error.errors()[0]
    if first["type"] == "value_error":
        # "Value error, <message>"
        return str(first.get("ctx", {}).get("error", first["msg"]))
    location = ".".join(str(part) for part in first["loc"])
    return f"Invalid parameter '{location}': {first['msg']}"


__all__ = ["DiroRequest", "build_template_data", "OPERATIONS", "DEFAULT_LIMIT"]
