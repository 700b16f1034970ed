"""
Diro Node - Generate PDF/PNG documents from templates using the Diro API.

Resources and operations:
- document: generate, get, getMany, delete
- template: get, getMany
"""

from typing import Any, Dict, List, Optional

from src.node_sdk.basenode import BaseNode, NodeExecutionData, NodeOperationError
from src.observability import with_node_context

from .client import DiroClient
from .params import DiroRequest
from .responses import page_items, unwrap_single


CREDENTIAL_NAME = "diroApi"

# Diro field type -> resource mapper field type; None hides the field
FIELD_TYPES: Dict[str, Optional[str]] = {
    "number": "number",
    "integer": "number",
    "float": "number",
    "boolean": "boolean",
    "bool": "boolean",
    "date": "dateTime",
    "datetime": "dateTime",
    "array": None,
    "image": "string",
}


def _show_for(resource: str, operations: List[str]) -> Dict[str, Any]:
    return {"show": {"resource": [resource], "operation": operations}}


class DiroNode(BaseNode):
    """
    Diro document generation node.

    Array fields of a template are not offered in the resource mapper; they
    are supplied through the "Array Fields (JSON)" parameter instead.
    """

    type = "n8n-nodes-diro.diro"
    version = 1

    description = {
        "displayName": "Diro",
        "name": "diro",
        "icon": "file:diro.svg",
        "group": ["transform"],
        "version": 1,
        "subtitle": '={{$parameter["operation"] + ": " + $parameter["resource"]}}',
        "description": "Generate PDF/PNG documents from templates using Diro API",
        "defaults": {"name": "Diro"},
        "inputs": ["main"],
        "outputs": ["main"],
    }

    properties = {
        "parameters": [
            {
                "displayName": "Resource",
                "name": "resource",
                "type": "options",
                "noDataExpression": True,
                "options": [
                    {"name": "Document", "value": "document", "description": "Generate and manage documents"},
                    {"name": "Template", "value": "template", "description": "Manage document templates"},
                ],
                "default": "document",
            },
            {
                "displayName": "Operation",
                "name": "operation",
                "type": "options",
                "noDataExpression": True,
                "displayOptions": {"show": {"resource": ["document"]}},
                "options": [
                    {"name": "Generate", "value": "generate", "action": "Generate a document",
                     "description": "Generate a new document from a template"},
                    {"name": "Get", "value": "get", "action": "Get a document",
                     "description": "Get a document by ID"},
                    {"name": "Get Many", "value": "getMany", "action": "Get many documents",
                     "description": "Get many documents"},
                    {"name": "Delete", "value": "delete", "action": "Delete a document",
                     "description": "Delete a document"},
                ],
                "default": "generate",
            },
            {
                "displayName": "Operation",
                "name": "operation",
                "type": "options",
                "noDataExpression": True,
                "displayOptions": {"show": {"resource": ["template"]}},
                "options": [
                    {"name": "Get", "value": "get", "action": "Get a template",
                     "description": "Get a template by ID"},
                    {"name": "Get Many", "value": "getMany", "action": "Get many templates",
                     "description": "Get many templates"},
                ],
                "default": "getMany",
            },
            # Document: generate
            {
                "displayName": "Template",
                "name": "templateId",
                "type": "options",
                "required": True,
                "typeOptions": {"loadOptionsMethod": "getTemplates"},
                "displayOptions": _show_for("document", ["generate"]),
                "default": "",
                "description": "The template to use for document generation",
            },
            {
                "displayName": "Template Fields",
                "name": "templateFields",
                "type": "resourceMapper",
                "noDataExpression": True,
                "required": True,
                "displayOptions": _show_for("document", ["generate"]),
                "default": {"mappingMode": "defineBelow", "value": None},
                "typeOptions": {
                    "loadOptionsDependsOn": ["templateId"],
                    "resourceMapper": {
                        "resourceMapperMethod": "getTemplateFields",
                        "mode": "add",
                        "fieldWords": {"singular": "field", "plural": "fields"},
                        "addAllFields": True,
                        "multiKeyMatch": False,
                    },
                },
            },
            {
                "displayName": "Array Fields (JSON)",
                "name": "arrayFields",
                "type": "json",
                "default": "{}",
                "displayOptions": _show_for("document", ["generate"]),
                "description": (
                    'JSON object for array fields like lineItems. Example: '
                    '{"lineItems": [{"qty": 1, "description": "Item 1", "unitPrice": 100}]}'
                ),
            },
            {
                "displayName": "Options",
                "name": "options",
                "type": "collection",
                "placeholder": "Add Option",
                "default": {},
                "displayOptions": _show_for("document", ["generate"]),
                "options": [
                    {
                        "displayName": "Format",
                        "name": "format",
                        "type": "options",
                        "options": [
                            {"name": "PDF", "value": "pdf"},
                            {"name": "PNG", "value": "png"},
                        ],
                        "default": "pdf",
                        "description": "Output format for the generated document",
                    },
                    {
                        "displayName": "Width",
                        "name": "width",
                        "type": "number",
                        "default": 0,
                        "description": "Custom page width in pixels (0 to use template default)",
                    },
                    {
                        "displayName": "Height",
                        "name": "height",
                        "type": "number",
                        "default": 0,
                        "description": "Custom page height in pixels (0 to use template default)",
                    },
                ],
            },
            # Document: get / delete
            {
                "displayName": "Document ID",
                "name": "documentId",
                "type": "string",
                "required": True,
                "displayOptions": _show_for("document", ["get", "delete"]),
                "default": "",
                "description": "The ID of the document",
            },
            # Document / template: getMany
            {
                "displayName": "Return All",
                "name": "returnAll",
                "type": "boolean",
                "displayOptions": {"show": {"resource": ["document", "template"], "operation": ["getMany"]}},
                "default": False,
                "description": "Whether to return all results or only up to a given limit",
            },
            {
                "displayName": "Limit",
                "name": "limit",
                "type": "number",
                "displayOptions": {
                    "show": {
                        "resource": ["document", "template"],
                        "operation": ["getMany"],
                        "returnAll": [False],
                    },
                },
                "typeOptions": {"minValue": 1, "maxValue": 100},
                "default": 20,
                "description": "Max number of results to return",
            },
            {
                "displayName": "Filters",
                "name": "filters",
                "type": "collection",
                "placeholder": "Add Filter",
                "default": {},
                "displayOptions": _show_for("document", ["getMany"]),
                "options": [
                    {
                        "displayName": "Template ID",
                        "name": "templateId",
                        "type": "string",
                        "default": "",
                        "description": "Filter documents by template ID",
                    },
                ],
            },
            # Template: get
            {
                "displayName": "Template ID",
                "name": "templateId",
                "type": "string",
                "required": True,
                "displayOptions": _show_for("template", ["get"]),
                "default": "",
                "description": "The ID of the template",
            },
        ],
        "credentials": [{"name": CREDENTIAL_NAME, "required": True}],
    }

    methods = {
        "loadOptions": {"getTemplates": "get_templates"},
        "resourceMapping": {"getTemplateFields": "get_template_fields"},
    }

    def _client(self) -> DiroClient:
        return DiroClient.from_credentials(self.get_credentials(CREDENTIAL_NAME))

    def execute(self) -> List[List[NodeExecutionData]]:
        """Run the selected operation once per input item."""
        items = self.get_input_data()
        client = self._client()
        return_data: List[NodeExecutionData] = []

        for i in range(len(items)):
            try:
                request = DiroRequest.from_node(self, i)
                response = self._dispatch(client, request)

                if isinstance(response, list):
                    for record in response:
                        return_data.append({"json": record, "pairedItem": {"item": i}})
                else:
                    return_data.append({
                        "json": unwrap_single(response, request.operation),
                        "pairedItem": {"item": i},
                    })

            except Exception as e:
                self.logger.error(
                    f"Diro operation failed for item {i}: {e}",
                    extra=with_node_context(node_type=self.type, item_index=i),
                )
                if self.continue_on_fail:
                    return_data.append({"json": {"error": str(e)}, "pairedItem": {"item": i}})
                    continue
                raise

        return [return_data]

    def _dispatch(self, client: DiroClient, request: DiroRequest) -> Any:
        """Send the request; listings come back as a list of records."""
        if request.resource == "document":
            if request.operation == "generate":
                return client.generate_document(request.generate_body())
            if request.operation == "get":
                return client.get_document(request.document_id)
            if request.operation == "delete":
                return client.delete_document(request.document_id)
            if request.return_all:
                return client.get_all_documents(request.template_id)
            return _listing_items(client.list_documents(request.limit, request.template_id), "documents")

        if request.operation == "get":
            return client.get_template(request.template_id)
        if request.return_all:
            return client.get_all_templates()
        return _listing_items(client.list_templates(request.limit), "templates")

    # ==== Host callbacks ====

    def get_templates(self) -> List[Dict[str, Any]]:
        """Templates for the "Template" dropdown."""
        response = self._client().list_templates(100)
        templates = page_items(_data_of(response))

        options = []
        for template in templates:
            if not isinstance(template, dict) or template.get("id") is None:
                continue
            option = {"name": str(template.get("title") or template["id"]), "value": template["id"]}
            if template.get("description"):
                option["description"] = str(template["description"])
            options.append(option)
        return options

    def get_template_fields(self) -> Dict[str, Any]:
        """Resource mapper fields for the selected template."""
        template_id = self.get_node_parameter("templateId", 0, "")
        if not template_id:
            return {"fields": []}

        template = _data_of(self._client().get_template(template_id))

        fields = []
        for field in template.get("fields") or []:
            if not isinstance(field, dict) or not field.get("key"):
                continue
            field_type = str(field.get("type") or "string").lower()
            if field_type in FIELD_TYPES and FIELD_TYPES[field_type] is None:
                continue

            mapped = {
                "id": str(field["key"]),
                "displayName": str(field.get("label") or field["key"]),
                "type": FIELD_TYPES.get(field_type, "string"),
                "required": bool(field.get("required", False)),
                "defaultMatch": False,
                "canBeUsedToMatch": True,
                "display": True,
            }
            if field_type == "image":
                mapped["description"] = "Image URL"
            fields.append(mapped)

        return {"fields": fields}


def _data_of(response: Any) -> Dict[str, Any]:
    """The ``data`` object of a response, or the response itself."""
    if not isinstance(response, dict):
        raise NodeOperationError(f"Unexpected Diro API response: {response!r}")
    data = response.get("data")
    return data if isinstance(data, dict) else response


def _listing_items(response: Any, key: str) -> List[Any]:
    data = response.get("data") if isinstance(response, dict) else None
    items = data.get(key) if isinstance(data, dict) else None
    return list(items or [])


__all__ = ["DiroNode", "FIELD_TYPES", "CREDENTIAL_NAME"]
