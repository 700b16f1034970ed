"""
Diro REST API client.

Thin layer over HttpClient: one method per endpoint, JSON bodies in and
out. HTTP and transport errors are not caught here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from src.config.settings import DEFAULT_BASE_URL
from src.node_sdk.basenode import NodeApiError
from src.node_sdk.http import HttpClient

from .pagination import MAX_PAGE_SIZE, get_all_results


logger = logging.getLogger(__name__)

TEMPLATES_ENDPOINT = "/api/v1/templates"
DOCUMENTS_ENDPOINT = "/api/v1/documents"


class DiroClient:
    """
    Client for the Diro document generation API.

    Usage:
        client = DiroClient.from_credentials({"apiKey": "diro_...", "baseUrl": "https://www.getdiro.com"})
        templates = client.get_all_templates()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
        page_size: int = MAX_PAGE_SIZE,
    ):
        self.http = HttpClient(
            base_url=base_url or DEFAULT_BASE_URL,
            bearer_token=api_key,
            timeout=timeout,
        )
        self.page_size = page_size

    @classmethod
    def from_credentials(cls, credentials: Dict[str, Any], **kwargs: Any) -> "DiroClient":
        return cls(
            api_key=credentials.get("apiKey", ""),
            base_url=credentials.get("baseUrl") or DEFAULT_BASE_URL,
            **kwargs,
        )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        response = self.http.request(method, endpoint, params=params, json=body)
        response.raise_for_status()

        if response.is_empty:
            return {"success": True}

        try:
            return response.json()
        except ValueError as e:
            raise NodeApiError(
                "Diro API returned a non-JSON response",
                status_code=response.status_code,
                response_body=response.text[:1000],
            ) from e

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", endpoint, params=params)

    # ==== Templates ====

    def list_templates(self, limit: int) -> Any:
        return self._get(TEMPLATES_ENDPOINT, {"limit": limit})

    def get_all_templates(self) -> List[Any]:
        return get_all_results(self._get, TEMPLATES_ENDPOINT, {}, self.page_size)

    def get_template(self, template_id: str) -> Any:
        return self._get(f"{TEMPLATES_ENDPOINT}/{template_id}")

    # ==== Documents ====

    def list_documents(self, limit: int, template_id: Optional[str] = None) -> Any:
        params: Dict[str, Any] = {"limit": limit}
        if template_id:
            params["templateId"] = template_id
        return self._get(DOCUMENTS_ENDPOINT, params)

    def get_all_documents(self, template_id: Optional[str] = None) -> List[Any]:
        query = {"templateId": template_id} if template_id else {}
        return get_all_results(self._get, DOCUMENTS_ENDPOINT, query, self.page_size)

    def get_document(self, document_id: str) -> Any:
        return self._get(f"{DOCUMENTS_ENDPOINT}/{document_id}")

    def generate_document(self, body: Dict[str, Any]) -> Any:
        logger.info("Generating document from template %s", body.get("templateId"))
        return self._request("POST", DOCUMENTS_ENDPOINT, body=body)

    def delete_document(self, document_id: str) -> Any:
        return self._request("DELETE", f"{DOCUMENTS_ENDPOINT}/{document_id}")


__all__ = ["DiroClient", "TEMPLATES_ENDPOINT", "DOCUMENTS_ENDPOINT"]
