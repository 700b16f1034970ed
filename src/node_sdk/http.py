"""
HTTP Client - Timeout-bounded HTTP requests for nodes.

Every request carries a timeout. The client joins a base URL with the
endpoint, injects bearer or API-key headers, and maps transport failures
onto HttpApiError / NodeTimeoutError so nodes see one error family.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import Timeout, RequestException

from src.config import get_settings


logger = logging.getLogger(__name__)

# Fallback when neither the caller nor settings provide one
DEFAULT_TIMEOUT = 30

# Response bodies are cut to this length inside error objects
BODY_EXCERPT_LENGTH = 1000


class NodeTimeoutError(Exception):
    """Raised when an HTTP request times out."""

    def __init__(self, message: str, timeout: float, url: str):
        self.timeout = timeout
        self.url = url
        super().__init__(message)


class HttpApiError(Exception):
    """Non-2xx response or transport failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.method = method
        super().__init__(message)


class HttpResponse:
    """
    Wrapper for HTTP response with convenient accessors.
    """

    def __init__(self, response: requests.Response, method: Optional[str] = None):
        self._response = response
        self._method = method

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    @property
    def text(self) -> str:
        return self._response.text

    @property
    def content(self) -> bytes:
        return self._response.content

    @property
    def is_empty(self) -> bool:
        """True for 204 responses and blank bodies."""
        return self.status_code == 204 or not self.content.strip()

    def json(self) -> Any:
        """Parse response as JSON."""
        return self._response.json()

    @property
    def ok(self) -> bool:
        """True if status code is 2xx."""
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> None:
        """Raise HttpApiError if status code indicates error."""
        if self.ok:
            return
        method = self._method
        if method is None and self._response.request is not None:
            method = self._response.request.method
        raise HttpApiError(
            message=f"HTTP {self.status_code}: {self._response.reason}",
            status_code=self.status_code,
            response_body=self.text[:BODY_EXCERPT_LENGTH] if self.text else None,
            url=str(self._response.url),
            method=method,
        )


class HttpClient:
    """
    HTTP client with timeout enforcement and credential injection.

    Usage:
        client = HttpClient(base_url="https://www.getdiro.com", bearer_token="diro_...")
        response = client.get("/api/v1/templates", params={"limit": 10})
        response.raise_for_status()
        data = response.json()
    """

    def __init__(
        self,
        base_url: str = "",
        default_headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        bearer_token: Optional[str] = None,
        api_key: Optional[str] = None,
        api_key_header: str = "X-API-Key",
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Base URL for all requests
            default_headers: Headers to include in all requests
            timeout: Timeout in seconds, defaults to settings.http_timeout_s
            bearer_token: Bearer token for Authorization header
            api_key: API key value
            api_key_header: Header name for API key
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or get_settings().http_timeout_s or DEFAULT_TIMEOUT

        self.headers: Dict[str, str] = {"Accept": "application/json"}
        self.headers.update(default_headers or {})

        if bearer_token:
            self.headers["Authorization"] = f"Bearer {bearer_token}"

        if api_key:
            self.headers[api_key_header] = api_key

    def build_url(self, endpoint: str) -> str:
        if not self.base_url:
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Union[Dict[str, Any], str, bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make HTTP request with timeout enforcement.

        Args:
            method: HTTP method (GET, POST, DELETE, ...)
            endpoint: URL path appended to base_url
            params: Query parameters
            json: JSON body (auto-serialized)
            data: Form data or raw body
            headers: Additional headers (merged with defaults)
            timeout: Override default timeout

        Returns:
            HttpResponse wrapper (status not checked)

        Raises:
            NodeTimeoutError: If request times out
            HttpApiError: If the request could not be sent
        """
        url = self.build_url(endpoint)
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = timeout or self.timeout

        logger.debug("HTTP %s %s params=%s", method, url, params)

        try:
            response = requests.request(
                method=method,
                url=url,
                params=params,
                json=json,
                data=data,
                headers=request_headers,
                timeout=request_timeout,
            )
        except Timeout as e:
            raise NodeTimeoutError(
                message=f"Request timed out after {request_timeout}s",
                timeout=request_timeout,
                url=url,
            ) from e
        except RequestException as e:
            raise HttpApiError(
                message=f"Request failed: {e}",
                url=url,
                method=method,
            ) from e

        logger.debug("HTTP %s %s -> %s", method, url, response.status_code)
        return HttpResponse(response, method=method)

    def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make GET request."""
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Union[Dict[str, Any], str, bytes]] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make POST request."""
        return self.request("POST", endpoint, json=json, data=data, **kwargs)

    def delete(
        self,
        endpoint: str,
        **kwargs: Any,
    ) -> HttpResponse:
        """Make DELETE request."""
        return self.request("DELETE", endpoint, **kwargs)
