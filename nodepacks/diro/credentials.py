"""
Diro API credential: API key sent as a bearer token.
"""
from typing import Any, Dict

from src.config.settings import DEFAULT_BASE_URL
from src.node_sdk.credentials import BaseCredential
from src.node_sdk.http import HttpApiError, HttpClient, NodeTimeoutError

from .client import TEMPLATES_ENDPOINT


class DiroApiCredential(BaseCredential):
    """Diro API credential implementation"""

    name = "diroApi"
    display_name = "Diro API"
    documentation_url = "https://www.getdiro.com/docs/authentication"
    properties = [
        {
            "name": "apiKey",
            "displayName": "API Key",
            "type": "string",
            "typeOptions": {"password": True},
            "default": "",
            "required": True,
            "description": 'API Key from Diro Dashboard. Starts with "diro_".',
        },
        {
            "name": "baseUrl",
            "displayName": "Base URL",
            "type": "string",
            "default": DEFAULT_BASE_URL,
            "description": "Base URL for the Diro API. Change only for self-hosted instances.",
        },
    ]
    authenticate = {
        "type": "generic",
        "properties": {
            "headers": {"Authorization": "=Bearer {{$credentials.apiKey}}"},
        },
    }

    def test(self) -> Dict[str, Any]:
        """
        Test the key by listing templates.

        Returns:
            Dictionary with test results (success, message)
        """
        validation = self.validate()
        if not validation["valid"]:
            return {"success": False, "message": validation["message"]}

        base_url = self.data.get("baseUrl") or DEFAULT_BASE_URL
        client = HttpClient(base_url=base_url, default_headers=self.get_auth_headers())

        try:
            response = client.get(TEMPLATES_ENDPOINT)
        except NodeTimeoutError:
            return {
                "success": False,
                "message": "Connection timeout. Please check your network or base URL.",
            }
        except HttpApiError as e:
            return {"success": False, "message": f"Connection error: {e}"}

        if response.ok:
            return {"success": True, "message": f"Successfully connected to Diro at {base_url}"}
        if response.status_code == 401:
            return {"success": False, "message": "Invalid API key. Please check your Diro API key."}
        if response.status_code == 403:
            return {"success": False, "message": "Access forbidden. Check the API key permissions."}
        return {
            "success": False,
            "message": f"Diro API error: {response.status_code} - {response.text[:200]}",
        }

    def get_auth_headers(self) -> Dict[str, str]:
        """Get authentication headers for Diro API requests"""
        api_key = self.data.get("apiKey")
        if not api_key:
            raise ValueError("API key not found in credentials")
        return {"Authorization": f"Bearer {api_key}"}


__all__ = ["DiroApiCredential"]
