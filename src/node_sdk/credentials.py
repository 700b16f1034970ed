"""
Base credential class that all credential types inherit from.
"""
from typing import Any, ClassVar, Dict, List, Optional


class BaseCredential:
    """Base class for all credential types"""

    # Class variables to be overridden by subclasses
    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    documentation_url: ClassVar[Optional[str]] = None
    properties: ClassVar[List[Dict[str, Any]]] = []
    # How the host injects the secret, e.g.
    # {"type": "generic", "properties": {"headers": {"Authorization": "=Bearer {{$credentials.apiKey}}"}}}
    authenticate: ClassVar[Dict[str, Any]] = {}

    def __init__(self, data: Dict[str, Any], client_id: Optional[str] = None):
        """
        Initialize with credential data

        Args:
            data: Dictionary containing credential values
            client_id: Optional client identifier
        """
        self.data = {**self.defaults(), **(data or {})}
        self.client_id = client_id

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        """Default values declared on the properties."""
        return {
            prop["name"]: prop["default"]
            for prop in cls.properties
            if prop.get("default") not in (None, "")
        }

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get the credential type definition for registration"""
        return {
            "name": cls.name,
            "display_name": cls.display_name,
            "documentation_url": cls.documentation_url,
            "properties": cls.properties,
            "authenticate": cls.authenticate,
        }

    def test(self) -> Dict[str, Any]:
        """
        Test if the credential is valid

        Returns:
            Dictionary with test results (success, message)
        """
        raise NotImplementedError("Test method not implemented")

    def validate(self) -> Dict[str, Any]:
        """
        Validate that all required properties are provided

        Returns:
            Dictionary with validation results
        """
        missing_fields = [
            prop["name"]
            for prop in self.properties
            if prop.get("required", False) and not self.data.get(prop["name"])
        ]

        if missing_fields:
            return {
                "valid": False,
                "message": f"Missing required fields: {', '.join(missing_fields)}"
            }

        return {"valid": True}
