"""Tests for node pack discovery, registration and execution."""
from unittest.mock import Mock, patch

import pytest
from pydantic import ValidationError

from conftest import listing
from nodepacks.diro import MANIFEST, register_nodes
from nodepacks.diro.credentials import DiroApiCredential
from nodepacks.diro.nodes import DiroNode
from src.node_registry import NODE_PACK_ENTRY_POINT, NodeRegistry


@pytest.fixture
def registry():
    registry = NodeRegistry()
    registry.register_pack(*register_nodes())
    return registry


class TestRegistration:
    """Test pack registration and definitions."""

    def test_manifest(self):
        assert MANIFEST.nodes == ["n8n-nodes-diro.diro"]
        assert MANIFEST.credentials == ["diroApi"]

    def test_register_pack(self, registry):
        assert "n8n-nodes-diro.diro" in registry
        assert len(registry) == 1
        assert registry.get_node_class("n8n-nodes-diro.diro") is DiroNode
        assert registry.get_credential_class("diroApi") is DiroApiCredential
        assert [p.name for p in registry.list_packs()] == ["n8n-nodes-diro"]

    def test_node_definition(self, registry):
        definition = registry.get_node("n8n-nodes-diro.diro")

        assert definition.display_name == "Diro"
        assert definition.node_pack == "n8n-nodes-diro"
        assert definition.node_class == "nodepacks.diro.nodes.DiroNode"
        assert definition.credentials == [{"name": "diroApi", "required": True}]
        assert definition.load_options_methods == ["getTemplates"]
        assert definition.resource_mapping_methods == ["getTemplateFields"]
        assert "templateFields" in {p["name"] for p in definition.parameters}

    def test_credential_definition(self, registry):
        definition = registry.get_credential("diroApi")

        assert definition.display_name == "Diro API"
        assert definition.auth_type == "generic"
        assert definition.credential_pack == "n8n-nodes-diro"
        assert [c.name for c in registry.list_credentials()] == ["diroApi"]

    def test_malformed_parameter_rejected(self):
        class BrokenNode(DiroNode):
            type = "test.broken"
            properties = {"parameters": [{"name": "x", "displayName": "X", "type": "slider"}]}

        with pytest.raises(ValidationError):
            NodeRegistry().register_node(BrokenNode)

    def test_create_unknown_node(self, registry):
        assert registry.create_node("n8n-nodes-base.nope") is None


class TestDiscovery:
    """Test entry-point discovery."""

    def entry_point(self, name, loader):
        ep = Mock()
        ep.name = name
        ep.load.return_value = loader
        return ep

    def test_discovers_diro_pack(self):
        with patch("src.node_registry.registry.entry_points",
                   return_value=[self.entry_point("diro", register_nodes)]) as mock_eps:
            registry = NodeRegistry()
            count = registry.discover_entry_points()

        mock_eps.assert_called_once_with(group=NODE_PACK_ENTRY_POINT)
        assert count == 1
        assert registry.has_node("n8n-nodes-diro.diro")
        assert registry.get_credential("diroApi") is not None

    def test_broken_pack_does_not_hide_others(self):
        broken = self.entry_point("broken", Mock(side_effect=RuntimeError("boom")))
        with patch("src.node_registry.registry.entry_points",
                   return_value=[broken, self.entry_point("diro", register_nodes)]):
            registry = NodeRegistry()
            count = registry.discover_entry_points()

        assert count == 1
        assert registry.list_node_types() == ["n8n-nodes-diro.diro"]

    def test_plain_dict_result(self):
        loader = Mock(return_value={DiroNode.type: DiroNode})
        with patch("src.node_registry.registry.entry_points",
                   return_value=[self.entry_point("loose", loader)]):
            registry = NodeRegistry()
            registry.discover_entry_points()

        assert registry.get_node(DiroNode.type).node_pack == "loose"

    def test_discovery_runs_once(self):
        with patch("src.node_registry.registry.entry_points", return_value=[]) as mock_eps:
            registry = NodeRegistry()
            registry.discover_entry_points()
            registry.discover_entry_points()

        assert mock_eps.call_count == 1


class TestExecution:
    """Test running nodes and host callbacks through the registry."""

    def test_execute_node(self, registry, fake_diro, diro_credentials):
        fake_diro.add("GET", "/api/v1/templates", listing("templates", [{"id": "tpl_1"}], 1))

        result = registry.execute_node(
            "n8n-nodes-diro.diro",
            parameters={"resource": "template", "operation": "getMany"},
            credentials=diro_credentials,
        )

        assert result == [[{"json": {"id": "tpl_1"}, "pairedItem": {"item": 0}}]]

    def test_execute_node_continue_on_fail(self, registry, fake_diro, diro_credentials):
        fake_diro.add("GET", "/api/v1/documents/x", {"error": "gone"}, status=404)

        result = registry.execute_node(
            "n8n-nodes-diro.diro",
            parameters={"resource": "document", "operation": "get", "documentId": "x"},
            credentials=diro_credentials,
            input_data=[{"json": {}}],
            continue_on_fail=True,
        )

        assert result[0][0]["json"] == {"error": "HTTP 404: Not Found"}

    def test_execute_unknown_node(self, registry):
        with pytest.raises(ValueError, match="Unknown node type"):
            registry.execute_node("n8n-nodes-base.nope", {}, {})

    def test_load_options(self, registry, fake_diro, diro_credentials):
        fake_diro.add("GET", "/api/v1/templates", listing("templates", [{"id": "t", "title": "T"}], 1))

        options = registry.load_options("n8n-nodes-diro.diro", "getTemplates", {}, diro_credentials)

        assert options[0].name == "T"

    def test_resource_mapping(self, registry, fake_diro, diro_credentials):
        fake_diro.add("GET", "/api/v1/templates/t", {"data": {"fields": [{"key": "k"}]}})

        result = registry.resource_mapping(
            "n8n-nodes-diro.diro", "getTemplateFields", {"templateId": "t"}, diro_credentials
        )

        assert result.fields[0].id == "k"

    def test_test_credential(self, registry, fake_diro, diro_credentials):
        fake_diro.add("GET", "/api/v1/templates", {"data": {"templates": []}})

        result = registry.test_credential("diroApi", diro_credentials["diroApi"])

        assert result["success"] is True

    def test_test_unknown_credential(self, registry):
        result = registry.test_credential("slackApi", {})

        assert result == {"success": False, "message": "Unknown credential type: slackApi"}
