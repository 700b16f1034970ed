"""Tests for response decoding and single-item unwrapping."""
import pytest

from nodepacks.diro.errors import ResponseShapeError
from nodepacks.diro.responses import ListPage, SingleItem, decode_response, unwrap_single
from src.node_sdk.basenode import NodeApiError


class TestDecodeResponse:
    """Test decode_response()."""

    def test_data_object_is_unwrapped(self):
        decoded = decode_response({"success": True, "data": {"id": "doc_1", "url": "https://x"}})

        assert decoded == SingleItem(payload={"id": "doc_1", "url": "https://x"})

    def test_payload_without_data_is_the_item(self):
        payload = {"id": "doc_1"}

        assert decode_response(payload) == SingleItem(payload=payload)

    def test_non_object_data_keeps_whole_payload(self):
        payload = {"success": True, "data": None}

        assert decode_response(payload) == SingleItem(payload=payload)

    def test_documents_listing(self):
        decoded = decode_response(
            {"data": {"documents": [{"id": 1}], "pagination": {"total": 7}}}
        )

        assert decoded == ListPage(items=[{"id": 1}], total=7)

    def test_templates_listing(self):
        decoded = decode_response(
            {"data": {"templates": [{"id": "t"}], "pagination": {"total": 1}}}
        )

        assert isinstance(decoded, ListPage)
        assert decoded.items == [{"id": "t"}]

    def test_documents_without_pagination_is_single(self):
        """A document that happens to have a 'documents' key is still one item."""
        payload = {"data": {"id": "bundle", "documents": ["a", "b"]}}

        assert isinstance(decode_response(payload), SingleItem)

    @pytest.mark.parametrize("payload", [[], "text", 42, None])
    def test_non_object_payload_rejected(self, payload):
        with pytest.raises(ResponseShapeError):
            decode_response(payload)


class TestUnwrapSingle:
    """Test unwrap_single()."""

    def test_returns_inner_data(self):
        assert unwrap_single({"data": {"id": "d1"}}, "get") == {"id": "d1"}

    def test_delete_success_marker(self):
        assert unwrap_single({"success": True}, "delete") == {"success": True}

    def test_generate_listing_points_at_server_misconfiguration(self):
        payload = {"data": {"documents": [], "pagination": {"total": 0}}}

        with pytest.raises(ResponseShapeError) as exc_info:
            unwrap_single(payload, "generate")

        error = exc_info.value
        assert error.message == "Unexpected API response format"
        assert error.status_code == 500
        assert "processed as a GET" in error.description
        assert error.payload == payload

    def test_other_operations_get_generic_message(self):
        with pytest.raises(ResponseShapeError, match="Received unexpected list response") as exc_info:
            unwrap_single({"data": {"documents": [], "pagination": {}}}, "get")

        assert "'get'" in exc_info.value.description

    def test_shape_error_is_api_error(self):
        with pytest.raises(NodeApiError):
            unwrap_single({"data": {"templates": [], "pagination": {}}}, "get")
