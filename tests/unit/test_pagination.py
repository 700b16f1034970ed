"""Tests for offset pagination over listing endpoints."""
from unittest.mock import Mock

import pytest

from nodepacks.diro.pagination import MAX_PAGE_SIZE, get_all_results


def page(key, items, total):
    return {"data": {key: items, "pagination": {"total": total}}}


class TestGetAllResults:
    """Test get_all_results()."""

    def test_concatenates_pages_in_order(self):
        """250 documents arrive in three requests with offsets 0, 100, 200."""
        records = [{"id": n} for n in range(250)]
        fetch = Mock(side_effect=[
            page("documents", records[0:100], 250),
            page("documents", records[100:200], 250),
            page("documents", records[200:250], 250),
        ])

        result = get_all_results(fetch, "/api/v1/documents")

        assert result == records
        assert fetch.call_count == 3
        offsets = [call.args[1]["offset"] for call in fetch.call_args_list]
        assert offsets == [0, 100, 200]
        assert all(call.args[1]["limit"] == 100 for call in fetch.call_args_list)

    def test_single_request_when_everything_fits(self):
        fetch = Mock(return_value=page("templates", [{"id": "t1"}, {"id": "t2"}], 2))

        result = get_all_results(fetch, "/api/v1/templates")

        assert result == [{"id": "t1"}, {"id": "t2"}]
        fetch.assert_called_once_with("/api/v1/templates", {"limit": 100, "offset": 0})

    def test_empty_first_page_stops_even_with_large_total(self):
        fetch = Mock(return_value=page("documents", [], 1000))

        assert get_all_results(fetch, "/api/v1/documents") == []
        assert fetch.call_count == 1

    def test_zero_total_stops_after_first_page(self):
        """A missing or zero total ends paging right after the first page."""
        fetch = Mock(return_value={"data": {"documents": [{"id": "d1"}]}})

        assert get_all_results(fetch, "/api/v1/documents") == [{"id": "d1"}]
        assert fetch.call_count == 1

    def test_stops_on_empty_page_before_total(self):
        """Server over-reports total; paging stops at the first empty page."""
        fetch = Mock(side_effect=[
            page("documents", [{"id": n} for n in range(100)], 500),
            page("documents", [], 500),
        ])

        result = get_all_results(fetch, "/api/v1/documents")

        assert len(result) == 100
        assert fetch.call_count == 2

    def test_base_query_sent_with_every_page(self):
        fetch = Mock(side_effect=[
            page("documents", [{"id": n} for n in range(100)], 150),
            page("documents", [{"id": n} for n in range(100, 150)], 150),
        ])

        get_all_results(fetch, "/api/v1/documents", {"templateId": "tpl_1"})

        for call in fetch.call_args_list:
            assert call.args[1]["templateId"] == "tpl_1"

    def test_documents_preferred_over_templates(self):
        fetch = Mock(return_value={
            "data": {"documents": [{"id": "d"}], "templates": [{"id": "t"}], "pagination": {"total": 1}}
        })

        assert get_all_results(fetch, "/api/v1/documents") == [{"id": "d"}]

    def test_string_total_is_coerced(self):
        fetch = Mock(side_effect=[
            page("documents", [{"id": n} for n in range(100)], "150"),
            page("documents", [{"id": n} for n in range(100, 150)], "150"),
        ])

        assert len(get_all_results(fetch, "/api/v1/documents")) == 150
        assert fetch.call_count == 2

    @pytest.mark.parametrize("pagination", [{"total": "many"}, {"total": None}, [], "x"])
    def test_unreadable_total_stops_after_first_page(self, pagination):
        fetch = Mock(return_value={"data": {"documents": [{"id": "d1"}], "pagination": pagination}})

        assert get_all_results(fetch, "/api/v1/documents") == [{"id": "d1"}]
        assert fetch.call_count == 1

    def test_missing_data_yields_nothing(self):
        fetch = Mock(return_value={"success": True})

        assert get_all_results(fetch, "/api/v1/templates") == []
        assert fetch.call_count == 1

    def test_custom_page_size(self):
        fetch = Mock(side_effect=[
            page("templates", [{"id": 1}, {"id": 2}], 3),
            page("templates", [{"id": 3}], 3),
        ])

        result = get_all_results(fetch, "/api/v1/templates", page_size=2)

        assert [r["id"] for r in result] == [1, 2, 3]
        assert [c.args[1]["offset"] for c in fetch.call_args_list] == [0, 2]

    @pytest.mark.parametrize("page_size", [0, MAX_PAGE_SIZE + 1])
    def test_page_size_bounds(self, page_size):
        with pytest.raises(ValueError):
            get_all_results(Mock(), "/api/v1/templates", page_size=page_size)
