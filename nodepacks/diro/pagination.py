"""
Offset pagination over Diro listing endpoints.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .responses import page_items, page_total


logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

# (endpoint, query) -> decoded JSON body
FetchPage = Callable[[str, Dict[str, Any]], Any]


def get_all_results(
    fetch: FetchPage,
    endpoint: str,
    query: Optional[Dict[str, Any]] = None,
    page_size: int = MAX_PAGE_SIZE,
) -> List[Any]:
    """
    Fetch every page of a listing and return the items in server order.

    At least one page is requested. Paging stops once ``offset`` reaches the
    reported ``pagination.total`` or a page comes back empty.

    Args:
        fetch: Authenticated GET returning the decoded body
        endpoint: Listing path, e.g. "/api/v1/documents"
        query: Filters sent with every page
        page_size: Items per request (1..100)
    """
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

    results: List[Any] = []
    offset = 0

    while True:
        response = fetch(endpoint, {**(query or {}), "limit": page_size, "offset": offset})
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, dict):
            data = {}

        items = page_items(data)
        results.extend(items)

        total = page_total(data)
        offset += page_size

        logger.debug(
            "Fetched page of %s: %d items, offset=%d, total=%d",
            endpoint, len(items), offset, total,
        )

        if offset >= total or not items:
            break

    return results


__all__ = ["get_all_results", "MAX_PAGE_SIZE"]
