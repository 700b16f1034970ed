"""
Decoding of Diro API responses.

Every response is decoded into one of two variants before a node looks at
it: a SingleItem (one document or template) or a ListPage (one page of a
listing). Operations that expect one item call unwrap_single(), which turns
a ListPage into a ResponseShapeError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from .errors import ResponseShapeError


LIST_KEYS = ("documents", "templates")


@dataclass(frozen=True)
class SingleItem:
    payload: Dict[str, Any]


@dataclass(frozen=True)
class ListPage:
    items: List[Any] = field(default_factory=list)
    total: int = 0


DecodedResponse = Union[SingleItem, ListPage]


def page_items(data: Dict[str, Any]) -> List[Any]:
    """Items of a listing page: ``documents``, else ``templates``, else none."""
    for key in LIST_KEYS:
        items = data.get(key)
        if items is not None:
            return list(items)
    return []


def page_total(data: Dict[str, Any]) -> int:
    """``pagination.total`` as an int; 0 when missing or unreadable."""
    pagination = data.get("pagination")
    if not isinstance(pagination, dict):
        return 0
    try:
        return int(pagination.get("total") or 0)
    except (TypeError, ValueError):
        return 0


def is_listing(candidate: Dict[str, Any]) -> bool:
    return "pagination" in candidate and any(key in candidate for key in LIST_KEYS)


def decode_response(payload: Any) -> DecodedResponse:
    """
    Decode a response body.

    A top-level ``data`` object is unwrapped first. The candidate is a
    ListPage when it holds ``pagination`` together with ``documents`` or
    ``templates``; otherwise it is a SingleItem.

    Raises:
        ResponseShapeError: If the payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise ResponseShapeError(
            f"Expected a JSON object from the Diro API, got {type(payload).__name__}",
            payload=payload,
        )

    data = payload.get("data")
    candidate = data if isinstance(data, dict) else payload

    if is_listing(candidate):
        return ListPage(items=page_items(candidate), total=page_total(candidate))
    return SingleItem(payload=candidate)


def unwrap_single(payload: Any, operation: str) -> Dict[str, Any]:
    """
    Return the single item carried by ``payload``.

    Raises:
        ResponseShapeError: If the response is a listing
    """
    decoded = decode_response(payload)
    if isinstance(decoded, SingleItem):
        return decoded.payload

    if operation == "generate":
        raise ResponseShapeError(
            "Unexpected API response format",
            payload=payload,
            status_code=500,
            description=(
                "Received a document list instead of the generated document. "
                "The POST request was probably processed as a GET by the server; "
                "check the Diro server configuration."
            ),
        )
    raise ResponseShapeError(
        "Received unexpected list response",
        payload=payload,
        description=f"Expected a single item for operation '{operation}' but got a listing.",
    )


__all__ = [
    "SingleItem",
    "ListPage",
    "DecodedResponse",
    "decode_response",
    "unwrap_single",
    "page_items",
    "page_total",
]
