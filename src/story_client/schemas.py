"""Pydantic-based validation of inbound API payloads.

Every response from the API uses the same JSON envelope:

    {"success": true, "data": ..., "pagination": {...}, "meta": {...}}
    {"success": false, "error": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypedDict

from pydantic import TypeAdapter, ValidationError

from .exceptions import UNKNOWN_ERROR_CODE, ApplicationError, IncomingDataError


class ApiErrorInput(TypedDict, total=False):
    code: str | None
    message: str | None
    details: object


class PaginationInput(TypedDict, total=False):
    page: int
    limit: int
    total: int
    pages: int
    totalPages: int


class ApiEnvelopeInput(TypedDict, total=False):
    success: bool
    data: object
    error: ApiErrorInput | None
    message: str | None
    pagination: PaginationInput | None
    meta: dict[str, object] | None


@dataclass(frozen=True)
class ApiResponse:
    """A successful, unwrapped API response."""

    status: int
    data: object = None
    pagination: PaginationInput | None = None
    meta: dict[str, object] | None = None


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        raise IncomingDataError(f"Invalid payload for {schema}.") from exc


def parse_envelope(status: int, payload: object) -> ApiResponse:
    """Unwrap a 2xx response envelope.

    An empty body (e.g. 204 No Content) is a success with no data.

    Raises:
        ApplicationError: If the envelope reports `success: false`.
        IncomingDataError: If the payload is not an envelope.
    """
    if payload is None:
        return ApiResponse(status=status)

    envelope = validate_as(ApiEnvelopeInput, payload)
    if "success" not in envelope:
        raise IncomingDataError("Response envelope is missing 'success'.")

    if not envelope["success"]:
        error = envelope.get("error") or {}
        raise ApplicationError(
            error.get("code") or UNKNOWN_ERROR_CODE,
            error.get("message") or envelope.get("message") or "Request was not successful",
            status=status,
            details=payload,
        )

    return ApiResponse(
        status=status,
        data=envelope.get("data"),
        pagination=envelope.get("pagination"),
        meta=envelope.get("meta"),
    )


def pagination_of(response: ApiResponse) -> PaginationInput | None:
    """Return the pagination block, whether top-level or nested under `data`."""
    if response.pagination is not None:
        return response.pagination
    if isinstance(response.data, Mapping):
        nested = response.data.get("pagination")
        if nested is not None:
            return validate_as(PaginationInput, nested)
    return None


def items_of[ItemT](data: object, key: str, schema: type[ItemT]) -> list[ItemT]:
    """Validate a list payload given either bare or wrapped as `{key: [...]}`."""
    if isinstance(data, Mapping):
        data = data.get(key)
    if data is None:
        return []
    return validate_as(list[schema], data)  # type: ignore[valid-type]


def resolve_has_more(
    data: object,
    pagination: PaginationInput | None,
    *,
    page: int,
    item_count: int,
    limit: int,
) -> bool:
    """Work out whether another page exists.

    Prefers an explicit `hasMore` flag in the payload, then the pagination
    block's page count (`pages` or `totalPages`), then whether the page came
    back full.
    """
    if isinstance(data, Mapping):
        flag = data.get("hasMore")
        if isinstance(flag, bool):
            return flag
    if pagination:
        if "pages" in pagination:
            return page < pagination["pages"]
        if "totalPages" in pagination:
            return page < pagination["totalPages"]
    return item_count >= limit > 0
