from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from ..contracts import ApiResponse, Pagination


def envelope_response(envelope: ApiResponse) -> JSONResponse:
    """Render an envelope with its own status code; unset top-level keys are omitted."""
    body = envelope.model_dump(mode="json")
    content = {key: value for key, value in body.items() if value is not None}
    return JSONResponse(content=content, status_code=envelope.status_code)


def ok(
    data: Any = None,
    *,
    message: str | None = None,
    pagination: Pagination | None = None,
    status_code: int = 200,
) -> JSONResponse:
    return envelope_response(
        ApiResponse.ok(data, message=message, pagination=pagination, status_code=status_code)
    )


def not_found(kind: str) -> JSONResponse:
    return envelope_response(ApiResponse.fail(f"{kind} not found", status_code=404))


def split_multi(values: list[str] | None) -> set[str]:
    """Accept both ``?category=a&category=b`` and ``?category=a,b``."""
    if not values:
        return set()
    result: set[str] = set()
    for value in values:
        result.update(part.strip() for part in str(value).split(",") if part.strip())
    return result
