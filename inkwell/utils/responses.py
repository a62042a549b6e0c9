"""Uniform response envelope."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask


def envelope(
    message: str,
    data: Any = None,
    *,
    success: bool = True,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Wrap ``data`` as ``{success, message, data, timestamp[, meta]}``.

    Pydantic models inside ``data``/``meta`` are serialised by alias.
    """
    payload: dict[str, Any] = {
        "success": success,
        "message": message,
        "data": jsonable_encoder(data),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if meta:
        payload["meta"] = jsonable_encoder(meta)
    return payload


def error_response(
    status_code: int,
    message: str,
    data: Any = None,
    headers: dict | None = None,
    background: BackgroundTask | None = None,
) -> JSONResponse:
    return JSONResponse(
        envelope(message, data, success=False),
        status_code=status_code,
        headers=headers,
        background=background,
    )
