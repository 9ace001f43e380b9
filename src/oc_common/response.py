"""ApiResponse envelope shared by every endpoint.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "2026-01-01T12:00:00+00:00", "request_id": "req_a1b2c3d4e5f6"}

``code`` is 0 on success and the AppError code otherwise; ``data`` is null on
error. Money fields inside ``data`` are decimal strings, never floats.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def get_request_id(request: Request) -> str:
    """request_id set by RequestLogMiddleware, or a fresh one outside it."""
    return getattr(request.state, "request_id", None) or _new_request_id()


def success_response(
    data: Any = None, message: str = "success", request_id: str | None = None
) -> ApiResponse:
    resp = ApiResponse(code=0, message=message, data=data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(code: int, message: str, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=None)
    if request_id:
        resp.request_id = request_id
    return resp


def respond(request: Request, data: Any = None, message: str = "success") -> ApiResponse:
    """Success envelope tagged with the current request's id."""
    return success_response(data, message=message, request_id=get_request_id(request))
