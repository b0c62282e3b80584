"""Uniform JSON envelopes and the error types routes raise.

Success bodies look like ``{"success": true, "timestamp", "requestId", ...payload}``;
errors like ``{"success": false, "timestamp", "requestId", "error": {code, message, details?}}``.
Every response built here is marked uncacheable.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from promptsite.store import utc_now_iso

NO_STORE = "no-store, max-age=0"


class ApiError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Any = None,
                 headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        self.headers = headers or {}


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthorized(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class RateLimited(ApiError):
    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, message: str, *, remaining: int, reset_ts: int, retry_after: int,
                 headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message, headers=headers)
        self.remaining = remaining
        self.reset_ts = reset_ts
        self.retry_after = retry_after


class UpstreamFailed(ApiError):
    status_code = 500
    code = "AI_EDIT_FAILED"


def request_id(request: Optional[Request]) -> str:
    rid = getattr(request.state, "request_id", None) if request is not None else None
    return rid or str(uuid.uuid4())


def _headers(extra: Optional[Dict[str, str]]) -> Dict[str, str]:
    headers = {"Cache-Control": NO_STORE}
    if extra:
        headers.update(extra)
    return headers


def success_response(
    request: Optional[Request],
    payload: Dict[str, Any],
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "success": True,
        "timestamp": utc_now_iso(),
        "requestId": request_id(request),
    }
    body.update(payload)
    return JSONResponse(body, status_code=status_code, headers=_headers(headers))


def error_response(
    request: Optional[Request],
    message: str,
    code: str,
    status_code: int,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    body: Dict[str, Any] = {
        "success": False,
        "timestamp": utc_now_iso(),
        "requestId": request_id(request),
        "error": error,
    }
    if extra:
        body.update(extra)
    return JSONResponse(body, status_code=status_code, headers=_headers(headers))


def api_error_response(request: Optional[Request], exc: ApiError) -> JSONResponse:
    extra = None
    if isinstance(exc, RateLimited):
        extra = {
            "remaining": exc.remaining,
            "reset": exc.reset_ts,
            "retry_after_seconds": exc.retry_after,
        }
    return error_response(
        request,
        exc.message,
        exc.code,
        exc.status_code,
        details=exc.details,
        headers=exc.headers,
        extra=extra,
    )
