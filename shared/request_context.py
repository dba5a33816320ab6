"""
Per-request ambient context: request id and resolved client IP.

RequestContextMiddleware publishes both into context variables for the
duration of a request, so code deep in the call chain (the captcha verifier)
can read the caller's address without a ``Request`` being threaded through
every layer. Both values are also bound to structlog contextvars.
"""

from __future__ import annotations

import time
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shared.logging import get_logger, hash_ip

_client_ip: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Checked in priority order before falling back to the socket peer
CLIENT_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
)

log = get_logger("captcha_gate.request")


def get_current_client_ip() -> Optional[str]:
    return _client_ip.get()


def get_current_request_id() -> Optional[str]:
    return _request_id.get()


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def resolve_client_ip(request: Request) -> str:
    """Extract the real client IP from *request*.

    The first non-empty proxy header in CLIENT_IP_HEADERS wins (for
    ``X-Forwarded-For`` only the first, client-most hop is used); otherwise
    the direct connection address, or ``""`` when there is none.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            candidate = value.split(",")[0].strip()
            if candidate:
                return candidate
    return request.client.host if request.client else ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        request_id = generate_request_id()
        client_ip = resolve_client_ip(request) or None

        ip_token = _client_ip.set(client_ip)
        rid_token = _request_id.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, ip_hash=hash_ip(client_ip)
        )
        try:
            response = await call_next(request)
        finally:
            _client_ip.reset(ip_token)
            _request_id.reset(rid_token)

        duration_ms = int((time.perf_counter() - start) * 1000)
        if response.status_code >= 500:
            log_fn = log.error
        elif response.status_code >= 400:
            log_fn = log.warning
        else:
            log_fn = log.info
        log_fn(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        response.headers["X-Request-ID"] = request_id
        return response
