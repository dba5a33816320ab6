"""
Health check endpoint.

GET /health: reports whether captcha verification is configured.
Rules:
- Site key and secret present → "healthy".
- Either missing → "degraded" (200); every submission will fail verification.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    checks: dict[str, str] = {}
    overall = "healthy"

    if settings.captcha.is_configured:
        checks["captcha"] = "ok"
    else:
        checks["captcha"] = "not_configured"
        overall = "degraded"

    return JSONResponse(
        status_code=200,
        content={
            "status": overall,
            "checks": checks,
            "captcha_type": settings.captcha.captcha_type.value,
        },
    )
