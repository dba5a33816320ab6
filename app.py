"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.captcha.verifier import CaptchaVerifier
from infrastructure.http_client import HttpClient
from routes.contact_routes import router as contact_router
from routes.health_routes import router as health_router
from shared.logging import get_logger
from shared.request_context import RequestContextMiddleware

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        captcha = settings.captcha
        http_client = HttpClient(timeout=captcha.captcha_timeout_seconds)
        app.state.settings = settings
        app.state.http_client = http_client
        app.state.captcha_verifier = CaptchaVerifier(
            secret=captcha.captcha_secret_key,
            http_client=http_client,
            captcha_type=captcha.captcha_type,
            verify_url=captcha.captcha_verify_url,
        )
        if not captcha.is_configured:
            log.warning("captcha_not_configured", captcha_type=captcha.captcha_type.value)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(contact_router)

    return app
