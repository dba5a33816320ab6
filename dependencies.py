"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. build_captcha_field() is the one place that
turns configuration into a ready-to-use CaptchaField.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from config import AppSettings, CaptchaSettings
from forms.captcha_field import CaptchaField
from infrastructure.captcha.protocol import CaptchaProvider


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_captcha_verifier(request: Request) -> CaptchaProvider:
    """Return the shared CaptchaVerifier created during app startup."""
    return request.app.state.captcha_verifier


def build_captcha_field(
    settings: CaptchaSettings,
    verifier: CaptchaProvider,
    label: Optional[str] = None,
) -> CaptchaField:
    field = CaptchaField(
        verifier,
        label=label,
        site_key=settings.captcha_site_key,
        captcha_type=settings.captcha_type,
    )
    field.set_theme(settings.captcha_theme).set_size(settings.captcha_size)
    if settings.uses_managed_mode:
        field.set_managed_messages(
            settings.captcha_pending_message, settings.captcha_resolved_message
        )
    return field
