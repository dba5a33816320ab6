"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests, and clears captcha env vars so defaults are observable.
Tests control config exclusively through monkeypatch.setenv().
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

_CAPTCHA_ENV_VARS = (
    "CAPTCHA_TYPE",
    "CAPTCHA_SECRET_KEY",
    "CAPTCHA_SITE_KEY",
    "CAPTCHA_VERIFY_URL",
    "CAPTCHA_THEME",
    "CAPTCHA_SIZE",
    "CAPTCHA_TIMEOUT_SECONDS",
    "CAPTCHA_PENDING_MESSAGE",
    "CAPTCHA_RESOLVED_MESSAGE",
)


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _CAPTCHA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def verifier():
    """A CaptchaProvider double whose verify() is an AsyncMock returning True."""
    v = MagicMock()
    v.verify = AsyncMock(return_value=True)
    return v
