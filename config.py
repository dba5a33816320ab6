"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file). The
captcha core only ever sees fully-resolved values: enum-typed integration,
theme and size, and a verify-URL override that is either a non-empty string
or None.
"""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.captcha.integrations import CaptchaType, Size, Theme, get_integration
from infrastructure.http_client import DEFAULT_TIMEOUT_SECONDS


class CaptchaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    captcha_type: CaptchaType = CaptchaType.TURNSTILE
    captcha_secret_key: str = ""
    captcha_site_key: str = ""

    # Self-hosted or proxied siteverify endpoint; None uses the vendor default
    captcha_verify_url: Optional[str] = None

    captcha_theme: Theme = Theme.AUTO
    captcha_size: Size = Size.NORMAL
    captcha_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Status texts for managed mode; setting either one enables it
    captcha_pending_message: str = ""
    captcha_resolved_message: str = ""

    @field_validator("captcha_verify_url", mode="before")
    @classmethod
    def _blank_url_is_default(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _managed_mode_supported(self) -> "CaptchaSettings":
        if self.uses_managed_mode and not get_integration(
            self.captcha_type
        ).supports_managed_mode:
            raise ValueError(
                f"{self.captcha_type.value} integration does not support managed mode"
            )
        return self

    @property
    def uses_managed_mode(self) -> bool:
        return bool(self.captcha_pending_message or self.captcha_resolved_message)

    @property
    def is_configured(self) -> bool:
        return bool(self.captcha_site_key and self.captcha_secret_key)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "captcha-gate"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    captcha: Optional[CaptchaSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.captcha is None:
            self.captcha = CaptchaSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
