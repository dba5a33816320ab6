"""
Captcha vendor integrations as a closed set of variants.

Every per-vendor constant (response field name, verification endpoint, widget
markup hooks, capabilities) lives in one IntegrationSpec per CaptchaType.
Server-side extraction and the browser-side monitor both read the response
field name from here, so the two halves cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CaptchaType(str, Enum):
    TURNSTILE = "turnstile"
    HCAPTCHA = "hcaptcha"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class Size(str, Enum):
    NORMAL = "normal"
    COMPACT = "compact"


class WidgetMode(str, Enum):
    """How the widget presents itself to the user.

    VISIBLE            : challenge UI is shown immediately.
    MANAGED_INVISIBLE  : the vendor decides whether to show a challenge; the
                         page renders a pending/resolved status pair.
    FORCED_INVISIBLE   : challenge UI is always hidden, no status messages.
    """

    VISIBLE = "visible"
    MANAGED_INVISIBLE = "managed_invisible"
    FORCED_INVISIBLE = "forced_invisible"


@dataclass(frozen=True)
class IntegrationSpec:
    response_field: str
    verify_url: str
    container_class: str
    require_attribute: str
    script_url: str
    supports_managed_mode: bool
    supports_invisible_mode: bool

    def client_config(self) -> dict:
        """Fields the browser-side monitor needs, keyed as the script reads them."""
        return {
            "containerClass": self.container_class,
            "requireAttribute": self.require_attribute,
            "responseField": self.response_field,
        }


_INTEGRATIONS: dict[CaptchaType, IntegrationSpec] = {
    CaptchaType.TURNSTILE: IntegrationSpec(
        response_field="cf-turnstile-response",
        verify_url="https://challenges.cloudflare.com/turnstile/v0/siteverify",
        container_class="cf-turnstile",
        require_attribute="data-require-turnstile",
        script_url="https://challenges.cloudflare.com/turnstile/v0/api.js",
        supports_managed_mode=True,
        supports_invisible_mode=True,
    ),
    CaptchaType.HCAPTCHA: IntegrationSpec(
        response_field="h-captcha-response",
        verify_url="https://hcaptcha.com/siteverify",
        container_class="h-captcha",
        require_attribute="data-require-hcaptcha",
        script_url="https://js.hcaptcha.com/1/api.js",
        supports_managed_mode=False,
        supports_invisible_mode=False,
    ),
}

_missing = set(CaptchaType) - set(_INTEGRATIONS)
if _missing:
    raise RuntimeError(
        f"No IntegrationSpec for captcha type(s): {sorted(m.value for m in _missing)}"
    )


def get_integration(captcha_type: CaptchaType) -> IntegrationSpec:
    """Return the IntegrationSpec for *captcha_type*.

    Accepts the raw string value as well ("turnstile"/"hcaptcha"); anything
    outside the closed set raises ValueError.
    """
    return _INTEGRATIONS[CaptchaType(captcha_type)]


def client_integrations() -> dict[str, dict]:
    """Integration table keyed by type value, as consumed by the monitor script."""
    return {t.value: spec.client_config() for t, spec in _INTEGRATIONS.items()}
