"""Script tags for the vendor widget loader and the local lifecycle monitor."""

from __future__ import annotations

import json
import os
from functools import lru_cache

from markupsafe import Markup

from infrastructure.captcha.integrations import (
    CaptchaType,
    client_integrations,
    get_integration,
)

MONITOR_SCRIPT_PATH = os.path.join(
    os.path.dirname(__file__), "static", "captcha-validation.js"
)


def vendor_script_tag(captcha_type: CaptchaType) -> Markup:
    return Markup('<script src="{}" async defer></script>').format(
        get_integration(captcha_type).script_url
    )


@lru_cache(maxsize=1)
def _monitor_source() -> str:
    with open(MONITOR_SCRIPT_PATH, encoding="utf-8") as fh:
        return fh.read()


def local_script_tag() -> Markup:
    """Inline integration table followed by the inline monitor script.

    The table is the same one the server uses to extract tokens, so the
    monitor always watches the field names the server reads.
    """
    table = json.dumps(client_integrations()).replace("</", "<\\/")
    return Markup(
        f"<script>window.captchaIntegrations = {table};</script>\n"
        f"<script>{_monitor_source()}</script>"
    )
