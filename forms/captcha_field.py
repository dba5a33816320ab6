"""
Captcha form field.

Makes a Turnstile/hCaptcha widget behave like an ordinary required form
field: "filled" means the browser submitted a response token, "valid" means
the verification service accepted it. The field never caches anything across
submissions; the verifier is consulted once per ``validate()`` call.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from errors import CaptchaConfigurationError
from infrastructure.captcha.integrations import (
    CaptchaType,
    IntegrationSpec,
    Size,
    Theme,
    WidgetMode,
    get_integration,
)
from infrastructure.captcha.protocol import CaptchaProvider
from shared.logging import get_logger

if TYPE_CHECKING:
    from forms.form import Form

log = get_logger(__name__)

DEFAULT_MESSAGE = "Please verify you are human."

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
_jinja = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)

Message = Union[str, Markup]


class CaptchaField:
    def __init__(
        self,
        verifier: CaptchaProvider,
        label: Optional[str] = None,
        site_key: str = "",
        captcha_type: CaptchaType = CaptchaType.TURNSTILE,
    ) -> None:
        self._verifier = verifier
        self.label = label
        self.site_key = site_key
        self._type = CaptchaType(captcha_type)
        self._integration = get_integration(self._type)

        self.theme = Theme.AUTO
        self.size = Size.NORMAL
        self.required = True
        self.invisible = False
        self._message: Optional[Message] = None
        self.managed_message_pending: Optional[Message] = None
        self.managed_message_resolved: Optional[Message] = None

        self.name: Optional[str] = None
        self.form: Optional["Form"] = None

    @property
    def captcha_type(self) -> CaptchaType:
        return self._type

    @property
    def integration(self) -> IntegrationSpec:
        return self._integration

    # ── Configuration ────────────────────────────────────────────────────────

    def set_theme(self, theme: Theme) -> "CaptchaField":
        self.theme = Theme(theme)
        return self

    def set_size(self, size: Size) -> "CaptchaField":
        self.size = Size(size)
        return self

    def set_required(self, value: Union[bool, Message] = True) -> "CaptchaField":
        """Mark the field required (or not).

        Passing a message instead of a bool makes the field required and uses
        the message as the failure text.
        """
        if isinstance(value, bool):
            self.required = value
        else:
            self.required = True
            self._message = value
        return self

    def set_managed_messages(self, pending: Message, resolved: Message) -> "CaptchaField":
        """Status texts shown while a managed widget runs invisibly."""
        if not self.integration.supports_managed_mode:
            raise CaptchaConfigurationError(
                f"{self.captcha_type.value} integration does not support managed mode"
            )
        self.managed_message_pending = pending
        self.managed_message_resolved = resolved
        return self

    def set_invisible(self, invisible: bool = True) -> "CaptchaField":
        """Always hide the widget; only the failure message can ever show."""
        if not self.integration.supports_invisible_mode:
            raise CaptchaConfigurationError(
                f"{self.captcha_type.value} integration does not support invisible mode"
            )
        self.invisible = invisible
        self.label = ""
        return self

    @property
    def mode(self) -> WidgetMode:
        if self.invisible:
            return WidgetMode.FORCED_INVISIBLE
        if self.managed_message_pending is not None or self.managed_message_resolved is not None:
            return WidgetMode.MANAGED_INVISIBLE
        return WidgetMode.VISIBLE

    @property
    def message(self) -> Message:
        return self._message if self._message is not None else DEFAULT_MESSAGE

    @property
    def plain_message(self) -> str:
        """Failure text with any HTML stripped, for use in attributes."""
        message = self.message
        if isinstance(message, Markup):
            return message.striptags()
        return str(message)

    # ── Submitted data ───────────────────────────────────────────────────────

    def _http_data(self) -> Any:
        if self.form is None:
            raise CaptchaConfigurationError(
                f"Captcha field {self.name or self.label!r} is not attached to a form"
            )
        return self.form.http_data

    def _extract_token(self, http_data: Any) -> Optional[str]:
        if not isinstance(http_data, Mapping):
            return None
        value = http_data.get(self.integration.response_field)
        return value if isinstance(value, str) else None

    def get_value(self) -> Optional[str]:
        """Raw submitted token, or None if the payload has none."""
        return self._extract_token(self._http_data())

    def is_filled(self) -> bool:
        if not self.required:
            return True
        return bool(self.get_value())

    async def validate(self) -> bool:
        """Verify the submitted token with the verification service."""
        token = self.get_value()
        if not token:
            return False
        try:
            return await self._verifier.verify(token)
        except Exception as e:
            log.error(
                "captcha_validation_error",
                field=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    # ── Rendering ────────────────────────────────────────────────────────────

    def render(self) -> Markup:
        template = _jinja.get_template("captcha/widget.html")
        return Markup(
            template.render(
                field=self,
                integration=self.integration,
                show_status=self.mode is WidgetMode.MANAGED_INVISIBLE,
            )
        )

    def __html__(self) -> str:
        return self.render()
