"""Unit tests for CaptchaField and Form."""

from unittest.mock import AsyncMock

import pytest
from markupsafe import Markup
from starlette.datastructures import FormData

from config import CaptchaSettings
from dependencies import build_captcha_field
from errors import CaptchaConfigurationError
from forms import DEFAULT_MESSAGE, CaptchaField, Form
from infrastructure.captcha.integrations import CaptchaType, Size, Theme, WidgetMode

SITE_KEY = "test-site-key"


def _field(verifier, captcha_type=CaptchaType.TURNSTILE, http_data=None, label=None):
    field = CaptchaField(verifier, label=label, site_key=SITE_KEY, captcha_type=captcha_type)
    data = {"cf-turnstile-response": "", "h-captcha-response": ""}
    if isinstance(http_data, dict):
        data.update(http_data)
    elif http_data is not None:
        data = http_data
    Form(data).add_captcha("captcha", field)
    return field


# ── Configuration ─────────────────────────────────────────────────────────────


class TestConfiguration:
    def test_defaults(self, verifier):
        field = CaptchaField(verifier)
        assert field.required is True
        assert field.captcha_type is CaptchaType.TURNSTILE
        assert field.theme is Theme.AUTO
        assert field.size is Size.NORMAL
        assert field.mode is WidgetMode.VISIBLE
        assert field.message == DEFAULT_MESSAGE == "Please verify you are human."

    def test_setters_are_fluent(self, verifier):
        field = CaptchaField(verifier)
        assert field.set_theme(Theme.DARK) is field
        assert field.set_size(Size.COMPACT) is field
        assert field.set_required(True) is field
        assert field.set_managed_messages("Pending", "Resolved") is field
        assert field.set_invisible() is field

    def test_set_required_false(self, verifier):
        field = CaptchaField(verifier).set_required(False)
        assert field.required is False

    def test_set_required_with_message(self, verifier):
        field = CaptchaField(verifier).set_required(False).set_required("Prove it")
        assert field.required is True
        assert field.message == "Prove it"

    def test_markup_message_is_stripped_for_attributes(self, verifier):
        field = CaptchaField(verifier).set_required(Markup("<em>Are you human?</em>"))
        assert field.plain_message == "Are you human?"

    def test_managed_messages_switch_mode(self, verifier):
        field = CaptchaField(verifier).set_managed_messages("Pending", "Resolved")
        assert field.mode is WidgetMode.MANAGED_INVISIBLE

    def test_invisible_switches_mode_and_hides_label(self, verifier):
        field = CaptchaField(verifier, label="Bot protection").set_invisible()
        assert field.mode is WidgetMode.FORCED_INVISIBLE
        assert field.label == ""

    def test_invisible_wins_over_managed(self, verifier):
        field = (
            CaptchaField(verifier)
            .set_managed_messages("Pending", "Resolved")
            .set_invisible()
        )
        assert field.mode is WidgetMode.FORCED_INVISIBLE

    def test_hcaptcha_rejects_managed_mode(self, verifier):
        field = CaptchaField(verifier, captcha_type=CaptchaType.HCAPTCHA)
        with pytest.raises(CaptchaConfigurationError, match="does not support managed mode"):
            field.set_managed_messages("Pending", "Resolved")

    def test_hcaptcha_rejects_invisible_mode(self, verifier):
        field = CaptchaField(verifier, captcha_type=CaptchaType.HCAPTCHA)
        with pytest.raises(CaptchaConfigurationError, match="does not support invisible mode"):
            field.set_invisible(True)

    def test_hcaptcha_rejects_modes_regardless_of_prior_state(self, verifier):
        field = (
            CaptchaField(verifier, captcha_type=CaptchaType.HCAPTCHA)
            .set_required("Custom")
            .set_theme(Theme.DARK)
        )
        with pytest.raises(CaptchaConfigurationError):
            field.set_invisible(False)
        with pytest.raises(CaptchaConfigurationError):
            field.set_managed_messages("a", "b")
        assert field.mode is WidgetMode.VISIBLE

    def test_configuration_error_is_a_value_error(self):
        assert issubclass(CaptchaConfigurationError, ValueError)

    def test_unknown_type_rejected_at_construction(self, verifier):
        with pytest.raises(ValueError):
            CaptchaField(verifier, captcha_type="recaptcha")

    def test_integration_fixed_at_construction(self, verifier):
        field = _field(verifier)
        with pytest.raises(AttributeError):
            field.captcha_type = CaptchaType.HCAPTCHA
        with pytest.raises(AttributeError):
            field.integration = None
        assert field.captcha_type is CaptchaType.TURNSTILE
        assert field.integration.response_field == "cf-turnstile-response"


# ── is_filled / get_value ─────────────────────────────────────────────────────


class TestFilled:
    def test_not_required_is_always_filled(self, verifier):
        field = _field(verifier).set_required(False)
        assert field.is_filled() is True

    def test_filled_with_token(self, verifier):
        field = _field(verifier, http_data={"cf-turnstile-response": "tok"})
        assert field.is_filled() is True

    def test_not_filled_with_empty_token(self, verifier):
        field = _field(verifier)
        assert field.is_filled() is False

    def test_other_integration_key_is_ignored(self, verifier):
        field = _field(verifier, http_data={"h-captcha-response": "tok"})
        assert field.is_filled() is False

    def test_hcaptcha_reads_its_own_key(self, verifier):
        field = _field(
            verifier,
            captcha_type=CaptchaType.HCAPTCHA,
            http_data={"h-captcha-response": "tok", "cf-turnstile-response": ""},
        )
        assert field.is_filled() is True
        assert field.get_value() == "tok"

    def test_missing_key_is_not_filled(self, verifier):
        field = _field(verifier, http_data={"email": "a@b.c"})
        field.form.http_data = {"email": "a@b.c"}
        assert field.is_filled() is False
        assert field.get_value() is None

    def test_non_string_value_is_no_token(self, verifier):
        field = _field(verifier, http_data={"cf-turnstile-response": ["tok"]})
        assert field.get_value() is None
        assert field.is_filled() is False

    @pytest.mark.parametrize("payload", ["invalid-data", None, 42, ["cf-turnstile-response"]])
    def test_malformed_payload_is_no_token(self, verifier, payload):
        field = _field(verifier, http_data=payload)
        field.form.http_data = payload
        assert field.get_value() is None
        assert field.is_filled() is False

    def test_get_value_returns_raw_token(self, verifier):
        field = _field(verifier, http_data={"cf-turnstile-response": "test-response-value"})
        assert field.get_value() == "test-response-value"

    def test_starlette_form_data(self, verifier):
        field = _field(verifier)
        field.form.bind(FormData([("cf-turnstile-response", "abc123")]))
        assert field.get_value() == "abc123"

    def test_detached_field_raises(self, verifier):
        field = CaptchaField(verifier)
        with pytest.raises(CaptchaConfigurationError, match="not attached"):
            field.get_value()


# ── validate ──────────────────────────────────────────────────────────────────


class TestValidate:
    async def test_valid_token_delegates_to_verifier(self, verifier):
        field = _field(verifier, http_data={"cf-turnstile-response": "valid-response"})
        assert await field.validate() is True
        verifier.verify.assert_awaited_once_with("valid-response")

    async def test_rejected_token(self, verifier):
        verifier.verify = AsyncMock(return_value=False)
        field = _field(verifier, http_data={"cf-turnstile-response": "bad"})
        assert await field.validate() is False

    async def test_empty_token_skips_verifier(self, verifier):
        field = _field(verifier)
        assert await field.validate() is False
        verifier.verify.assert_not_awaited()

    async def test_malformed_payload_skips_verifier(self, verifier):
        field = _field(verifier)
        field.form.http_data = "invalid-data"
        assert await field.validate() is False
        verifier.verify.assert_not_awaited()

    async def test_verifier_exception_is_failure(self, verifier, mocker):
        log = mocker.patch("forms.captcha_field.log")
        verifier.verify = AsyncMock(side_effect=Exception("Test exception"))
        field = _field(verifier, http_data={"cf-turnstile-response": "valid-response"})
        assert await field.validate() is False
        assert log.error.call_args[0][0] == "captcha_validation_error"

    async def test_each_call_consults_verifier(self, verifier):
        field = _field(verifier, http_data={"cf-turnstile-response": "tok"})
        await field.validate()
        await field.validate()
        assert verifier.verify.await_count == 2


# ── Form ──────────────────────────────────────────────────────────────────────


class TestForm:
    async def test_valid_submission(self, verifier):
        form = Form()
        form.add_captcha("captcha", CaptchaField(verifier))
        form.bind({"cf-turnstile-response": "abc123"})
        assert await form.validate() is True
        assert form.errors == {}
        assert form["captcha"].get_value() == "abc123"

    async def test_empty_token_records_generic_message(self, verifier):
        form = Form({"cf-turnstile-response": ""})
        form.add_captcha("captcha", CaptchaField(verifier))
        assert await form.validate() is False
        assert form.errors == {"captcha": DEFAULT_MESSAGE}
        verifier.verify.assert_not_awaited()

    async def test_rejected_token_uses_custom_message(self, verifier):
        verifier.verify = AsyncMock(return_value=False)
        form = Form({"cf-turnstile-response": "tok"})
        form.add_captcha("captcha", CaptchaField(verifier).set_required("Try again"))
        assert await form.validate() is False
        assert form.first_error() == "Try again"

    async def test_optional_field_is_skipped(self, verifier):
        form = Form({})
        form.add_captcha("captcha", CaptchaField(verifier).set_required(False))
        assert await form.validate() is True
        verifier.verify.assert_not_awaited()

    async def test_bind_clears_previous_errors(self, verifier):
        form = Form({})
        form.add_captcha("captcha", CaptchaField(verifier))
        await form.validate()
        assert form.errors
        form.bind({"cf-turnstile-response": "tok"})
        assert form.errors == {}
        assert form.first_error() is None

    def test_add_captcha_attaches_field(self, verifier):
        form = Form()
        field = form.add_captcha("bot_check", CaptchaField(verifier))
        assert field.form is form
        assert field.name == "bot_check"
        assert form["bot_check"] is field


# ── build_captcha_field ───────────────────────────────────────────────────────


class TestBuildCaptchaField:
    def test_applies_configured_widget_options(self, verifier):
        settings = CaptchaSettings(
            captcha_type=CaptchaType.HCAPTCHA,
            captcha_site_key="site",
            captcha_theme=Theme.DARK,
            captcha_size=Size.COMPACT,
        )
        field = build_captcha_field(settings, verifier, "Bot protection")
        assert field.captcha_type is CaptchaType.HCAPTCHA
        assert field.site_key == "site"
        assert field.theme is Theme.DARK
        assert field.size is Size.COMPACT
        assert field.label == "Bot protection"
        assert field.mode is WidgetMode.VISIBLE

    def test_managed_messages_from_settings(self, verifier):
        settings = CaptchaSettings(
            captcha_pending_message="Checking your browser",
            captcha_resolved_message="Verified",
        )
        field = build_captcha_field(settings, verifier)
        assert field.mode is WidgetMode.MANAGED_INVISIBLE
        assert field.managed_message_pending == "Checking your browser"
        assert field.managed_message_resolved == "Verified"
