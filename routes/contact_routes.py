"""
Contact form endpoints: a captcha-protected form end to end.

GET  /contact: renders the form with the configured widget and monitor script.
POST /contact: validates the captcha field, then the plain fields.

Captcha failures of any kind (missing token, rejected token, service outage)
produce the same 400 with the field's generic message.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config import AppSettings
from dependencies import build_captcha_field, get_captcha_verifier, get_settings
from errors import ServiceUnavailableError, ValidationError
from forms.form import Form
from forms.frontend import local_script_tag, vendor_script_tag
from infrastructure.captcha.protocol import CaptchaProvider
from shared.logging import get_logger

router = APIRouter(tags=["contact"])
log = get_logger(__name__)

templates = Jinja2Templates(
    directory=os.path.join(os.path.dirname(__file__), "templates")
)


def _contact_form(settings: AppSettings, verifier: CaptchaProvider) -> Form:
    form = Form()
    form.add_captcha(
        "captcha", build_captcha_field(settings.captcha, verifier, "Bot protection")
    )
    return form


@router.get("/contact", response_class=HTMLResponse)
async def contact_page(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    verifier: CaptchaProvider = Depends(get_captcha_verifier),
) -> HTMLResponse:
    form = _contact_form(settings, verifier)
    return templates.TemplateResponse(
        request,
        "contact.html",
        {
            "captcha": form["captcha"],
            "vendor_script": vendor_script_tag(settings.captcha.captcha_type),
            "monitor_script": local_script_tag(),
        },
    )


@router.post("/contact")
async def submit_contact(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    verifier: CaptchaProvider = Depends(get_captcha_verifier),
) -> dict:
    if not settings.captcha.is_configured:
        raise ServiceUnavailableError("Captcha is not configured. Contact support.")

    data = await request.form()
    form = _contact_form(settings, verifier).bind(data)

    if not await form.validate():
        raise ValidationError(form.first_error(), field="captcha")

    email = data.get("email")
    message = data.get("message")
    # File uploads arrive as UploadFile; only plain text values count
    if not (isinstance(email, str) and email and isinstance(message, str) and message):
        raise ValidationError("All fields are required")

    log.info(
        "contact_message_received",
        email_domain=email.split("@")[1] if "@" in email else "unknown",
        message_length=len(message),
    )
    return {"status": "ok", "message": "Message sent successfully"}
