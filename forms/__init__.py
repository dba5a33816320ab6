"""
Captcha form layer.

CaptchaField turns a Turnstile/hCaptcha widget into a required form field,
Form carries one request's submitted data, and frontend provides the script
tags the rendered page needs.
"""

from .captcha_field import DEFAULT_MESSAGE, CaptchaField
from .form import Form
from .frontend import local_script_tag, vendor_script_tag

__all__ = [
    "DEFAULT_MESSAGE",
    "CaptchaField",
    "Form",
    "local_script_tag",
    "vendor_script_tag",
]
