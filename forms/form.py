"""
Minimal form container for captcha fields.

Holds the submitted data for one request and runs each captcha field's
required/valid checks. Failures surface as the field's generic message only.
"""

from __future__ import annotations

from typing import Any, Optional

from forms.captcha_field import CaptchaField


class Form:
    def __init__(self, http_data: Any = None) -> None:
        self.http_data = http_data
        self.fields: dict[str, CaptchaField] = {}
        self.errors: dict[str, str] = {}

    def add_captcha(self, name: str, field: CaptchaField) -> CaptchaField:
        field.name = name
        field.form = self
        self.fields[name] = field
        return field

    def bind(self, http_data: Any) -> "Form":
        self.http_data = http_data
        self.errors = {}
        return self

    def __getitem__(self, name: str) -> CaptchaField:
        return self.fields[name]

    async def validate(self) -> bool:
        self.errors = {}
        for name, field in self.fields.items():
            if not field.required:
                continue
            if not field.is_filled() or not await field.validate():
                self.errors[name] = field.plain_message
        return not self.errors

    def first_error(self) -> Optional[str]:
        return next(iter(self.errors.values()), None)
