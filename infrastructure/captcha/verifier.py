"""Verification client for Turnstile and hCaptcha response tokens.

Exchanges a client-supplied token for a trust decision from the vendor's
siteverify endpoint. Every failure mode (transport, non-2xx, malformed JSON,
vendor-reported failure) is logged and collapses to ``False``; ``verify``
never raises to its caller.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from infrastructure.captcha.integrations import CaptchaType, get_integration
from infrastructure.http_client import HttpClient
from shared.logging import get_logger, hash_ip
from shared.request_context import get_current_client_ip

log = get_logger(__name__)


class VerificationResponseError(Exception):
    """The verification service replied with something other than JSON."""


class CaptchaVerifier:
    def __init__(
        self,
        secret: str,
        http_client: HttpClient,
        captcha_type: CaptchaType = CaptchaType.TURNSTILE,
        verify_url: Optional[str] = None,
    ) -> None:
        self._secret = secret
        self._http = http_client
        self._type = CaptchaType(captcha_type)
        self._verify_url = verify_url or get_integration(self._type).verify_url

    @property
    def captcha_type(self) -> CaptchaType:
        return self._type

    @property
    def verify_url(self) -> str:
        return self._verify_url

    async def verify(self, token: str, remote_ip: Optional[str] = None) -> bool:
        if not token or not token.strip():
            return False
        if not self._secret:
            log.warning("captcha_secret_not_configured", captcha_type=self._type.value)
            return False

        data = self._build_post_data(token, remote_ip)
        try:
            response = await self._http.post(self._verify_url, data=data)
            if not 200 <= response.status_code < 300:
                log.error(
                    "captcha_api_error",
                    captcha_type=self._type.value,
                    status_code=response.status_code,
                    response_text=response.text[:200],
                )
                return False
            return self._parse_response(response)
        except VerificationResponseError as e:
            log.error(
                "captcha_invalid_json",
                captcha_type=self._type.value,
                error=str(e),
            )
            return False
        except Exception as e:
            log.error(
                "captcha_request_failed",
                captcha_type=self._type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def _build_post_data(self, token: str, remote_ip: Optional[str]) -> dict[str, str]:
        data = {"secret": self._secret, "response": token}
        ip = remote_ip or get_current_client_ip()
        if ip:
            data["remoteip"] = ip
        return data

    def _parse_response(self, response: httpx.Response) -> bool:
        try:
            payload: Any = response.json()
        except ValueError as e:
            raise VerificationResponseError(
                f"Invalid JSON response from verification service: {e}"
            ) from e

        if not isinstance(payload, dict):
            log.warning(
                "captcha_unexpected_payload",
                captcha_type=self._type.value,
                payload_type=type(payload).__name__,
            )
            return False

        if payload.get("success") is True:
            return True

        log.warning(
            "captcha_verification_failed",
            captcha_type=self._type.value,
            error_codes=payload.get("error-codes", []),
            ip_hash=hash_ip(get_current_client_ip()),
        )
        return False
