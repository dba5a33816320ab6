"""CaptchaProvider protocol. Form fields depend on this, not the concrete verifier."""

from typing import Optional, Protocol


class CaptchaProvider(Protocol):
    async def verify(self, token: str, remote_ip: Optional[str] = None) -> bool: ...
