"""
Structured logging for captcha-gate.

Provides:
- get_logger(): structlog logger for a module
- setup_logging(): one-time configuration from LoggingSettings
- hash_ip(): privacy-preserving client IP for production logs

Production renders JSON lines; development renders a coloured console.
Verification secrets and tokens are redacted before rendering.
"""

from __future__ import annotations

import hashlib
import logging
import sys
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

# Keys whose values never reach the log output
REDACTED_FIELDS = {
    "secret",
    "token",
    "response",
    "password",
    "api_key",
    "authorization",
    "cookie",
}

_SENSITIVE_SUBSTRINGS = ("secret", "token", "password", "key")

_RESERVED_KEYS = {"level", "event", "timestamp", "logger"}

_hash_ips = False


def get_logger(name: str) -> BoundLogger:
    """
    Get a logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.warning("captcha_verification_failed", error_codes=["timeout-or-duplicate"])
    """
    return structlog.get_logger(name)


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash an IP address for privacy.

    Returns the first 16 hex chars of its SHA-256 once production logging is
    configured, the IP unchanged otherwise, and None for None.
    """
    if ip_address is None:
        return None
    if _hash_ips and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _RESERVED_KEYS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            s in lowered for s in _SENSITIVE_SUBSTRINGS
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event=15)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def setup_logging(settings, env: str = "development") -> None:
    """
    Initialize logging for the application.

    Called once by the ASGI entry point, before the app is created.

    Args:
        settings: LoggingSettings instance
        env: deployment environment; "production" enables IP hashing
    """
    global _hash_ips
    _hash_ips = env == "production"

    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)

    get_logger(__name__).info(
        "logging_initialized",
        env=env,
        log_level=settings.log_level,
        log_format=settings.log_format,
    )
