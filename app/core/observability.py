"""Logging setup and the security event logger injected into services and gates."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Request body markers that are logged as suspicious activity.
SUSPICIOUS_PATTERNS = (
    "<script",
    "javascript:",
    "onerror=",
    "onload=",
    "eval(",
    "expression(",
)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root.setLevel(level)


@dataclass(frozen=True)
class RequestMeta:
    """Who is calling and what they asked for; attached to security events."""

    path: str
    method: str
    ip: str | None = None
    user_agent: str | None = None


class SecurityEventType(str, Enum):
    AUTH_FAILURE = "AUTH_FAILURE"
    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_LOCKED = "AUTH_LOCKED"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_TOKEN = "INVALID_TOKEN"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"


class SecurityLogger:
    """
    Writes security-relevant events (auth outcomes, lockouts, access denials) as
    structured log records.

    One instance is built per application in create_app and handed to the code that
    needs it; nothing here is a module-level singleton.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def log_event(
        self,
        event_type: SecurityEventType,
        meta: RequestMeta,
        *,
        user_id: str | None = None,
        email: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        extra = {
            "security_event": event_type.value,
            "user_id": user_id,
            "email": email,
            "ip": meta.ip or "unknown",
            "user_agent": meta.user_agent,
            "path": meta.path,
            "method": meta.method,
            "details": details,
            "event_time": datetime.now(UTC).isoformat(),
        }
        level = (
            logging.INFO
            if event_type is SecurityEventType.AUTH_SUCCESS
            else logging.WARNING
        )
        self.logger.log(
            level,
            "[SECURITY] %s - %s %s",
            event_type.value,
            meta.method,
            meta.path,
            extra=extra,
        )

    def auth_failure(
        self, meta: RequestMeta, email: str, details: dict[str, Any] | None = None
    ) -> None:
        self.log_event(SecurityEventType.AUTH_FAILURE, meta, email=email, details=details)

    def auth_success(self, meta: RequestMeta, user_id: str, email: str) -> None:
        self.log_event(SecurityEventType.AUTH_SUCCESS, meta, user_id=user_id, email=email)

    def account_locked(self, meta: RequestMeta, email: str) -> None:
        self.log_event(SecurityEventType.AUTH_LOCKED, meta, email=email)

    def invalid_token(self, meta: RequestMeta, reason: str) -> None:
        self.log_event(SecurityEventType.INVALID_TOKEN, meta, details={"reason": reason})

    def unauthorized_access(
        self,
        meta: RequestMeta,
        user_id: str | None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.log_event(
            SecurityEventType.UNAUTHORIZED_ACCESS, meta, user_id=user_id, details=details
        )

    def rate_limited(self, meta: RequestMeta) -> None:
        self.log_event(SecurityEventType.RATE_LIMIT, meta)

    def suspicious_activity(self, meta: RequestMeta, patterns: list[str]) -> None:
        self.log_event(
            SecurityEventType.SUSPICIOUS_ACTIVITY, meta, details={"patterns": patterns}
        )


def find_suspicious_patterns(body: bytes) -> list[str]:
    """Return the suspicious markers present in a request body (case-insensitive)."""
    if not body:
        return []
    text = body.decode("utf-8", errors="ignore").lower()
    return [p for p in SUSPICIOUS_PATTERNS if p in text]
