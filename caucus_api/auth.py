"""
Admin credential check and session token issue/verification.
"""

from __future__ import annotations

import hmac
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from jose import JWTError, jwt

from caucus_api.errors import ConfigurationMissing, Unauthorized
from caucus_api.rate_limit import Clock, wall_clock_ms

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"
SESSION_COOKIE_NAME = "admin-token"
DEFAULT_SESSION_MAX_AGE_MS = 24 * 60 * 60 * 1000


class CredentialChecker:
    """Compares a submitted password with the configured admin password."""

    def __init__(self, admin_password: Optional[str]):
        self._admin_password = admin_password

    @property
    def configured(self) -> bool:
        return bool(self._admin_password)

    def verify(self, submitted: Optional[str]) -> bool:
        if not self._admin_password:
            logger.error("ADMIN_PASSWORD environment variable not set")
            raise ConfigurationMissing("ADMIN_PASSWORD")
        if not isinstance(submitted, str):
            return False
        return hmac.compare_digest(
            submitted.encode("utf-8"), self._admin_password.encode("utf-8")
        )


@dataclass(frozen=True)
class SessionPayload:
    authenticated: bool
    role: str
    issued_at_ms: int
    expires_at: int


class SessionTokenManager:
    """
    Issues and verifies signed admin session tokens (HS256 JWTs).

    A token carries both a standard ``exp`` claim and the issue time in
    milliseconds under ``timestamp``; verification enforces both, so a token
    whose ``exp`` looks valid is still rejected once it is older than the
    maximum session age.
    """

    def __init__(
        self,
        secret: Optional[str],
        max_age_ms: int = DEFAULT_SESSION_MAX_AGE_MS,
        clock: Clock = wall_clock_ms,
    ):
        self._secret = secret
        self.max_age_ms = max_age_ms
        self._clock = clock

    @property
    def max_age_seconds(self) -> int:
        return self.max_age_ms // 1000

    def issue(self) -> str:
        if not self._secret:
            logger.error("JWT_SECRET environment variable not set")
            raise ConfigurationMissing("JWT_SECRET")
        now = self._clock()
        claims = {
            "authenticated": True,
            "role": ADMIN_ROLE,
            "timestamp": now,
            "iat": now // 1000,
            "exp": math.ceil((now + self.max_age_ms) / 1000),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> Optional[SessionPayload]:
        if not token or not isinstance(token, str) or not self._secret:
            return None
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                # Expiry is checked below against the injected clock.
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except JWTError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None

        expires_at = claims.get("exp")
        issued_at_ms = claims.get("timestamp")
        if not _is_number(expires_at) or not _is_number(issued_at_ms):
            return None

        now = self._clock()
        if expires_at * 1000 <= now:
            return None
        if now - issued_at_ms > self.max_age_ms:
            return None

        return SessionPayload(
            authenticated=claims.get("authenticated") is True,
            role=str(claims.get("role", "")),
            issued_at_ms=int(issued_at_ms),
            expires_at=int(expires_at),
        )

    def require_auth(self, token: Optional[str]) -> SessionPayload:
        payload = self.verify(token)
        if payload is None or not payload.authenticated:
            raise Unauthorized()
        return payload


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
