"""
Dependency wiring for the FastAPI app.

Long-lived collaborators (database client, rate limiters, session manager)
are built once by ``create_app`` and kept on ``app.state``; the functions here
hand them to route handlers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Query, Request

from caucus_api.auth import (
    SESSION_COOKIE_NAME,
    CredentialChecker,
    SessionPayload,
    SessionTokenManager,
)
from caucus_api.config import Settings
from caucus_api.db import DbClient, InMemoryDbClient, SqlDbClient
from caucus_api.errors import Unauthorized
from caucus_api.rate_limit import (
    Clock,
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitSweeper,
    RedisRateLimiter,
    wall_clock_ms,
)

logger = logging.getLogger(__name__)


@dataclass
class SecurityContext:
    credentials: CredentialChecker
    sessions: SessionTokenManager
    login_limiter: RateLimiter
    contact_limiter: RateLimiter
    sweeper: RateLimitSweeper


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory database backend")
        return InMemoryDbClient()
    return SqlDbClient(settings.database_url)


def build_rate_limiter(settings: Settings, namespace: str, clock: Clock) -> RateLimiter:
    if settings.redis_url and not settings.use_in_memory_backends:
        return RedisRateLimiter(
            url=settings.redis_url,
            key_prefix=f"{settings.redis_key_prefix}:{namespace}",
            clock=clock,
        )
    return InMemoryRateLimiter(clock=clock)


def build_security_context(
    settings: Settings, clock: Clock = wall_clock_ms
) -> SecurityContext:
    login_limiter = build_rate_limiter(settings, "login", clock)
    contact_limiter = build_rate_limiter(settings, "contact", clock)
    sweeper = RateLimitSweeper(
        [
            (login_limiter, settings.login_window_ms),
            (contact_limiter, settings.contact_window_ms),
        ],
        interval_seconds=settings.rate_limit_sweep_interval_seconds,
    )
    return SecurityContext(
        credentials=CredentialChecker(settings.admin_password),
        sessions=SessionTokenManager(
            settings.jwt_secret,
            max_age_ms=settings.session_max_age_ms,
            clock=clock,
        ),
        login_limiter=login_limiter,
        contact_limiter=contact_limiter,
        sweeper=sweeper,
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_security(request: Request) -> SecurityContext:
    return request.app.state.security


def client_identifier(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str:
    """
    Key used to bucket rate-limit state.

    The socket peer is used unless ``trust_proxy_headers`` is enabled, in which
    case the first X-Forwarded-For hop, then X-Real-IP, take precedence.
    """
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = (request.headers.get("x-real-ip") or "").strip()
        if real_ip:
            return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def optional_admin(
    request: Request, security: SecurityContext = Depends(get_security)
) -> Optional[SessionPayload]:
    payload = security.sessions.verify(request.cookies.get(SESSION_COOKIE_NAME))
    if payload is None or not payload.authenticated:
        return None
    return payload


def require_admin(
    request: Request, security: SecurityContext = Depends(get_security)
) -> SessionPayload:
    return security.sessions.require_auth(request.cookies.get(SESSION_COOKIE_NAME))


def admin_view(
    admin: bool = Query(False),
    session: Optional[SessionPayload] = Depends(optional_admin),
) -> bool:
    """True when ``?admin=true`` was requested by an authenticated admin."""
    if not admin:
        return False
    if session is None:
        raise Unauthorized()
    return True
