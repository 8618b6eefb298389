"""
Admin login, logout and session verification endpoints.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from caucus_api.auth import SESSION_COOKIE_NAME, SessionPayload
from caucus_api.config import Settings
from caucus_api.dependencies import (
    SecurityContext,
    client_identifier,
    get_app_settings,
    get_security,
    optional_admin,
)
from caucus_api.errors import InvalidCredentials, RateLimited
from caucus_api.schemas import LoginRequest, SuccessResponse, VerifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


async def _submitted_password(request: Request) -> Optional[str]:
    """Password from the JSON body; absent or malformed bodies yield None."""
    try:
        payload = LoginRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return None
    return payload.password


@router.post("/auth/login", response_model=SuccessResponse)
async def login(
    request: Request,
    response: Response,
    client_id: str = Depends(client_identifier),
    security: SecurityContext = Depends(get_security),
    settings: Settings = Depends(get_app_settings),
):
    """
    Exchange the admin password for a session cookie.

    Every attempt counts against the caller's login budget, including ones
    with a missing or malformed body; a successful login clears it.
    """
    allowed = security.login_limiter.check_and_record(
        client_id, settings.login_max_attempts, settings.login_window_ms
    )
    if not allowed:
        logger.warning("Login rate limit exceeded for %s", client_id)
        minutes = max(1, settings.login_window_seconds // 60)
        raise RateLimited(f"Too many attempts. Please try again in {minutes} minutes.")

    if not security.credentials.verify(await _submitted_password(request)):
        logger.warning("Invalid admin password from %s", client_id)
        raise InvalidCredentials()

    token = security.sessions.issue()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=security.sessions.max_age_seconds,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="strict",
    )
    security.login_limiter.clear(client_id)
    logger.info("Admin session issued for %s", client_id)
    return SuccessResponse()


@router.delete("/auth/login", response_model=SuccessResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)):
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="strict",
    )
    return SuccessResponse()


@router.get("/auth/verify", response_model=VerifyResponse)
def verify(session: Optional[SessionPayload] = Depends(optional_admin)):
    if session is None:
        return JSONResponse(
            status_code=401, content={"success": False, "authenticated": False}
        )
    return VerifyResponse(success=True, authenticated=True, role=session.role)
