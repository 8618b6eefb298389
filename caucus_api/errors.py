"""
Error taxonomy shared by the auth core and the HTTP layer.

Every error carries the status code and public message the API answers with,
so routes raise and a single exception handler renders the JSON envelope.
"""

from __future__ import annotations


class CaucusError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidCredentials(CaucusError):
    status_code = 401
    public_message = "Invalid password"


class RateLimited(CaucusError):
    status_code = 429
    public_message = "Too many attempts. Please try again in 15 minutes."


class Unauthorized(CaucusError):
    """Missing, expired or invalid admin session."""

    status_code = 401
    public_message = "Authentication required"


class ConfigurationMissing(CaucusError):
    """A required secret is not configured; authentication cannot proceed."""

    status_code = 500
    public_message = "Server configuration error"

    def __init__(self, setting: str):
        super().__init__()
        self.setting = setting

    def __str__(self) -> str:
        return f"{self.setting} is not configured"
