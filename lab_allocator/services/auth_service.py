"""Admin gating for roster edits and allocation runs."""

from __future__ import annotations

import secrets
from typing import Optional

from lab_allocator.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class EmailDomainNotAllowedError(AuthenticationError):
    """Raised when the login email is outside the allowed domain."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided token is invalid."""


class AuthService:
    """Checks admin credentials and issues one bearer session at a time."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._session_token: str | None = None
        self._session_email: str | None = None

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    @property
    def session_email(self) -> str | None:
        return self._session_email

    def _check_email_domain(self, email: str) -> None:
        domain = self._settings.allowed_email_domain.lstrip("@").lower()
        if not domain:
            return
        if not email.strip().lower().endswith(f"@{domain}"):
            raise EmailDomainNotAllowedError(
                f"Only @{domain} accounts may administer allocations"
            )

    def login(self, email: str, provided_admin_token: str) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        self._check_email_domain(email)
        if not secrets.compare_digest(provided_admin_token, self._settings.admin_token):
            raise InvalidAdminTokenError("Invalid admin token")
        self._session_token = secrets.token_urlsafe(32)
        self._session_email = email.strip().lower()
        return self._session_token

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        if self._session_token is None:
            raise InvalidAdminTokenError("No active session. Login first.")
        if not secrets.compare_digest(bearer_token, self._session_token):
            raise InvalidAdminTokenError("Invalid bearer token")

    def logout(self) -> None:
        self._session_token = None
        self._session_email = None
