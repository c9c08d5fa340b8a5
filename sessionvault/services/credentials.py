"""Credential verification used by the login endpoint.

The password check itself belongs to an external user directory; the
service only depends on the CredentialVerifier protocol. The static
verifier here backs a single configured login.
"""

import logging
import secrets
from typing import Protocol

from sessionvault.core.config import Settings

logger = logging.getLogger(__name__)


class CredentialVerifier(Protocol):
    """Checks a username/password pair."""

    async def verify(self, username: str, password: str) -> int | None:
        """Return the user id if the credentials are valid, else None."""
        ...


class StaticCredentialVerifier:
    """Verifies against one configured username/password.

    Both fields are compared in constant time. An empty configured
    password disables login entirely.
    """

    def __init__(self, username: str, password: str, user_id: int):
        self.username = username
        self._password = password
        self.user_id = user_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticCredentialVerifier":
        return cls(settings.auth_username, settings.auth_password, settings.auth_user_id)

    async def verify(self, username: str, password: str) -> int | None:
        if not self._password:
            logger.warning("Login attempted but no AUTH_PASSWORD is configured")
            return None

        username_ok = secrets.compare_digest(username.encode(), self.username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        if username_ok and password_ok:
            return self.user_id
        return None
