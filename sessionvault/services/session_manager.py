"""Session manager: issues, verifies and revokes access/refresh token pairs.

Verification is two-layered. The claim codec proves a token is well formed
and correctly signed; the session store decides whether it is still live.
A signature cannot be withdrawn, so revocation works by deleting the store
record, and a token without a record is rejected even if its claims are
still within ``exp``.

Callers only ever see two failure kinds: Unauthorized (uniform, never says
why) and ServiceUnavailable (the store could not be consulted). The precise
cause is logged.
"""

import logging
import secrets
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sessionvault.core.config import Settings
from sessionvault.core.logging import session_fields
from sessionvault.services.claims import (
    DEFAULT_ALGORITHM,
    ClaimsError,
    ClaimSet,
    decode,
    encode,
)
from sessionvault.services.identifiers import new_identifier
from sessionvault.services.session_store import SessionNotFound, SessionStore, StoreError

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)


class SessionError(Exception):
    """Base error raised to callers of the session manager."""


class Unauthorized(SessionError):
    """The token is not a live, valid session credential."""

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class ServiceUnavailable(SessionError):
    """The session store could not be consulted."""

    def __init__(self, message: str = "session store unavailable"):
        super().__init__(message)


@dataclass(frozen=True)
class TokenPolicy:
    """How to mint one token class."""

    role: str
    lifetime: timedelta
    secret: str = field(repr=False)
    extra_claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IssuedToken:
    token: str = field(repr=False)
    session_id: str
    expires_at: int


@dataclass(frozen=True)
class SessionCredentialPair:
    """Access and refresh tokens returned by a successful login."""

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    access_session_id: str
    refresh_session_id: str
    access_expires_at: int
    refresh_expires_at: int


@dataclass(frozen=True)
class AccessDetails:
    """Identity resolved from a live access token."""

    session_id: str
    user_id: int


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionManager:
    """Issues token pairs and checks them against the session store.

    Holds no mutable state; safe to share across concurrent requests.
    """

    def __init__(
        self,
        store: SessionStore,
        access_secret: str,
        refresh_secret: str,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh secrets must be configured")
        if secrets.compare_digest(access_secret.encode(), refresh_secret.encode()):
            raise ValueError("Access and refresh secrets must differ")
        if access_ttl.total_seconds() < 1 or refresh_ttl.total_seconds() < 1:
            raise ValueError("Token lifetimes must be at least one second")

        self.store = store
        self.algorithm = algorithm
        self._clock = clock
        self._policies = {
            ACCESS: TokenPolicy(ACCESS, access_ttl, access_secret, {"authorized": True}),
            REFRESH: TokenPolicy(REFRESH, refresh_ttl, refresh_secret),
        }

    @classmethod
    def from_settings(cls, store: SessionStore, settings: Settings) -> "SessionManager":
        """Build a manager from application settings."""
        return cls(
            store,
            settings.jwt_access_secret_key,
            settings.jwt_refresh_secret_key,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
        )

    @property
    def access_lifetime(self) -> timedelta:
        return self._policies[ACCESS].lifetime

    @property
    def refresh_lifetime(self) -> timedelta:
        return self._policies[REFRESH].lifetime

    def _now(self) -> int:
        return int(self._clock().timestamp())

    # --- Issuance ---

    def _mint(self, policy: TokenPolicy, user_id: int, now: int) -> IssuedToken:
        """Sign one claim set for ``policy``. EncodingError propagates."""
        session_id = new_identifier()
        expires_at = now + int(policy.lifetime.total_seconds())
        claims = {
            **policy.extra_claims,
            "session_id": session_id,
            "user_id": user_id,
            "exp": expires_at,
            "type": policy.role,
        }
        token = encode(claims, policy.secret, self.algorithm)
        return IssuedToken(token=token, session_id=session_id, expires_at=expires_at)

    async def _register(self, role: str, issued: IssuedToken, user_id: int, now: int) -> None:
        try:
            await self.store.put(issued.session_id, user_id, issued.expires_at - now)
        except StoreError as e:
            logger.warning(
                f"Could not register session: {e}",
                extra=session_fields(role, issued.session_id, user_id),
            )
            raise ServiceUnavailable() from e

    async def issue_session(self, user_id: int) -> SessionCredentialPair:
        """Mint an access/refresh pair for ``user_id`` and register both sessions.

        The access record is written first. If it fails nothing else is
        written; if the refresh write fails the access record is left to
        expire on its own TTL. Either way the caller gets ServiceUnavailable
        and never a partial pair.

        Raises:
            ValueError: If ``user_id`` is not a non-negative integer.
            EncodingError: If the claims cannot be signed.
            ServiceUnavailable: If either store write fails.
        """
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 0:
            raise ValueError(f"user_id must be a non-negative integer, got {user_id!r}")

        now = self._now()
        access = self._mint(self._policies[ACCESS], user_id, now)
        refresh = self._mint(self._policies[REFRESH], user_id, now)
        while refresh.session_id == access.session_id:
            refresh = self._mint(self._policies[REFRESH], user_id, now)

        await self._register(ACCESS, access, user_id, now)
        await self._register(REFRESH, refresh, user_id, now)

        logger.info(
            "Issued session pair", extra=session_fields(ACCESS, access.session_id, user_id)
        )
        return SessionCredentialPair(
            access_token=access.token,
            refresh_token=refresh.token,
            access_session_id=access.session_id,
            refresh_session_id=refresh.session_id,
            access_expires_at=access.expires_at,
            refresh_expires_at=refresh.expires_at,
        )

    # --- Verification ---

    @staticmethod
    def _fields(role: str, claims: ClaimSet) -> dict[str, Any]:
        return session_fields(role, claims.session_id, claims.user_id)

    def _decode(self, raw_token: str | None, role: str) -> ClaimSet:
        if not raw_token:
            logger.debug("Rejected request without a token", extra=session_fields(role))
            raise Unauthorized()

        policy = self._policies[role]
        try:
            claims = decode(raw_token, policy.secret, self.algorithm)
        except ClaimsError as e:
            logger.debug(f"Rejected token: {type(e).__name__}: {e}", extra=session_fields(role))
            raise Unauthorized() from e

        if claims.token_type != role:
            logger.debug(
                f"Rejected token carrying type {claims.token_type!r}",
                extra=self._fields(role, claims),
            )
            raise Unauthorized()
        return claims

    async def authenticate(self, raw_access_token: str | None) -> AccessDetails:
        """Resolve a raw access token to its live session.

        Raises:
            Unauthorized: Missing, malformed, forged, expired, or revoked token.
            ServiceUnavailable: The session store could not be consulted.
        """
        claims = self._decode(raw_access_token, ACCESS)

        if claims.is_expired(self._now()):
            logger.debug("Rejected expired session", extra=self._fields(ACCESS, claims))
            raise Unauthorized()

        try:
            user_id = await self.store.get(claims.session_id)
        except SessionNotFound as e:
            logger.debug("Session is not live", extra=self._fields(ACCESS, claims))
            raise Unauthorized() from e
        except StoreError as e:
            logger.warning(f"Session lookup failed: {e}", extra=self._fields(ACCESS, claims))
            raise ServiceUnavailable() from e

        if user_id != claims.user_id:
            logger.warning(
                f"Session record belongs to user {user_id}, not the token's user",
                extra=self._fields(ACCESS, claims),
            )
            raise Unauthorized()

        return AccessDetails(session_id=claims.session_id, user_id=user_id)

    # --- Revocation ---

    async def _revoke(self, raw_token: str | None, role: str) -> None:
        claims = self._decode(raw_token, role)

        try:
            deleted = await self.store.delete(claims.session_id)
        except StoreError as e:
            logger.warning(f"Session revocation failed: {e}", extra=self._fields(role, claims))
            raise ServiceUnavailable() from e

        if deleted == 0:
            logger.debug("Session was not live", extra=self._fields(role, claims))
            raise Unauthorized()

        logger.info("Revoked session", extra=self._fields(role, claims))

    async def revoke(self, raw_access_token: str | None) -> None:
        """Revoke the session behind an access token.

        A token whose session is already gone raises Unauthorized, so
        logout cannot be used to probe tokens.

        Raises:
            Unauthorized: Token invalid, or no live session was removed.
            ServiceUnavailable: The session store could not be consulted.
        """
        await self._revoke(raw_access_token, ACCESS)

    async def revoke_refresh(self, raw_refresh_token: str | None) -> None:
        """Revoke the session behind a refresh token. Same contract as revoke()."""
        await self._revoke(raw_refresh_token, REFRESH)
