"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from sessionvault.core.logging import session_fields
from sessionvault.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    TokenResponse,
)
from sessionvault.services.claims import EncodingError
from sessionvault.services.credentials import CredentialVerifier
from sessionvault.services.session_manager import (
    AccessDetails,
    ServiceUnavailable,
    SessionManager,
    Unauthorized,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def extract_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Returns None for a missing header, any other scheme, or an empty token.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_session_manager(request: Request) -> SessionManager:
    """Dependency to get the session manager built at startup."""
    manager: SessionManager | None = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store not initialized",
        )
    return manager


def get_credential_verifier(request: Request) -> CredentialVerifier:
    """Dependency to get the login credential verifier."""
    return request.app.state.credential_verifier


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Session store unavailable, please retry",
    )


async def get_current_session(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
) -> AccessDetails:
    """Dependency to resolve the caller's live session from the Bearer token."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    try:
        return await manager.authenticate(token)
    except Unauthorized as e:
        raise _unauthorized() from e
    except ServiceUnavailable as e:
        raise _unavailable() from e


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> TokenResponse:
    """Authenticate and get JWT tokens.

    Every login creates an independent session pair; earlier sessions of
    the same user stay valid.
    """
    user_id = await verifier.verify(request.username, request.password)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please provide valid login details",
        )

    try:
        pair = await manager.issue_session(user_id)
    except ServiceUnavailable as e:
        raise _unavailable() from e
    except EncodingError as e:
        logger.exception("Could not sign session tokens")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not issue session",
        ) from e

    logger.info("User logged in", extra=session_fields(user_id=user_id))
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=int(manager.access_lifetime.total_seconds()),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    body: LogoutRequest | None = None,
    manager: SessionManager = Depends(get_session_manager),
) -> MessageResponse:
    """Log out the current session.

    Deletes the access token's session record so the token is rejected
    from now on. If a refresh token is supplied its record is deleted too;
    a refresh token that is already gone does not fail the logout.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    try:
        await manager.revoke(token)
    except Unauthorized as e:
        raise _unauthorized() from e
    except ServiceUnavailable as e:
        raise _unavailable() from e

    if body is not None and body.refresh_token:
        try:
            await manager.revoke_refresh(body.refresh_token)
        except Unauthorized:
            logger.debug("Refresh token at logout was invalid or already revoked")
        except ServiceUnavailable:
            logger.warning("Refresh session not revoked at logout; it will expire on its own TTL")

    return MessageResponse(message="Successfully logged out")
