"""Claim codec: signs and verifies session claim sets as JWTs.

Decoding pins the expected algorithm and checks the token header against it
before any signature work, so a token can never choose its own algorithm
(``none``, or a different HMAC). Expiry is not checked here;
liveness is the session manager's concern.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import jwt
from jwt.exceptions import InvalidAlgorithmError, InvalidSignatureError, PyJWTError

DEFAULT_ALGORITHM = "HS256"

# Claims every session token must carry
REQUIRED_CLAIMS = ("session_id", "user_id", "exp")


class ClaimsError(Exception):
    """Base error for claim encoding and decoding."""


class EncodingError(ClaimsError):
    """Claims could not be signed."""


class MalformedToken(ClaimsError):
    """Token is not a well-formed signed envelope or lacks required claims."""


class InvalidSignature(ClaimsError):
    """Signature does not verify against the secret."""


class UnsupportedAlgorithm(ClaimsError):
    """Token declares an algorithm other than the pinned one."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ClaimSet:
    """Decoded, validated claims of a session token."""

    session_id: str
    user_id: int
    exp: int
    token_type: str | None = None
    authorized: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClaimSet":
        """Validate a raw JWT payload and build a ClaimSet.

        Raises:
            MalformedToken: If a required claim is missing or has the wrong type.
        """
        missing = [name for name in REQUIRED_CLAIMS if name not in payload]
        if missing:
            raise MalformedToken(f"Missing required claims: {', '.join(missing)}")

        session_id = payload["session_id"]
        if not isinstance(session_id, str) or not session_id:
            raise MalformedToken("Claim 'session_id' must be a non-empty string")

        user_id = payload["user_id"]
        if not _is_int(user_id) or user_id < 0:
            raise MalformedToken("Claim 'user_id' must be a non-negative integer")

        exp = payload["exp"]
        if not (_is_int(exp) or (isinstance(exp, float) and math.isfinite(exp))):
            raise MalformedToken("Claim 'exp' must be a unix timestamp")

        token_type = payload.get("type")
        if token_type is not None and not isinstance(token_type, str):
            raise MalformedToken("Claim 'type' must be a string")

        return cls(
            session_id=session_id,
            user_id=user_id,
            exp=int(exp),
            token_type=token_type,
            authorized=payload.get("authorized") is True,
        )

    def is_expired(self, now: int) -> bool:
        """True once ``now`` (unix seconds) has reached ``exp``."""
        return self.exp <= now


def encode(claims: Mapping[str, Any], secret: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Sign a claim mapping.

    Raises:
        EncodingError: If the claims are not a JSON-serialisable mapping,
            the secret is empty, or the algorithm is unknown.
    """
    if not secret:
        raise EncodingError("Signing secret must not be empty")
    if not isinstance(claims, Mapping):
        raise EncodingError(f"Claims must be a mapping, got {type(claims).__name__}")

    try:
        token = jwt.encode(dict(claims), secret, algorithm=algorithm)
    except (TypeError, ValueError, NotImplementedError, PyJWTError) as e:
        raise EncodingError(f"Could not encode claims: {e}") from e
    # PyJWT 2.x returns str; older type stubs may declare bytes
    return str(token)


def decode(token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> ClaimSet:
    """Verify a signed token and return its claims. Does not check expiry.

    Raises:
        MalformedToken: Not a three-part envelope, unreadable, or bad claims.
        UnsupportedAlgorithm: Header declares an algorithm other than ``algorithm``.
        InvalidSignature: Signature does not verify against ``secret``.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise MalformedToken("Token is not a three-part signed envelope")

    try:
        header = jwt.get_unverified_header(token)
    except PyJWTError as e:
        raise MalformedToken(f"Unreadable token header: {e}") from e

    declared = header.get("alg")
    if declared != algorithm:
        raise UnsupportedAlgorithm(f"Token declares algorithm {declared!r}, expected {algorithm!r}")

    if not secret:
        raise InvalidSignature("No verification secret configured")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
        )
    except InvalidSignatureError as e:
        raise InvalidSignature("Signature verification failed") from e
    except InvalidAlgorithmError as e:
        raise UnsupportedAlgorithm(str(e)) from e
    except PyJWTError as e:
        raise MalformedToken(f"Invalid token: {e}") from e

    return ClaimSet.from_payload(payload)
