# SessionVault Services
from sessionvault.services.claims import (
    ClaimsError,
    ClaimSet,
    EncodingError,
    InvalidSignature,
    MalformedToken,
    UnsupportedAlgorithm,
)
from sessionvault.services.credentials import CredentialVerifier, StaticCredentialVerifier
from sessionvault.services.identifiers import new_identifier
from sessionvault.services.session_manager import (
    AccessDetails,
    ServiceUnavailable,
    SessionCredentialPair,
    SessionError,
    SessionManager,
    Unauthorized,
)
from sessionvault.services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionNotFound,
    SessionStore,
    SessionStoreError,
    StoreError,
)

__all__ = [
    "AccessDetails",
    "ClaimSet",
    "ClaimsError",
    "CredentialVerifier",
    "EncodingError",
    "InMemorySessionStore",
    "InvalidSignature",
    "MalformedToken",
    "RedisSessionStore",
    "ServiceUnavailable",
    "SessionCredentialPair",
    "SessionError",
    "SessionManager",
    "SessionNotFound",
    "SessionStore",
    "SessionStoreError",
    "StaticCredentialVerifier",
    "StoreError",
    "Unauthorized",
    "UnsupportedAlgorithm",
    "new_identifier",
]
