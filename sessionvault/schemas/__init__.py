# SessionVault Pydantic Schemas
from sessionvault.schemas.auth import (
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    TokenResponse,
)
from sessionvault.schemas.todo import TodoCreate, TodoResponse

__all__ = [
    "LoginRequest",
    "LogoutRequest",
    "MessageResponse",
    "TodoCreate",
    "TodoResponse",
    "TokenResponse",
]
