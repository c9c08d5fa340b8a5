# SessionVault API Routers
from sessionvault.api import auth, health, todos

__all__ = ["auth", "health", "todos"]
