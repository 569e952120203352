"""
Authentication service package.

Provides pluggable authentication with:
- Local username/password credentials hashed with bcrypt
- Database-backed sessions delivered as cookies

Usage:
    from gatehouse.services.auth import get_auth_provider
    from gatehouse.services.auth.dependencies import get_current_user

    # In routes:
    @router.get("/protected")
    async def protected_route(user: User = Depends(get_current_user)):
        ...
"""
from gatehouse.services.auth.base import AuthProvider, ValidatedSession
from gatehouse.services.auth.local_provider import local_auth_provider


def get_auth_provider() -> AuthProvider:
    """Factory function to get the configured auth provider."""
    return local_auth_provider


__all__ = [
    "AuthProvider",
    "ValidatedSession",
    "get_auth_provider",
    "local_auth_provider",
]
