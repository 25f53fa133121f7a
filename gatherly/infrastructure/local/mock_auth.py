"""
Mock authentication provider for local development.
"""

from gatherly.core.exceptions import AuthenticationError
from gatherly.interfaces.auth_provider import IAuthProvider, User


class MockAuthProvider(IAuthProvider):
    """Mock auth provider: the bearer token is the user id."""

    def __init__(self, enabled: bool = True):
        self._enabled = enabled

    async def verify_token(self, token: str) -> User:
        """
        Verify token - in mock mode, token is treated as user_id.

        Raises:
            AuthenticationError: If the token is empty
        """
        token = (token or "").strip()
        if not token:
            raise AuthenticationError("Empty token")
        if "@" in token:
            return User(id=token, email=token, display_name=token)
        return User(id=token, email=f"{token}@example.com", display_name=token)

    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return self._enabled
