"""
Authentication provider interface.

Identity resolution lives outside the engine; routers only need a user id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated user."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IAuthProvider(ABC):
    """Abstract interface for authentication providers."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """Verify a bearer token and return the user it belongs to."""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        pass
