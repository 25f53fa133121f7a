"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from gatherly.core.config import get_settings
from gatherly.core.security import extract_bearer_token, verify_cron_secret
from gatherly.interfaces.auth_provider import IAuthProvider, User
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.interfaces.notification_repository import INotificationRepository


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_group_repository() -> IGroupRepository:
    """Get group repository instance."""
    from gatherly.infrastructure.local.group_repository import SqliteGroupRepository
    return SqliteGroupRepository()


@lru_cache()
def get_event_repository() -> IEventRepository:
    """Get event repository instance."""
    from gatherly.infrastructure.local.event_repository import SqliteEventRepository
    return SqliteEventRepository()


@lru_cache()
def get_notification_repository() -> INotificationRepository:
    """Get notification repository instance."""
    from gatherly.infrastructure.local.notification_repository import (
        SqliteNotificationRepository,
    )
    return SqliteNotificationRepository()


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER != "mock":
        raise ValueError(f"Unknown AUTH_PROVIDER: {settings.AUTH_PROVIDER}")

    from gatherly.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


# ===========================================
# User Authentication
# ===========================================


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    With the mock provider the bearer token is the user id.
    """
    if not auth_provider.is_enabled():
        return User(id="dev_user", email="dev@example.com", display_name="Developer")

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    token = extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        return await auth_provider.verify_token(token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


async def require_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """
    Guard for the job trigger endpoint.

    500 when no secret is configured, 401 when the presented one differs.
    """
    expected = get_settings().CRON_SECRET
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CRON_SECRET is not configured",
        )
    if not verify_cron_secret(extract_bearer_token(authorization), expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

GroupRepo = Annotated[IGroupRepository, Depends(get_group_repository)]
EventRepo = Annotated[IEventRepository, Depends(get_event_repository)]
NotificationRepo = Annotated[INotificationRepository, Depends(get_notification_repository)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CronAuthorized = Annotated[None, Depends(require_cron_secret)]
