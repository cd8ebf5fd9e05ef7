"""FastAPI dependencies for authentication, plans and database sessions."""

import uuid
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from investflow.core.db import get_db, get_session_factory
from investflow.core.plan_features import effective_plan_key
from investflow.core.security import decode_access_token
from investflow.models.models import User
from investflow.services.dispatch_service import InvestmentEventDispatcher
from investflow.utils.exceptions import ForbiddenException, UnauthorizedException

bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        return None

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token."""
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise UnauthorizedException("Could not validate credentials")
    return user


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[User]:
    """Get current user if authenticated, otherwise return None."""
    return await _user_from_credentials(credentials, db)


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_admin:
        raise ForbiddenException("Admin access required")
    return current_user


def plan_for(user: Optional[User]) -> str:
    if user is None:
        return effective_plan_key(None)
    return effective_plan_key(user.plan_key, user.plan_status.value)


def get_caller_plan(
    user: Annotated[Optional[User], Depends(get_current_user_optional)],
) -> str:
    return plan_for(user)


def get_event_dispatcher() -> InvestmentEventDispatcher:
    # Background tasks outlive the request session; they open their own
    return InvestmentEventDispatcher(session_factory=get_session_factory())


# Convenience type aliases
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
CallerPlan = Annotated[str, Depends(get_caller_plan)]
EventDispatcher = Annotated[InvestmentEventDispatcher, Depends(get_event_dispatcher)]
DB = Annotated[AsyncSession, Depends(get_db)]
