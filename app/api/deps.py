"""
API dependency functions for database sessions and authentication.
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends, Header, HTTPException, status
import logging

from app.database import AsyncSessionLocal
from app.models import PRIVILEGED_ROLES, User
from app.services.supabase_auth import SupabaseAuthError, ensure_user, get_auth_client

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields an async database session that automatically commits on success
    and rolls back on error.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization[len("Bearer "):].strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Authenticated user for the request.

    Verifies the bearer token with Supabase Auth and returns the local
    User, creating it on first sight.

    Raises:
        HTTPException: 401 if the token is missing or rejected, 403 if the
        user has been deactivated
    """
    token = _bearer_token(authorization)

    try:
        supabase_user = await get_auth_client().get_user(token)
    except SupabaseAuthError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await ensure_user(db, supabase_user)
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is deactivated"
        )
    return user


async def require_admin_or_manager(
    user: User = Depends(get_current_user)
) -> User:
    """
    Restrict an endpoint to admins and managers.

    Raises:
        HTTPException: 403 for any other role
    """
    if user.role not in PRIVILEGED_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or manager role required"
        )
    return user
