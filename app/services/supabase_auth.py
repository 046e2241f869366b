"""
Supabase Auth client.

Bearer tokens issued to the admin UI are verified by asking the Supabase
Auth REST API who they belong to. The matching local User row is created
the first time a user is seen.
"""

import httpx
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import User

logger = logging.getLogger(__name__)


class SupabaseAuthError(Exception):
    """Raised when a token cannot be verified."""
    pass


class SupabaseAuthClient:
    """Async client for the Supabase Auth `/user` endpoint."""

    TIMEOUT = 10.0  # seconds

    def __init__(self, auth_url: str, anon_key: str):
        """
        Initialize the client.

        Args:
            auth_url: Supabase Auth base URL (https://<ref>.supabase.co/auth/v1)
            anon_key: Project anon key, sent as the `apikey` header
        """
        self.auth_url = auth_url.rstrip("/")
        self.anon_key = anon_key
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "apikey": self.anon_key,
                    "Accept": "application/json"
                },
                timeout=self.TIMEOUT
            )

    async def close(self):
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_user(self, token: str) -> Dict[str, Any]:
        """
        Resolve an access token to the Supabase user it was issued to.

        Args:
            token: JWT from the Authorization header, without "Bearer "

        Returns:
            Supabase user object (id, email, user_metadata, ...)

        Raises:
            SupabaseAuthError: If the token is rejected or Supabase is unreachable
        """
        await self._ensure_client()

        try:
            response = await self._client.get(
                f"{self.auth_url}/user",
                headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.RequestError as e:
            logger.error(f"Supabase auth request failed: {e}")
            raise SupabaseAuthError("Auth service unavailable") from e

        if response.status_code in (401, 403):
            raise SupabaseAuthError("Invalid or expired token")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Supabase auth error {e.response.status_code}: {e.response.text}"
            )
            raise SupabaseAuthError(f"HTTP {e.response.status_code}") from e

        user = response.json()
        if not isinstance(user, dict) or not user.get("id"):
            raise SupabaseAuthError("Invalid or expired token")
        return user


def profile_from_supabase(user: Dict[str, Any]) -> Dict[str, Any]:
    """Local profile columns from a Supabase user's metadata."""
    metadata = user.get("user_metadata") or {}
    full_name = str(metadata.get("full_name") or "").strip()
    name_parts = full_name.split(" ") if full_name else []

    return {
        "email": user.get("email"),
        "first_name": metadata.get("first_name") or (name_parts[0] if name_parts else None),
        "last_name": metadata.get("last_name") or (" ".join(name_parts[1:]) or None),
        "profile_image_url": metadata.get("avatar_url"),
    }


async def ensure_user(session: AsyncSession, supabase_user: Dict[str, Any]) -> User:
    """
    Get or create the local User for a verified Supabase user.

    A row that already exists for the same email under another id is
    re-keyed to the Supabase id so role checks keep working.
    """
    user_id = UUID(str(supabase_user["id"]))
    user = await session.get(User, user_id)
    if user is not None:
        return user

    profile = profile_from_supabase(supabase_user)

    if profile["email"]:
        result = await session.execute(select(User).where(User.email == profile["email"]))
        existing = result.scalar_one_or_none()
        if existing is not None:
            logger.info(f"Re-keying user {existing.email} to Supabase id {user_id}")
            existing.id = user_id
            await session.flush()
            return existing

    user = User(id=user_id, role="support_staff", is_active=True, **profile)
    session.add(user)
    await session.flush()
    logger.info(f"Created user {user.email or user_id} on first sign-in")
    return user


_auth_client: Optional[SupabaseAuthClient] = None


def get_auth_client() -> SupabaseAuthClient:
    """Shared client built from settings."""
    global _auth_client
    if _auth_client is None:
        _auth_client = SupabaseAuthClient(settings.supabase_auth_url, settings.SUPABASE_ANON_KEY)
    return _auth_client


async def close_auth_client() -> None:
    global _auth_client
    if _auth_client is not None:
        await _auth_client.close()
        _auth_client = None
