"""
Tests for the Supabase Auth client and local user provisioning.
"""

import httpx
import pytest
from uuid import UUID, uuid4
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User
from app.services.supabase_auth import (
    SupabaseAuthClient,
    SupabaseAuthError,
    ensure_user,
    profile_from_supabase,
)


AUTH_URL = "https://test-project.supabase.co/auth/v1/"
SUPABASE_ID = "6f1c2a9e-4b7d-4c1e-9a55-0d2f7e3b8c10"


def make_client(handler) -> SupabaseAuthClient:
    client = SupabaseAuthClient(AUTH_URL, "anon-key")
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers={"apikey": "anon-key"},
    )
    return client


@pytest.mark.asyncio
@pytest.mark.auth
class TestSupabaseAuthClient:
    """Test suite for SupabaseAuthClient.get_user."""

    async def test_valid_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["authorization"] = request.headers["Authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={"id": SUPABASE_ID, "email": "asha@studio.test"})

        async with make_client(handler) as client:
            user = await client.get_user("token-123")

        assert user["email"] == "asha@studio.test"
        assert seen == {
            "url": "https://test-project.supabase.co/auth/v1/user",
            "authorization": "Bearer token-123",
            "apikey": "anon-key",
        }

    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_token(self, status):
        client = make_client(lambda request: httpx.Response(status, json={"msg": "bad jwt"}))

        with pytest.raises(SupabaseAuthError, match="Invalid or expired token"):
            await client.get_user("expired")
        await client.close()

    async def test_server_error(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(SupabaseAuthError, match="HTTP 500"):
            await client.get_user("token")
        await client.close()

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(SupabaseAuthError, match="unavailable"):
            await client.get_user("token")
        await client.close()

    async def test_response_without_id(self):
        client = make_client(lambda request: httpx.Response(200, json={"email": "x@studio.test"}))

        with pytest.raises(SupabaseAuthError):
            await client.get_user("token")
        await client.close()


@pytest.mark.auth
class TestProfile:
    """Test suite for profile_from_supabase."""

    def test_explicit_names(self):
        profile = profile_from_supabase({
            "email": "asha@studio.test",
            "user_metadata": {"first_name": "Asha", "last_name": "Rao", "avatar_url": "https://img/a.png"},
        })

        assert profile == {
            "email": "asha@studio.test",
            "first_name": "Asha",
            "last_name": "Rao",
            "profile_image_url": "https://img/a.png",
        }

    def test_full_name_split(self):
        profile = profile_from_supabase({"user_metadata": {"full_name": "Meera Anand Iyer"}})

        assert profile["first_name"] == "Meera"
        assert profile["last_name"] == "Anand Iyer"

    def test_no_metadata(self):
        profile = profile_from_supabase({"email": "x@studio.test"})

        assert profile["first_name"] is None
        assert profile["last_name"] is None


@pytest.mark.asyncio
@pytest.mark.database
@pytest.mark.auth
class TestEnsureUser:
    """Test suite for ensure_user."""

    async def test_creates_support_staff(self, db_session: AsyncSession):
        user = await ensure_user(db_session, {
            "id": SUPABASE_ID,
            "email": "new@studio.test",
            "user_metadata": {"full_name": "New Person"},
        })

        assert user.id == UUID(SUPABASE_ID)
        assert user.role == "support_staff"
        assert user.first_name == "New"

    async def test_returns_existing_user(self, db_session: AsyncSession, create_user):
        existing = await create_user(id=UUID(SUPABASE_ID), role="manager")

        user = await ensure_user(db_session, {"id": SUPABASE_ID, "email": existing.email})

        assert user is existing
        assert user.role == "manager"

    async def test_rekeys_user_with_same_email(self, db_session: AsyncSession, create_user):
        existing = await create_user(id=uuid4(), email="seeded@studio.test", role="admin")

        user = await ensure_user(db_session, {"id": SUPABASE_ID, "email": "seeded@studio.test"})

        assert user is existing
        assert user.id == UUID(SUPABASE_ID)
        assert user.role == "admin"
        users = (await db_session.execute(select(User))).scalars().all()
        assert len(users) == 1
