"""Integration tests for /api/v1/auth endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from unishare.kernel.models import EventLog

DEFAULT_PASSWORD = "SecurePass123"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestRegistration:
    """Tests for account registration."""
    
    @pytest.mark.asyncio
    async def test_register_returns_token_pair(self, client: AsyncClient):
        """Test that registration returns tokens and the normalized user."""
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": "NewUser",
                "email": "NewUser@Example.com",
                "password": DEFAULT_PASSWORD,
                "full_name": "New User",
            },
        )
        
        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "newuser"
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["bio"] == "Hello, I'm new here!"
    
    @pytest.mark.asyncio
    async def test_registration_opens_an_audited_session(self, client: AsyncClient, db_session):
        """Test that sign-up issues a working session recorded as a registration login."""
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": "fresher",
                "email": "fresher@example.com",
                "password": DEFAULT_PASSWORD,
                "full_name": "Fresh Student",
            },
        )
        assert response.status_code == 201
        
        me = await client.get("/api/v1/auth/me", headers=bearer(response.json()["access_token"]))
        assert me.status_code == 200
        
        logins = (
            await db_session.execute(
                select(EventLog.payload).where(EventLog.event_type == "user.logged_in")
            )
        ).scalars().all()
        assert logins == [{"method": "registration"}]
    
    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, client: AsyncClient, register_user):
        """Test registration with an e-mail already in use."""
        await register_user("first", email="dup@example.com")
        
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": "second",
                "email": "dup@example.com",
                "password": DEFAULT_PASSWORD,
                "full_name": "Second User",
            },
        )
        
        assert response.status_code == 400
        assert response.json()["detail"] == "Email is already in use"
    
    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, client: AsyncClient, register_user):
        """Test registration with a username already in use."""
        await register_user("taken")
        
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": "TAKEN",
                "email": "other@example.com",
                "password": DEFAULT_PASSWORD,
                "full_name": "Other User",
            },
        )
        
        assert response.status_code == 400
        assert response.json()["detail"] == "Username is already in use"
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,value",
        [
            ("password", "weakpass"),
            ("username", "bad name!"),
            ("full_name", "R2D2"),
            ("email", "not-an-email"),
        ],
    )
    async def test_invalid_registration_fields(self, client: AsyncClient, field, value):
        """Test field validation on registration."""
        body = {
            "username": "valid_name",
            "email": "valid@example.com",
            "password": DEFAULT_PASSWORD,
            "full_name": "Valid Name",
        }
        body[field] = value
        
        response = await client.post("/api/v1/auth/register", json=body)
        
        assert response.status_code == 422
        assert any(field in error["field"] for error in response.json()["errors"])


class TestLoginAndTokens:
    """Tests for login, refresh and logout."""
    
    @pytest.mark.asyncio
    async def test_login_by_email(self, client: AsyncClient, register_user):
        """Test login with e-mail and password."""
        await register_user("alice")
        
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )
        
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"
    
    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, register_user):
        """Test login with a wrong password."""
        await register_user("alice")
        
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "WrongPass999"},
        )
        
        assert response.status_code == 401
    
    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        """Test that /me needs a bearer token."""
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
    
    @pytest.mark.asyncio
    async def test_me_with_invalid_token(self, client: AsyncClient):
        """Test /me with a malformed token."""
        response = await client.get("/api/v1/auth/me", headers=bearer("garbage"))
        assert response.status_code == 401
    
    @pytest.mark.asyncio
    async def test_refresh_rotates_tokens(self, client: AsyncClient, register_user):
        """Test that refreshing invalidates the old refresh token."""
        user = await register_user("alice")
        
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": user["refresh_token"]},
        )
        assert response.status_code == 200
        rotated = response.json()
        assert rotated["refresh_token"] != user["refresh_token"]
        
        # The old refresh token was revoked by the rotation
        replay = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": user["refresh_token"]},
        )
        assert replay.status_code == 401
    
    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, client: AsyncClient, register_user):
        """Test that an access token is refused by /refresh."""
        user = await register_user("alice")
        
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": user["access_token"]},
        )
        
        assert response.status_code == 401
    
    @pytest.mark.asyncio
    async def test_logout_revokes_refresh_token(self, client: AsyncClient, register_user):
        """Test that logout revokes the refresh token."""
        user = await register_user("alice")
        
        response = await client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": user["refresh_token"]},
            headers=user["headers"],
        )
        assert response.status_code == 200
        
        refresh = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": user["refresh_token"]},
        )
        assert refresh.status_code == 401


class TestProfile:
    """Tests for profile pages and password changes."""
    
    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, register_user):
        """Test editing full name, bio and avatar."""
        user = await register_user("alice")
        
        response = await client.patch(
            "/api/v1/auth/me",
            json={"bio": "Third year CSE student", "avatar_url": "https://img.example.com/a.png"},
            headers=user["headers"],
        )
        
        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Third year CSE student"
        assert data["avatar_url"] == "https://img.example.com/a.png"
        assert data["full_name"] == "Alice Example"
    
    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, register_user):
        """Test that a password change signs out old sessions."""
        user = await register_user("alice")
        
        wrong = await client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "Nope12345", "new_password": "BrandNew456"},
            headers=user["headers"],
        )
        assert wrong.status_code == 400
        
        response = await client.post(
            "/api/v1/auth/change-password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "BrandNew456"},
            headers=user["headers"],
        )
        assert response.status_code == 200
        
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "BrandNew456"},
        )
        assert login.status_code == 200
        
        # All sessions were signed out
        refresh = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": user["refresh_token"]},
        )
        assert refresh.status_code == 401
    
    @pytest.mark.asyncio
    async def test_public_profile_lists_unblocked_resources(
        self, client: AsyncClient, register_user, create_resource, create_admin
    ):
        """Test that public profiles hide blocked resources."""
        user = await register_user("alice")
        admin = await create_admin()
        await create_resource(user["headers"], title="Visible Notes")
        hidden = await create_resource(user["headers"], title="Hidden Notes")
        await client.patch(f"/api/v1/admin/resources/{hidden}/block", headers=admin["headers"])
        
        response = await client.get("/api/v1/users/alice")
        
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert [r["slug"] for r in data["resources"]] == ["visible-notes"]
    
    @pytest.mark.asyncio
    async def test_unknown_profile(self, client: AsyncClient):
        """Test the profile of a username that does not exist."""
        response = await client.get("/api/v1/users/nobody")
        assert response.status_code == 404
