"""Integration tests for the e-mailed password reset flow."""

from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from unishare.kernel.models import User

GENERIC_MESSAGE = "If an account exists for this email, a password reset link has been sent."


def reset_link(mail: dict) -> dict:
    """Pull the reset URL out of a recorded message and parse its query."""
    url = next(word for word in mail["text"].split() if word.startswith("http"))
    parsed = urlparse(url)
    query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
    return {"url": url, "path": parsed.path, **query}


class TestRequestReset:
    """Tests for requesting a reset link."""
    
    @pytest.mark.asyncio
    async def test_known_email_gets_link(self, client: AsyncClient, register_user, mailer):
        """Test that a known address is mailed a reset link."""
        await register_user("alice")
        
        response = await client.post(
            "/api/v1/password/request-reset", json={"email": "alice@example.com"}
        )
        
        assert response.status_code == 202
        assert response.json()["message"] == GENERIC_MESSAGE
        assert len(mailer.outbox) == 1
        
        link = reset_link(mailer.outbox[0])
        assert mailer.outbox[0]["to"] == "alice@example.com"
        assert link["url"].startswith("http://unishare.test/password/reset?")
        assert link["email"] == "alice@example.com"
        assert len(link["token"]) == 64
    
    @pytest.mark.asyncio
    async def test_unknown_email_looks_the_same(self, client: AsyncClient, mailer):
        """Test that an unknown address gets the same answer and no mail."""
        response = await client.post(
            "/api/v1/password/request-reset", json={"email": "ghost@example.com"}
        )
        
        assert response.status_code == 202
        assert response.json()["message"] == GENERIC_MESSAGE
        assert mailer.outbox == []
    
    @pytest.mark.asyncio
    async def test_hourly_request_cap(self, client: AsyncClient, register_user, mailer):
        """Test that requests over the cap get the generic answer and no mail."""
        await register_user("alice")
        
        for _ in range(3):
            ok = await client.post(
                "/api/v1/password/request-reset", json={"email": "alice@example.com"}
            )
            assert ok.status_code == 202
        last = reset_link(mailer.outbox[-1])
        
        capped = await client.post(
            "/api/v1/password/request-reset", json={"email": "alice@example.com"}
        )
        assert capped.status_code == 202
        assert capped.json()["message"] == GENERIC_MESSAGE
        assert len(mailer.outbox) == 3
        
        # The capped request did not replace the outstanding token
        verify = await client.post(
            "/api/v1/password/verify-token", json={"email": last["email"], "token": last["token"]}
        )
        assert verify.status_code == 200
    
    @pytest.mark.asyncio
    async def test_delivery_failure(self, client: AsyncClient, register_user, mailer):
        """Test that a failed send is reported and does not use up the quota."""
        await register_user("alice")
        mailer.succeed = False
        
        response = await client.post(
            "/api/v1/password/request-reset", json={"email": "alice@example.com"}
        )
        
        assert response.status_code == 502
        
        mailer.succeed = True
        for _ in range(3):
            ok = await client.post(
                "/api/v1/password/request-reset", json={"email": "alice@example.com"}
            )
            assert ok.status_code == 202
        assert len(mailer.outbox) == 3


class TestResetPassword:
    """Tests for verifying tokens and setting a new password."""
    
    @pytest.mark.asyncio
    async def test_round_trip(self, client: AsyncClient, register_user, mailer):
        """Test request, verify and reset end to end."""
        user = await register_user("alice")
        await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        link = reset_link(mailer.outbox[0])
        
        verify = await client.post(
            "/api/v1/password/verify-token",
            json={"email": link["email"], "token": link["token"]},
        )
        assert verify.status_code == 200
        
        reset = await client.post(
            "/api/v1/password/reset",
            json={"email": link["email"], "token": link["token"], "new_password": "Fresh12345"},
        )
        assert reset.status_code == 200
        
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "Fresh12345"},
        )
        assert login.status_code == 200
        
        # Sessions from before the reset are revoked
        refresh = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": user["refresh_token"]}
        )
        assert refresh.status_code == 401
        
        # Tokens are single use
        again = await client.post(
            "/api/v1/password/reset",
            json={"email": link["email"], "token": link["token"], "new_password": "Other12345"},
        )
        assert again.status_code == 400
    
    @pytest.mark.asyncio
    async def test_reset_clears_request_counter(self, client: AsyncClient, register_user, mailer):
        """Test that a completed reset frees the hourly quota."""
        await register_user("alice")
        for _ in range(3):
            await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        link = reset_link(mailer.outbox[-1])
        
        await client.post(
            "/api/v1/password/reset",
            json={"email": link["email"], "token": link["token"], "new_password": "Fresh12345"},
        )
        
        response = await client.post(
            "/api/v1/password/request-reset", json={"email": "alice@example.com"}
        )
        assert response.status_code == 202
        assert len(mailer.outbox) == 4
    
    @pytest.mark.asyncio
    async def test_only_latest_token_is_valid(self, client: AsyncClient, register_user, mailer):
        """Test that a newer request invalidates the older link."""
        await register_user("alice")
        await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        old, new = reset_link(mailer.outbox[0]), reset_link(mailer.outbox[1])
        
        stale = await client.post(
            "/api/v1/password/verify-token", json={"email": old["email"], "token": old["token"]}
        )
        fresh = await client.post(
            "/api/v1/password/verify-token", json={"email": new["email"], "token": new["token"]}
        )
        
        assert stale.status_code == 400
        assert fresh.status_code == 200
    
    @pytest.mark.asyncio
    async def test_wrong_token(self, client: AsyncClient, register_user, mailer):
        """Test reset with a token that was never issued."""
        await register_user("alice")
        await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        
        response = await client.post(
            "/api/v1/password/reset",
            json={"email": "alice@example.com", "token": "0" * 64, "new_password": "Fresh12345"},
        )
        assert response.status_code == 400
    
    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, register_user, mailer, db_session):
        """Test that an expired token is refused."""
        await register_user("alice")
        await client.post("/api/v1/password/request-reset", json={"email": "alice@example.com"})
        link = reset_link(mailer.outbox[0])
        
        await db_session.execute(
            update(User)
            .where(User.email == "alice@example.com")
            .values(password_reset_expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc))
        )
        await db_session.commit()
        
        response = await client.post(
            "/api/v1/password/verify-token", json={"email": link["email"], "token": link["token"]}
        )
        assert response.status_code == 400
