"""
System smoke test: service endpoints and a full contributor journey in-process.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Test the health endpoint."""
    response = await client.get("/health")
    
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    """Test the service root."""
    response = await client.get("/")
    
    assert response.status_code == 200
    assert response.json()["api"]["v1"] == "/api/v1"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    """Test that a client request id is echoed back."""
    response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.asyncio
async def test_request_id_generated_for_unusable_header(client: AsyncClient):
    """Test that an unusable request id is replaced with a UUID."""
    response = await client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
    
    assert response.headers["X-Request-ID"] != "bad id with spaces"
    assert len(response.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_error_responses_carry_request_id(client: AsyncClient):
    """Test that error responses carry the request id."""
    response = await client.get("/api/v1/resources/missing", headers={"X-Request-ID": "err-1"})
    
    assert response.status_code == 404
    assert response.headers["X-Request-ID"] == "err-1"


@pytest.mark.asyncio
async def test_contributor_journey(client: AsyncClient, register_user, create_admin):
    """Test a contributor's journey from sign-up to moderation."""
    student = await register_user("student")
    peer = await register_user("peer")
    admin = await create_admin()
    
    created = await client.post(
        "/api/v1/resources",
        json={
            "title": "Computer Networks Unit 2",
            "description": "Data link layer, framing and error detection.",
            "branch": "ISE",
            "semester": 5,
            "file_url": "https://files.example.com/cn-unit2.pdf",
        },
        headers=student["headers"],
    )
    assert created.status_code == 201
    slug = created.json()["slug"]
    assert slug == "computer-networks-unit-2"
    
    comment = await client.post(
        f"/api/v1/resources/{slug}/comments",
        json={"body": "Thanks, this covers CRC well."},
        headers=peer["headers"],
    )
    assert comment.status_code == 201
    
    rating = await client.put(
        f"/api/v1/resources/{slug}/rating", json={"value": 4}, headers=peer["headers"]
    )
    assert rating.json()["average_rating"] == 4.0
    
    dashboard = await client.get("/api/v1/admin/dashboard", headers=admin["headers"])
    assert dashboard.json()["total_resources"] == 1
    assert dashboard.json()["top_contributors"][0]["username"] == "student"
    
    profile = await client.get("/api/v1/users/student")
    assert [r["slug"] for r in profile.json()["resources"]] == [slug]
