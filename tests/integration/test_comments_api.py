"""Integration tests for resource comments."""

import uuid

import pytest
from httpx import AsyncClient

NOT_AUTHOR = "Comment not found or you are not the author of this comment"


async def post_comment(client: AsyncClient, slug: str, headers: dict, body: str) -> dict:
    response = await client.post(
        f"/api/v1/resources/{slug}/comments",
        json={"body": body},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestComments:
    """Tests for posting and listing comments."""
    
    @pytest.mark.asyncio
    async def test_comment_gets_opaque_identifier(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that comments are addressed by a random UUID."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])
        
        comment = await post_comment(client, slug, owner["headers"], "Very helpful notes")
        
        assert uuid.UUID(comment["unique_string"]).version == 4
        assert comment["author"]["username"] == "alice"
        assert comment["body"] == "Very helpful notes"
    
    @pytest.mark.asyncio
    async def test_list_newest_first_and_public(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that anyone can list comments, newest first."""
        owner = await register_user("alice")
        reader = await register_user("bob")
        slug = await create_resource(owner["headers"])
        
        await post_comment(client, slug, owner["headers"], "First comment")
        await post_comment(client, slug, reader["headers"], "Second comment")
        
        response = await client.get(f"/api/v1/resources/{slug}/comments")
        
        assert response.status_code == 200
        assert [c["body"] for c in response.json()] == ["Second comment", "First comment"]
    
    @pytest.mark.asyncio
    async def test_anonymous_cannot_comment(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that anonymous callers cannot comment."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])
        
        response = await client.post(f"/api/v1/resources/{slug}/comments", json={"body": "Hello there"})
        assert response.status_code == 401
    
    @pytest.mark.asyncio
    async def test_comment_on_unknown_resource(self, client: AsyncClient, register_user):
        """Test commenting on a slug that does not exist."""
        user = await register_user("alice")
        
        response = await client.post(
            "/api/v1/resources/missing/comments",
            json={"body": "Hello there"},
            headers=user["headers"],
        )
        assert response.status_code == 404
    
    @pytest.mark.asyncio
    async def test_body_length_validated(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that too-short bodies are rejected."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])
        
        response = await client.post(
            f"/api/v1/resources/{slug}/comments",
            json={"body": "ok"},
            headers=owner["headers"],
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_whitespace_only_body_rejected(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that padding does not count towards the body length."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])

        blank = await client.post(
            f"/api/v1/resources/{slug}/comments",
            json={"body": "          "},
            headers=owner["headers"],
        )
        assert blank.status_code == 422

        comment = await post_comment(client, slug, owner["headers"], "   Nice notes   ")
        assert comment["body"] == "Nice notes"

        edit = await client.patch(
            f"/api/v1/resources/{slug}/comments/{comment['unique_string']}",
            json={"body": "  a  "},
            headers=owner["headers"],
        )
        assert edit.status_code == 422


class TestCommentOwnership:
    """Tests for editing and deleting comments."""
    
    @pytest.mark.asyncio
    async def test_only_author_edits(self, client: AsyncClient, register_user, create_resource):
        """Test that only the author can edit a comment."""
        owner = await register_user("alice")
        author = await register_user("bob")
        slug = await create_resource(owner["headers"])
        comment = await post_comment(client, slug, author["headers"], "Original text")
        url = f"/api/v1/resources/{slug}/comments/{comment['unique_string']}"
        
        # Not even the resource owner may edit someone else's comment
        denied = await client.patch(url, json={"body": "Hijacked"}, headers=owner["headers"])
        assert denied.status_code == 404
        assert denied.json()["detail"] == NOT_AUTHOR
        
        edited = await client.patch(url, json={"body": "Edited text"}, headers=author["headers"])
        assert edited.status_code == 200
        assert edited.json()["body"] == "Edited text"
        assert edited.json()["unique_string"] == comment["unique_string"]
    
    @pytest.mark.asyncio
    async def test_delete_by_author_or_admin(
        self, client: AsyncClient, register_user, create_admin, create_resource
    ):
        """Test that the author or an admin can delete a comment."""
        owner = await register_user("alice")
        author = await register_user("bob")
        admin = await create_admin()
        slug = await create_resource(owner["headers"])
        first = await post_comment(client, slug, author["headers"], "Remove me later")
        second = await post_comment(client, slug, author["headers"], "Moderate me")
        base = f"/api/v1/resources/{slug}/comments"
        
        denied = await client.delete(f"{base}/{first['unique_string']}", headers=owner["headers"])
        assert denied.status_code == 404
        
        own = await client.delete(f"{base}/{first['unique_string']}", headers=author["headers"])
        assert own.status_code == 200
        
        moderated = await client.delete(f"{base}/{second['unique_string']}", headers=admin["headers"])
        assert moderated.status_code == 200
        
        remaining = await client.get(base)
        assert remaining.json() == []
    
    @pytest.mark.asyncio
    async def test_unknown_comment(self, client: AsyncClient, register_user, create_resource):
        """Test editing a comment that does not exist."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])
        
        response = await client.patch(
            f"/api/v1/resources/{slug}/comments/{uuid.uuid4()}",
            json={"body": "Does not exist"},
            headers=owner["headers"],
        )
        assert response.status_code == 404
    
    @pytest.mark.asyncio
    async def test_deleting_resource_removes_its_comments(
        self, client: AsyncClient, register_user, create_resource
    ):
        """Test that comments go away with their resource."""
        owner = await register_user("alice")
        slug = await create_resource(owner["headers"])
        await post_comment(client, slug, owner["headers"], "Soon gone")
        
        await client.delete(f"/api/v1/resources/{slug}", headers=owner["headers"])
        slug_again = await create_resource(owner["headers"])
        
        # The slug is free again and the new resource starts without comments
        assert slug_again == slug
        response = await client.get(f"/api/v1/resources/{slug}/comments")
        assert response.json() == []
