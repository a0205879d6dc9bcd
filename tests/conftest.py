"""
Pytest fixtures for UniShare tests.

The app runs in-process against a file-backed SQLite database that is
recreated for every test.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Awaitable, Callable, Optional

# Configure the app before anything from unishare is imported
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["PUBLIC_BASE_URL"] = "http://unishare.test"

from unishare.config import get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unishare.api.deps import get_email_service
from unishare.database import create_engine_for, get_db
from unishare.kernel.identity.jwt import JWTManager
from unishare.kernel.identity.password import hash_password
from unishare.kernel.models import Base, User, UserRole
from unishare.main import app
from unishare.notifications import EmailService


TEST_ENGINE = create_engine_for(os.environ["DATABASE_URL"])
TEST_SESSION_MAKER = async_sessionmaker(
    TEST_ENGINE,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

DEFAULT_PASSWORD = "SecurePass123"


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


class FakeEmailService(EmailService):
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self):
        super().__init__()
        self.outbox = []
        self.succeed = True

    async def send_email(self, to, subject, html, text=None) -> bool:
        if not self.succeed:
            return False
        self.outbox.append({"to": to, "subject": subject, "html": html, "text": text})
        return True


@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema for each test."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield TEST_ENGINE


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> FakeEmailService:
    return FakeEmailService()


@pytest_asyncio.fixture
async def client(db_engine, mailer: FakeEmailService) -> AsyncGenerator[AsyncClient, None]:
    """Async client with the test database and a recording mailer."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """
    Register through the API.
    
    The returned coroutine yields the token response with an extra
    "headers" entry ready for authenticated requests.
    """
    async def _register(
        username: str = "alice",
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Alice Example",
    ) -> dict:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
                "full_name": full_name,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()
        data["headers"] = bearer(data["access_token"])
        return data

    return _register


@pytest.fixture
def create_admin(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Insert an admin directly and log in through the API."""
    async def _create_admin(username: str = "root") -> dict:
        async with TEST_SESSION_MAKER() as session:
            session.add(
                User(
                    id=uuid.uuid4(),
                    username=username,
                    email=f"{username}@example.com",
                    password_hash=hash_password(DEFAULT_PASSWORD),
                    full_name="Site Admin",
                    role=UserRole.ADMIN.value,
                )
            )
            await session.commit()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": f"{username}@example.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 200, response.text
        data = response.json()
        data["headers"] = bearer(data["access_token"])
        return data

    return _create_admin


@pytest.fixture
def create_resource(client: AsyncClient) -> Callable[..., Awaitable[str]]:
    """Publish a resource through the API and return its slug."""
    async def _create_resource(
        headers: dict,
        title: str = "Operating Systems Notes",
        description: str = "Complete unit-wise notes for the course.",
        branch: str = "CSE",
        semester: int = 4,
        file_url: str = "https://files.example.com/os-notes.pdf",
    ) -> str:
        response = await client.post(
            "/api/v1/resources",
            json={
                "title": title,
                "description": description,
                "branch": branch,
                "semester": semester,
                "file_url": file_url,
            },
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["slug"]

    return _create_resource


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key="test-secret-key-for-testing-only",
        algorithm="HS256",
        access_token_expire_minutes=30,
        refresh_token_expire_days=7,
    )
