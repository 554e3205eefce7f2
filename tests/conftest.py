import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import get_db
from app.dependencies import get_current_user
from app.main import app
from app.models import Base
from app.models.badge import BadgeDefinition
from app.models.user import User
from app.schemas.auth import CurrentUser
from app.services import auth_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Str0ng!Pass"


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)
        if ex:
            self._ttls[key] = ex

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                removed += 1
            self._ttls.pop(key, None)
        return removed

    async def expire(self, key: str, seconds: int) -> None:
        self._ttls[key] = seconds

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    # Minimum cost keeps the suite quick; production uses BCRYPT_COST
    monkeypatch.setattr(auth_service, "BCRYPT_COST", 4)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


async def _create_user(db: AsyncSession, email: str, first_name: str) -> User:
    user = User(
        id=uuid.uuid4(),
        first_name=first_name,
        last_name="Tester",
        email=email,
        phone_number="08012345678",
        password_hash=auth_service.hash_password(TEST_PASSWORD),
        is_active=True,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com", "Test")


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "friend@example.com", "Friend")


@pytest.fixture
async def badge_definitions(db_session: AsyncSession) -> list[BadgeDefinition]:
    badges = [
        BadgeDefinition(
            name="First Focus", description="Complete your first focus session",
            icon_key="badge_first_focus", criteria_type="sessions", criteria_value=1,
        ),
        BadgeDefinition(
            name="On a Roll", description="Keep a 3-day streak",
            icon_key="badge_streak_3", criteria_type="streak", criteria_value=3,
        ),
        BadgeDefinition(
            name="Deep Diver", description="Focus for 1 hour in total",
            icon_key="badge_focus_1h", criteria_type="focus_time", criteria_value=3600,
        ),
    ]
    db_session.add_all(badges)
    await db_session.commit()
    for badge in badges:
        await db_session.refresh(badge)
    return badges


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


def _override_get_db(db_engine):
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest.fixture
async def client(db_engine, test_user: User, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    current = CurrentUser(id=test_user.id, email=test_user.email)

    async def override_get_current_user():
        return current

    app.dependency_overrides[get_db] = _override_get_db(db_engine)
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.state.redis = fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(db_engine, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """Client that goes through the real bearer-token dependency."""
    app.dependency_overrides[get_db] = _override_get_db(db_engine)
    app.state.redis = fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
