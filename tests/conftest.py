"""Shared test fixtures and configuration."""

from collections.abc import AsyncGenerator, Sequence
from datetime import datetime, timedelta, timezone

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from itsdangerous import TimestampSigner
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from user_lookup.auth.models import SessionData
from user_lookup.config import Settings, get_settings
from user_lookup.database import Base, get_db
from user_lookup.main import app
from user_lookup.models.category import Category, CategoryGroup
from user_lookup.models.group import Group, GroupUser
from user_lookup.models.topic import Post, Topic
from user_lookup.models.user import User
from user_lookup.services.search_data import refresh_user_search_data

# Test database URL (in-memory SQLite for speed)
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

NOW = datetime.now(timezone.utc)


@pytest_asyncio.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(
    db: AsyncSession,
    username: str,
    *,
    name: str | None = None,
    seen_minutes_ago: int | None = 60,
    **attrs,
) -> User:
    """Create a user with its search data; lower *seen_minutes_ago* is more recent."""
    last_seen_at = (
        NOW - timedelta(minutes=seen_minutes_ago)
        if seen_minutes_ago is not None
        else None
    )
    user = User(username=username, name=name, last_seen_at=last_seen_at, **attrs)
    db.add(user)
    await db.flush()
    await refresh_user_search_data(db, user)
    await db.commit()
    return user


async def create_group(
    db: AsyncSession,
    name: str,
    members: Sequence[User] = (),
    *,
    group_id: int | None = None,
    visibility_level: str = "public",
    owners: Sequence[User] = (),
) -> Group:
    group = Group(id=group_id, name=name, visibility_level=visibility_level)
    db.add(group)
    await db.flush()
    for member in members:
        db.add(GroupUser(group_id=group.id, user_id=member.id, owner=member in owners))
    await db.commit()
    return group


async def create_category(
    db: AsyncSession,
    name: str,
    *,
    read_restricted: bool = False,
    groups: Sequence[Group] = (),
) -> Category:
    category = Category(name=name, read_restricted=read_restricted)
    db.add(category)
    await db.flush()
    for group in groups:
        db.add(CategoryGroup(category_id=category.id, group_id=group.id))
    await db.commit()
    return category


async def create_topic(
    db: AsyncSession,
    title: str,
    *,
    category: Category | None = None,
    posters: Sequence[User] = (),
) -> Topic:
    topic = Topic(title=title, category_id=category.id if category else None)
    db.add(topic)
    await db.flush()
    for poster in posters:
        db.add(Post(topic_id=topic.id, user_id=poster.id))
    await db.commit()
    return topic


def create_session_cookie(
    settings: Settings,
    session_data: SessionData,
) -> tuple[str, str]:
    """Sign a session cookie the way the auth service issues it.

    Returns:
        Tuple of (cookie_name, cookie_value).
    """
    signer = TimestampSigner(settings.session_secret_key)
    session_json = session_data.model_dump_json()
    signed_session = signer.sign(session_json.encode("utf-8")).decode("utf-8")
    return settings.session_cookie_name, signed_session


def create_auth_headers_for_user(user: User) -> dict[str, str]:
    """Create authentication headers for a specific user."""
    settings = get_settings()

    now = datetime.now(timezone.utc)
    session_data = SessionData(
        user_id=user.id,
        username=user.username,
        created_at=now,
        expires_at=now + timedelta(hours=24),
    )

    cookie_name, cookie_value = create_session_cookie(settings, session_data)
    return {"Cookie": f"{cookie_name}={cookie_value}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin who is also the searching user in staff tests."""
    return await create_user(db_session, "sam_admin", name="Sam Admin", admin=True)


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """Create an ordinary searching user."""
    return await create_user(db_session, "riley", name="Riley Reader")
