"""
Shared fixtures: a fresh sqlite database per test, seeded users, and an
HTTP client wired to the same database.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "lingopal-test-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./lingopal-dev.db")
os.environ.setdefault("ENV", "development")

from datetime import datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from lingopal.core.config import settings
from lingopal.infra.db import build_engine, build_session_factory, get_db, init_models
from lingopal.main import app
from lingopal.models.user import User

SEED_USERS = [
    # id, full name, native, learning, onboarded
    ("u1", "Alice Martin", "English", "Spanish", True),
    ("u2", "Bruno Silva", "Spanish", "English", True),
    ("u3", "Chen Wei", "Mandarin", "English", True),
    ("u4", "Dana Kim", "Korean", "Japanese", True),
    ("u5", "Eve Novak", "Czech", "German", False),
]


def make_user(user_id, full_name, native, learning, onboarded, created_at):
    return User(
        id=user_id,
        full_name=full_name,
        email=f"{user_id}@lingopal.test",
        profile_pic=f"https://avatar.iran.liara.run/public/{user_id}.png",
        bio=f"{full_name} wants to practice {learning}.",
        native_language=native,
        learning_language=learning,
        location="Lisbon",
        is_onboarded=onboarded,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'lingopal.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(db):
    """Seed the directory; returns the ids in directory order"""
    base = datetime(2026, 1, 1, 9, 0, 0)
    db.add_all(
        make_user(*row, created_at=base + timedelta(minutes=i))
        for i, row in enumerate(SEED_USERS)
    )
    await db.commit()
    return [row[0] for row in SEED_USERS]


@pytest_asyncio.fixture
async def add_users(db):
    """Factory seeding onboarded users with arbitrary ids"""
    base = datetime(2026, 2, 1, 9, 0, 0)

    async def _add(*user_ids):
        db.add_all(
            make_user(user_id, f"User {user_id}", "English", "French", True, created_at=base + timedelta(minutes=i))
            for i, user_id in enumerate(user_ids)
        )
        await db.commit()

    return _add


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build a bearer header the way the upstream auth service would"""

    def _headers(user_id: str) -> dict:
        token = jwt.encode(
            {"sub": user_id, "exp": datetime.utcnow() + timedelta(minutes=5)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
