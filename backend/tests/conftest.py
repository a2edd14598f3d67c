"""Shared test fixtures."""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core import security
from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.main import app
from app.models import ActivationCode

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def settings():
    return Settings(
        admin_token=ADMIN_TOKEN,
        enable_scheduler=False,
        exchange_price=100,
        account_sources="google,github",
        synthesize_accounts=True,
    )


@pytest.fixture(autouse=True)
def reset_rate_limit_records():
    """Keep in-memory rate-limit state isolated between tests."""
    security._request_records.clear()
    yield
    security._request_records.clear()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "ledger.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker, settings):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_settings, None)


@pytest_asyncio.fixture
async def make_code(session_maker):
    """Insert an activation code directly, bypassing the admin surface."""

    async def _make(code: str, points: int = 500, expire_at: datetime = None, days: int = 30):
        async with session_maker() as session:
            activation = ActivationCode(
                code=code,
                points=points,
                expire_at=expire_at or datetime.now() + timedelta(days=days),
            )
            session.add(activation)
            await session.commit()
            return activation.id

    return _make
