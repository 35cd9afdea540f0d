"""
File: tests/conftest.py
Description: Pytest 全局 Fixtures 配置 (Async + SQLite 测试库 + fakeredis)

1. 导入应用前写入测试环境变量 (JWT 双密钥、SQLite DSN)
2. 每个测试独立的 SQLite 文件库，避免测试间数据串扰
3. Redis 使用 fakeredis，微信 / 短信客户端替换为内存桩
4. client fixture 覆写 get_db / get_redis / 外部客户端依赖

Created: 2026-03-02
"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

# ------------------------------------------------------------------------------
# 0. 测试环境变量 (必须在导入 userhub 之前设置)
# ------------------------------------------------------------------------------
os.environ["SECRET_KEY"] = "test-access-secret-key-0123456789abcdef"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret-key-fedcba9876543210"
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "local"

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from userhub.api.deps import get_db
from userhub.clients.sms import get_sms_client
from userhub.clients.wechat import get_wechat_client
from userhub.core.redis import get_redis
from userhub.db.models import Base
from userhub.domains.identity.service import IdentityResolver
from userhub.domains.tokens.repository import TokenBlacklistRepository
from userhub.domains.tokens.service import TokenService
from userhub.main import app

from tests.stubs import StubSmsClient, StubWechatClient

# ------------------------------------------------------------------------------
# 1. 基础设施 Fixtures
# ------------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """每个测试独立的 SQLite 文件库"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'userhub.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis() -> AsyncGenerator[FakeRedis, None]:
    client = FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def wechat_client() -> StubWechatClient:
    return StubWechatClient()


@pytest.fixture
def sms_client() -> StubSmsClient:
    return StubSmsClient()


# ------------------------------------------------------------------------------
# 2. HTTP 客户端
# ------------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    redis: FakeRedis,
    wechat_client: StubWechatClient,
    sms_client: StubSmsClient,
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_redis() -> AsyncGenerator[FakeRedis, None]:
        yield redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_wechat_client] = lambda: wechat_client
    app.dependency_overrides[get_sms_client] = lambda: sms_client

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"  # type: ignore
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ------------------------------------------------------------------------------
# 3. 领域服务 Fixtures (单元测试直接调用 Service 层)
# ------------------------------------------------------------------------------


@pytest.fixture
def resolver(db_session: AsyncSession) -> IdentityResolver:
    return IdentityResolver(session=db_session)


@pytest.fixture
def token_service(redis: FakeRedis, resolver: IdentityResolver) -> TokenService:
    return TokenService(blacklist=TokenBlacklistRepository(redis), resolver=resolver)
