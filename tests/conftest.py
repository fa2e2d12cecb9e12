"""Shared fixtures."""
import pytest
from sqlalchemy.pool import StaticPool

from app.infrastructure.cache.result_cache import ResultCache
from app.infrastructure.database.face_store import SQLAlchemyFaceStore
from app.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_models,
)
from tests.fakes import FakeRedis, ScriptedExtractor


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis) -> ResultCache:
    return ResultCache(fake_redis, ttl_seconds=3600)


@pytest.fixture
def extractor() -> ScriptedExtractor:
    return ScriptedExtractor()


@pytest.fixture
async def engine():
    engine = create_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine) -> SQLAlchemyFaceStore:
    return SQLAlchemyFaceStore(create_session_factory(engine))
