"""Shared fixtures."""

from __future__ import annotations

import numpy as np
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from faceauth.config import FaceAuthConfig


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def fast_config() -> FaceAuthConfig:
    return FaceAuthConfig(liveness_duration_ms=200, liveness_sample_interval_ms=10)


@pytest_asyncio.fixture
async def session_maker():
    from faceauth.database import Base
    import faceauth.models  # noqa: F401  registers the face_scans table

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
