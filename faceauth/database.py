"""
Face scan storage: async PostgreSQL engine and sessions

Fuzzy hashes are persisted one per identity in the ``face_scans`` table;
the core pipeline never touches the database, only the API layer does.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
import logging

from faceauth.config import DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW

logger = logging.getLogger(__name__)

# Pool sized for short enroll/verify transactions; pre-ping drops stale
# connections after database restarts
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    pool_size=DB_POOL_SIZE,
    max_overflow=DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# Stored scans are read after commit, so instances must not expire
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Declarative base for the face_scans model
Base = declarative_base()


async def init_db():
    """Check the face scan store is reachable and create face_scans if missing."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Face scan store ready")
    except Exception as e:
        logger.error(f"Face scan store unavailable: {e}")
        raise


async def close_db():
    """Release pooled connections to the face scan store."""
    await engine.dispose()
    logger.info("Face scan store connections closed")
