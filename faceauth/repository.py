"""
Face Scans Repository

Database operations for the face_scans table using SQLAlchemy async.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from faceauth.models import FaceScanDB
from faceauth.schemas import FaceScanRecord

logger = logging.getLogger(__name__)


class FaceScanRepository:
    """
    Repository class for face_scans database operations.

    All methods are async and require an AsyncSession.
    """

    @staticmethod
    async def save(
        session: AsyncSession,
        identity_number: str,
        fuzzy_hash: str,
        samples_used: int
    ) -> FaceScanDB:
        """
        Store a fuzzy hash for an identity, replacing any previous one.

        Returns:
            Stored FaceScanDB instance
        """
        now = datetime.utcnow()
        db_scan = await session.get(FaceScanDB, identity_number)

        if db_scan is None:
            db_scan = FaceScanDB(
                identity_number=identity_number,
                fuzzy_hash=fuzzy_hash,
                samples_used=samples_used,
                created_at=now,
                updated_at=now
            )
            session.add(db_scan)
            logger.info(f"Created face scan for identity {identity_number}")
        else:
            db_scan.fuzzy_hash = fuzzy_hash
            db_scan.samples_used = samples_used
            db_scan.updated_at = now
            logger.info(f"Replaced face scan for identity {identity_number}")

        await session.commit()
        await session.refresh(db_scan)
        return db_scan

    @staticmethod
    async def get(session: AsyncSession, identity_number: str) -> Optional[FaceScanDB]:
        """Get the face scan stored for an identity."""
        result = await session.execute(
            select(FaceScanDB).where(FaceScanDB.identity_number == identity_number)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def count(session: AsyncSession) -> int:
        """Get total count of stored face scans."""
        result = await session.execute(select(func.count(FaceScanDB.identity_number)))
        return result.scalar() or 0

    @staticmethod
    async def delete(session: AsyncSession, identity_number: str) -> bool:
        """
        Permanently delete the face scan of an identity.

        Returns:
            True if deleted, False if not found
        """
        result = await session.execute(
            delete(FaceScanDB).where(FaceScanDB.identity_number == identity_number)
        )
        await session.commit()

        if result.rowcount > 0:
            logger.info(f"Deleted face scan for identity {identity_number}")
            return True
        return False

    @staticmethod
    def db_to_schema(db_scan: FaceScanDB) -> FaceScanRecord:
        """Convert database model to Pydantic schema."""
        return FaceScanRecord(
            identity_number=db_scan.identity_number,
            fuzzy_hash=db_scan.fuzzy_hash,
            samples_used=db_scan.samples_used,
            created_at=db_scan.created_at,
            updated_at=db_scan.updated_at
        )
