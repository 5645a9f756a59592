"""
SQLAlchemy ORM Models

Defines the face_scans table:
CREATE TABLE face_scans (
    identity_number VARCHAR(64) PRIMARY KEY,
    fuzzy_hash TEXT NOT NULL,
    samples_used INTEGER NOT NULL,
    created_at TIMESTAMP DEFAULT NOW(),
    updated_at TIMESTAMP DEFAULT NOW()
);
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text

from faceauth.database import Base


class FaceScanDB(Base):
    """
    SQLAlchemy model for face_scans table.

    One fuzzy hash per identity; re-enrolling replaces it.
    """
    __tablename__ = "face_scans"

    identity_number = Column(String(64), primary_key=True)
    fuzzy_hash = Column(Text, nullable=False)
    samples_used = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<FaceScanDB(identity_number='{self.identity_number}', bits={len(self.fuzzy_hash or '')})>"
