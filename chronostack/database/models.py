"""SQLAlchemy ORM models for ChronoStack."""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Record(Base):
    """One keyed JSON blob (timers, stacks or presets)."""

    __tablename__ = "records"

    key = Column(String(64), primary_key=True)
    blob = Column(Text, nullable=False)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        return f"<Record key={self.key} bytes={len(self.blob or '')}>"
