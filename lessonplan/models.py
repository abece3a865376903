"""
SQLModel Database Models

Storage table for serialized teaching plans, keyed by a fixed identifier.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, LargeBinary
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class PlanDocument(SQLModel, table=True):
    """
    One stored plan.
    
    The payload is the serialized document envelope; the row is overwritten
    on every save (last write wins).
    """
    __tablename__ = "plan_documents"
    
    key: str = Field(primary_key=True, max_length=255)
    payload: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
