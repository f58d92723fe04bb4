"""
Declarative base and common columns for all models.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque identifier for a new row."""
    return str(uuid.uuid4())


class BaseModel(Base):
    """Abstract base model with id and timestamps."""
    __abstract__ = True

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
