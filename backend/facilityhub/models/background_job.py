"""Persisted background job entry; domain events are queued here for workers."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class BackgroundJob(Base):
    __tablename__ = "background_jobs"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    type = Column(String, nullable=False, index=True)
    payload = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=False,
    )
    status = Column(String(20), nullable=False, default="queued")
    attempts = Column(Integer, nullable=False, default=0)
    available_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
