"""Repository for persisted background jobs."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.ulid_helper import generate_ulid
from ..models.background_job import BackgroundJob

logger = logging.getLogger(__name__)


class JobRepository:
    """Data access helpers for the background_jobs table."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logger

    def enqueue(
        self,
        *,
        type: str,
        payload: dict[str, Any] | str,
        available_at: datetime | None = None,
    ) -> str:
        """Persist a new job ready for processing."""

        try:
            job_id = generate_ulid()
            job = BackgroundJob(
                id=job_id,
                type=type,
                payload=payload,
                status="queued",
                attempts=0,
                available_at=available_at or datetime.now(timezone.utc),
            )
            self.db.add(job)
            self.db.flush()
            return job_id
        except SQLAlchemyError as exc:
            self.logger.error("Failed to enqueue job %s: %s", type, str(exc))
            raise RepositoryException("Failed to enqueue background job") from exc
