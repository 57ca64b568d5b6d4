# backend/facilityhub/services/date_suggestion_service.py
"""
Suggested alternative dates for a rejected booking window.

Probes the days after the rejected start, one day at a time, for a window
of the same length (in whole days) that no active booking overlaps.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.intervals import ONE_DAY, duration_in_days, ensure_utc, overlaps, validate_interval
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuggestedDate:
    start: datetime
    end: datetime
    duration_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
            "duration_days": self.duration_days,
        }


class DateSuggestionService(BaseService):
    """Bounded linear probe for nearby free windows."""

    def __init__(self, db: Session, conflict_checker: Optional[ConflictChecker] = None):
        super().__init__(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)

    @BaseService.measure_operation("suggest_dates")
    def suggest(
        self,
        facility_id: str,
        rejected_start: datetime,
        rejected_end: datetime,
        exclude_booking_id: Optional[str] = None,
        *,
        window_days: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[SuggestedDate]:
        """
        Up to ``max_results`` free windows starting 1..``window_days`` days later.

        An empty list means nothing is free in the probe range.
        """
        validate_interval(rejected_start, rejected_end)
        rejected_start = ensure_utc(rejected_start)
        rejected_end = ensure_utc(rejected_end)
        window_days = window_days if window_days is not None else settings.suggestion_window_days
        max_results = max_results if max_results is not None else settings.max_suggested_dates

        duration = duration_in_days(rejected_start, rejected_end)
        span = timedelta(days=duration)

        # One query covers every candidate in the probe range
        probe_start = rejected_start + ONE_DAY
        probe_end = rejected_start + timedelta(days=window_days) + span
        windows = self.conflict_checker.get_active_windows(
            facility_id, probe_start, probe_end, exclude_booking_id
        )

        suggestions: List[SuggestedDate] = []
        for offset in range(1, window_days + 1):
            if len(suggestions) >= max_results:
                break
            start = rejected_start + timedelta(days=offset)
            end = start + span
            if any(overlaps(start, end, w_start, w_end) for _, w_start, w_end in windows):
                continue
            suggestions.append(SuggestedDate(start=start, end=end, duration_days=duration))

        logger.debug(
            "Suggested %d alternative windows for facility %s", len(suggestions), facility_id
        )
        return suggestions
