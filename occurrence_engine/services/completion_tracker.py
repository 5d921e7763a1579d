"""
Completion Tracker

Per-occurrence state transitions (complete, uncomplete, skip) and completion
statistics over a trailing window.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError

from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.schemas.repeat_rule import CompletionStats
from occurrence_engine.services.occurrence_repository import OccurrenceRepository
from occurrence_engine.utils.clock import Clock, shift_days
from occurrence_engine.utils.metrics import MetricsCollector, metrics_collector

logger = logging.getLogger(__name__)

ActorResolver = Callable[[str], Optional[str]]


@dataclass
class AnnotatedOccurrence:
    """An occurrence paired with the display identity of whoever completed it."""
    occurrence: TaskOccurrence
    completed_by_name: Optional[str] = None


class CompletionTracker:
    """Marks occurrences completed, pending or skipped and reports on them."""

    def __init__(self, repository: OccurrenceRepository, clock: Clock,
                 actor_resolver: Optional[ActorResolver] = None,
                 metrics: MetricsCollector = metrics_collector):
        self.repository = repository
        self.clock = clock
        self.actor_resolver = actor_resolver
        self.metrics = metrics

    @property
    def session(self):
        return self.repository.session

    def complete(self, task_id: str, occurrence_date: date, actor_id: str) -> TaskOccurrence:
        """Mark the occurrence on occurrence_date completed, creating it if needed."""
        completed_at = self.clock.now()

        def apply(occurrence: TaskOccurrence) -> None:
            occurrence.completed = True
            occurrence.completed_at = completed_at
            occurrence.completed_by = actor_id
            occurrence.skipped = False

        occurrence = self._upsert(task_id, occurrence_date, apply)
        logger.info(f"Occurrence {occurrence_date} of task {task_id} completed by {actor_id}")
        return occurrence

    def uncomplete(self, task_id: str, occurrence_date: date) -> Optional[TaskOccurrence]:
        """Return the occurrence to pending. Does nothing when none exists."""
        occurrence = self.repository.get_occurrence(task_id, occurrence_date)
        if occurrence is None:
            return None

        occurrence.completed = False
        occurrence.completed_at = None
        occurrence.completed_by = None
        self.session.add(occurrence)
        self.session.commit()
        self.session.refresh(occurrence)
        logger.info(f"Occurrence {occurrence_date} of task {task_id} marked incomplete")
        return occurrence

    def skip(self, task_id: str, occurrence_date: date) -> TaskOccurrence:
        """Mark the occurrence skipped, creating it if needed."""
        def apply(occurrence: TaskOccurrence) -> None:
            occurrence.skipped = True
            occurrence.completed = False
            occurrence.completed_at = None
            occurrence.completed_by = None

        occurrence = self._upsert(task_id, occurrence_date, apply)
        logger.info(f"Occurrence {occurrence_date} of task {task_id} skipped")
        return occurrence

    def upcoming(self, task_id: str, within_days: int = 30) -> List[AnnotatedOccurrence]:
        """Occurrences dated today through today + within_days, earliest first."""
        today = self.clock.today()
        occurrences = self.repository.list_between(task_id, today, shift_days(today, within_days))
        return [
            AnnotatedOccurrence(occurrence=occ, completed_by_name=self._resolve_actor(occ.completed_by))
            for occ in occurrences
        ]

    def stats(self, task_id: str, over_days: int = 30) -> CompletionStats:
        """Completion counts over [today - over_days, today]."""
        today = self.clock.today()
        occurrences = self.repository.list_between(task_id, shift_days(today, -over_days), today)

        total = len(occurrences)
        completed = sum(1 for occ in occurrences if occ.completed)
        skipped = sum(1 for occ in occurrences if occ.skipped)
        missed = sum(
            1 for occ in occurrences
            if occ.is_pending and occ.occurrence_date < today
        )

        return CompletionStats(
            total=total,
            completed=completed,
            skipped=skipped,
            missed=missed,
            completion_rate=completed / total if total else 0.0,
        )

    def cleanup_old_occurrences(self, days_to_keep: int = 90, task_id: Optional[str] = None) -> int:
        """Delete occurrences older than the retention window; returns the number removed."""
        cutoff = shift_days(self.clock.today(), -days_to_keep)
        try:
            removed = self.repository.retire_before(cutoff, task_id=task_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.metrics.occurrences_cleaned(removed)
        logger.info(f"Removed {removed} occurrences dated before {cutoff}")
        return removed

    def _resolve_actor(self, actor_id: Optional[str]) -> Optional[str]:
        if actor_id is None:
            return None
        if self.actor_resolver is None:
            return actor_id
        return self.actor_resolver(actor_id) or actor_id

    def _upsert(self, task_id: str, occurrence_date: date,
                apply: Callable[[TaskOccurrence], None]) -> TaskOccurrence:
        occurrence = self.repository.get_occurrence(task_id, occurrence_date)
        if occurrence is None:
            occurrence = TaskOccurrence(task_id=task_id, occurrence_date=occurrence_date)
            apply(occurrence)
            self.session.add(occurrence)
            try:
                self.session.commit()
            except IntegrityError:
                # Generation created the row in the meantime; update it instead
                self.session.rollback()
                self.metrics.occurrence_race()
                occurrence = self.repository.get_occurrence(task_id, occurrence_date)
                if occurrence is None:
                    raise
                apply(occurrence)
                self.session.add(occurrence)
                self.session.commit()
        else:
            apply(occurrence)
            self.session.add(occurrence)
            self.session.commit()

        self.session.refresh(occurrence)
        return occurrence
