"""
Occurrence Generator

Materializes a bounded window of future occurrences for a task's repeat rule.
Generation is idempotent: dates that already have an occurrence are skipped,
and an insert that collides with a concurrent generation is treated as
"already exists" rather than an error.
"""

import logging
from datetime import date, timedelta
from typing import List

from sqlalchemy.exc import IntegrityError

from occurrence_engine.models.repeat_rule import RepeatRule
from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.services.errors import NoRuleError
from occurrence_engine.services.occurrence_repository import OccurrenceRepository
from occurrence_engine.services.recurrence_policy import RecurrencePolicy, policy_for
from occurrence_engine.services.recurrence_validator import RecurrenceValidator
from occurrence_engine.utils.clock import Clock, shift_days
from occurrence_engine.utils.metrics import MetricsCollector, metrics_collector

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_WEEKS = 8


def is_weekend(day: date) -> bool:
    return day.isoweekday() >= 6


class OccurrenceGenerator:
    """Creates pending TaskOccurrence rows for the dates a rule selects."""

    # Each retry re-reads existing dates, so a race shrinks the batch
    MAX_INSERT_ATTEMPTS = 3

    def __init__(self, repository: OccurrenceRepository, clock: Clock,
                 metrics: MetricsCollector = metrics_collector):
        self.repository = repository
        self.clock = clock
        self.metrics = metrics

    @property
    def session(self):
        return self.repository.session

    def generate(self, task_id: str, horizon_weeks: int = DEFAULT_HORIZON_WEEKS) -> List[TaskOccurrence]:
        """
        Generate occurrences from today up to horizon_weeks ahead.

        Args:
            task_id: Task owning the repeat rule
            horizon_weeks: Size of the materialized window

        Returns:
            The occurrences created by this call

        Raises:
            NoRuleError: If the task has no repeat rule
            InvalidRuleSpecError: If the horizon or the stored rule type is unusable
        """
        RecurrenceValidator.validate_horizon(horizon_weeks)

        rule = self.repository.get_rule(task_id)
        if rule is None:
            raise NoRuleError(task_id)
        policy = policy_for(rule)

        window_start = self.clock.today()
        # horizon_weeks whole weeks, today included
        window_end = shift_days(window_start, horizon_weeks * 7 - 1)

        if rule.end_date is not None:
            if rule.end_date < window_start:
                logger.info(f"Rule for task {task_id} ended on {rule.end_date}, nothing to generate")
                return []
            window_end = min(window_end, rule.end_date)

        if policy.paused:
            logger.info(f"Rule for task {task_id} is paused, nothing to generate")
            return []

        for attempt in range(1, self.MAX_INSERT_ATTEMPTS + 1):
            dates = self.select_dates(rule, policy, window_start, window_end)
            if not dates:
                return []

            occurrences = [TaskOccurrence(task_id=task_id, occurrence_date=day) for day in dates]
            try:
                self.repository.add_occurrences(occurrences)
                self.session.commit()
            except IntegrityError:
                # Another writer materialized some of these dates first
                self.session.rollback()
                self.metrics.occurrence_race()
                logger.warning(
                    f"Occurrence insert for task {task_id} collided on attempt {attempt}, retrying"
                )
                rule = self.repository.get_rule(task_id)
                if rule is None:
                    raise NoRuleError(task_id)
                continue

            for occurrence in occurrences:
                self.session.refresh(occurrence)
            self.metrics.occurrences_generated(len(occurrences))
            logger.info(
                f"Generated {len(occurrences)} occurrences for task {task_id} "
                f"between {window_start} and {window_end}"
            )
            return occurrences

        logger.warning(f"Giving up on generation for task {task_id} after {self.MAX_INSERT_ATTEMPTS} collisions")
        return []

    def select_dates(self, rule: RepeatRule, policy: RecurrencePolicy,
                     window_start: date, window_end: date) -> List[date]:
        """Walk the window and return the dates that need a new occurrence."""
        existing = self.repository.existing_dates(rule.task_id, window_start, window_end)

        # Rows pruned by retention cleanup still count toward the cap
        total = 0
        if rule.max_occurrences is not None:
            total = (rule.retired_count or 0) + self.repository.count_occurrences(rule.task_id)

        selected = []
        day = policy.first_candidate(window_start)
        while day <= window_end:
            if rule.max_occurrences is not None and total >= rule.max_occurrences:
                break
            if rule.end_date is not None and day > rule.end_date:
                break

            if policy.matches(day) and day not in existing:
                if not (rule.skip_weekends and is_weekend(day)):
                    selected.append(day)
                    total += 1

            day += timedelta(days=policy.stride)

        return selected
