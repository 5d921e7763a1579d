"""
Recurring Task Service

Engine facade wiring the generator, completion tracker and rule lifecycle
manager around one database session and one clock.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from sqlmodel import Session

from occurrence_engine.models.repeat_rule import RepeatRule
from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.schemas.repeat_rule import CompletionStats
from occurrence_engine.services.completion_tracker import ActorResolver, AnnotatedOccurrence, CompletionTracker
from occurrence_engine.services.occurrence_generator import DEFAULT_HORIZON_WEEKS, OccurrenceGenerator
from occurrence_engine.services.occurrence_repository import OccurrenceRepository
from occurrence_engine.services.rule_lifecycle import RuleLifecycleManager
from occurrence_engine.utils.clock import Clock, SystemClock
from occurrence_engine.utils.metrics import MetricsCollector, metrics_collector

RuleSpec = Union[BaseModel, Dict[str, Any]]


def _spec_dict(spec: RuleSpec, partial: bool) -> Dict[str, Any]:
    if isinstance(spec, BaseModel):
        return spec.model_dump(exclude_unset=partial)
    return dict(spec)


class RecurringTaskService:
    """Service to handle recurring task occurrences for one unit of work."""

    def __init__(self, session: Session, clock: Optional[Clock] = None,
                 horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
                 actor_resolver: Optional[ActorResolver] = None,
                 metrics: MetricsCollector = metrics_collector):
        """Initialize the recurring task service."""
        self.session = session
        self.clock = clock or SystemClock()
        self.horizon_weeks = horizon_weeks
        self.repository = OccurrenceRepository(session)
        self.generator = OccurrenceGenerator(self.repository, self.clock, metrics)
        self.tracker = CompletionTracker(self.repository, self.clock, actor_resolver, metrics)
        self.rules = RuleLifecycleManager(self.repository, self.generator, self.clock, horizon_weeks)

    # Rules

    def get_rule(self, task_id: str) -> Optional[RepeatRule]:
        return self.rules.get(task_id)

    def create_rule(self, task_id: str, spec: RuleSpec) -> RepeatRule:
        return self.rules.create(task_id, _spec_dict(spec, partial=False))

    def update_rule(self, task_id: str, partial_spec: RuleSpec) -> RepeatRule:
        return self.rules.update(task_id, _spec_dict(partial_spec, partial=True))

    def delete_rule(self, task_id: str) -> None:
        self.rules.delete(task_id)

    def purge_task(self, task_id: str) -> int:
        return self.rules.purge_task(task_id)

    def rule_task_ids(self) -> List[str]:
        return self.repository.rule_task_ids()

    # Occurrences

    def generate(self, task_id: str, horizon_weeks: Optional[int] = None) -> List[TaskOccurrence]:
        return self.generator.generate(task_id, self.horizon_weeks if horizon_weeks is None else horizon_weeks)

    def complete(self, task_id: str, occurrence_date: date, actor_id: str) -> TaskOccurrence:
        return self.tracker.complete(task_id, occurrence_date, actor_id)

    def uncomplete(self, task_id: str, occurrence_date: date) -> Optional[TaskOccurrence]:
        return self.tracker.uncomplete(task_id, occurrence_date)

    def skip(self, task_id: str, occurrence_date: date) -> TaskOccurrence:
        return self.tracker.skip(task_id, occurrence_date)

    def upcoming(self, task_id: str, within_days: int = 30) -> List[AnnotatedOccurrence]:
        return self.tracker.upcoming(task_id, within_days)

    def stats(self, task_id: str, over_days: int = 30) -> CompletionStats:
        return self.tracker.stats(task_id, over_days)

    def cleanup_old_occurrences(self, days_to_keep: int = 90) -> int:
        return self.tracker.cleanup_old_occurrences(days_to_keep)
