"""
Rule Lifecycle Manager

Creates, updates and deletes repeat rules. Changing or removing a rule
discards only future occurrences nobody has acted on; history stays.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from occurrence_engine.models.repeat_rule import RepeatRule, RecurrenceType
from occurrence_engine.services.errors import DuplicateRuleError, NoRuleError
from occurrence_engine.services.occurrence_generator import DEFAULT_HORIZON_WEEKS, OccurrenceGenerator
from occurrence_engine.services.occurrence_repository import OccurrenceRepository
from occurrence_engine.services.recurrence_policy import normalize_fields
from occurrence_engine.services.recurrence_validator import RecurrenceValidator
from occurrence_engine.utils.clock import Clock

logger = logging.getLogger(__name__)

RULE_FIELDS = (
    "type",
    "interval",
    "days_of_week",
    "day_of_month",
    "end_date",
    "max_occurrences",
    "skip_weekends",
)


class RuleLifecycleManager:
    """Orchestrates rule persistence and regeneration."""

    def __init__(self, repository: OccurrenceRepository, generator: OccurrenceGenerator, clock: Clock,
                 horizon_weeks: int = DEFAULT_HORIZON_WEEKS):
        self.repository = repository
        self.generator = generator
        self.clock = clock
        self.horizon_weeks = horizon_weeks

    @property
    def session(self):
        return self.repository.session

    def get(self, task_id: str) -> Optional[RepeatRule]:
        return self.repository.get_rule(task_id)

    def create(self, task_id: str, spec: Dict[str, Any]) -> RepeatRule:
        """Persist a new rule for the task and materialize its first window."""
        if self.repository.get_rule(task_id) is not None:
            raise DuplicateRuleError(task_id)

        fields = {
            "type": None,
            "interval": 1,
            "days_of_week": [],
            "day_of_month": None,
            "end_date": None,
            "max_occurrences": None,
            "skip_weekends": False,
        }
        fields.update({key: value for key, value in spec.items() if key in RULE_FIELDS and value is not None})
        fields = self._validated(task_id, fields)

        today = self.clock.today()
        rule = RepeatRule(task_id=task_id, anchor_date=today, **fields)
        try:
            self.repository.add_rule(rule)
            self.session.commit()
        except IntegrityError:
            # A concurrent create for the same task committed first
            self.session.rollback()
            raise DuplicateRuleError(task_id)
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Created {rule.type} repeat rule for task {task_id}")

        self.generator.generate(task_id, self.horizon_weeks)
        self.session.refresh(rule)
        return rule

    def update(self, task_id: str, partial_spec: Dict[str, Any]) -> RepeatRule:
        """Merge partial_spec into the rule, drop future pending occurrences and regenerate."""
        rule = self.repository.get_rule(task_id)
        if rule is None:
            raise NoRuleError(task_id)

        merged = {field: getattr(rule, field) for field in RULE_FIELDS}
        merged.update({key: value for key, value in partial_spec.items() if key in RULE_FIELDS})
        if merged.get("interval") is None:
            merged["interval"] = 1
        if merged.get("skip_weekends") is None:
            merged["skip_weekends"] = False
        merged = self._validated(task_id, merged)

        today = self.clock.today()
        try:
            removed = self.repository.delete_future_pending(task_id, today)
            for field, value in merged.items():
                setattr(rule, field, value)
            rule.anchor_date = today
            rule.updated_at = self.clock.now()
            self.session.add(rule)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Updated repeat rule for task {task_id}, discarded {removed} pending occurrences")

        self.generator.generate(task_id, self.horizon_weeks)
        self.session.refresh(rule)
        return rule

    def delete(self, task_id: str) -> None:
        """Remove the rule and its future pending occurrences; history stays."""
        rule = self.repository.get_rule(task_id)
        if rule is None:
            raise NoRuleError(task_id)

        try:
            removed = self.repository.delete_future_pending(task_id, self.clock.today())
            self.repository.delete_rule(rule)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Deleted repeat rule for task {task_id}, discarded {removed} pending occurrences")

    def purge_task(self, task_id: str) -> int:
        """Remove the rule and every occurrence of a task that no longer exists."""
        try:
            removed = self.repository.delete_all_for_task(task_id)
            rule = self.repository.get_rule(task_id)
            if rule is not None:
                self.repository.delete_rule(rule)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info(f"Purged task {task_id}: removed rule and {removed} occurrences")
        return removed

    def _validated(self, task_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(fields.get("type"), RecurrenceType):
            fields["type"] = fields["type"].value
        result = RecurrenceValidator.ensure_valid(fields)
        for warning in result["warnings"]:
            logger.warning(f"Repeat rule for task {task_id}: {warning}")
        return normalize_fields(fields)
