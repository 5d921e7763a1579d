"""Occurrence engine services."""
from occurrence_engine.services.errors import (
    RecurrenceError,
    NoRuleError,
    DuplicateRuleError,
    InvalidRuleSpecError,
)
from occurrence_engine.services.recurring_task_service import RecurringTaskService

__all__ = [
    "RecurrenceError",
    "NoRuleError",
    "DuplicateRuleError",
    "InvalidRuleSpecError",
    "RecurringTaskService",
]
