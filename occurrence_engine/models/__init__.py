from occurrence_engine.models.repeat_rule import RepeatRule, RecurrenceType
from occurrence_engine.models.task_occurrence import TaskOccurrence

__all__ = ["RepeatRule", "RecurrenceType", "TaskOccurrence"]
