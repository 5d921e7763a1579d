"""Data access for repeat rules and task occurrences."""
from datetime import date
from typing import List, Optional, Set

from sqlalchemy import delete, func
from sqlmodel import Session, select

from occurrence_engine.models.repeat_rule import RepeatRule
from occurrence_engine.models.task_occurrence import TaskOccurrence


class OccurrenceRepository:
    """Queries over the repeat_rules and task_occurrences tables.

    The repository never commits; callers own the transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    # Rules

    def get_rule(self, task_id: str) -> Optional[RepeatRule]:
        return self.session.get(RepeatRule, task_id)

    def add_rule(self, rule: RepeatRule) -> RepeatRule:
        self.session.add(rule)
        return rule

    def delete_rule(self, rule: RepeatRule) -> None:
        self.session.delete(rule)

    def rule_task_ids(self) -> List[str]:
        statement = select(RepeatRule.task_id).order_by(RepeatRule.task_id)
        return list(self.session.exec(statement).all())

    # Occurrences

    def get_occurrence(self, task_id: str, occurrence_date: date) -> Optional[TaskOccurrence]:
        statement = (
            select(TaskOccurrence)
            .where(TaskOccurrence.task_id == task_id)
            .where(TaskOccurrence.occurrence_date == occurrence_date)
        )
        return self.session.exec(statement).first()

    def existing_dates(self, task_id: str, start: date, end: date) -> Set[date]:
        """Dates in [start, end] that already have an occurrence."""
        statement = (
            select(TaskOccurrence.occurrence_date)
            .where(TaskOccurrence.task_id == task_id)
            .where(TaskOccurrence.occurrence_date >= start)
            .where(TaskOccurrence.occurrence_date <= end)
        )
        return set(self.session.exec(statement).all())

    def count_occurrences(self, task_id: str) -> int:
        """Number of occurrences currently stored for a task."""
        statement = select(func.count(TaskOccurrence.id)).where(TaskOccurrence.task_id == task_id)
        return self.session.exec(statement).one()

    def list_between(self, task_id: str, start: date, end: date) -> List[TaskOccurrence]:
        statement = (
            select(TaskOccurrence)
            .where(TaskOccurrence.task_id == task_id)
            .where(TaskOccurrence.occurrence_date >= start)
            .where(TaskOccurrence.occurrence_date <= end)
            .order_by(TaskOccurrence.occurrence_date.asc())
        )
        return list(self.session.exec(statement).all())

    def add_occurrences(self, occurrences: List[TaskOccurrence]) -> None:
        self.session.add_all(occurrences)

    def delete_future_pending(self, task_id: str, from_date: date) -> int:
        """Delete occurrences on or after from_date that are neither completed nor skipped."""
        statement = (
            delete(TaskOccurrence)
            .where(TaskOccurrence.task_id == task_id)
            .where(TaskOccurrence.occurrence_date >= from_date)
            .where(TaskOccurrence.completed == False)  # noqa: E712
            .where(TaskOccurrence.skipped == False)  # noqa: E712
        )
        return self.session.execute(statement).rowcount

    def delete_before(self, cutoff: date, task_id: Optional[str] = None) -> int:
        """Delete occurrences dated strictly before cutoff."""
        statement = delete(TaskOccurrence).where(TaskOccurrence.occurrence_date < cutoff)
        if task_id is not None:
            statement = statement.where(TaskOccurrence.task_id == task_id)
        return self.session.execute(statement).rowcount

    def delete_all_for_task(self, task_id: str) -> int:
        statement = delete(TaskOccurrence).where(TaskOccurrence.task_id == task_id)
        return self.session.execute(statement).rowcount

    def retire_before(self, cutoff: date, task_id: Optional[str] = None) -> int:
        """Delete occurrences dated before cutoff, adding them to each rule's retired_count."""
        statement = (
            select(TaskOccurrence.task_id, func.count(TaskOccurrence.id))
            .where(TaskOccurrence.occurrence_date < cutoff)
            .group_by(TaskOccurrence.task_id)
        )
        if task_id is not None:
            statement = statement.where(TaskOccurrence.task_id == task_id)

        for owner, count in self.session.exec(statement).all():
            rule = self.get_rule(owner)
            if rule is not None:
                rule.retired_count = (rule.retired_count or 0) + count
                self.session.add(rule)

        return self.delete_before(cutoff, task_id=task_id)
