"""
Recurrence Policies

A RepeatRule row is turned into exactly one policy object for its type. Each
policy carries only the fields its type uses and answers the questions the
generator asks: where the walk starts, how far it steps and whether a given
calendar date is selected.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, Optional, Union

from occurrence_engine.models.repeat_rule import RepeatRule, RecurrenceType
from occurrence_engine.services.errors import InvalidRuleSpecError


@dataclass(frozen=True)
class DailyPolicy:
    """Every `interval` days, counted from the anchor date."""
    interval: int
    anchor: date

    paused = False

    @property
    def stride(self) -> int:
        return self.interval

    def first_candidate(self, start: date) -> date:
        if start <= self.anchor:
            return self.anchor
        offset = (start - self.anchor).days % self.interval
        return start if offset == 0 else start + timedelta(days=self.interval - offset)

    def matches(self, day: date) -> bool:
        return day >= self.anchor and (day - self.anchor).days % self.interval == 0


@dataclass(frozen=True)
class WeeklyPolicy:
    """Selected ISO weekdays, every week."""
    days_of_week: FrozenSet[int]

    stride = 1

    @property
    def paused(self) -> bool:
        return not self.days_of_week

    def first_candidate(self, start: date) -> date:
        return start

    def matches(self, day: date) -> bool:
        return day.isoweekday() in self.days_of_week


@dataclass(frozen=True)
class MonthlyPolicy:
    """A fixed day of every month.

    Months shorter than `day_of_month` are skipped, never rolled over.
    """
    day_of_month: Optional[int]

    stride = 1

    @property
    def paused(self) -> bool:
        return self.day_of_month is None

    def first_candidate(self, start: date) -> date:
        return start

    def matches(self, day: date) -> bool:
        return self.day_of_month is not None and day.day == self.day_of_month


RecurrencePolicy = Union[DailyPolicy, WeeklyPolicy, MonthlyPolicy]


def policy_for(rule: RepeatRule) -> RecurrencePolicy:
    """Build the policy for a stored rule. Only DAILY rules use `interval`."""
    if rule.type == RecurrenceType.DAILY.value:
        return DailyPolicy(interval=rule.interval or 1, anchor=rule.anchor_date)
    if rule.type == RecurrenceType.WEEKLY.value:
        return WeeklyPolicy(days_of_week=frozenset(rule.days_of_week or []))
    if rule.type == RecurrenceType.MONTHLY.value:
        return MonthlyPolicy(day_of_month=rule.day_of_month)
    raise InvalidRuleSpecError([f"Unsupported recurrence type: {rule.type}"])


def normalize_fields(spec: dict) -> dict:
    """Clear the fields a rule's type does not use."""
    normalized = dict(spec)
    if normalized.get("type") != RecurrenceType.WEEKLY.value:
        normalized["days_of_week"] = []
    else:
        normalized["days_of_week"] = sorted(set(normalized.get("days_of_week") or []))
    if normalized.get("type") != RecurrenceType.MONTHLY.value:
        normalized["day_of_month"] = None
    return normalized
