"""Repeat Rule model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional


class RecurrenceType(str, Enum):
    """Supported values of RepeatRule.type."""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class RepeatRule(SQLModel, table=True):
    """Repetition policy attached to exactly one task."""

    __tablename__ = "repeat_rules"

    task_id: str = Field(primary_key=True, max_length=100)
    type: str = Field(max_length=20)  # DAILY, WEEKLY, MONTHLY
    interval: int = Field(default=1)  # every N days; DAILY only
    days_of_week: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))  # ISO 1=Mon..7=Sun
    day_of_month: Optional[int] = Field(default=None)  # 1-31
    end_date: Optional[date] = Field(default=None)  # inclusive
    max_occurrences: Optional[int] = Field(default=None)  # cumulative cap
    skip_weekends: bool = Field(default=False)
    anchor_date: date  # day the current policy took effect
    retired_count: int = Field(default=0)  # occurrences removed by retention cleanup, still counted toward max_occurrences
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
