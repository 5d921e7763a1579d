"""Schemas for repeat rules and task occurrences."""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, List


class RepeatRuleCreate(BaseModel):
    """Schema for creating a repeat rule."""
    type: str  # DAILY, WEEKLY, MONTHLY
    interval: int = 1
    days_of_week: List[int] = Field(default_factory=list)  # ISO weekdays, 1=Monday .. 7=Sunday
    day_of_month: Optional[int] = None  # 1-31
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    skip_weekends: bool = False


class RepeatRuleUpdate(BaseModel):
    """Schema for updating a repeat rule; unset fields are left unchanged."""
    type: Optional[str] = None
    interval: Optional[int] = None
    days_of_week: Optional[List[int]] = None
    day_of_month: Optional[int] = None
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    skip_weekends: Optional[bool] = None


class RepeatRuleResponse(BaseModel):
    """Schema for repeat rule API responses."""
    task_id: str
    type: str
    interval: int
    days_of_week: List[int] = []
    day_of_month: Optional[int] = None
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    skip_weekends: bool = False
    anchor_date: date
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OccurrenceResponse(BaseModel):
    """Schema for occurrence API responses."""
    id: int
    task_id: str
    occurrence_date: date
    completed: bool
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_by_name: Optional[str] = None  # display identity of the completing actor
    skipped: bool

    model_config = ConfigDict(from_attributes=True)


class CompletionStats(BaseModel):
    """Completion statistics over a trailing window."""
    total: int = 0
    completed: int = 0
    skipped: int = 0
    missed: int = 0
    completion_rate: float = 0.0  # completed / total
