"""Task Occurrence model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import date, datetime, timezone
from typing import Optional


class TaskOccurrence(SQLModel, table=True):
    """One scheduled calendar-date instance of a recurring task."""

    __tablename__ = "task_occurrences"
    __table_args__ = (
        UniqueConstraint("task_id", "occurrence_date", name="uq_task_occurrence_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: str = Field(max_length=100, index=True)
    occurrence_date: date = Field(index=True)
    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)
    completed_by: Optional[str] = Field(default=None, max_length=100)
    skipped: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_pending(self) -> bool:
        return not self.completed and not self.skipped
