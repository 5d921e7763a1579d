"""Repeat rule and occurrence router."""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Dict, Any, Optional
from datetime import date

from sqlmodel import Session

from occurrence_engine import settings
from occurrence_engine.db.config import get_session
from occurrence_engine.middleware.auth import get_current_user, CurrentUser
from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.schemas.repeat_rule import (
    RepeatRuleCreate,
    RepeatRuleUpdate,
    RepeatRuleResponse,
    OccurrenceResponse,
    CompletionStats,
)
from occurrence_engine.services.errors import (
    RecurrenceError,
    NoRuleError,
    DuplicateRuleError,
    InvalidRuleSpecError,
)
from occurrence_engine.services.recurrence_validator import MAX_HORIZON_WEEKS, MAX_WINDOW_DAYS
from occurrence_engine.services.recurring_task_service import RecurringTaskService
from occurrence_engine.utils.clock import Clock, SystemClock

router = APIRouter(tags=["Recurring Tasks"])  # No prefix since main.py adds /api prefix


def get_clock() -> Clock:
    """Dependency for the engine's source of "today"."""
    return SystemClock(settings.APP_TIMEZONE)


def get_recurring_task_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> RecurringTaskService:
    """Dependency for getting RecurringTaskService instance."""
    return RecurringTaskService(session, clock=clock, horizon_weeks=settings.HORIZON_WEEKS)


def to_http_error(error: RecurrenceError) -> HTTPException:
    """Map engine errors to HTTP responses."""
    if isinstance(error, NoRuleError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, DuplicateRuleError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, InvalidRuleSpecError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(
        status_code=code,
        detail={"code": error.code, "message": error.message, **error.details}
    )


def occurrence_response(occurrence: TaskOccurrence, completed_by_name: Optional[str] = None) -> OccurrenceResponse:
    response = OccurrenceResponse.model_validate(occurrence)
    response.completed_by_name = completed_by_name
    return response


@router.get("/tasks/{task_id}/repeat", response_model=Optional[RepeatRuleResponse])
async def get_repeat_rule(
    task_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Get the repeat rule for a task, or null when it has none."""
    return service.get_rule(task_id)


@router.post("/tasks/{task_id}/repeat", response_model=RepeatRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_repeat_rule(
    task_id: str,
    rule_data: RepeatRuleCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Create a repeat rule and generate its first window of occurrences."""
    try:
        return service.create_rule(task_id, rule_data)
    except RecurrenceError as e:
        raise to_http_error(e)


@router.put("/tasks/{task_id}/repeat", response_model=RepeatRuleResponse)
async def update_repeat_rule(
    task_id: str,
    rule_data: RepeatRuleUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Update a repeat rule; future pending occurrences are regenerated."""
    try:
        return service.update_rule(task_id, rule_data)
    except RecurrenceError as e:
        raise to_http_error(e)


@router.delete("/tasks/{task_id}/repeat", response_model=Dict[str, Any])
async def delete_repeat_rule(
    task_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Stop a task from recurring. Completion history is kept."""
    try:
        service.delete_rule(task_id)
    except RecurrenceError as e:
        raise to_http_error(e)
    return {"status": "deleted", "task_id": task_id}


@router.post("/tasks/{task_id}/occurrences/generate", response_model=Dict[str, Any])
async def generate_occurrences(
    task_id: str,
    horizon_weeks: int = Query(settings.HORIZON_WEEKS, ge=1, le=MAX_HORIZON_WEEKS, description="Weeks ahead to materialize"),
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Materialize occurrences for the coming weeks."""
    try:
        created = service.generate(task_id, horizon_weeks)
    except RecurrenceError as e:
        raise to_http_error(e)
    return {
        "occurrences": [occurrence_response(occ) for occ in created],
        "count": len(created)
    }


@router.get("/tasks/{task_id}/occurrences/upcoming", response_model=Dict[str, Any])
async def upcoming_occurrences(
    task_id: str,
    days: int = Query(30, ge=0, le=MAX_WINDOW_DAYS, description="Days ahead to include"),
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """List occurrences from today through the next `days` days."""
    upcoming = service.upcoming(task_id, days)
    occurrences = [occurrence_response(item.occurrence, item.completed_by_name) for item in upcoming]
    return {
        "occurrences": occurrences,
        "count": len(occurrences)
    }


@router.get("/tasks/{task_id}/occurrences/stats", response_model=CompletionStats)
async def occurrence_stats(
    task_id: str,
    days: int = Query(30, ge=0, le=MAX_WINDOW_DAYS, description="Trailing days to report on"),
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Completion statistics over the trailing window."""
    return service.stats(task_id, days)


@router.post("/tasks/{task_id}/occurrences/{occurrence_date}/complete", response_model=OccurrenceResponse)
async def complete_occurrence(
    task_id: str,
    occurrence_date: date,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Mark the occurrence on a date completed by the caller."""
    occurrence = service.complete(task_id, occurrence_date, current_user.user_id)
    return occurrence_response(occurrence, current_user.name or current_user.user_id)


@router.post("/tasks/{task_id}/occurrences/{occurrence_date}/uncomplete", response_model=Optional[OccurrenceResponse])
async def uncomplete_occurrence(
    task_id: str,
    occurrence_date: date,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Return an occurrence to pending; null when no occurrence exists for the date."""
    occurrence = service.uncomplete(task_id, occurrence_date)
    return occurrence_response(occurrence) if occurrence else None


@router.post("/tasks/{task_id}/occurrences/{occurrence_date}/skip", response_model=OccurrenceResponse)
async def skip_occurrence(
    task_id: str,
    occurrence_date: date,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Skip the occurrence on a date."""
    return occurrence_response(service.skip(task_id, occurrence_date))
