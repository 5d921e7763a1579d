from datetime import date

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from occurrence_engine.db.config import build_engine
from occurrence_engine.models.repeat_rule import RepeatRule
from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.services.recurring_task_service import RecurringTaskService
from occurrence_engine.utils.clock import FixedClock
from occurrence_engine.utils.metrics import MetricsCollector

MONDAY = date(2024, 6, 3)


@pytest.fixture
def engine():
    db_engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    SQLModel.metadata.create_all(db_engine)
    yield db_engine
    SQLModel.metadata.drop_all(db_engine)
    db_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture
def clock():
    return FixedClock(MONDAY)


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def service(session, clock, metrics):
    return RecurringTaskService(session, clock=clock, horizon_weeks=2, metrics=metrics)


def add_rule(session, task_id="task-1", anchor_date=MONDAY, **fields):
    """Store a rule directly, without triggering generation."""
    fields.setdefault("type", "DAILY")
    rule = RepeatRule(task_id=task_id, anchor_date=anchor_date, **fields)
    session.add(rule)
    session.commit()
    return rule


def add_occurrence(session, occurrence_date, task_id="task-1", **fields):
    occurrence = TaskOccurrence(task_id=task_id, occurrence_date=occurrence_date, **fields)
    session.add(occurrence)
    session.commit()
    return occurrence


def occurrence_dates(service, task_id="task-1"):
    return sorted(
        occ.occurrence_date
        for occ in service.repository.list_between(task_id, date.min, date.max)
    )
