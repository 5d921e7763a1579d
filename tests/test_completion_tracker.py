from datetime import date, timedelta

import pytest

from occurrence_engine.models.task_occurrence import TaskOccurrence
from occurrence_engine.services.completion_tracker import CompletionTracker
from occurrence_engine.services.occurrence_repository import OccurrenceRepository
from tests.conftest import MONDAY, add_occurrence, add_rule


def test_complete_existing_occurrence_stamps_actor(session, service, clock):
    add_rule(session, type="DAILY")
    service.generate("task-1", horizon_weeks=1)

    occurrence = service.complete("task-1", MONDAY, "user-1")

    assert occurrence.completed is True
    assert occurrence.completed_by == "user-1"
    assert occurrence.completed_at is not None
    assert occurrence.skipped is False
    assert service.repository.count_occurrences("task-1") == 7


def test_complete_creates_missing_occurrence(session, service):
    occurrence = service.complete("task-1", MONDAY + timedelta(days=30), "user-2")

    assert occurrence.id is not None
    assert occurrence.completed is True
    assert occurrence.completed_by == "user-2"


def test_complete_clears_skip(session, service):
    add_occurrence(session, MONDAY, skipped=True)

    occurrence = service.complete("task-1", MONDAY, "user-1")

    assert occurrence.completed is True
    assert occurrence.skipped is False


def test_uncomplete_clears_completion(session, service):
    service.complete("task-1", MONDAY, "user-1")

    occurrence = service.uncomplete("task-1", MONDAY)

    assert occurrence.completed is False
    assert occurrence.completed_at is None
    assert occurrence.completed_by is None


def test_uncomplete_without_occurrence_is_a_no_op(session, service):
    assert service.uncomplete("task-1", MONDAY) is None
    assert service.repository.count_occurrences("task-1") == 0


def test_skip_clears_completion(session, service):
    service.complete("task-1", MONDAY, "user-1")

    occurrence = service.skip("task-1", MONDAY)

    assert occurrence.skipped is True
    assert occurrence.completed is False
    assert occurrence.completed_at is None
    assert occurrence.completed_by is None


def test_skip_creates_missing_occurrence(session, service):
    occurrence = service.skip("task-1", MONDAY + timedelta(days=1))

    assert occurrence.skipped is True
    assert occurrence.completed is False


def test_upcoming_is_ordered_and_bounded(session, service):
    for offset in (9, -1, 0, 3, 10):
        add_occurrence(session, MONDAY + timedelta(days=offset))

    upcoming = service.upcoming("task-1", within_days=9)

    assert [item.occurrence.occurrence_date for item in upcoming] == [
        MONDAY, MONDAY + timedelta(days=3), MONDAY + timedelta(days=9),
    ]


def test_upcoming_annotates_completing_actor(session, clock):
    names = {"user-1": "Alex"}
    tracker = CompletionTracker(OccurrenceRepository(session), clock, actor_resolver=names.get)
    tracker.complete("task-1", MONDAY, "user-1")
    tracker.complete("task-1", MONDAY + timedelta(days=1), "user-9")
    add_occurrence(session, MONDAY + timedelta(days=2))

    upcoming = tracker.upcoming("task-1", within_days=7)

    assert [item.completed_by_name for item in upcoming] == ["Alex", "user-9", None]


@pytest.fixture
def history(session, clock):
    today = date(2024, 6, 15)
    clock.advance((today - MONDAY).days)
    add_occurrence(session, date(2024, 5, 1), completed=True)  # outside the window
    add_occurrence(session, date(2024, 6, 1), completed=True)
    add_occurrence(session, date(2024, 6, 2), completed=True)
    add_occurrence(session, date(2024, 6, 3), skipped=True)
    add_occurrence(session, date(2024, 6, 4))
    add_occurrence(session, date(2024, 6, 5))
    add_occurrence(session, today)  # due today, not missed yet
    add_occurrence(session, date(2024, 6, 20))  # future
    return today


def test_stats_counts_match_history(service, history):
    stats = service.stats("task-1", over_days=30)

    assert stats.total == 6
    assert stats.completed == 2
    assert stats.skipped == 1
    assert stats.missed == 2
    assert stats.completion_rate == pytest.approx(2 / 6)


def test_stats_without_occurrences_has_zero_rate(service):
    stats = service.stats("task-without-rule", over_days=30)

    assert stats.total == 0
    assert stats.missed == 0
    assert stats.completion_rate == 0


def test_cleanup_removes_only_old_occurrences(service, history, metrics):
    removed = service.cleanup_old_occurrences(days_to_keep=30)

    assert removed == 1
    assert service.repository.count_occurrences("task-1") == 7
    assert metrics.get_metrics()["counters"]["occurrences_cleaned_total"] == 1


def test_complete_race_with_generation_updates_existing_row(session, service, metrics, monkeypatch):
    add_occurrence(session, MONDAY)
    repository = service.repository
    real_get_occurrence = repository.get_occurrence
    calls = []

    def stale_get_occurrence(task_id, occurrence_date):
        calls.append(occurrence_date)
        if len(calls) == 1:
            return None
        return real_get_occurrence(task_id, occurrence_date)

    monkeypatch.setattr(repository, "get_occurrence", stale_get_occurrence)

    occurrence = service.complete("task-1", MONDAY, "user-1")

    assert occurrence.completed is True
    assert repository.count_occurrences("task-1") == 1
    assert metrics.get_metrics()["counters"]["occurrence_races_total"] == 1


def test_windows_reaching_past_the_calendar_are_clamped(session, service):
    add_occurrence(session, MONDAY)

    upcoming = service.upcoming("task-1", within_days=10**7)
    stats = service.stats("task-1", over_days=10**7)

    assert [item.occurrence.occurrence_date for item in upcoming] == [MONDAY]
    assert stats.total == 1


def test_cleanup_counts_removed_rows_against_the_rule(session, service, history):
    rule = add_rule(session, type="DAILY", max_occurrences=20)

    service.cleanup_old_occurrences(days_to_keep=30)

    session.refresh(rule)
    assert rule.retired_count == 1


def test_new_rows_are_stamped_in_utc():
    occurrence = TaskOccurrence(task_id="task-1", occurrence_date=MONDAY)

    assert occurrence.created_at.tzinfo is not None
    assert occurrence.created_at.utcoffset() == timedelta(0)
