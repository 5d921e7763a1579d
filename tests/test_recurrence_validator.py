from datetime import date

import pytest

from occurrence_engine.models.repeat_rule import RepeatRule
from occurrence_engine.services.errors import InvalidRuleSpecError
from occurrence_engine.services.recurrence_policy import (
    DailyPolicy,
    MonthlyPolicy,
    WeeklyPolicy,
    normalize_fields,
    policy_for,
)
from occurrence_engine.services.recurrence_validator import MAX_HORIZON_WEEKS, RecurrenceValidator


def test_valid_daily_rule():
    result = RecurrenceValidator.validate_rule_spec({"type": "DAILY", "interval": 2})

    assert result["valid"] is True
    assert result["errors"] == []


def test_custom_type_is_rejected_explicitly():
    result = RecurrenceValidator.validate_rule_spec({"type": "CUSTOM", "interval": 1})

    assert result["valid"] is False
    assert result["errors"] == ["CUSTOM recurrence is not supported"]


def test_paused_rules_are_valid_with_warning():
    weekly = RecurrenceValidator.validate_rule_spec({"type": "WEEKLY", "days_of_week": []})
    monthly = RecurrenceValidator.validate_rule_spec({"type": "MONTHLY"})

    assert weekly["valid"] and monthly["valid"]
    assert weekly["warnings"] and monthly["warnings"]


def test_short_month_day_warns():
    result = RecurrenceValidator.validate_rule_spec({"type": "MONTHLY", "day_of_month": 30})

    assert result["valid"] is True
    assert "fewer than 30 days" in result["warnings"][0]


def test_ensure_valid_raises_with_details():
    with pytest.raises(InvalidRuleSpecError) as exc_info:
        RecurrenceValidator.ensure_valid({"type": "DAILY", "interval": 0, "max_occurrences": 0})

    assert exc_info.value.code == "INVALID_RULE_SPEC"
    assert len(exc_info.value.details["errors"]) == 2


@pytest.mark.parametrize("horizon", [0, -1, True, MAX_HORIZON_WEEKS + 1])
def test_validate_horizon_rejects_out_of_range(horizon):
    with pytest.raises(InvalidRuleSpecError):
        RecurrenceValidator.validate_horizon(horizon)


def test_policy_for_builds_one_variant_per_type():
    anchor = date(2024, 6, 3)
    daily = policy_for(RepeatRule(task_id="a", type="DAILY", interval=2, anchor_date=anchor))
    weekly = policy_for(RepeatRule(task_id="b", type="WEEKLY", days_of_week=[1], anchor_date=anchor))
    monthly = policy_for(RepeatRule(task_id="c", type="MONTHLY", day_of_month=3, anchor_date=anchor))

    assert isinstance(daily, DailyPolicy) and daily.stride == 2
    assert isinstance(weekly, WeeklyPolicy) and weekly.days_of_week == frozenset({1})
    assert isinstance(monthly, MonthlyPolicy) and monthly.matches(date(2024, 7, 3))


def test_policy_for_rejects_custom():
    with pytest.raises(InvalidRuleSpecError):
        policy_for(RepeatRule(task_id="a", type="CUSTOM", anchor_date=date(2024, 6, 3)))


def test_daily_policy_first_candidate_aligns_to_anchor():
    policy = DailyPolicy(interval=7, anchor=date(2024, 6, 3))

    assert policy.first_candidate(date(2024, 6, 1)) == date(2024, 6, 3)
    assert policy.first_candidate(date(2024, 6, 4)) == date(2024, 6, 10)
    assert policy.first_candidate(date(2024, 6, 10)) == date(2024, 6, 10)


def test_normalize_fields_keeps_only_type_fields():
    fields = normalize_fields({"type": "MONTHLY", "days_of_week": [1], "day_of_month": 5})

    assert fields["days_of_week"] == []
    assert fields["day_of_month"] == 5


def test_interval_on_weekly_rule_warns():
    result = RecurrenceValidator.validate_rule_spec({"type": "WEEKLY", "days_of_week": [2], "interval": 2})

    assert result["valid"] is True
    assert result["warnings"] == ["Interval is ignored for WEEKLY rules"]


def test_weekly_and_monthly_policies_carry_no_interval():
    anchor = date(2024, 6, 3)
    weekly = policy_for(RepeatRule(task_id="a", type="WEEKLY", days_of_week=[2], interval=2, anchor_date=anchor))
    monthly = policy_for(RepeatRule(task_id="b", type="MONTHLY", day_of_month=3, interval=2, anchor_date=anchor))

    assert weekly == WeeklyPolicy(days_of_week=frozenset({2}))
    assert monthly == MonthlyPolicy(day_of_month=3)
    assert weekly.matches(date(2024, 6, 11))
