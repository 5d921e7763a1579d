"""Recurrence Validator."""
from typing import Dict, Any

from occurrence_engine.models.repeat_rule import RecurrenceType
from occurrence_engine.services.errors import InvalidRuleSpecError

SUPPORTED_TYPES = (RecurrenceType.DAILY.value, RecurrenceType.WEEKLY.value, RecurrenceType.MONTHLY.value)

# Upper bounds on how far a single call may reach from today
MAX_HORIZON_WEEKS = 104
MAX_WINDOW_DAYS = 3660


class RecurrenceValidator:
    """Validate repeat rule specifications before they are persisted."""

    @staticmethod
    def validate_rule_spec(spec: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a complete repeat rule specification.

        Args:
            spec: Rule fields (type, interval, days_of_week, day_of_month,
                  end_date, max_occurrences, skip_weekends)

        Returns:
            Dict with validation result
        """
        result = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        rule_type = spec.get("type")
        if rule_type == RecurrenceType.CUSTOM.value:
            result["valid"] = False
            result["errors"].append("CUSTOM recurrence is not supported")
            return result

        if rule_type not in SUPPORTED_TYPES:
            result["valid"] = False
            result["errors"].append(f"Recurrence type must be one of: {', '.join(SUPPORTED_TYPES)}")
            return result

        interval = spec.get("interval", 1)
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            result["valid"] = False
            result["errors"].append(f"Interval must be a positive integer, got: {interval}")

        days_of_week = spec.get("days_of_week") or []
        for day in days_of_week:
            if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 7:
                result["valid"] = False
                result["errors"].append(f"Day of week must be between 1 (Monday) and 7 (Sunday), got: {day}")
                break

        day_of_month = spec.get("day_of_month")
        if day_of_month is not None and (
            isinstance(day_of_month, bool) or not isinstance(day_of_month, int) or not 1 <= day_of_month <= 31
        ):
            result["valid"] = False
            result["errors"].append(f"Day of month must be between 1 and 31, got: {day_of_month}")

        max_occurrences = spec.get("max_occurrences")
        if max_occurrences is not None and (not isinstance(max_occurrences, int) or max_occurrences < 1):
            result["valid"] = False
            result["errors"].append(f"Max occurrences must be a positive integer, got: {max_occurrences}")

        if not result["valid"]:
            return result

        # Paused rules are allowed, but worth flagging
        if rule_type == RecurrenceType.WEEKLY.value and not days_of_week:
            result["warnings"].append("Weekly rule without days of week will not generate occurrences")
        if rule_type == RecurrenceType.MONTHLY.value and day_of_month is None:
            result["warnings"].append("Monthly rule without day of month will not generate occurrences")

        if rule_type != RecurrenceType.WEEKLY.value and days_of_week:
            result["warnings"].append(f"Days of week are ignored for {rule_type} rules")
        if rule_type != RecurrenceType.MONTHLY.value and day_of_month is not None:
            result["warnings"].append(f"Day of month is ignored for {rule_type} rules")

        if rule_type != RecurrenceType.DAILY.value and interval != 1:
            result["warnings"].append(f"Interval is ignored for {rule_type} rules")

        if day_of_month is not None and day_of_month > 28:
            result["warnings"].append(f"Months with fewer than {day_of_month} days will have no occurrence")

        return result

    @staticmethod
    def ensure_valid(spec: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and raise InvalidRuleSpecError on failure; returns the result otherwise."""
        result = RecurrenceValidator.validate_rule_spec(spec)
        if not result["valid"]:
            raise InvalidRuleSpecError(result["errors"], result["warnings"])
        return result

    @staticmethod
    def validate_horizon(horizon_weeks: int) -> None:
        """Reject horizons that are not between 1 and MAX_HORIZON_WEEKS weeks."""
        if isinstance(horizon_weeks, bool) or not isinstance(horizon_weeks, int) or horizon_weeks < 1:
            raise InvalidRuleSpecError([f"Horizon must be a positive number of weeks, got: {horizon_weeks}"])
        if horizon_weeks > MAX_HORIZON_WEEKS:
            raise InvalidRuleSpecError([f"Horizon must be at most {MAX_HORIZON_WEEKS} weeks, got: {horizon_weeks}"])
