"""
Recurrence Engine Errors

Exception taxonomy raised by the occurrence engine. Every error carries a
machine-readable code so HTTP handlers can map it without string matching.
"""

from typing import Any, Dict, Optional


class RecurrenceError(Exception):
    """Base exception for occurrence engine errors"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NoRuleError(RecurrenceError):
    """Raised when an operation needs a repeat rule and the task has none."""
    def __init__(self, task_id: str):
        super().__init__(
            code="NO_RULE",
            message=f"No repeat rule found for task {task_id}",
            details={"task_id": task_id}
        )


class DuplicateRuleError(RecurrenceError):
    """Raised when creating a rule for a task that already has one."""
    def __init__(self, task_id: str):
        super().__init__(
            code="DUPLICATE_RULE",
            message=f"Task {task_id} already has a repeat rule",
            details={"task_id": task_id}
        )


class InvalidRuleSpecError(RecurrenceError):
    """Raised before persistence when a rule specification is rejected."""
    def __init__(self, errors: list, warnings: Optional[list] = None):
        super().__init__(
            code="INVALID_RULE_SPEC",
            message="; ".join(errors) or "Invalid repeat rule",
            details={"errors": list(errors), "warnings": list(warnings or [])}
        )
