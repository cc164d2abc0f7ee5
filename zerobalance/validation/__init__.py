"""Validation package."""

from zerobalance.validation.validator import (
    MISSING_DETAILS_TEMPLATE,
    TRANSACTION_CHECKLIST,
    ActionValidator,
    ValidationIssue,
    ValidationResult,
    action_name,
    format_validation_error,
)

__all__ = [
    "MISSING_DETAILS_TEMPLATE",
    "TRANSACTION_CHECKLIST",
    "ActionValidator",
    "ValidationIssue",
    "ValidationResult",
    "action_name",
    "format_validation_error",
]
