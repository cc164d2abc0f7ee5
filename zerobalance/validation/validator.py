"""
Strict Action Validator

DESIGN DECISION: The validator NEVER trusts its input, including the
canonicalizer's output. Every action goes through the strict schemas again
before it reaches the caller.

Two entry points:

ADD_TRANSACTION (after canonicalization):
- Strict schema check of the candidate
- On failure, a fixed checklist decides between asking and failing:
    user_id -> "who paid", description, amount, date
  Any checklist field at fault -> CLARIFY listing them in that order.
  Anything else (bad type, empty category id) -> ERROR with details.

Every other action (LIST_TRANSACTIONS, CLARIFY, INFO, ERROR):
- Strict shape check of the backend's object as-is
- On failure -> ERROR describing the mismatch

IMPORTANT: The validator never raises for bad input.
It always produces a ValidationResult whose `action` is safe to return.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from zerobalance.models.actions import (
    AddTransactionAction,
    AddTransactionParams,
    TransactionCandidate,
    chat_action_adapter,
    clarify_action,
    error_action,
    is_calendar_date,
    is_positive_amount,
)


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'string_too_short', 'enum')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Outcome of validating one backend action.

    `action` is always set: the validated action on success, otherwise
    the CLARIFY or ERROR action that replaces it.
    """

    is_valid: bool
    action: Any = Field(
        ...,
        description="The action to hand back to the caller"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    missing_fields: list[str] = Field(
        default_factory=list,
        description="Human-readable checklist fields at fault, in fixed order"
    )

    @property
    def needs_clarification(self) -> bool:
        return bool(self.missing_fields)

    def issues_as_dicts(self) -> list[dict]:
        return [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in self.issues
        ]


def _is_blank(value: Any, min_length: int = 1) -> bool:
    return not isinstance(value, str) or len(value.strip()) < min_length


# Fixed order. The label is what the user sees.
TRANSACTION_CHECKLIST: tuple[tuple[str, str, Callable[[Any], bool]], ...] = (
    ("user_id", "who paid", lambda v: _is_blank(v)),
    ("description", "description", lambda v: _is_blank(v, min_length=2)),
    ("amount", "amount", lambda v: not is_positive_amount(v)),
    ("date", "date", lambda v: not is_calendar_date(v)),
)

MISSING_DETAILS_TEMPLATE = (
    "I'm missing some details for the transaction: {fields}. "
    "Could you please provide them?"
)


def format_validation_error(error: ValidationError) -> str:
    """Compact one-line rendering of a pydantic ValidationError."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "value"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _issues_from(error: ValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            field=".".join(str(p) for p in err.get("loc", ())) or "value",
            issue_type=err.get("type", "invalid"),
            message=err.get("msg", "invalid"),
        )
        for err in error.errors()
    ]


class ActionValidator:
    """
    Re-validates backend output against the strict action schemas.
    """

    def missing_transaction_fields(
        self,
        candidate: TransactionCandidate,
    ) -> list[str]:
        """
        Checklist fields at fault, as user-facing labels, in fixed order.

        Order: who paid, description, amount, date.
        """
        params = candidate.to_params()
        return [
            label
            for field, label, is_missing in TRANSACTION_CHECKLIST
            if is_missing(params.get(field))
        ]

    def validate_transaction(
        self,
        candidate: TransactionCandidate,
    ) -> ValidationResult:
        """
        Validate a canonicalized ADD_TRANSACTION candidate.

        Returns:
            ValidationResult whose action is ADD_TRANSACTION, CLARIFY or ERROR
        """
        try:
            params = AddTransactionParams.model_validate(candidate.to_params())
        except ValidationError as e:
            issues = _issues_from(e)
            missing = self.missing_transaction_fields(candidate)

            if missing:
                message = MISSING_DETAILS_TEMPLATE.format(fields=", ".join(missing))
                return ValidationResult(
                    is_valid=False,
                    action=clarify_action(message),
                    issues=issues,
                    missing_fields=missing,
                )

            return ValidationResult(
                is_valid=False,
                action=error_action(
                    "AI response for adding transaction was not in the expected "
                    f"format. Details: {format_validation_error(e)}"
                ),
                issues=issues,
            )

        return ValidationResult(
            is_valid=True,
            action=AddTransactionAction(params=params),
        )

    def validate_action(
        self,
        raw: Any,
    ) -> ValidationResult:
        """
        Validate any other backend action directly against the strict union.

        Returns:
            ValidationResult whose action is the parsed action or an ERROR
        """
        if not isinstance(raw, dict):
            return ValidationResult(
                is_valid=False,
                action=error_action(
                    "AI response was not in the expected format. "
                    f"Details: expected an object, got {type(raw).__name__}"
                ),
                issues=[ValidationIssue(
                    field="action",
                    issue_type="model_type",
                    message="Response is not an object",
                )],
            )

        try:
            action = chat_action_adapter.validate_python(raw)
        except ValidationError as e:
            return ValidationResult(
                is_valid=False,
                action=error_action(
                    "AI response was not in the expected format. "
                    f"Details: {format_validation_error(e)}"
                ),
                issues=_issues_from(e),
            )

        return ValidationResult(is_valid=True, action=action)


def action_name(raw: Any) -> Optional[str]:
    """Best-effort action tag of a raw backend object, for logging."""
    if isinstance(raw, dict):
        tag = raw.get("action")
        return tag if isinstance(tag, str) else None
    return None
