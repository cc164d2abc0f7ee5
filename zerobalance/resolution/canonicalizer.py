"""
Draft Canonicalizer

Turns a backend TransactionDraft into a TransactionCandidate.

This step is TOTAL: it never raises and never rejects anything.
It only fills in what can be decided deterministically:
- category name -> category id (exact match, else the default category)
- missing type -> "expense"

user_id, description, amount and date pass through untouched.
Deciding whether they are acceptable is the validator's job.
"""

from typing import Any

from zerobalance.models.actions import (
    TransactionCandidate,
    TransactionDraft,
    TransactionType,
)
from zerobalance.models.reference import ReferenceData


def resolve_transaction_type(value: Any) -> Any:
    """Pass the backend's type through; absent or blank means expense."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return TransactionType.EXPENSE.value
    return value


def canonicalize(
    draft: TransactionDraft,
    reference: ReferenceData,
) -> TransactionCandidate:
    """
    Resolve a loose draft against the caller's reference data.

    Args:
        draft: Untrusted ADD_TRANSACTION params from the backend
        reference: Lookup tables for this call

    Returns:
        A candidate with category_id always set. Not yet validated.
    """
    category_name = draft.category_name if isinstance(draft.category_name, str) else None
    if category_name is None:
        resolution = reference.default_category
    else:
        resolution = reference.resolve_category(category_name)

    return TransactionCandidate(
        user_id=draft.user_id,
        description=draft.description,
        amount=draft.amount,
        date=draft.date,
        category_id=resolution.category_id,
        type=resolve_transaction_type(draft.type),
        category_source=resolution.strategy,
    )
