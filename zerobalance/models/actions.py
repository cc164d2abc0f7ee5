"""
Chat Action Models for ZEROBALANCE

The conversational resolver turns one user utterance into exactly ONE of
five actions. Two families of schemas live here:

1. STRICT ACTIONS - what the resolver hands back to the caller.
   Every instance is fully valid. An AddTransaction action is never
   returned half-populated.

2. LOOSE SHAPES - what the generative backend is asked to emit.
   These are PROPOSED data, NOT verified. Every field is optional and
   untyped because the model may omit, misspell, or invent anything.

DESIGN DECISION: Pydantic v2 with strict mode on the amount field.
A quoted "500" from the model is a format problem, not a number.

Wire shape (both directions):
    {"action": "ADD_TRANSACTION", "params": {"userId": ..., ...}}
Params use camelCase aliases so the JSON matches the chat UI contract.
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class ActionType(str, Enum):
    """The closed action vocabulary."""
    ADD_TRANSACTION = "ADD_TRANSACTION"
    LIST_TRANSACTIONS = "LIST_TRANSACTIONS"
    CLARIFY = "CLARIFY"
    INFO = "INFO"
    ERROR = "ERROR"


class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_calendar_date(value: Any) -> bool:
    """True only for a 'YYYY-MM-DD' string naming a real day (no 2023-02-30)."""
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return True


def is_positive_amount(value: Any) -> bool:
    """True for a finite int/float strictly above zero. Booleans are not amounts."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        # An int too large for a float has no representable amount
        return False


class _Params(BaseModel):
    """
    Base for all action params: camelCase on the wire, snake_case in Python.

    Strings are kept exactly as given; CLARIFY, INFO and ERROR text is
    relayed to the user verbatim.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# STRICT ACTIONS (resolver output)
# =============================================================================

class AddTransactionParams(_Params):
    """
    A fully validated transaction, ready for the caller to persist.

    category_id is always a member of the caller's category set or the
    computed default category id.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user who paid"
    )
    description: str = Field(
        ...,
        min_length=2,
        description="Short description of the transaction"
    )
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        strict=True,
        description="Monetary amount, always positive"
    )
    date: str = Field(
        ...,
        description="Calendar date, YYYY-MM-DD"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Resolved category id"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )

    @field_validator('date')
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        """Reject anything that is not a real YYYY-MM-DD day."""
        if not is_calendar_date(v):
            raise ValueError("Invalid date format, expected YYYY-MM-DD")
        return v


class ListTransactionsParams(_Params):
    """Free-text filters. Informational only; nothing here is resolved."""

    period: Optional[str] = None
    user: Optional[str] = None
    category: Optional[str] = None


class ClarifyParams(_Params):
    clarification_needed: str


class InfoParams(_Params):
    ai_response: str


class ErrorParams(_Params):
    error_message: str


class AddTransactionAction(BaseModel):
    action: Literal["ADD_TRANSACTION"] = "ADD_TRANSACTION"
    params: AddTransactionParams


class ListTransactionsAction(BaseModel):
    action: Literal["LIST_TRANSACTIONS"] = "LIST_TRANSACTIONS"
    params: ListTransactionsParams


class ClarifyAction(BaseModel):
    action: Literal["CLARIFY"] = "CLARIFY"
    params: ClarifyParams


class InfoAction(BaseModel):
    action: Literal["INFO"] = "INFO"
    params: InfoParams


class ErrorAction(BaseModel):
    action: Literal["ERROR"] = "ERROR"
    params: ErrorParams


ChatAction = Annotated[
    Union[
        AddTransactionAction,
        ListTransactionsAction,
        ClarifyAction,
        InfoAction,
        ErrorAction,
    ],
    Field(discriminator="action"),
]

chat_action_adapter: TypeAdapter = TypeAdapter(ChatAction)


def clarify_action(question: str) -> ClarifyAction:
    return ClarifyAction(params=ClarifyParams(clarification_needed=question))


def info_action(message: str) -> InfoAction:
    return InfoAction(params=InfoParams(ai_response=message))


def error_action(message: str) -> ErrorAction:
    return ErrorAction(params=ErrorParams(error_message=message))


def action_to_wire(action: BaseModel) -> dict:
    """Serialize an action to the {"action", "params"} JSON shape."""
    return action.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# LOOSE SHAPES (backend output, untrusted)
# =============================================================================

class TransactionDraft(_Params):
    """
    What the backend proposes for an ADD_TRANSACTION action.

    CRITICAL: Nothing here is verified. Fields keep whatever type the
    backend sent; the canonicalizer and validator decide what it means.
    category_name is free text to be mapped to a category id downstream.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    user_id: Any = None
    description: Any = None
    amount: Any = None
    date: Any = None
    category_name: Any = None
    type: Any = None

    @classmethod
    def from_backend(cls, params: Any) -> "TransactionDraft":
        """Build a draft from raw backend params. Non-objects give an empty draft."""
        if isinstance(params, BaseModel):
            params = params.model_dump(by_alias=True)
        if not isinstance(params, dict):
            return cls()
        return cls.model_validate(params)


class TransactionCandidate(_Params):
    """
    Output of canonicalization: a strict-shaped but UNVALIDATED payload.

    category_source records which fallback tier produced category_id.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: Any = None
    description: Any = None
    amount: Any = None
    date: Any = None
    category_id: str
    type: Any = None
    category_source: str = Field(
        default="exact_match",
        exclude=True,
        description="Which category strategy produced category_id"
    )

    def to_params(self) -> dict[str, Any]:
        """Params dict for strict validation (snake_case keys)."""
        return self.model_dump(exclude={"category_source"})
