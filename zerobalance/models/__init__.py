"""
Data Models Package

This package contains all Pydantic models used by the ZEROBALANCE resolver.
Anything handed back to a caller conforms to these schemas.
"""

from zerobalance.models.actions import (
    ActionType,
    AddTransactionAction,
    AddTransactionParams,
    ChatAction,
    ClarifyAction,
    ClarifyParams,
    ErrorAction,
    ErrorParams,
    InfoAction,
    InfoParams,
    ListTransactionsAction,
    ListTransactionsParams,
    TransactionCandidate,
    TransactionDraft,
    TransactionType,
    action_to_wire,
    chat_action_adapter,
    clarify_action,
    error_action,
    info_action,
    is_calendar_date,
    is_positive_amount,
)
from zerobalance.models.reference import (
    CATEGORY_RESOLUTION_CHAIN,
    CategoryResolution,
    ReferenceData,
    ReferenceEntity,
)
from zerobalance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Action models
    "ActionType",
    "AddTransactionAction",
    "AddTransactionParams",
    "ChatAction",
    "ClarifyAction",
    "ClarifyParams",
    "ErrorAction",
    "ErrorParams",
    "InfoAction",
    "InfoParams",
    "ListTransactionsAction",
    "ListTransactionsParams",
    "TransactionCandidate",
    "TransactionDraft",
    "TransactionType",
    "action_to_wire",
    "chat_action_adapter",
    "clarify_action",
    "error_action",
    "info_action",
    "is_calendar_date",
    "is_positive_amount",
    # Reference data
    "CATEGORY_RESOLUTION_CHAIN",
    "CategoryResolution",
    "ReferenceData",
    "ReferenceEntity",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
