"""
Storage Services Package

Audit sink interface plus an in-memory implementation.
Transactions, budgets and users are persisted by the caller, not here.
"""

from zerobalance.services.storage.interface import (
    AuditStorageInterface,
    StorageError,
)
from zerobalance.services.storage.memory import InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
]
