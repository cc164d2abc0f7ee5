"""Services package."""

from zerobalance.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "StorageError",
]
