"""
Audit Logger

DESIGN DECISION: The resolver never prints. Every diagnostic goes through
an AuditLogger that is injected into it. This provides:
1. Complete traceability of each resolution
2. Debugging capability when the model misbehaves
3. One place to swap where diagnostics end up

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (a broken sink never changes a resolution)
- Supports correlation IDs to trace the events of one resolve() call
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from zerobalance.models.audit import AuditEvent, AuditEventBuilder
from zerobalance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional audit sink (for inspection and persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Sink for audit events.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("zerobalance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Appends to storage if available.

        Returns True if the storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_utterance_received(
        self,
        utterance: str,
        user_count: int,
        category_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log the start of a resolution."""
        await self.log(AuditEventBuilder.utterance_received(
            utterance=utterance,
            user_count=user_count,
            category_count=category_count,
            correlation_id=correlation_id,
        ))

    async def log_empty_input(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.empty_input(correlation_id))

    async def log_backend_called(
        self,
        backend: str,
        current_date: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.backend_called(
            backend=backend,
            current_date=current_date,
            correlation_id=correlation_id,
        ))

    async def log_backend_failed(
        self,
        error_message: str,
        correlation_id: UUID,
        error_type: Optional[str] = None,
    ) -> None:
        """Log a raised/rejected backend call."""
        await self.log(AuditEventBuilder.backend_failed(
            error_message=error_message,
            correlation_id=correlation_id,
            error_type=error_type,
        ))

    async def log_backend_silent(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.backend_silent(correlation_id))

    async def log_category_defaulted(
        self,
        suggested_name: Optional[str],
        category_id: str,
        strategy: str,
        correlation_id: UUID,
    ) -> None:
        """Log that the default category was used for a transaction."""
        await self.log(AuditEventBuilder.category_defaulted(
            suggested_name=suggested_name,
            category_id=category_id,
            strategy=strategy,
            correlation_id=correlation_id,
        ))

    async def log_validation_passed(
        self,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.validation_passed(
            action=action,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        action: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure."""
        await self.log(AuditEventBuilder.validation_failed(
            action=action,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_clarification_requested(
        self,
        missing_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.clarification_requested(
            missing_fields=missing_fields,
            correlation_id=correlation_id,
        ))

    async def log_action_resolved(
        self,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.action_resolved(
            action=action,
            correlation_id=correlation_id,
        ))

    async def log_category_suggested(
        self,
        description: str,
        category: str,
        confidence: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_suggested(
            description=description,
            category=category,
            confidence=confidence,
            correlation_id=correlation_id,
        ))

    async def log_subscriptions_reviewed(
        self,
        transaction_count: int,
        subscription_count: int,
        period_months: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.subscriptions_reviewed(
            transaction_count=transaction_count,
            subscription_count=subscription_count,
            period_months=period_months,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per resolve() call; every event of that call carries it.
    """
    return uuid4()
