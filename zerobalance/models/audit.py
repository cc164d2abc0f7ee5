"""
Audit Models for ZEROBALANCE

Every resolution step emits an audit event. This provides:
1. Traceability from utterance to final action
2. Debugging information when the model misbehaves
3. A single observability seam, injected into the resolver

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    One event type per step of the resolution flow.
    """
    # Input
    UTTERANCE_RECEIVED = "utterance_received"
    EMPTY_INPUT = "empty_input"

    # Generative backend
    BACKEND_CALLED = "backend_called"
    BACKEND_FAILED = "backend_failed"
    BACKEND_SILENT = "backend_silent"

    # Canonicalization / validation
    CATEGORY_DEFAULTED = "category_defaulted"
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"
    CLARIFICATION_REQUESTED = "clarification_requested"

    # Outcome
    ACTION_RESOLVED = "action_resolved"
    CATEGORY_SUGGESTED = "category_suggested"
    SUBSCRIPTIONS_REVIEWED = "subscriptions_reviewed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    All events of one resolve() call share a correlation_id.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one resolution"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _clip(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.utterance_received("Paid 500", 2, 15, correlation_id)
        event = AuditEventBuilder.backend_failed("timeout", correlation_id)
    """

    @staticmethod
    def utterance_received(
        utterance: str,
        user_count: int,
        category_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UTTERANCE_RECEIVED,
            correlation_id=correlation_id,
            description=f"Utterance received: {_clip(utterance)}",
            details={
                "utterance_length": len(utterance),
                "user_count": user_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def empty_input(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPTY_INPUT,
            correlation_id=correlation_id,
            description="Empty utterance; backend not called",
        )

    @staticmethod
    def backend_called(
        backend: str,
        current_date: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_CALLED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Calling extraction backend: {backend}",
            details={
                "backend": backend,
                "current_date": current_date,
            },
        )

    @staticmethod
    def backend_failed(
        error_message: str,
        correlation_id: UUID,
        error_type: Optional[str] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Extraction backend call failed",
            error_message=error_message,
            details={
                "error_type": error_type,
            },
        )

    @staticmethod
    def backend_silent(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKEND_SILENT,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Extraction backend returned no response",
        )

    @staticmethod
    def category_defaulted(
        suggested_name: Optional[str],
        category_id: str,
        strategy: str,
        correlation_id: UUID
    ) -> AuditEvent:
        if suggested_name:
            description = f"Category '{_clip(suggested_name, 80)}' not found; using '{category_id}'"
        else:
            description = f"No category suggested; using '{category_id}'"
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DEFAULTED,
            correlation_id=correlation_id,
            description=description,
            details={
                "suggested_name": suggested_name,
                "category_id": category_id,
                "strategy": strategy,
            },
        )

    @staticmethod
    def validation_passed(
        action: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_PASSED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"{action} validated successfully",
            details={
                "action": action,
            },
        )

    @staticmethod
    def validation_failed(
        action: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{action} validation failed with {len(issues)} issues",
            details={
                "action": action,
                "issues": issues,
            },
        )

    @staticmethod
    def clarification_requested(
        missing_fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLARIFICATION_REQUESTED,
            correlation_id=correlation_id,
            description=f"Missing details: {', '.join(missing_fields)}",
            details={
                "missing_fields": missing_fields,
            },
        )

    @staticmethod
    def action_resolved(
        action: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACTION_RESOLVED,
            correlation_id=correlation_id,
            description=f"Resolved to {action}",
            details={
                "action": action,
            },
        )

    @staticmethod
    def category_suggested(
        description: str,
        category: str,
        confidence: float,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_SUGGESTED,
            correlation_id=correlation_id,
            description=f"Suggested '{category}' for '{_clip(description, 80)}'",
            details={
                "category": category,
                "confidence": confidence,
            },
        )

    @staticmethod
    def subscriptions_reviewed(
        transaction_count: int,
        subscription_count: int,
        period_months: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTIONS_REVIEWED,
            correlation_id=correlation_id,
            description=(
                f"Found {subscription_count} potential subscription(s) in "
                f"{transaction_count} transaction(s) over {period_months} month(s)"
            ),
            details={
                "transaction_count": transaction_count,
                "subscription_count": subscription_count,
                "period_months": period_months,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
