"""
Audit Models for FinanceHub

Every mutation a user makes is logged for audit purposes.
This provides:
1. Traceability of every create, update and delete
2. Debugging information when a save fails
3. A record of which installments were paid early, and when

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Audit timestamps are informational; no business rule reads them.
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
    """
    # Loading
    DATA_LOADED = "data_loaded"
    RECORD_SKIPPED = "record_skipped"

    # Mutations
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    DELETE_REQUESTED = "delete_requested"
    ADVANCE_PAYMENT_RECORDED = "advance_payment_recorded"
    SALARY_UPDATED = "salary_updated"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    SAVE_FAILED = "save_failed"

    # Background
    YIELD_MARKER_UPDATED = "yield_marker_updated"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


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

    This is the core unit of our audit trail.
    Every mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what record is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the affected records"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Kind of record (e.g., 'income', 'expense', 'card')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id of the record this event relates to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_document(self) -> dict:
        """Convert to a document for the audit collection."""
        return self.model_dump(mode="json", exclude_none=True)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("expense", expense_id, "Mercado")
        event = AuditEventBuilder.save_failed("income", "timeout")
    """

    @staticmethod
    def data_loaded(user_id: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description=f"Loaded {sum(counts.values())} records",
            details=counts,
        )

    @staticmethod
    def record_skipped(
        user_id: str,
        entity_type: str,
        entity_id: Optional[str],
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Unreadable {entity_type} document skipped",
            error_message=reason,
        )

    @staticmethod
    def record_created(
        user_id: str,
        entity_type: str,
        entity_id: str,
        label: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} created: {label}"[:500],
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        user_id: str,
        entity_type: str,
        entity_id: str,
        label: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} updated: {label}"[:500],
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        user_id: str,
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def delete_requested(
        user_id: str,
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_REQUESTED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Deletion of {entity_type} awaiting confirmation",
            is_user_action=True,
        )

    @staticmethod
    def advance_payment_recorded(
        user_id: str,
        expense_id: str,
        installment_index: int,
        amount_paid: float,
        discount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVANCE_PAYMENT_RECORDED,
            user_id=user_id,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Installment {installment_index + 1} paid in advance",
            details={
                "installment_index": installment_index,
                "amount_paid": amount_paid,
                "discount": discount,
            },
            is_user_action=True,
        )

    @staticmethod
    def salary_updated(user_id: str, amount: float, active: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALARY_UPDATED,
            user_id=user_id,
            entity_type="salary",
            description="Salary configuration updated",
            details={
                "amount": amount,
                "active": active,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        entity_type: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            description=f"{entity_type.capitalize()} rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        user_id: str,
        entity_type: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Could not save {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def yield_marker_updated(user_id: str, marker: str, incomes: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.YIELD_MARKER_UPDATED,
            user_id=user_id,
            description=f"Yields marked as updated for {marker}",
            details={
                "marker": marker,
                "yield_bearing_incomes": incomes,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Document store error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )
