"""
Audit Logger

DESIGN DECISION: Every change the user makes is logged.
This provides:
1. A history of edits per user
2. Debugging capability when a save fails
3. Traceability of early payments, which are never edited

The audit logger:
- Is async so it fits the session's storage calls
- Gracefully handles failures (never breaks a user action if logging fails)
- Keeps the most recent events in memory for the app's history panel
"""

from collections import deque
from typing import Optional

import structlog

from financehub.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from financehub.services.storage import DocumentStoreInterface


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
    2. The user's audit collection in the document store, when configured
    """

    def __init__(
        self,
        store: Optional[DocumentStoreInterface] = None,
        collection_path: Optional[str] = None,
        history_size: int = 100,
    ):
        """
        Initialize audit logger.

        Args:
            store: Document store for persistence.
                   If None, only logs locally.
            collection_path: Audit collection, e.g. ``users/{uid}/auditoria``
            history_size: How many recent events to keep in memory
        """
        if store is not None and not collection_path:
            raise ValueError("collection_path is required when a store is given")
        self._store = store
        self._collection_path = collection_path
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger()

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the store if available.

        Returns True if the store write succeeded (or no store configured).
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store is None:
            return True

        try:
            await self._store.create_document(self._collection_path, event.to_document())
            return True
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def log_validation_failed(
        self,
        user_id: str,
        entity_type: str,
        issues: list[dict],
    ) -> bool:
        """Log a record rejected by validation."""
        return await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            entity_type=entity_type,
            issues=issues,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> bool:
        """Log a failed document store call."""
        return await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        """Log an error."""
        return await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            user_id=user_id,
        ))
