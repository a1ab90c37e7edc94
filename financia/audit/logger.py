"""
Audit Logger

DESIGN DECISION: Every change to a user's records is logged.
This provides:
1. Traceability of manual and assistant-driven edits
2. Debugging capability when stored data turns out malformed
3. User can see history of their interactions

The audit logger:
- Is synchronous; record mutations are synchronous too
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace all events of one chat turn
- Keeps only the most recent events per user
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from financia.models.audit import AuditEvent, AuditEventBuilder
from financia.services.storage.interface import (
    CollectionKind,
    KeyValueStore,
    StorageError,
)


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
    2. The user's audit collection in storage (for history)
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        user_email: Optional[str] = None,
        history_limit: int = 500,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None (or no user_email), only logs locally.
            user_email: Owner of the audit collection
            history_limit: Number of most recent events kept in storage
        """
        self._storage = storage
        self._user_email = user_email
        self._history_limit = history_limit
        self._logger = structlog.get_logger()

    @property
    def persists(self) -> bool:
        return (
            self._storage is not None
            and self._user_email is not None
            and self._history_limit > 0
        )

    def for_user(self, user_email: str) -> "AuditLogger":
        """A logger writing to the same storage, scoped to another user."""
        return AuditLogger(
            storage=self._storage,
            user_email=user_email,
            history_limit=self._history_limit,
        )

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if not self.persists:
            return True

        try:
            history = self._storage.get_collection(self._user_email, CollectionKind.AUDIT)
            history.append(event.to_storage())
            self._storage.set_collection(
                self._user_email,
                CollectionKind.AUDIT,
                history[-self._history_limit:],
            )
            return True
        except StorageError as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def history(self) -> list[AuditEvent]:
        """Persisted events of the current user, oldest first."""
        if not self.persists:
            return []
        events = []
        for entry in self._storage.get_collection(self._user_email, CollectionKind.AUDIT):
            try:
                events.append(AuditEvent.model_validate(entry))
            except ValueError:
                continue
        return events

    def log_record_created(
        self,
        entity_type: str,
        entity_id: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
        via_assistant: bool = False,
    ) -> None:
        """Log record creation."""
        event = AuditEventBuilder.record_created(
            entity_type=entity_type,
            entity_id=entity_id,
            amount=amount,
            correlation_id=correlation_id,
            via_assistant=via_assistant,
        )
        self.log(event)

    def log_persistence_failed(self, collection: str, error_message: str) -> None:
        """Log a collection that could not be written."""
        # Never persisted: storage is what just failed
        self._logger.error(
            "audit_event",
            **AuditEventBuilder.persistence_failed(collection, error_message).to_log_dict(),
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new chat turn.
    Pass it through all subsequent operations.
    """
    return uuid4()
