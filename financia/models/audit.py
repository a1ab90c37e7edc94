"""
Audit Models for Financ.ia

Every change to a user's records is logged for audit purposes.
This provides:
1. Traceability of manual edits and assistant-created records
2. Debugging information when stored data turns out malformed
3. A record of every assistant turn that was rejected or failed

DESIGN DECISION: Audit logs are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record store
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    TAX_STATUS_TOGGLED = "tax_status_toggled"
    DATA_CLEARED = "data_cleared"
    AMOUNT_ANOMALY = "amount_anomaly"

    # Persistence
    STORED_DATA_DISCARDED = "stored_data_discarded"
    PERSISTENCE_FAILED = "persistence_failed"

    # Assistant
    CHAT_TURN_STARTED = "chat_turn_started"
    ASSISTANT_ACTION_APPLIED = "assistant_action_applied"
    ASSISTANT_ACTION_REJECTED = "assistant_action_rejected"
    ASSISTANT_CALL_FAILED = "assistant_call_failed"

    # Accounts
    USER_REGISTERED = "user_registered"
    USER_SIGNED_IN = "user_signed_in"
    SIGN_IN_FAILED = "sign_in_failed"

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

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'tax', 'chat')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one chat turn)"
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_storage(self) -> dict:
        """JSON-safe form for the per-user audit collection."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("transaction", tx.id)
        event = AuditEventBuilder.assistant_call_failed(str(e), correlation_id)
    """

    @staticmethod
    def record_created(
        entity_type: str,
        entity_id: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
        via_assistant: bool = False,
    ) -> AuditEvent:
        source = "assistant" if via_assistant else "manual entry"
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} created by {source}",
            details={
                "amount": amount,
                "via_assistant": via_assistant,
            },
            is_user_action=not via_assistant,
        )

    @staticmethod
    def record_updated(
        entity_type: str,
        entity_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} updated",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def tax_status_toggled(tax_id: str, status: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_STATUS_TOGGLED,
            entity_type="tax",
            entity_id=tax_id,
            description=f"Tax marked as {status}",
            details={"status": status},
            is_user_action=True,
        )

    @staticmethod
    def data_cleared(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description="All records cleared",
            details={"removed": counts},
            is_user_action=True,
        )

    @staticmethod
    def amount_anomaly(
        entity_type: str,
        entity_id: str,
        amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_ANOMALY,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Negative amount stored on {entity_type}",
            details={"amount": amount},
        )

    @staticmethod
    def stored_data_discarded(
        collection: str,
        discarded: int,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORED_DATA_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type=collection,
            description=f"Discarded {discarded} malformed {collection} entries",
            details={"discarded": discarded, "reason": reason},
        )

    @staticmethod
    def persistence_failed(collection: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            description=f"Could not persist {collection}",
            error_message=error_message,
        )

    @staticmethod
    def chat_turn_started(correlation_id: UUID, message_length: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_TURN_STARTED,
            entity_type="chat",
            correlation_id=correlation_id,
            description="User sent a message to the assistant",
            details={"message_length": message_length},
            is_user_action=True,
        )

    @staticmethod
    def assistant_action_applied(
        kind: str,
        entity_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSISTANT_ACTION_APPLIED,
            entity_type="chat",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Assistant action applied: {kind}",
            details={"kind": kind},
        )

    @staticmethod
    def assistant_action_rejected(
        function_name: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSISTANT_ACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="chat",
            correlation_id=correlation_id,
            description=f"Assistant call {function_name} rejected with {len(issues)} issues",
            details={
                "function": function_name,
                "issues": issues,
            },
        )

    @staticmethod
    def assistant_call_failed(
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSISTANT_CALL_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="chat",
            correlation_id=correlation_id,
            description="Assistant call failed",
            error_message=error_message,
        )

    @staticmethod
    def user_registered(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=email,
            description="New account registered",
            is_user_action=True,
        )

    @staticmethod
    def user_signed_in(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            entity_type="user",
            entity_id=email,
            description="User signed in",
            is_user_action=True,
        )

    @staticmethod
    def sign_in_failed(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=email,
            description="Sign-in rejected: unknown email or wrong password",
            is_user_action=True,
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
