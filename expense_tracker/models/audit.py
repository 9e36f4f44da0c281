"""
Audit Models for Expense Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every change made to a user's expenses
2. Debugging information when the backend misbehaves
3. A recent-activity feed for the user interface

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Session lifecycle
    SESSION_RESTORED = "session_restored"
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    LOGIN_FAILED = "login_failed"
    USER_REGISTERED = "user_registered"

    # Expense lifecycle
    EXPENSES_LOADED = "expenses_loaded"
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    STALE_RESPONSE_DISCARDED = "stale_response_discarded"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Export
    EXPORT_GENERATED = "export_generated"
    EXPORT_EMPTY = "export_empty"

    # Failures
    GATEWAY_ERROR = "gateway_error"


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
        description="Type of entity (e.g., 'expense', 'user', 'export')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one user action)"
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

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


def _entity_id(value: Optional[Union[int, str]]) -> Optional[str]:
    return None if value is None else str(value)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, amount, category)
        event = AuditEventBuilder.gateway_error("delete", "not_found", message)
    """

    @staticmethod
    def session_restored(user_id: int, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="user",
            entity_id=_entity_id(user_id),
            description=f"Session restored for {email}",
        )

    @staticmethod
    def session_started(user_id: int, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            entity_type="user",
            entity_id=_entity_id(user_id),
            description=f"User signed in: {email}",
            is_user_action=True,
        )

    @staticmethod
    def session_ended(user_id: Optional[int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            entity_type="user",
            entity_id=_entity_id(user_id),
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Sign-in failed for {email}",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def user_registered(user_id: int, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=_entity_id(user_id),
            description=f"User registered: {email}",
            is_user_action=True,
        )

    @staticmethod
    def expenses_loaded(
        user_id: int,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_LOADED,
            entity_type="user",
            entity_id=_entity_id(user_id),
            correlation_id=correlation_id,
            description=f"Loaded {count} expenses",
            details={"count": count},
        )

    @staticmethod
    def expense_created(
        expense_id: int,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=_entity_id(expense_id),
            correlation_id=correlation_id,
            description=f"Expense created: {category} - {amount}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: int,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=_entity_id(expense_id),
            correlation_id=correlation_id,
            description=f"Expense updated: {category} - {amount}",
            details={"amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=_entity_id(expense_id),
            correlation_id=correlation_id,
            description=f"Expense {expense_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def stale_response_discarded(
        operation: str,
        expense_id: Optional[int],
        token: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_RESPONSE_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=_entity_id(expense_id),
            correlation_id=correlation_id,
            description=f"Discarded out-of-date {operation} response",
            details={"operation": operation, "token": token},
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense form rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def export_generated(filename: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            entity_id=filename,
            description=f"Exported {row_count} expenses to {filename}",
            details={"row_count": row_count},
            is_user_action=True,
        )

    @staticmethod
    def export_empty() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_EMPTY,
            entity_type="export",
            description="Nothing to export",
            is_user_action=True,
        )

    @staticmethod
    def gateway_error(
        operation: str,
        failure_kind: str,
        error_message: str,
        expense_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GATEWAY_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="expense" if expense_id is not None else None,
            entity_id=_entity_id(expense_id),
            correlation_id=correlation_id,
            description=f"Backend call failed: {operation}",
            error_code=failure_kind,
            error_message=error_message,
            details={"operation": operation},
        )
