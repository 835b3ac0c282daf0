"""
Audit Models for Cash Ledger

Every accounting run leaves a trace: when a journal was rebuilt, which
ledger or trial balance was asked for, and whether the books closed.
This gives:
1. Traceability of what the user was shown
2. Debugging information when the books don't close
3. A history of fatal data-integrity failures

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
    """Types of events we audit."""
    # Journal
    JOURNAL_BUILT = "journal_built"
    JOURNAL_FILTERED = "journal_filtered"

    # Reports
    LEDGER_GENERATED = "ledger_generated"
    TRIAL_BALANCE_GENERATED = "trial_balance_generated"
    TRIAL_BALANCE_MISMATCH = "trial_balance_mismatch"

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

    # Context - what is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'journal', 'ledger', 'trial_balance')"
    )
    entity_ref: Optional[str] = Field(
        default=None,
        description="Reference of the entity, e.g. an account code or currency id"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one report request)"
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
            "entity_ref": self.entity_ref,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.journal_built(entry_count, record_count, opening_entry_count)
        event = AuditEventBuilder.trial_balance_mismatch(currency_id, re, gap)
    """

    @staticmethod
    def journal_built(
        entry_count: int,
        record_count: int,
        opening_entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_BUILT,
            entity_type="journal",
            correlation_id=correlation_id,
            description=f"Journal built with {entry_count} entries from {record_count} records",
            details={
                "entry_count": entry_count,
                "record_count": record_count,
                "opening_entry_count": opening_entry_count,
            },
        )

    @staticmethod
    def journal_filtered(
        start_epoch: int,
        end_epoch: int,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_FILTERED,
            entity_type="journal",
            correlation_id=correlation_id,
            description=f"Journal filtered to {entry_count} entries",
            details={
                "start_epoch": start_epoch,
                "end_epoch": end_epoch,
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def ledger_generated(
        account_code: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_GENERATED,
            entity_type="ledger",
            entity_ref=account_code,
            correlation_id=correlation_id,
            description=f"Ledger generated for {account_code} with {entry_count} entries",
            details={
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def trial_balance_generated(
        currency_ids: list[str],
        is_closed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIAL_BALANCE_GENERATED,
            entity_type="trial_balance",
            correlation_id=correlation_id,
            description=f"Trial balance generated for {len(currency_ids)} currencies",
            details={
                "currency_ids": currency_ids,
                "is_closed": is_closed,
            },
        )

    @staticmethod
    def trial_balance_mismatch(
        currency_id: str,
        retained_earnings: str,
        gap: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIAL_BALANCE_MISMATCH,
            severity=AuditSeverity.WARNING,
            entity_type="trial_balance",
            entity_ref=currency_id,
            correlation_id=correlation_id,
            description="Retained earnings do not match the gap in permanent balances",
            details={
                "retained_earnings": retained_earnings,
                "gap": gap,
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
            error_code=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
