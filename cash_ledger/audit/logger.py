"""
Audit Logger

DESIGN DECISION: Every accounting run is logged.
This provides:
1. Traceability of which books the user was shown
2. Debugging capability when a trial balance doesn't close
3. A record of data-integrity failures

The audit logger:
- Is async so it can sit next to the async document store
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from cash_ledger.models.audit import AuditEvent, AuditEventBuilder
from cash_ledger.services.storage import AuditStorageInterface


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
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
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

    async def log_journal_built(
        self,
        entry_count: int,
        record_count: int,
        opening_entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed journal build."""
        event = AuditEventBuilder.journal_built(
            entry_count=entry_count,
            record_count=record_count,
            opening_entry_count=opening_entry_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_journal_filtered(
        self,
        start_epoch: int,
        end_epoch: int,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.journal_filtered(
            start_epoch=start_epoch,
            end_epoch=end_epoch,
            entry_count=entry_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_generated(
        self,
        account_code: str,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log ledger generation."""
        event = AuditEventBuilder.ledger_generated(
            account_code=account_code,
            entry_count=entry_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_trial_balance_generated(
        self,
        currency_ids: list[str],
        is_closed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.trial_balance_generated(
            currency_ids=currency_ids,
            is_closed=is_closed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_trial_balance_mismatch(
        self,
        currency_id: str,
        retained_earnings: str,
        gap: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a retained earnings mismatch."""
        event = AuditEventBuilder.trial_balance_mismatch(
            currency_id=currency_id,
            retained_earnings=retained_earnings,
            gap=gap,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
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
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a report request and pass it through
    every step of that request.
    """
    return uuid4()
