"""
Main Orchestrator for Cash Ledger

This module ties together all the components and defines the
end-to-end reporting flows:
1. Journal (store → infer → classify → cache)
2. Filtered journal (journal → opening entries → window)
3. Ledger and trial balance (filtered journal → projection)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The journal is only ever derived, never written back
- Any document write invalidates the cached journal
- Every report is audited, and so is every fatal data error

This is the "glue" that the UI or a reporting script talks to.
"""

from typing import Optional
from uuid import UUID

import structlog

from cash_ledger.accounting import (
    AccountingCache,
    AccountingError,
    JournalBuilder,
    apply_journal_filters,
    generate_ledger_from_journal,
    generate_trial_balance_from_journal,
)
from cash_ledger.accounting.journal import ProgressCallback
from cash_ledger.accounting.trial_balance import AlertCallback
from cash_ledger.audit import AuditLogger, create_correlation_id
from cash_ledger.config import get_settings
from cash_ledger.models.accounting import (
    AccountingResult,
    JournalEntry,
    JournalFilters,
    Ledger,
    TrialBalance,
)
from cash_ledger.models.documents import Collection, Currency
from cash_ledger.services import (
    DocumentStoreInterface,
    InMemoryDocumentStore,
    JsonBackupDocumentStore,
    RecordInferenceService,
)


logger = structlog.get_logger()


class AccountingFlow:
    """
    Orchestrates the accounting reports.

    Flow:
    1. Build (or reuse) the journal
    2. Apply the reporting window, if any
    3. Project onto a ledger or a trial balance

    The flow registers its cache's invalidation on the store, so a flow
    never serves a journal older than the last write it was told about.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        cache: Optional[AccountingCache] = None,
        inference: Optional[RecordInferenceService] = None,
        builder: Optional[JournalBuilder] = None,
        audit_logger: Optional[AuditLogger] = None,
        alert: Optional[AlertCallback] = None,
    ):
        self._store = store
        self._cache = cache or AccountingCache()
        self._inference = inference or RecordInferenceService(store)
        self._audit_logger = audit_logger
        self._builder = builder or JournalBuilder(
            store, self._inference, self._cache, audit_logger=audit_logger
        )
        self._alert = alert

        self._store.add_change_listener(self._cache.invalidate)

    @property
    def cache(self) -> AccountingCache:
        return self._cache

    async def initiate_accounting(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AccountingResult:
        """
        Build or fetch the full journal.

        Fatal data errors are audited, then re-raised.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            return await self._builder.initiate_accounting(progress_callback)
        except AccountingError as e:
            await self._record_failure(e, correlation_id)
            raise

    async def get_journal(
        self,
        filters: Optional[JournalFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[JournalEntry]:
        """The full journal, or the window described by filters."""
        correlation_id = correlation_id or create_correlation_id()
        result = await self.initiate_accounting(correlation_id=correlation_id)
        if filters is None:
            return list(result.journal_entry_list)

        currency_map = await self._get_currency_map()
        try:
            journal_entry_list = apply_journal_filters(
                result.journal_entry_list, filters, currency_map
            )
        except AccountingError as e:
            await self._record_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_journal_filtered(
                start_epoch=filters.start_epoch,
                end_epoch=filters.end_epoch,
                entry_count=len(journal_entry_list),
                correlation_id=correlation_id,
            )
        return journal_entry_list

    async def generate_ledger(
        self,
        account_code: str,
        filters: Optional[JournalFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Ledger:
        """
        Ledger of one account over the full journal or a window.

        Raises:
            UnknownAccountError: account_code is not in the chart of accounts
        """
        correlation_id = correlation_id or create_correlation_id()
        result = await self.initiate_accounting(correlation_id=correlation_id)
        journal_entry_list = await self.get_journal(filters, correlation_id=correlation_id)
        currency_map = await self._get_currency_map()

        try:
            ledger = generate_ledger_from_journal(
                journal_entry_list, result.account_map, account_code, currency_map
            )
        except AccountingError as e:
            await self._record_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_ledger_generated(
                account_code=account_code,
                entry_count=len(ledger.ledger_entry_list),
                correlation_id=correlation_id,
            )
        return ledger

    async def generate_trial_balance(
        self,
        filters: Optional[JournalFilters] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TrialBalance:
        """
        Trial balance per currency over the full journal or a window.

        A currency that fails to close is alerted and audited, not raised.
        """
        correlation_id = correlation_id or create_correlation_id()
        result = await self.initiate_accounting(correlation_id=correlation_id)
        journal_entry_list = await self.get_journal(filters, correlation_id=correlation_id)
        currency_map = await self._get_currency_map()

        trial_balance = generate_trial_balance_from_journal(
            journal_entry_list, result.account_map, currency_map, alert=self._alert
        )

        if self._audit_logger:
            for item in trial_balance.trial_balance_with_currency_list:
                if not item.is_closed:
                    await self._audit_logger.log_trial_balance_mismatch(
                        currency_id=item.currency_id,
                        retained_earnings=str(item.retained_earnings),
                        gap=str(item.gap),
                        correlation_id=correlation_id,
                    )
            await self._audit_logger.log_trial_balance_generated(
                currency_ids=[
                    item.currency_id for item in trial_balance.trial_balance_with_currency_list
                ],
                is_closed=trial_balance.is_closed,
                correlation_id=correlation_id,
            )
        return trial_balance

    async def _get_currency_map(self) -> dict[str, Currency]:
        currency_list = [
            Currency.model_validate(doc)
            for doc in await self._store.list_by_collection(Collection.CURRENCY.value)
        ]
        return {currency.id: currency for currency in currency_list}

    async def _record_failure(self, error: AccountingError, correlation_id: UUID) -> None:
        logger.error(
            "accounting_failed",
            error_type=type(error).__name__,
            error=str(error),
        )
        if self._audit_logger:
            await self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                correlation_id=correlation_id,
            )


def create_app_components(
    store: Optional[DocumentStoreInterface] = None,
    alert: Optional[AlertCallback] = None,
) -> AccountingFlow:
    """
    Factory function to create all application components.

    Args:
        store: Document store to read from. When None, the data dump at
               settings.backup_path is used if set, otherwise an empty
               in-memory store.
        alert: Receives (title, message) for user-facing warnings.

    Returns:
        The wired AccountingFlow
    """
    settings = get_settings()

    if store is None:
        if settings.backup_path:
            store = JsonBackupDocumentStore(settings.backup_path)
        else:
            store = InMemoryDocumentStore()

    cache = AccountingCache()
    audit_logger = AuditLogger()  # Local-only logging

    logger.info(
        "app_components_created",
        store=type(store).__name__,
        environment=settings.app_environment,
    )

    return AccountingFlow(
        store,
        cache=cache,
        audit_logger=audit_logger,
        alert=alert,
    )
