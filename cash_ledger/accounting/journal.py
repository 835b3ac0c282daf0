"""
Journal Builder and Journal Filter

The builder derives the whole journal from source documents:

1. Return the cached result when there is one
2. Populate the chart of accounts
3. Synthesize beginning-of-time opening entries, one per currency
4. Load and infer every record with bounded concurrency, reporting progress
5. Sort inferred records by transaction epoch
6. Classify each record into a journal entry, continuing the serials
7. Inject currency signs into every posting
8. Re-stamp opening entries to the first standard entry's epoch
9. Cache and return

DESIGN DECISION: Any failure is fatal. A malformed record or an unknown
currency aborts the build and nothing is cached; a partial journal would
silently misstate every report built on it.

Concurrent callers during a build await the same in-flight build rather
than starting their own.
"""

import asyncio
import math
from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from cash_ledger.accounting.accounts import populate_accounts
from cash_ledger.accounting.balance import check_balance
from cash_ledger.accounting.cache import AccountingCache
from cash_ledger.accounting.classifier import AmountFormatter, classify_record
from cash_ledger.accounting.errors import MalformattedDataError, MissingCurrencyError
from cash_ledger.accounting.opening import (
    synthesize_initial_opening_entries,
    synthesize_opening_entries_before,
)
from cash_ledger.audit import AuditLogger, create_correlation_id
from cash_ledger.config import get_settings
from cash_ledger.models.accounting import (
    AccountingResult,
    JournalEntry,
    JournalFilters,
    JournalModality,
)
from cash_ledger.models.documents import Asset, Collection, Currency, Wallet
from cash_ledger.models.inferred import InferredRecord
from cash_ledger.services.inference import RecordInferenceService
from cash_ledger.services.storage import DocumentStoreInterface
from cash_ledger.utils.amounts import as_amount
from cash_ledger.utils.pool import map_bounded


logger = structlog.get_logger()

ProgressCallback = Callable[[float], None]


def make_amount_formatter(currency_map: dict[str, Currency]) -> AmountFormatter:
    """Print amounts with their currency sign, e.g. '1,250.00 $'."""

    def format_amount(amount, currency_id: str) -> str:
        currency = currency_map.get(currency_id)
        sign = currency.sign if currency else currency_id
        return f"{as_amount(amount):,} {sign}"

    return format_amount


def format_notes(notes: Optional[str]) -> str:
    if not notes:
        return ""
    return f"Notes: {notes}."


def inject_currency_metadata(
    journal_entry_list: list[JournalEntry],
    currency_map: dict[str, Currency],
) -> None:
    """
    Set the currency sign on every posting, in place.

    Raises:
        MissingCurrencyError: A posting references an unknown currency
    """
    for entry in journal_entry_list:
        for posting in [*entry.credit_list, *entry.debit_list]:
            currency = currency_map.get(posting.currency_id)
            if currency is None:
                raise MissingCurrencyError(posting.currency_id, serial=entry.serial)
            posting.currency_sign = currency.sign


def restamp_opening_entries(journal_entry_list: list[JournalEntry]) -> list[JournalEntry]:
    """
    Move opening entries to the epoch of the first standard entry.

    Opening entries are copied, never modified, so a cached journal can be
    passed in safely. Without any standard entry the list is returned as is.
    """
    first_standard = next(
        (entry for entry in journal_entry_list if not entry.is_opening), None
    )
    if first_standard is None:
        return list(journal_entry_list)

    return [
        entry.model_copy(update={"entry_epoch": first_standard.entry_epoch})
        if entry.is_opening else entry
        for entry in journal_entry_list
    ]


class _ProgressReporter:
    """Calls back roughly `steps` times over `total` completed items."""

    def __init__(self, total: int, steps: int, callback: Optional[ProgressCallback]):
        self._total = total
        self._every = max(1, math.ceil(total / steps)) if total else 1
        self._callback = callback
        self._done = 0

    def item_done(self) -> None:
        self._done += 1
        if self._callback and self._done % self._every == 0 and self._done < self._total:
            self._callback(self._done / self._total)

    def finish(self) -> None:
        if self._callback:
            self._callback(1.0)


class JournalBuilder:
    """
    Derives and caches the journal.

    The cache is injected so the composition root can wire its
    invalidation to the document store.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        inference: RecordInferenceService,
        cache: AccountingCache,
        audit_logger: Optional[AuditLogger] = None,
        concurrency: Optional[int] = None,
        progress_report_steps: Optional[int] = None,
    ):
        settings = get_settings()
        self._store = store
        self._inference = inference
        self._cache = cache
        self._audit_logger = audit_logger
        self._concurrency = concurrency or settings.inference_concurrency
        self._progress_report_steps = progress_report_steps or settings.progress_report_steps

        self._in_flight: Optional[asyncio.Task] = None
        self._in_flight_generation: Optional[int] = None

    async def initiate_accounting(
        self,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AccountingResult:
        """
        Return the journal, building it when nothing is cached.

        Only the caller that starts a build receives its progress updates.
        """
        cached = self._cache.get()
        if cached is not None:
            return cached

        if self._in_flight is None or self._in_flight_generation != self._cache.generation:
            task = asyncio.ensure_future(self._build(progress_callback))
            self._in_flight = task
            self._in_flight_generation = self._cache.generation
            task.add_done_callback(self._clear_in_flight)

        return await asyncio.shield(self._in_flight)

    def _clear_in_flight(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None
            self._in_flight_generation = None
        # every waiter may have been cancelled; mark the failure as retrieved
        if not task.cancelled():
            task.exception()

    async def _infer_record(self, raw: dict) -> InferredRecord:
        """Infer one stored record; a bad matching sub-object is malformatted data."""
        try:
            return await self._inference.infer_record(raw)
        except ValidationError as e:
            raise MalformattedDataError(
                str(raw.get("type")),
                f"Record does not match its type: {e.error_count()} invalid field(s)",
                record_id=raw.get("_id"),
            ) from e

    async def _build(self, progress_callback: Optional[ProgressCallback]) -> AccountingResult:
        generation = self._cache.generation
        correlation_id = create_correlation_id()
        logger.info("journal_build_started", generation=generation)

        account_map, account_list = populate_accounts()

        currency_list = [
            Currency.model_validate(doc)
            for doc in await self._store.list_by_collection(Collection.CURRENCY.value)
        ]
        wallet_list = [
            Wallet.model_validate(doc)
            for doc in await self._store.list_by_collection(Collection.WALLET.value)
        ]
        asset_list = [
            Asset.model_validate(doc)
            for doc in await self._store.list_by_collection(Collection.ASSET.value)
        ]
        currency_map = {currency.id: currency for currency in currency_list}

        # referenced but undeclared currencies still get an entry, and fail below
        currency_id_list = list(currency_map)
        for holding in [*wallet_list, *asset_list]:
            if holding.currency_id not in currency_id_list:
                currency_id_list.append(holding.currency_id)

        journal_entry_list = synthesize_initial_opening_entries(
            asset_list, wallet_list, currency_id_list, account_map
        )
        opening_entry_count = len(journal_entry_list)

        raw_record_list = await self._store.list_by_collection(Collection.RECORD.value)
        progress = _ProgressReporter(
            len(raw_record_list), self._progress_report_steps, progress_callback
        )
        inferred_record_list = await map_bounded(
            raw_record_list,
            self._concurrency,
            self._infer_record,
            on_item_done=progress.item_done,
        )
        inferred_record_list.sort(key=lambda record: record.transaction_epoch or 0)

        format_amount = make_amount_formatter(currency_map)
        serial_seed = len(journal_entry_list)
        for record in inferred_record_list:
            classification = classify_record(record, account_map, format_amount)
            balance = check_balance(classification.debit_list, classification.credit_list)
            journal_entry_list.append(
                JournalEntry(
                    serial=serial_seed,
                    entry_epoch=record.transaction_epoch,
                    modality=JournalModality.STANDARD,
                    debit_list=classification.debit_list,
                    credit_list=classification.credit_list,
                    description=classification.description,
                    notes=format_notes(record.notes),
                    is_balanced=balance.is_balanced,
                    is_multi_currency=balance.is_multi_currency,
                    currency_id_list=balance.currency_id_list,
                )
            )
            serial_seed += 1

        inject_currency_metadata(journal_entry_list, currency_map)
        journal_entry_list = restamp_opening_entries(journal_entry_list)

        result = AccountingResult(
            account_map=account_map,
            account_list=account_list,
            journal_entry_list=journal_entry_list,
        )
        self._cache.store(result, generation)
        progress.finish()

        logger.info(
            "journal_build_finished",
            generation=generation,
            entry_count=len(journal_entry_list),
            record_count=len(raw_record_list),
        )
        if self._audit_logger:
            await self._audit_logger.log_journal_built(
                entry_count=len(journal_entry_list),
                record_count=len(raw_record_list),
                opening_entry_count=opening_entry_count,
                correlation_id=correlation_id,
            )

        return result


def apply_journal_filters(
    journal_entry_list: list[JournalEntry],
    filters: JournalFilters,
    currency_map: Optional[dict[str, Currency]] = None,
) -> list[JournalEntry]:
    """
    Restrict a journal to [start_epoch, end_epoch).

    Everything before start_epoch is summarized into opening entries that
    lead the result. With filter_by_currency_id set, only entries touching
    that currency are kept. The input entries are never modified.

    Raises:
        MissingCurrencyError: currency_map is given and lacks a currency
    """
    opening_entry_list = synthesize_opening_entries_before(
        journal_entry_list, filters.start_epoch
    )
    if currency_map is not None:
        inject_currency_metadata(opening_entry_list, currency_map)

    in_range = [
        entry for entry in journal_entry_list
        if filters.start_epoch <= entry.entry_epoch < filters.end_epoch
    ]
    filtered = restamp_opening_entries(opening_entry_list + in_range)

    if filters.filter_by_currency_id:
        filtered = [
            entry for entry in filtered
            if filters.filter_by_currency_id in entry.currency_id_list
        ]

    logger.debug(
        "journal_filtered",
        start_epoch=filters.start_epoch,
        end_epoch=filters.end_epoch,
        opening_entry_count=len(opening_entry_list),
        entry_count=len(filtered),
    )
    return filtered
