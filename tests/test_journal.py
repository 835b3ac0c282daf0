"""
Tests for the journal builder, the accounting cache and the journal filter.
"""

import asyncio
import gc
from decimal import Decimal

import pytest

from cash_ledger.accounting import (
    AccountingCache,
    JournalBuilder,
    apply_journal_filters,
    inject_currency_metadata,
    restamp_opening_entries,
)
from cash_ledger.accounting.errors import MalformattedDataError, MissingCurrencyError
from cash_ledger.audit import AuditLogger
from cash_ledger.models.accounting import (
    AccountingResult,
    JournalEntry,
    JournalFilters,
    JournalModality,
    Posting,
)
from cash_ledger.models.audit import AuditEventType
from cash_ledger.models.documents import Currency
from cash_ledger.services import (
    InMemoryAuditStorage,
    InMemoryDocumentStore,
    RecordInferenceService,
)


DAY = 24 * 60 * 60 * 1000


class CountingStore(InMemoryDocumentStore):
    """Counts record listings, i.e. how many builds actually ran."""

    def __init__(self, docs=None):
        super().__init__(docs)
        self.record_listings = 0

    async def list_by_collection(self, collection: str):
        if collection == "record":
            self.record_listings += 1
            await asyncio.sleep(0)
        return await super().list_by_collection(collection)


def make_builder(store, cache=None, audit_logger=None) -> JournalBuilder:
    return JournalBuilder(
        store,
        RecordInferenceService(store),
        cache or AccountingCache(),
        audit_logger=audit_logger,
        concurrency=2,
        progress_report_steps=10,
    )


def lines(posting_list) -> list[tuple[str, str, Decimal]]:
    return [(p.account.code, p.currency_id, p.amount) for p in posting_list]


def net_balances(journal_entry_list) -> dict[tuple[str, str], Decimal]:
    balances: dict[tuple[str, str], Decimal] = {}
    for entry in journal_entry_list:
        for debit in entry.debit_list:
            key = (debit.account.code, debit.currency_id)
            balances[key] = balances.get(key, Decimal("0")) + debit.amount
        for credit in entry.credit_list:
            key = (credit.account.code, credit.currency_id)
            balances[key] = balances.get(key, Decimal("0")) - credit.amount
    return {key: value for key, value in balances.items() if value != 0}


class TestJournalBuilder:
    """Tests for building the journal from source documents."""

    async def test_fully_paid_expense(self, base_docs, record_doc, expense_details):
        """Test one fully paid expense becomes one balanced entry."""
        store = InMemoryDocumentStore(base_docs + [record_doc("expense", expense_details())])
        result = await make_builder(store).initiate_accounting()

        assert len(result.journal_entry_list) == 1
        entry = result.journal_entry_list[0]
        assert entry.serial == 0
        assert entry.modality == JournalModality.STANDARD
        assert lines(entry.debit_list) == [("EXPENSE__COMBINED_EXPENSE", "usd", Decimal("100.00"))]
        assert lines(entry.credit_list) == [
            ("ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT", "usd", Decimal("100.00"))
        ]
        assert entry.is_balanced is True
        assert entry.debit_list[0].currency_sign == "$"
        assert entry.description == 'Spent 100.00 $ as "Food". Fully paid from "Checking" (bank).'

    async def test_chart_of_accounts_is_returned(self, store):
        """Test the result carries the full chart of accounts."""
        result = await make_builder(store).initiate_accounting()

        assert "EQUITY__INTERCURRENCY" in result.account_map
        assert len(result.account_list) == len(result.account_map)
        assert result.journal_entry_list == []

    async def test_opening_entries_lead_and_are_restamped(self, base_docs, record_doc, expense_details):
        """Test opening entries come first and take the first record's epoch."""
        base_docs[2]["initialBalance"] = 500
        store = InMemoryDocumentStore(base_docs + [
            record_doc("expense", expense_details(amount=5), epoch=3 * DAY),
            record_doc("expense", expense_details(amount=7), epoch=2 * DAY),
        ])
        result = await make_builder(store).initiate_accounting()
        journal = result.journal_entry_list

        assert [entry.serial for entry in journal] == [0, 1, 2]
        assert journal[0].modality == JournalModality.OPENING
        assert journal[0].entry_epoch == 2 * DAY
        assert [entry.entry_epoch for entry in journal[1:]] == [2 * DAY, 3 * DAY]
        assert journal[1].debit_list[0].amount == Decimal("7.00")

    async def test_notes_are_formatted(self, base_docs, record_doc, expense_details):
        """Test record notes are carried as a sentence."""
        store = InMemoryDocumentStore(base_docs + [
            record_doc("expense", expense_details(), notes="lunch with team"),
        ])
        result = await make_builder(store).initiate_accounting()
        assert result.journal_entry_list[0].notes == "Notes: lunch with team."

    async def test_mismatched_record_is_silently_empty(self, base_docs, record_doc):
        """Test a record whose payload doesn't match its type posts nothing."""
        doc = record_doc("expense", None)
        store = InMemoryDocumentStore(base_docs + [doc])
        result = await make_builder(store).initiate_accounting()

        assert len(result.journal_entry_list) == 1
        entry = result.journal_entry_list[0]
        assert entry.debit_list == []
        assert entry.credit_list == []
        assert entry.description == ""
        assert entry.is_balanced is True

    async def test_missing_currency_is_fatal(self, base_docs):
        """Test a wallet in an unknown currency aborts the build."""
        base_docs.append({
            "_id": "bank-gbp",
            "$collection": "wallet",
            "name": "Sterling",
            "type": "bank",
            "currencyId": "gbp",
            "initialBalance": 10,
        })
        cache = AccountingCache()
        builder = make_builder(InMemoryDocumentStore(base_docs), cache=cache)

        with pytest.raises(MissingCurrencyError, match="Missing Currency: gbp"):
            await builder.initiate_accounting()
        assert cache.get() is None

    async def test_malformed_record_is_fatal(self, base_docs, record_doc, expense_details):
        """Test a record referencing a missing avenue aborts the build."""
        details = expense_details()
        details["expenseAvenueId"] = "does-not-exist"
        cache = AccountingCache()
        builder = make_builder(InMemoryDocumentStore(base_docs + [record_doc("expense", details)]), cache=cache)

        with pytest.raises(MalformattedDataError):
            await builder.initiate_accounting()
        assert cache.get() is None

    async def test_invalid_matching_payload_is_malformatted(self, base_docs, record_doc):
        """Test a sub-object missing required fields is Malformatted Data."""
        doc = record_doc("expense", {"amount": 3, "currencyId": "usd"})
        builder = make_builder(InMemoryDocumentStore(base_docs + [doc]))

        with pytest.raises(MalformattedDataError, match="Malformatted Data") as exc_info:
            await builder.initiate_accounting()
        assert exc_info.value.record_type == "expense"
        assert exc_info.value.record_id == doc["_id"]

    async def test_leftover_payload_does_not_break_the_build(self, base_docs, record_doc):
        """Test a record carrying a stale sub-object of another kind still classifies."""
        doc = record_doc(
            "lending",
            {"amount": 25, "walletId": "cash-usd", "currencyId": "usd", "partyId": "alice"},
            expense={"amount": 3},
        )
        result = await make_builder(InMemoryDocumentStore(base_docs + [doc])).initiate_accounting()

        assert len(result.journal_entry_list) == 1
        assert result.journal_entry_list[0].description.startswith("Lent 25.00 $")

    async def test_progress_is_reported(self, base_docs, record_doc, expense_details):
        """Test progress arrives in about ten increasing steps ending at 1.0."""
        records = [record_doc("expense", expense_details(amount=i + 1), epoch=i) for i in range(25)]
        store = InMemoryDocumentStore(base_docs + records)
        reported = []

        await make_builder(store).initiate_accounting(reported.append)

        assert reported[-1] == 1.0
        assert 1 < len(reported) <= 11
        assert reported == sorted(reported)
        assert all(0 < value <= 1 for value in reported)

    async def test_progress_with_no_records(self, store):
        """Test an empty store still reports completion."""
        reported = []
        await make_builder(store).initiate_accounting(reported.append)
        assert reported == [1.0]

    async def test_build_is_audited(self, base_docs, record_doc, expense_details):
        """Test a finished build writes a journal_built audit event."""
        audit_storage = InMemoryAuditStorage()
        store = InMemoryDocumentStore(base_docs + [record_doc("expense", expense_details())])
        await make_builder(store, audit_logger=AuditLogger(audit_storage)).initiate_accounting()

        assert [event.event_type for event in audit_storage.events] == [AuditEventType.JOURNAL_BUILT]
        assert audit_storage.events[0].details["record_count"] == 1


class TestCaching:
    """Tests for caching and invalidation of the built journal."""

    async def test_second_call_is_cached(self, base_docs):
        """Test a second call returns the cached result without rebuilding."""
        store = CountingStore(base_docs)
        builder = make_builder(store)

        first = await builder.initiate_accounting()
        second = await builder.initiate_accounting()

        assert first is second
        assert store.record_listings == 1

    async def test_any_write_invalidates(self, base_docs, record_doc, expense_details):
        """Test an upsert in any collection forces a rebuild."""
        store = CountingStore(base_docs)
        cache = AccountingCache()
        store.add_change_listener(cache.invalidate)
        builder = make_builder(store, cache=cache)

        first = await builder.initiate_accounting()
        await store.upsert_doc({"_id": "work", "$collection": "tag", "name": "work"})
        second = await builder.initiate_accounting()

        assert first is not second
        assert store.record_listings == 2

        await store.upsert_doc(record_doc("expense", expense_details()))
        third = await builder.initiate_accounting()
        assert len(third.journal_entry_list) == 1

    async def test_removal_invalidates(self, base_docs):
        """Test removing a document drops the cache."""
        store = InMemoryDocumentStore(base_docs)
        cache = AccountingCache()
        store.add_change_listener(cache.invalidate)
        await make_builder(store, cache=cache).initiate_accounting()

        await store.remove_doc("groceries")
        assert cache.get() is None

    async def test_concurrent_calls_share_one_build(self, base_docs, record_doc, expense_details):
        """Test callers arriving mid-build await the same build."""
        store = CountingStore(base_docs + [record_doc("expense", expense_details())])
        builder = make_builder(store)

        first, second = await asyncio.gather(
            builder.initiate_accounting(),
            builder.initiate_accounting(),
        )

        assert first is second
        assert store.record_listings == 1

    async def test_failed_build_is_not_shared_afterwards(self, base_docs):
        """Test a failed build doesn't stick: the next call builds again."""
        base_docs.append({
            "_id": "bank-gbp", "$collection": "wallet", "name": "Sterling",
            "type": "bank", "currencyId": "gbp", "initialBalance": 10,
        })
        store = CountingStore(base_docs)
        builder = make_builder(store)

        with pytest.raises(MissingCurrencyError):
            await builder.initiate_accounting()

        await store.upsert_doc({"_id": "gbp", "$collection": "currency", "name": "Pound", "sign": "£"})
        result = await builder.initiate_accounting()
        assert result.journal_entry_list[0].currency_id_list == ["gbp"]

    async def test_abandoned_failed_build_reports_nothing(self, base_docs):
        """Test a build whose only caller was cancelled fails without an unretrieved error."""
        base_docs.append({
            "_id": "bank-gbp", "$collection": "wallet", "name": "Sterling",
            "type": "bank", "currencyId": "gbp", "initialBalance": 10,
        })
        builder = make_builder(CountingStore(base_docs))
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            waiter = asyncio.ensure_future(builder.initiate_accounting())
            await asyncio.sleep(0)
            build = builder._in_flight
            waiter.cancel()

            await asyncio.wait([build])
            await asyncio.sleep(0)
            assert waiter.cancelled()
            assert builder._in_flight is None

            del waiter, build
            gc.collect()
            assert reported == []
        finally:
            loop.set_exception_handler(None)

    def test_stale_generation_is_not_stored(self):
        """Test a result built before an invalidation is discarded."""
        cache = AccountingCache()
        generation = cache.generation
        cache.invalidate()

        result = AccountingResult(account_map={}, account_list=[], journal_entry_list=[])
        assert cache.store(result, generation) is False
        assert cache.get() is None
        assert cache.store(result, cache.generation) is True
        assert cache.get() is result


class TestJournalFilter:
    """Tests for windowing the journal."""

    @pytest.fixture
    def windowed_docs(self, base_docs, record_doc, expense_details):
        base_docs[2]["initialBalance"] = 1000
        return base_docs + [
            record_doc("expense", expense_details(amount=10), epoch=1 * DAY),
            record_doc("expense", expense_details(amount=20), epoch=2 * DAY),
            record_doc("expense", expense_details(amount=40), epoch=3 * DAY),
            record_doc("expense", expense_details(amount=80, wallet_id="bank-eur", currency_id="eur"), epoch=3 * DAY),
        ]

    async def build(self, docs) -> AccountingResult:
        return await make_builder(InMemoryDocumentStore(docs)).initiate_accounting()

    async def test_window_starts_with_opening_entry(self, windowed_docs):
        """Test history before the window collapses into leading opening entries."""
        result = await self.build(windowed_docs)
        filters = JournalFilters(start_epoch=2 * DAY, end_epoch=3 * DAY)
        filtered = apply_journal_filters(result.journal_entry_list, filters)

        assert filtered[0].modality == JournalModality.OPENING
        assert filtered[0].entry_epoch == 2 * DAY
        assert [entry.modality for entry in filtered[1:]] == [JournalModality.STANDARD]
        assert filtered[1].debit_list[0].amount == Decimal("20.00")
        assert (
            "ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT", "usd", Decimal("990.00")
        ) in lines(filtered[0].debit_list)

    async def test_window_matches_truncated_history(self, windowed_docs):
        """Test opening entries plus the window equal all history up to the end."""
        result = await self.build(windowed_docs)
        filters = JournalFilters(start_epoch=2 * DAY, end_epoch=3 * DAY)
        filtered = apply_journal_filters(result.journal_entry_list, filters)

        truncated = [entry for entry in result.journal_entry_list if entry.entry_epoch < 3 * DAY]
        assert net_balances(filtered) == net_balances(truncated)

    async def test_cached_journal_is_not_modified(self, windowed_docs):
        """Test filtering never changes the entries it was given."""
        result = await self.build(windowed_docs)
        before = [entry.model_dump() for entry in result.journal_entry_list]

        apply_journal_filters(
            result.journal_entry_list,
            JournalFilters(start_epoch=3 * DAY, end_epoch=4 * DAY),
        )

        assert [entry.model_dump() for entry in result.journal_entry_list] == before

    async def test_currency_filter(self, windowed_docs):
        """Test only entries touching the chosen currency are kept."""
        result = await self.build(windowed_docs)
        filters = JournalFilters(start_epoch=0, end_epoch=4 * DAY, filter_by_currency_id="eur")
        filtered = apply_journal_filters(result.journal_entry_list, filters)

        assert len(filtered) == 1
        assert filtered[0].currency_id_list == ["eur"]

    async def test_opening_entries_get_currency_signs(self, windowed_docs):
        """Test synthesized postings carry currency signs."""
        result = await self.build(windowed_docs)
        currency_map = {
            "usd": Currency(id="usd", name="US Dollar", sign="US$"),
            "eur": Currency(id="eur", name="Euro", sign="€"),
        }
        filtered = apply_journal_filters(
            result.journal_entry_list,
            JournalFilters(start_epoch=2 * DAY, end_epoch=3 * DAY),
            currency_map,
        )
        assert {p.currency_sign for p in filtered[0].debit_list} == {"US$"}

    def test_end_before_start_rejected(self):
        """Test an inverted window is refused."""
        with pytest.raises(ValueError, match="End epoch cannot be before start epoch"):
            JournalFilters(start_epoch=10, end_epoch=5)


class TestJournalHelpers:
    """Tests for currency injection and opening re-stamping."""

    def test_inject_unknown_currency_raises(self, account_map):
        """Test a posting in an unknown currency is fatal."""
        entry = JournalEntry(
            serial=3,
            entry_epoch=1,
            debit_list=[Posting(account=account_map["ASSET__CURRENT_ASSET__CASH"], currency_id="xyz", amount=Decimal("1"))],
        )
        with pytest.raises(MissingCurrencyError) as exc_info:
            inject_currency_metadata([entry], {})
        assert exc_info.value.serial == 3

    def test_restamp_without_standard_entries(self):
        """Test opening entries keep their epoch when nothing follows them."""
        opening = JournalEntry(serial=0, entry_epoch=0, modality=JournalModality.OPENING)
        assert restamp_opening_entries([opening])[0].entry_epoch == 0

    def test_restamp_copies(self):
        """Test re-stamping returns copies of opening entries."""
        opening = JournalEntry(serial=0, entry_epoch=0, modality=JournalModality.OPENING)
        standard = JournalEntry(serial=1, entry_epoch=42)

        restamped = restamp_opening_entries([opening, standard])

        assert restamped[0].entry_epoch == 42
        assert opening.entry_epoch == 0
        assert restamped[1] is standard
