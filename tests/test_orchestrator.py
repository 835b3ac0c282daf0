"""
Tests for the orchestrator, settings and audit logger.

Integration tests run the whole flow against in-memory stores.
"""

import json
from decimal import Decimal

import pytest

from cash_ledger.accounting import populate_accounts
from cash_ledger.accounting.errors import MissingCurrencyError, UnknownAccountError
from cash_ledger.audit import AuditLogger
from cash_ledger.config import LedgerSettings, get_settings
from cash_ledger.models.accounting import (
    AccountingResult,
    AccountType,
    JournalEntry,
    JournalFilters,
    Posting,
)
from cash_ledger.models.audit import AuditEventBuilder, AuditEventType
from cash_ledger.orchestrator import AccountingFlow, create_app_components
from cash_ledger.services import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryDocumentStore,
)


DAY = 24 * 60 * 60 * 1000

BANK = "ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT"


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ledger_docs(base_docs, record_doc, expense_details):
    """A funded bank account, one paid expense and one unpaid expense later on."""
    docs = [dict(doc) for doc in base_docs]
    for doc in docs:
        if doc["_id"] == "bank-usd":
            doc["initialBalance"] = 500
    docs.append(record_doc("expense", expense_details(amount=100), epoch=DAY))
    docs.append(record_doc("expense", expense_details(amount=40, amount_paid=0), epoch=3 * DAY))
    return docs


def make_flow(docs, alert=None):
    storage = InMemoryAuditStorage()
    flow = AccountingFlow(
        InMemoryDocumentStore(docs),
        audit_logger=AuditLogger(storage),
        alert=alert,
    )
    return flow, storage


class TestAccountingFlow:
    """End-to-end tests of the reporting flows."""

    async def test_full_journal(self, ledger_docs):
        """Test the flow returns the full journal with opening entries first."""
        flow, _ = make_flow(ledger_docs)
        journal = await flow.get_journal()

        assert journal[0].is_opening
        assert [entry.serial for entry in journal] == [0, 1, 2]
        assert journal[1].description.startswith("Spent 100.00 $")

    async def test_ledger_over_window(self, ledger_docs):
        """Test a windowed ledger opens with the balance carried in."""
        flow, storage = make_flow(ledger_docs)
        ledger = await flow.generate_ledger(
            BANK, JournalFilters(start_epoch=2 * DAY, end_epoch=4 * DAY)
        )

        assert ledger.balance_for("usd") == Decimal("400.00")
        assert [entry.journal_entry.is_opening for entry in ledger.ledger_entry_list] == [True]

        event_types = [event.event_type for event in await storage.get_recent_events(limit=10)]
        assert AuditEventType.LEDGER_GENERATED in event_types
        assert AuditEventType.JOURNAL_FILTERED in event_types
        assert AuditEventType.JOURNAL_BUILT in event_types

    async def test_trial_balance_closes(self, ledger_docs):
        """Test the whole history closes and the report is audited."""
        alerts = []
        flow, storage = make_flow(ledger_docs, alert=lambda *a: alerts.append(a))
        trial_balance = await flow.generate_trial_balance()
        usd = trial_balance.for_currency("usd")

        assert alerts == []
        assert trial_balance.is_closed is True
        assert usd.of_type(AccountType.EXPENSE).total_balance == Decimal("140.00")
        assert usd.of_type(AccountType.LIABILITY).total_balance == Decimal("40.00")
        assert usd.retained_earnings == Decimal("-140.00")
        assert usd.currency.sign == "$"

        recent = await storage.get_recent_events(limit=1)
        assert recent[0].event_type == AuditEventType.TRIAL_BALANCE_GENERATED
        assert recent[0].details["is_closed"] is True

    async def test_store_write_invalidates_flow_cache(self, ledger_docs, record_doc, expense_details):
        """Test a write through the store is visible in the next report."""
        store = InMemoryDocumentStore(ledger_docs)
        flow = AccountingFlow(store)
        first = await flow.get_journal()

        await store.upsert_doc(record_doc("expense", expense_details(amount=5), epoch=5 * DAY))
        assert flow.cache.get() is None

        second = await flow.get_journal()
        assert len(second) == len(first) + 1

    async def test_unknown_account_is_audited_and_raised(self, ledger_docs):
        """Test a fatal error is written to the audit trail and re-raised."""
        flow, storage = make_flow(ledger_docs)

        with pytest.raises(UnknownAccountError):
            await flow.generate_ledger("ASSET__NOPE")

        recent = await storage.get_recent_events(limit=1)
        assert recent[0].event_type == AuditEventType.SYSTEM_ERROR
        assert recent[0].error_code == "UnknownAccountError"

    async def test_missing_currency_is_audited_and_raised(self, base_docs):
        """Test a build failure reaches the audit trail."""
        docs = base_docs + [{
            "_id": "bank-gbp", "$collection": "wallet", "name": "Sterling",
            "type": "bank", "currencyId": "gbp", "initialBalance": 10,
        }]
        flow, storage = make_flow(docs)

        with pytest.raises(MissingCurrencyError):
            await flow.get_journal()

        recent = await storage.get_recent_events(limit=1)
        assert recent[0].error_message == "Missing Currency: gbp"

    async def test_trial_balance_mismatch_is_alerted_and_audited(self, store):
        """Test an unclosed currency alerts the user and leaves a warning."""
        account_map, account_list = populate_accounts()

        class FixedBuilder:
            async def initiate_accounting(self, progress_callback=None):
                return AccountingResult(
                    account_map=account_map,
                    account_list=account_list,
                    journal_entry_list=[JournalEntry(
                        serial=0,
                        entry_epoch=DAY,
                        debit_list=[Posting(
                            account=account_map[BANK], currency_id="usd", amount=Decimal("3")
                        )],
                        is_balanced=False,
                    )],
                )

        alerts = []
        storage = InMemoryAuditStorage()
        flow = AccountingFlow(
            store,
            builder=FixedBuilder(),
            audit_logger=AuditLogger(storage),
            alert=lambda title, message: alerts.append(title),
        )

        trial_balance = await flow.generate_trial_balance()

        assert alerts == ["Error"]
        assert trial_balance.for_currency("usd").is_closed is False
        mismatches = [
            event for event in await storage.get_recent_events(limit=10)
            if event.event_type == AuditEventType.TRIAL_BALANCE_MISMATCH
        ]
        assert [event.entity_ref for event in mismatches] == ["usd"]


class TestCreateAppComponents:
    """Tests for the composition root."""

    async def test_with_given_store(self, store, fresh_settings):
        """Test a supplied store is used as is."""
        flow = create_app_components(store=store)
        result = await flow.initiate_accounting()
        assert len(result.account_list) == 18

    async def test_reads_backup_path_from_environment(self, tmp_path, monkeypatch, base_docs, fresh_settings):
        """Test LEDGER_BACKUP_PATH selects the data dump store."""
        path = tmp_path / "dump.json"
        path.write_text(json.dumps({"docList": base_docs}), encoding="utf-8")
        monkeypatch.setenv("LEDGER_BACKUP_PATH", str(path))

        flow = create_app_components()
        trial_balance = await flow.generate_trial_balance()

        assert [item.currency_id for item in trial_balance.trial_balance_with_currency_list] == ["usd", "eur"]

    async def test_defaults_to_empty_store(self, monkeypatch, fresh_settings):
        """Test without a dump the flow runs over an empty store."""
        monkeypatch.delenv("LEDGER_BACKUP_PATH", raising=False)
        flow = create_app_components()
        assert await flow.get_journal() == []


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test the build defaults."""
        monkeypatch.delenv("LEDGER_INFERENCE_CONCURRENCY", raising=False)
        settings = LedgerSettings(_env_file=None)
        assert settings.inference_concurrency == 6
        assert settings.progress_report_steps == 10
        assert settings.backup_path is None

    def test_environment_override(self, monkeypatch):
        """Test LEDGER_* variables are read."""
        monkeypatch.setenv("LEDGER_INFERENCE_CONCURRENCY", "12")
        assert LedgerSettings(_env_file=None).inference_concurrency == 12

    def test_concurrency_bounds(self):
        """Test out-of-range concurrency is rejected."""
        with pytest.raises(ValueError):
            LedgerSettings(_env_file=None, inference_concurrency=0)

    def test_missing_backup_path_warns(self, tmp_path):
        """Test a missing dump warns instead of failing."""
        with pytest.warns(UserWarning, match="Data dump not found"):
            settings = LedgerSettings(_env_file=None, backup_path=tmp_path / "absent.json")
        assert settings.backup_path.name == "absent.json"


class FailingAuditStorage(AuditStorageInterface):
    async def append_event(self, event) -> bool:
        raise ConnectionError("audit backend down")

    async def get_recent_events(self, limit: int = 100):
        return []


class TestAuditLogger:
    """Tests for the audit logger."""

    async def test_storage_failure_is_swallowed(self):
        """Test a broken audit backend never breaks the caller."""
        audit_logger = AuditLogger(FailingAuditStorage())
        assert await audit_logger.log(AuditEventBuilder.ledger_generated("CASH", 1)) is False

    async def test_local_only(self):
        """Test logging without storage succeeds."""
        assert await AuditLogger().log(AuditEventBuilder.system_error("X", "y")) is True
