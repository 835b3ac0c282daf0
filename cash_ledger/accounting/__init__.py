"""
Accounting Package

The double-entry derivation engine: chart of accounts, record
classification, journal building and filtering, ledgers and trial
balances. Everything here is derived from source records; nothing is
persisted.
"""

from cash_ledger.accounting.accounts import (
    DEFAULT_ACCOUNTS,
    liquidity_account_code,
    populate_accounts,
    wallet_account_code,
)
from cash_ledger.accounting.balance import BALANCE_TOLERANCE, check_balance
from cash_ledger.accounting.cache import AccountingCache
from cash_ledger.accounting.classifier import Classification, classify_record
from cash_ledger.accounting.errors import (
    AccountingError,
    MalformattedDataError,
    MissingCurrencyError,
    UnknownAccountError,
)
from cash_ledger.accounting.journal import (
    JournalBuilder,
    apply_journal_filters,
    inject_currency_metadata,
    restamp_opening_entries,
)
from cash_ledger.accounting.ledger import generate_ledger_from_journal
from cash_ledger.accounting.opening import (
    flatten_postings,
    synthesize_initial_opening_entries,
    synthesize_opening_entries_before,
)
from cash_ledger.accounting.trial_balance import generate_trial_balance_from_journal

__all__ = [
    # Chart of accounts
    "DEFAULT_ACCOUNTS",
    "liquidity_account_code",
    "populate_accounts",
    "wallet_account_code",
    # Balance
    "BALANCE_TOLERANCE",
    "check_balance",
    # Classification
    "Classification",
    "classify_record",
    # Journal
    "AccountingCache",
    "JournalBuilder",
    "apply_journal_filters",
    "inject_currency_metadata",
    "restamp_opening_entries",
    # Opening balances
    "flatten_postings",
    "synthesize_initial_opening_entries",
    "synthesize_opening_entries_before",
    # Reports
    "generate_ledger_from_journal",
    "generate_trial_balance_from_journal",
    # Errors
    "AccountingError",
    "MalformattedDataError",
    "MissingCurrencyError",
    "UnknownAccountError",
]
