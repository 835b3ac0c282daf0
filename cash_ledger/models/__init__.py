"""
Data Models Package

This package contains all Pydantic models used in Cash Ledger.
Documents come in from the store, inferred records embed their references,
and accounting models are what the engine derives from them.
"""

from cash_ledger.models.documents import (
    Asset,
    AssetLiquidity,
    Collection,
    Currency,
    ExpenseAvenue,
    IncomeSource,
    Party,
    RawRecord,
    RecordType,
    Tag,
    Wallet,
    WalletType,
)
from cash_ledger.models.inferred import (
    AssetAppreciationDepreciationRecord,
    AssetPurchaseRecord,
    AssetSaleRecord,
    BorrowingRecord,
    ExpenseRecord,
    IncomeRecord,
    InferredRecord,
    LendingRecord,
    MoneyTransferRecord,
    RepaymentGivenRecord,
    RepaymentReceivedRecord,
    UnrecognizedRecord,
)
from cash_ledger.models.accounting import (
    Account,
    AccountingResult,
    AccountType,
    BalanceCheck,
    JournalEntry,
    JournalFilters,
    JournalModality,
    Ledger,
    LedgerBalance,
    LedgerEntry,
    Posting,
    TrialBalance,
    TrialBalanceLine,
    TrialBalanceOfType,
    TrialBalanceWithCurrency,
)
from cash_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Document models
    "Asset",
    "AssetLiquidity",
    "Collection",
    "Currency",
    "ExpenseAvenue",
    "IncomeSource",
    "Party",
    "RawRecord",
    "RecordType",
    "Tag",
    "Wallet",
    "WalletType",
    # Inferred records
    "AssetAppreciationDepreciationRecord",
    "AssetPurchaseRecord",
    "AssetSaleRecord",
    "BorrowingRecord",
    "ExpenseRecord",
    "IncomeRecord",
    "InferredRecord",
    "LendingRecord",
    "MoneyTransferRecord",
    "RepaymentGivenRecord",
    "RepaymentReceivedRecord",
    "UnrecognizedRecord",
    # Accounting models
    "Account",
    "AccountingResult",
    "AccountType",
    "BalanceCheck",
    "JournalEntry",
    "JournalFilters",
    "JournalModality",
    "Ledger",
    "LedgerBalance",
    "LedgerEntry",
    "Posting",
    "TrialBalance",
    "TrialBalanceLine",
    "TrialBalanceOfType",
    "TrialBalanceWithCurrency",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
