"""
Accounting Models

Everything the derivation engine produces: accounts, postings, journal
entries, ledgers and trial balances.

None of these are persisted. A journal is rebuilt from source records
and lives until the next document write invalidates the cache.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cash_ledger.models.documents import Currency


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

class AccountType(str, Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"


class Account(BaseModel):
    """
    One head of the chart of accounts.

    Accounts are created once per build and shared by reference between
    every posting that touches them.
    """
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    type: AccountType

    @property
    def increases_on_debit(self) -> bool:
        """Assets and expenses grow with debits; the rest with credits."""
        return self.type in (AccountType.ASSET, AccountType.EXPENSE)


# =============================================================================
# JOURNAL
# =============================================================================

class Posting(BaseModel):
    """A single debit or credit line."""
    account: Account
    currency_id: str
    amount: Decimal = Field(ge=0)
    currency_sign: Optional[str] = None


class JournalModality(str, Enum):
    OPENING = "opening"
    STANDARD = "standard"


class BalanceCheck(BaseModel):
    currency_id_list: list[str] = Field(default_factory=list)
    is_multi_currency: bool = False
    is_balanced: bool = True


class JournalEntry(BaseModel):
    serial: int
    entry_epoch: int
    modality: JournalModality = JournalModality.STANDARD
    debit_list: list[Posting] = Field(default_factory=list)
    credit_list: list[Posting] = Field(default_factory=list)
    description: str = ""
    notes: str = ""
    is_multi_currency: bool = False
    is_balanced: bool = True
    currency_id_list: list[str] = Field(default_factory=list)

    @property
    def is_opening(self) -> bool:
        return self.modality == JournalModality.OPENING


class JournalFilters(BaseModel):
    """A reporting window, [start_epoch, end_epoch)."""
    start_epoch: int
    end_epoch: int
    filter_by_currency_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self) -> 'JournalFilters':
        if self.end_epoch < self.start_epoch:
            raise ValueError("End epoch cannot be before start epoch")
        return self


class AccountingResult(BaseModel):
    account_map: dict[str, Account]
    account_list: list[Account]
    journal_entry_list: list[JournalEntry]


# =============================================================================
# LEDGER
# =============================================================================

class LedgerEntry(BaseModel):
    serial: int
    account: Account
    entry_epoch: int
    is_balance_debit: bool
    currency_id: str
    debit_amount: Decimal
    credit_amount: Decimal
    balance: Decimal
    description: str = ""
    notes: str = ""
    journal_entry: JournalEntry
    currency_sign: Optional[str] = None


class LedgerBalance(BaseModel):
    currency_id: str
    balance: Decimal
    currency: Optional[Currency] = None


class Ledger(BaseModel):
    account: Account
    is_balance_debit: bool
    ledger_entry_list: list[LedgerEntry] = Field(default_factory=list)
    balance_list: list[LedgerBalance] = Field(default_factory=list)

    def balance_for(self, currency_id: str) -> Decimal:
        for item in self.balance_list:
            if item.currency_id == currency_id:
                return item.balance
        return Decimal("0.00")


# =============================================================================
# TRIAL BALANCE
# =============================================================================

class TrialBalanceLine(BaseModel):
    account: Account
    balance: Decimal
    is_balance_debit: bool


class TrialBalanceOfType(BaseModel):
    is_balance_debit: bool = True
    balance_list: list[TrialBalanceLine] = Field(default_factory=list)
    total_balance: Decimal = Decimal("0.00")


class TrialBalanceWithCurrency(BaseModel):
    currency_id: str
    currency: Optional[Currency] = None
    trial_balance_of_type_map: dict[AccountType, TrialBalanceOfType]
    retained_earnings: Decimal = Decimal("0.00")
    gap: Decimal = Decimal("0.00")
    is_closed: bool = False

    def of_type(self, account_type: AccountType) -> TrialBalanceOfType:
        return self.trial_balance_of_type_map[account_type]


class TrialBalance(BaseModel):
    trial_balance_with_currency_list: list[TrialBalanceWithCurrency] = Field(
        default_factory=list
    )

    @property
    def is_closed(self) -> bool:
        return all(item.is_closed for item in self.trial_balance_with_currency_list)

    def for_currency(self, currency_id: str) -> Optional[TrialBalanceWithCurrency]:
        for item in self.trial_balance_with_currency_list:
            if item.currency_id == currency_id:
                return item
        return None
