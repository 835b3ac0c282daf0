"""
Inferred Record Models

An inferred record is a RawRecord whose foreign keys have been resolved
into embedded documents (wallet, party, asset, avenue, source, tags).

DESIGN DECISION: Instead of one record shape with ten optional
sub-objects, each record type gets its own class carrying only its own
details. The classifier dispatches on the class. A record whose `type`
does not match a populated sub-object becomes an UnrecognizedRecord,
which produces no postings: older data in the wild has such records and
the journal must tolerate them.
"""

from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, Field

from cash_ledger.models.documents import (
    Asset,
    ExpenseAvenue,
    IncomeSource,
    Party,
    RecordType,
    Tag,
    Wallet,
)


# =============================================================================
# RESOLVED DETAILS
# =============================================================================

class InferredSettlement(BaseModel):
    """Details shared by records that can be paid partially."""
    amount: Decimal
    currency_id: str
    party: Optional[Party] = None
    wallet: Optional[Wallet] = None
    amount_paid: Decimal = Decimal("0")


class InferredExpense(InferredSettlement):
    expense_avenue: Optional[ExpenseAvenue] = None


class InferredIncome(InferredSettlement):
    income_source: Optional[IncomeSource] = None


class InferredAssetTrade(InferredSettlement):
    asset: Optional[Asset] = None


class InferredAssetValuation(BaseModel):
    asset: Optional[Asset] = None
    type: str
    amount: Decimal
    currency_id: str

    @property
    def is_appreciation(self) -> bool:
        return self.type == "appreciation"


class InferredLoan(BaseModel):
    """Lending, borrowing and both repayment kinds share this shape."""
    amount: Decimal
    currency_id: str
    party: Optional[Party] = None
    wallet: Optional[Wallet] = None


class InferredMoneyTransfer(BaseModel):
    from_wallet: Optional[Wallet] = None
    from_currency_id: str
    from_amount: Decimal
    to_wallet: Optional[Wallet] = None
    to_currency_id: str
    to_amount: Decimal


# =============================================================================
# RECORD VARIANTS
# =============================================================================

class InferredRecordBase(BaseModel):
    id: Optional[str] = None
    type: str
    notes: str = ""
    transaction_epoch: int = 0
    tag_list: list[Tag] = Field(default_factory=list)


class ExpenseRecord(InferredRecordBase):
    type: str = RecordType.EXPENSE.value
    expense: Optional[InferredExpense] = None


class IncomeRecord(InferredRecordBase):
    type: str = RecordType.INCOME.value
    income: Optional[InferredIncome] = None


class MoneyTransferRecord(InferredRecordBase):
    type: str = RecordType.MONEY_TRANSFER.value
    money_transfer: Optional[InferredMoneyTransfer] = None


class AssetPurchaseRecord(InferredRecordBase):
    type: str = RecordType.ASSET_PURCHASE.value
    asset_purchase: Optional[InferredAssetTrade] = None


class AssetSaleRecord(InferredRecordBase):
    type: str = RecordType.ASSET_SALE.value
    asset_sale: Optional[InferredAssetTrade] = None


class AssetAppreciationDepreciationRecord(InferredRecordBase):
    type: str = RecordType.ASSET_APPRECIATION_DEPRECIATION.value
    asset_appreciation_depreciation: Optional[InferredAssetValuation] = None


class LendingRecord(InferredRecordBase):
    type: str = RecordType.LENDING.value
    lending: Optional[InferredLoan] = None


class BorrowingRecord(InferredRecordBase):
    type: str = RecordType.BORROWING.value
    borrowing: Optional[InferredLoan] = None


class RepaymentGivenRecord(InferredRecordBase):
    type: str = RecordType.REPAYMENT_GIVEN.value
    repayment_given: Optional[InferredLoan] = None


class RepaymentReceivedRecord(InferredRecordBase):
    type: str = RecordType.REPAYMENT_RECEIVED.value
    repayment_received: Optional[InferredLoan] = None


class UnrecognizedRecord(InferredRecordBase):
    """A record whose type has no matching populated sub-object."""
    pass


InferredRecord = Union[
    ExpenseRecord,
    IncomeRecord,
    MoneyTransferRecord,
    AssetPurchaseRecord,
    AssetSaleRecord,
    AssetAppreciationDepreciationRecord,
    LendingRecord,
    BorrowingRecord,
    RepaymentGivenRecord,
    RepaymentReceivedRecord,
    UnrecognizedRecord,
]
