"""
Document Models

These mirror the documents kept by the persistence layer. The store
speaks camelCase JSON (`_id`, `$collection`, `transactionEpoch`), so
every model accepts those keys as aliases while Python code uses
snake_case names.

DESIGN DECISION: Records arrive here only after the persistence
layer's own schema validation. These models parse, they don't police.
Unknown keys (revision ids, UI caches) are ignored.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class Collection(str, Enum):
    """Collections the accounting engine reads from."""
    CURRENCY = "currency"
    WALLET = "wallet"
    ASSET = "asset"
    PARTY = "party"
    TAG = "tag"
    EXPENSE_AVENUE = "expense-avenue"
    INCOME_SOURCE = "income-source"
    RECORD = "record"


class RecordType(str, Enum):
    """The ten kinds of cash-flow event a user can record."""
    INCOME = "income"
    EXPENSE = "expense"
    MONEY_TRANSFER = "money-transfer"
    ASSET_PURCHASE = "asset-purchase"
    ASSET_SALE = "asset-sale"
    ASSET_APPRECIATION_DEPRECIATION = "asset-appreciation-depreciation"
    LENDING = "lending"  # outgoing loan (receivable)
    BORROWING = "borrowing"  # incoming loan (payable)
    REPAYMENT_GIVEN = "repayment-given"
    REPAYMENT_RECEIVED = "repayment-received"


class WalletType(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit-card"
    BANK = "bank"
    APP = "app"
    OTHER = "other"


class AssetLiquidity(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    UNSURE = "unsure"


# =============================================================================
# ENTITY DOCUMENTS
# =============================================================================

class Document(BaseModel):
    """Base for everything stored in the document store."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = Field(default=None, alias="_id")
    collection: Optional[str] = Field(default=None, alias="$collection")


class Currency(Document):
    name: str
    sign: str
    precision_minimum: Optional[int] = None
    precision_maximum: Optional[int] = None


class Wallet(Document):
    """
    A place money sits in: cash, bank account, credit card...

    `type` stays a plain string because legacy data carries wallet types
    that predate WalletType; anything unrecognized is treated as a bank.
    """
    name: str
    type: str
    initial_balance: Decimal = Decimal("0")
    currency_id: str
    minimum_balance: Optional[Decimal] = None


class Asset(Document):
    name: str
    type: str = ""
    liquidity: str = AssetLiquidity.UNSURE.value
    initial_balance: Decimal = Decimal("0")
    currency_id: str


class Party(Document):
    name: str
    type: str = ""


class ExpenseAvenue(Document):
    name: str


class IncomeSource(Document):
    name: str


class Tag(Document):
    name: str
    color: Optional[str] = None


# =============================================================================
# RAW RECORD (as stored, foreign keys unresolved)
# =============================================================================

class RecordDetails(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class RawSettlementDetails(RecordDetails):
    """Shared shape of the partially-payable record kinds."""
    amount: Decimal
    currency_id: str
    party_id: Optional[str] = None
    wallet_id: Optional[str] = None
    amount_paid: Decimal = Decimal("0")
    amount_unpaid: Decimal = Decimal("0")


class RawExpenseDetails(RawSettlementDetails):
    expense_avenue_id: str


class RawIncomeDetails(RawSettlementDetails):
    income_source_id: str


class RawAssetTradeDetails(RawSettlementDetails):
    asset_id: str


class RawAssetValuationDetails(RecordDetails):
    asset_id: str
    type: str  # "appreciation" or "depreciation"
    amount: Decimal
    currency_id: str


class RawLoanDetails(RecordDetails):
    amount: Decimal
    wallet_id: str
    currency_id: str
    party_id: Optional[str] = None


class RawMoneyTransferDetails(RecordDetails):
    from_wallet_id: str
    from_currency_id: str
    from_amount: Decimal
    to_wallet_id: str
    to_currency_id: str
    to_amount: Decimal


# "money-transfer" -> money_transfer
RECORD_DETAIL_FIELDS = [record_type.value.replace("-", "_") for record_type in RecordType]


class RawRecord(Document):
    """
    A user-entered record exactly as persisted.

    Only the sub-object matching `type` is read. Edited legacy records can
    carry leftovers of other kinds; those are dropped before validation,
    so a stale sub-object never fails the record.
    """
    type: str
    notes: Optional[str] = ""
    tag_id_list: list[str] = Field(default_factory=list)
    transaction_epoch: int = 0
    template_name: Optional[str] = None

    expense: Optional[RawExpenseDetails] = None
    income: Optional[RawIncomeDetails] = None
    money_transfer: Optional[RawMoneyTransferDetails] = None
    asset_purchase: Optional[RawAssetTradeDetails] = None
    asset_sale: Optional[RawAssetTradeDetails] = None
    asset_appreciation_depreciation: Optional[RawAssetValuationDetails] = None
    lending: Optional[RawLoanDetails] = None
    borrowing: Optional[RawLoanDetails] = None
    repayment_given: Optional[RawLoanDetails] = None
    repayment_received: Optional[RawLoanDetails] = None

    @model_validator(mode='before')
    @classmethod
    def keep_matching_details(cls, data: Any) -> Any:
        """Drop sub-objects of other record kinds and fill legacy nulls."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        record_type = data.get("type")
        matching = record_type.replace("-", "_") if isinstance(record_type, str) else None
        for field_name in RECORD_DETAIL_FIELDS:
            if field_name != matching:
                data.pop(field_name, None)
                data.pop(to_camel(field_name), None)

        for key in ("transactionEpoch", "transaction_epoch"):
            if key in data and data[key] is None:
                data[key] = 0
        for key in ("tagIdList", "tag_id_list"):
            if key in data and data[key] is None:
                data[key] = []
        return data
