"""
Record Classifier

One conversion function per record type. Each turns an inferred record
into debit and credit postings against the chart of accounts, plus a
description narrating the transaction.

RULES:
- Wallet side: credit cards post to Credit Card Debt, cash to Cash,
  everything else to Bank and Equivalent
- Partially payable kinds settle what was paid through the wallet and
  park the rest in Accounts Payable (we owe) or Accounts Receivable
  (we are owed)
- Asset kinds route the asset side through its liquidity bucket
- Cross-currency transfers balance each currency through
  EQUITY__INTERCURRENCY

A conversion function raises MalformattedDataError when the record lacks
something its type requires. That is a data-integrity failure and aborts
the build.
"""

from decimal import Decimal
from typing import Callable, Optional

from pydantic import BaseModel, Field

from cash_ledger.accounting import accounts as codes
from cash_ledger.accounting.accounts import liquidity_account_code, wallet_account_code
from cash_ledger.accounting.errors import MalformattedDataError
from cash_ledger.models.accounting import Account, Posting
from cash_ledger.models.documents import Wallet
from cash_ledger.models.inferred import (
    AssetAppreciationDepreciationRecord,
    AssetPurchaseRecord,
    AssetSaleRecord,
    BorrowingRecord,
    ExpenseRecord,
    IncomeRecord,
    InferredLoan,
    InferredRecord,
    InferredSettlement,
    LendingRecord,
    MoneyTransferRecord,
    RepaymentGivenRecord,
    RepaymentReceivedRecord,
    UnrecognizedRecord,
)
from cash_ledger.utils.amounts import as_amount


AmountFormatter = Callable[[Decimal, str], str]


def plain_amount(amount: Decimal, currency_id: str) -> str:
    """Fallback formatter used when no currency signs are at hand."""
    return f"{as_amount(amount)} {currency_id}"


class Classification(BaseModel):
    debit_list: list[Posting] = Field(default_factory=list)
    credit_list: list[Posting] = Field(default_factory=list)
    description: str = ""


class _Postings:
    """Collects postings for one record."""

    def __init__(self, account_map: dict[str, Account]):
        self._account_map = account_map
        self.debit_list: list[Posting] = []
        self.credit_list: list[Posting] = []
        self.sentences: list[str] = []

    def _posting(self, code: str, currency_id: str, amount: Decimal) -> Posting:
        return Posting(
            account=self._account_map[code],
            currency_id=currency_id,
            amount=as_amount(amount),
        )

    def debit(self, code: str, currency_id: str, amount: Decimal) -> None:
        self.debit_list.append(self._posting(code, currency_id, amount))

    def credit(self, code: str, currency_id: str, amount: Decimal) -> None:
        self.credit_list.append(self._posting(code, currency_id, amount))

    def say(self, sentence: str) -> None:
        self.sentences.append(sentence)

    def result(self) -> Classification:
        return Classification(
            debit_list=self.debit_list,
            credit_list=self.credit_list,
            description=" ".join(self.sentences),
        )


def _require(value, record: InferredRecord, what: str):
    if not value:
        raise MalformattedDataError(
            record.type,
            f'"{record.type}" record is missing {what}',
            record_id=record.id,
        )
    return value


def _settle(
    postings: _Postings,
    record: InferredRecord,
    settlement: InferredSettlement,
    is_outgoing: bool,
) -> None:
    """
    Post the wallet/dues side of a partially payable record.

    Outgoing money credits the wallet and owes the remainder through
    Accounts Payable. Incoming money debits the wallet and expects the
    remainder through Accounts Receivable.
    """
    amount = as_amount(settlement.amount)
    amount_paid = as_amount(settlement.amount_paid)
    currency_id = settlement.currency_id

    if amount_paid < 0 or amount_paid > amount:
        raise MalformattedDataError(
            record.type,
            f"amount paid {amount_paid} is outside 0..{amount}",
            record_id=record.id,
        )

    post = postings.credit if is_outgoing else postings.debit
    dues_code = (
        codes.LIABILITY__ACCOUNTS_PAYABLE if is_outgoing else codes.ASSET__ACCOUNTS_RECEIVABLE
    )

    if amount_paid == 0:
        post(dues_code, currency_id, amount)
        postings.say("Unpaid.")
        return

    wallet: Wallet = _require(settlement.wallet, record, "the paying wallet")
    post(wallet_account_code(wallet.type), currency_id, amount_paid)

    if amount_paid == amount:
        if is_outgoing:
            postings.say(f'Fully paid from "{wallet.name}" ({wallet.type}).')
        else:
            postings.say(f'Fully received payment in "{wallet.name}" ({wallet.type}).')
        return

    post(dues_code, currency_id, amount - amount_paid)
    if is_outgoing:
        postings.say(f'Partially paid from "{wallet.name}" ({wallet.type}).')
    else:
        postings.say(f'Partially received payment in "{wallet.name}" ({wallet.type}).')


# =============================================================================
# CONVERSIONS
# =============================================================================

def convert_expense(
    record: ExpenseRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    expense = _require(record.expense, record, "its expense details")
    avenue = _require(expense.expense_avenue, record, "the expense avenue")
    postings = _Postings(account_map)

    postings.debit(codes.EXPENSE__COMBINED_EXPENSE, expense.currency_id, expense.amount)
    postings.say(f'Spent {format_amount(expense.amount, expense.currency_id)} as "{avenue.name}".')
    _settle(postings, record, expense, is_outgoing=True)

    return postings.result()


def convert_income(
    record: IncomeRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    income = _require(record.income, record, "its income details")
    source = _require(income.income_source, record, "the income source")
    postings = _Postings(account_map)

    postings.credit(codes.INCOME__COMBINED_INCOME, income.currency_id, income.amount)
    postings.say(f'Earned {format_amount(income.amount, income.currency_id)} as "{source.name}".')
    _settle(postings, record, income, is_outgoing=False)

    return postings.result()


def convert_money_transfer(
    record: MoneyTransferRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    transfer = _require(record.money_transfer, record, "its transfer details")
    from_wallet = _require(transfer.from_wallet, record, "the source wallet")
    to_wallet = _require(transfer.to_wallet, record, "the destination wallet")
    postings = _Postings(account_map)

    from_amount = as_amount(transfer.from_amount)
    to_amount = as_amount(transfer.to_amount)
    from_currency_id = transfer.from_currency_id
    to_currency_id = transfer.to_currency_id

    postings.credit(wallet_account_code(from_wallet.type), from_currency_id, from_amount)
    postings.debit(wallet_account_code(to_wallet.type), to_currency_id, to_amount)

    if from_amount == to_amount and from_currency_id == to_currency_id:
        postings.say(
            f"Transferred {format_amount(from_amount, from_currency_id)} "
            f'from "{from_wallet.name}" to "{to_wallet.name}".'
        )
    else:
        postings.say(
            f"Transferred {format_amount(from_amount, from_currency_id)} "
            f'from "{from_wallet.name}" into {format_amount(to_amount, to_currency_id)} '
            f'on "{to_wallet.name}".'
        )

    if from_currency_id == to_currency_id:
        if from_amount > to_amount:
            fee = from_amount - to_amount
            postings.debit(codes.EXPENSE__MINOR_ADJUSTMENT, to_currency_id, fee)
            postings.say(f"Transfer fee: {format_amount(fee, to_currency_id)}.")
        elif from_amount < to_amount:
            gain = to_amount - from_amount
            postings.credit(codes.INCOME__MINOR_ADJUSTMENT, to_currency_id, gain)
            postings.say(f"Gained during transfer: {format_amount(gain, to_currency_id)}.")
    else:
        # each currency nets to zero on its own through the suspense account
        postings.debit(codes.EQUITY__INTERCURRENCY, from_currency_id, from_amount)
        postings.credit(codes.EQUITY__INTERCURRENCY, to_currency_id, to_amount)

    return postings.result()


def convert_asset_purchase(
    record: AssetPurchaseRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    purchase = _require(record.asset_purchase, record, "its purchase details")
    asset = _require(purchase.asset, record, "the asset")
    postings = _Postings(account_map)

    postings.debit(liquidity_account_code(asset.liquidity), purchase.currency_id, purchase.amount)
    postings.say(
        f'Purchased asset "{asset.name}" for '
        f"{format_amount(purchase.amount, purchase.currency_id)}."
    )
    _settle(postings, record, purchase, is_outgoing=True)

    return postings.result()


def convert_asset_sale(
    record: AssetSaleRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    sale = _require(record.asset_sale, record, "its sale details")
    asset = _require(sale.asset, record, "the asset")
    postings = _Postings(account_map)

    postings.credit(liquidity_account_code(asset.liquidity), sale.currency_id, sale.amount)
    postings.say(f'Sold asset "{asset.name}" for {format_amount(sale.amount, sale.currency_id)}.')
    _settle(postings, record, sale, is_outgoing=False)

    return postings.result()


def convert_asset_appreciation_depreciation(
    record: AssetAppreciationDepreciationRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    valuation = _require(
        record.asset_appreciation_depreciation, record, "its valuation details"
    )
    asset = _require(valuation.asset, record, "the asset")
    postings = _Postings(account_map)

    bucket = liquidity_account_code(asset.liquidity)
    printable = format_amount(valuation.amount, valuation.currency_id)

    if valuation.is_appreciation:
        postings.debit(bucket, valuation.currency_id, valuation.amount)
        postings.credit(codes.INCOME__ASSET_APPRECIATION, valuation.currency_id, valuation.amount)
        postings.say(f'Asset "{asset.name}" appreciated by {printable}.')
    else:
        postings.credit(bucket, valuation.currency_id, valuation.amount)
        postings.debit(codes.EXPENSE__ASSET_DEPRECIATION, valuation.currency_id, valuation.amount)
        postings.say(f'Asset "{asset.name}" depreciated by {printable}.')

    return postings.result()


def _loan_parties(record: InferredRecord, loan: Optional[InferredLoan]):
    loan = _require(loan, record, "its loan details")
    party = _require(loan.party, record, "the party")
    wallet = _require(loan.wallet, record, "the wallet")
    return loan, party, wallet


def convert_lending(
    record: LendingRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    loan, party, wallet = _loan_parties(record, record.lending)
    postings = _Postings(account_map)

    postings.debit(codes.ASSET__ACCOUNTS_RECEIVABLE, loan.currency_id, loan.amount)
    postings.credit(wallet_account_code(wallet.type), loan.currency_id, loan.amount)
    postings.say(
        f"Lent {format_amount(loan.amount, loan.currency_id)} "
        f'to "{party.name}" from "{wallet.name}".'
    )
    return postings.result()


def convert_borrowing(
    record: BorrowingRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    loan, party, wallet = _loan_parties(record, record.borrowing)
    postings = _Postings(account_map)

    postings.credit(codes.LIABILITY__ACCOUNTS_PAYABLE, loan.currency_id, loan.amount)
    postings.debit(wallet_account_code(wallet.type), loan.currency_id, loan.amount)
    postings.say(
        f"Borrowed {format_amount(loan.amount, loan.currency_id)} "
        f'from "{party.name}" into "{wallet.name}".'
    )
    return postings.result()


def convert_repayment_given(
    record: RepaymentGivenRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    loan, party, wallet = _loan_parties(record, record.repayment_given)
    postings = _Postings(account_map)

    postings.debit(codes.LIABILITY__ACCOUNTS_PAYABLE, loan.currency_id, loan.amount)
    postings.credit(wallet_account_code(wallet.type), loan.currency_id, loan.amount)
    postings.say(
        f"Repayment given of {format_amount(loan.amount, loan.currency_id)} "
        f'to "{party.name}" from "{wallet.name}".'
    )
    return postings.result()


def convert_repayment_received(
    record: RepaymentReceivedRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    loan, party, wallet = _loan_parties(record, record.repayment_received)
    postings = _Postings(account_map)

    postings.credit(codes.ASSET__ACCOUNTS_RECEIVABLE, loan.currency_id, loan.amount)
    postings.debit(wallet_account_code(wallet.type), loan.currency_id, loan.amount)
    postings.say(
        f"Repayment received of {format_amount(loan.amount, loan.currency_id)} "
        f'from "{party.name}" into "{wallet.name}".'
    )
    return postings.result()


def convert_unrecognized(
    record: UnrecognizedRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    """Legacy records whose type and payload disagree post nothing."""
    return Classification()


# =============================================================================
# DISPATCH
# =============================================================================

CONVERTERS: dict[type, Callable[..., Classification]] = {
    ExpenseRecord: convert_expense,
    IncomeRecord: convert_income,
    MoneyTransferRecord: convert_money_transfer,
    AssetPurchaseRecord: convert_asset_purchase,
    AssetSaleRecord: convert_asset_sale,
    AssetAppreciationDepreciationRecord: convert_asset_appreciation_depreciation,
    LendingRecord: convert_lending,
    BorrowingRecord: convert_borrowing,
    RepaymentGivenRecord: convert_repayment_given,
    RepaymentReceivedRecord: convert_repayment_received,
    UnrecognizedRecord: convert_unrecognized,
}


def classify_record(
    record: InferredRecord,
    account_map: dict[str, Account],
    format_amount: AmountFormatter = plain_amount,
) -> Classification:
    """Convert any inferred record into postings."""
    converter = CONVERTERS.get(type(record))
    if converter is None:
        raise TypeError(f"No converter for {type(record).__name__}")
    return converter(record, account_map, format_amount)
