"""
Record Inference Service

Turns a stored record (foreign keys only) into an inferred record with
its wallet, party, avenue/source, asset and tags embedded.

GUARANTEES:
- The input document is never mutated; a new model is returned
- A record whose type does not match a populated sub-object becomes an
  UnrecognizedRecord instead of an error
- Missing referenced documents are left as None; the classifier decides
  whether that is fatal for the record kind
"""

from typing import Any, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from cash_ledger.models.documents import (
    Asset,
    ExpenseAvenue,
    IncomeSource,
    Party,
    RawLoanDetails,
    RawRecord,
    RecordType,
    Tag,
    Wallet,
)
from cash_ledger.models.inferred import (
    AssetAppreciationDepreciationRecord,
    AssetPurchaseRecord,
    AssetSaleRecord,
    BorrowingRecord,
    ExpenseRecord,
    IncomeRecord,
    InferredAssetTrade,
    InferredAssetValuation,
    InferredExpense,
    InferredIncome,
    InferredLoan,
    InferredMoneyTransfer,
    InferredRecord,
    LendingRecord,
    MoneyTransferRecord,
    RepaymentGivenRecord,
    RepaymentReceivedRecord,
    UnrecognizedRecord,
)
from cash_ledger.services.storage import DocumentStoreInterface


DocT = TypeVar("DocT", bound=BaseModel)


_LOAN_RECORD_CLASSES = {
    RecordType.LENDING.value: (LendingRecord, "lending"),
    RecordType.BORROWING.value: (BorrowingRecord, "borrowing"),
    RecordType.REPAYMENT_GIVEN.value: (RepaymentGivenRecord, "repayment_given"),
    RecordType.REPAYMENT_RECEIVED.value: (RepaymentReceivedRecord, "repayment_received"),
}


class RecordInferenceService:
    """
    Resolves record foreign keys through the document store.

    One instance can serve many concurrent inferences; it keeps no
    per-record state.
    """

    def __init__(self, store: DocumentStoreInterface):
        self._store = store

    async def infer_record(
        self,
        raw: Union[RawRecord, dict[str, Any]],
    ) -> InferredRecord:
        """Infer one record. Accepts a parsed RawRecord or a raw document."""
        record = raw if isinstance(raw, RawRecord) else RawRecord.model_validate(raw)

        common = {
            "id": record.id,
            "type": record.type,
            "notes": record.notes or "",
            "transaction_epoch": record.transaction_epoch,
            "tag_list": await self._get_tag_list(record.tag_id_list),
        }

        if record.type == RecordType.EXPENSE.value and record.expense:
            details = record.expense
            return ExpenseRecord(
                **common,
                expense=InferredExpense(
                    amount=details.amount,
                    currency_id=details.currency_id,
                    amount_paid=details.amount_paid,
                    expense_avenue=await self._get(ExpenseAvenue, details.expense_avenue_id),
                    party=await self._get(Party, details.party_id),
                    wallet=await self._get(Wallet, details.wallet_id),
                ),
            )

        if record.type == RecordType.INCOME.value and record.income:
            details = record.income
            return IncomeRecord(
                **common,
                income=InferredIncome(
                    amount=details.amount,
                    currency_id=details.currency_id,
                    amount_paid=details.amount_paid,
                    income_source=await self._get(IncomeSource, details.income_source_id),
                    party=await self._get(Party, details.party_id),
                    wallet=await self._get(Wallet, details.wallet_id),
                ),
            )

        if record.type == RecordType.MONEY_TRANSFER.value and record.money_transfer:
            details = record.money_transfer
            return MoneyTransferRecord(
                **common,
                money_transfer=InferredMoneyTransfer(
                    from_wallet=await self._get(Wallet, details.from_wallet_id),
                    from_currency_id=details.from_currency_id,
                    from_amount=details.from_amount,
                    to_wallet=await self._get(Wallet, details.to_wallet_id),
                    to_currency_id=details.to_currency_id,
                    to_amount=details.to_amount,
                ),
            )

        if record.type in (RecordType.ASSET_PURCHASE.value, RecordType.ASSET_SALE.value):
            is_purchase = record.type == RecordType.ASSET_PURCHASE.value
            details = record.asset_purchase if is_purchase else record.asset_sale
            if details:
                trade = InferredAssetTrade(
                    amount=details.amount,
                    currency_id=details.currency_id,
                    amount_paid=details.amount_paid,
                    asset=await self._get(Asset, details.asset_id),
                    party=await self._get(Party, details.party_id),
                    wallet=await self._get(Wallet, details.wallet_id),
                )
                if is_purchase:
                    return AssetPurchaseRecord(**common, asset_purchase=trade)
                return AssetSaleRecord(**common, asset_sale=trade)

        if (
            record.type == RecordType.ASSET_APPRECIATION_DEPRECIATION.value
            and record.asset_appreciation_depreciation
        ):
            details = record.asset_appreciation_depreciation
            return AssetAppreciationDepreciationRecord(
                **common,
                asset_appreciation_depreciation=InferredAssetValuation(
                    asset=await self._get(Asset, details.asset_id),
                    type=details.type,
                    amount=details.amount,
                    currency_id=details.currency_id,
                ),
            )

        if record.type in _LOAN_RECORD_CLASSES:
            record_class, field_name = _LOAN_RECORD_CLASSES[record.type]
            loan_details: Optional[RawLoanDetails] = getattr(record, field_name)
            if loan_details:
                loan = InferredLoan(
                    amount=loan_details.amount,
                    currency_id=loan_details.currency_id,
                    party=await self._get(Party, loan_details.party_id),
                    wallet=await self._get(Wallet, loan_details.wallet_id),
                )
                return record_class(**common, **{field_name: loan})

        return UnrecognizedRecord(**common)

    async def _get(self, model: Type[DocT], doc_id: Optional[str]) -> Optional[DocT]:
        """Fetch and parse a referenced document; None if absent."""
        if not doc_id:
            return None
        doc = await self._store.get_doc_by_id(doc_id)
        if doc is None:
            return None
        return model.model_validate(doc)

    async def _get_tag_list(self, tag_id_list: list[str]) -> list[Tag]:
        tags = []
        for tag_id in tag_id_list:
            tag = await self._get(Tag, tag_id)
            if tag is not None:
                tags.append(tag)
        return tags
