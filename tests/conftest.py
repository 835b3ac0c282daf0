"""
Shared fixtures.

Documents are written in the store's own camelCase shape so every test
goes through the same parsing the real data goes through.
"""

import pytest

from cash_ledger.accounting import populate_accounts
from cash_ledger.services import InMemoryDocumentStore


DAY = 24 * 60 * 60 * 1000


def _currency(doc_id: str, name: str, sign: str) -> dict:
    return {"_id": doc_id, "$collection": "currency", "name": name, "sign": sign}


def _wallet(doc_id: str, name: str, wallet_type: str, currency_id: str, initial_balance=0) -> dict:
    return {
        "_id": doc_id,
        "$collection": "wallet",
        "name": name,
        "type": wallet_type,
        "currencyId": currency_id,
        "initialBalance": initial_balance,
    }


@pytest.fixture
def account_map():
    account_map, _ = populate_accounts()
    return account_map


@pytest.fixture
def base_docs() -> list[dict]:
    """Currencies, wallets and reference documents, without any records."""
    return [
        _currency("usd", "US Dollar", "$"),
        _currency("eur", "Euro", "€"),
        _wallet("bank-usd", "Checking", "bank", "usd"),
        _wallet("cash-usd", "Pocket", "cash", "usd"),
        _wallet("card-usd", "Visa", "credit-card", "usd"),
        _wallet("bank-eur", "Euro Account", "bank", "eur"),
        {"_id": "alice", "$collection": "party", "name": "Alice", "type": "person"},
        {"_id": "food", "$collection": "expense-avenue", "name": "Food"},
        {"_id": "salary", "$collection": "income-source", "name": "Salary"},
        {"_id": "groceries", "$collection": "tag", "name": "groceries", "color": "green"},
        {
            "_id": "gold",
            "$collection": "asset",
            "name": "Gold",
            "type": "commodity",
            "liquidity": "high",
            "initialBalance": 0,
            "currencyId": "usd",
        },
    ]


@pytest.fixture
def record_doc():
    """Factory for record documents: record_doc("expense", {...}, epoch=...)."""
    counter = {"n": 0}

    def make(record_type: str, details: dict, epoch: int = DAY, notes: str = "", **extra) -> dict:
        counter["n"] += 1
        key = {
            "money-transfer": "moneyTransfer",
            "asset-purchase": "assetPurchase",
            "asset-sale": "assetSale",
            "asset-appreciation-depreciation": "assetAppreciationDepreciation",
            "repayment-given": "repaymentGiven",
            "repayment-received": "repaymentReceived",
        }.get(record_type, record_type)
        doc = {
            "_id": f"record-{counter['n']}",
            "$collection": "record",
            "type": record_type,
            "notes": notes,
            "tagIdList": [],
            "transactionEpoch": epoch,
            key: details,
        }
        doc.update(extra)
        return doc

    return make


@pytest.fixture
def expense_details():
    def make(amount=100, amount_paid=None, wallet_id="bank-usd", currency_id="usd") -> dict:
        return {
            "amount": amount,
            "amountPaid": amount if amount_paid is None else amount_paid,
            "currencyId": currency_id,
            "walletId": wallet_id,
            "expenseAvenueId": "food",
            "partyId": None,
        }

    return make


@pytest.fixture
def store(base_docs) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(base_docs)
