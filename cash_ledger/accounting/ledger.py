"""
Ledger Generator

Projects the journal onto one account with a running balance per
currency. Opening entries are ordinary journal entries here, so a ledger
over a filtered journal starts from the synthesized opening balance.
"""

from decimal import Decimal
from typing import Optional

from cash_ledger.accounting.errors import UnknownAccountError
from cash_ledger.models.accounting import (
    Account,
    JournalEntry,
    Ledger,
    LedgerBalance,
    LedgerEntry,
)
from cash_ledger.models.documents import Currency
from cash_ledger.utils.amounts import as_amount


def generate_ledger_from_journal(
    journal_entry_list: list[JournalEntry],
    account_map: dict[str, Account],
    account_code: str,
    currency_map: Optional[dict[str, Currency]] = None,
) -> Ledger:
    """
    Build the ledger of one account.

    Entries without a line for the account are skipped. Within an entry,
    debit lines come before credit lines. Balances start at zero for every
    currency in currency_map, so untouched currencies still report 0.00.

    Raises:
        UnknownAccountError: account_code is not in the chart of accounts
    """
    account = account_map.get(account_code)
    if account is None:
        raise UnknownAccountError(f"Unknown account: {account_code}")

    is_balance_debit = account.increases_on_debit
    currency_vs_balance: dict[str, Decimal] = {
        currency_id: Decimal("0") for currency_id in (currency_map or {})
    }

    ledger_entry_list: list[LedgerEntry] = []
    serial_seed = 0

    for journal_entry in journal_entry_list:
        lines = [
            (debit, True) for debit in journal_entry.debit_list
            if debit.account.code == account_code
        ]
        lines += [
            (credit, False) for credit in journal_entry.credit_list
            if credit.account.code == account_code
        ]

        for posting, is_debit in lines:
            currency_id = posting.currency_id
            balance = currency_vs_balance.get(currency_id, Decimal("0"))
            if is_debit == is_balance_debit:
                balance += posting.amount
            else:
                balance -= posting.amount
            currency_vs_balance[currency_id] = balance

            ledger_entry_list.append(
                LedgerEntry(
                    serial=serial_seed,
                    account=account,
                    entry_epoch=journal_entry.entry_epoch,
                    is_balance_debit=is_balance_debit,
                    currency_id=currency_id,
                    debit_amount=as_amount(posting.amount if is_debit else 0),
                    credit_amount=as_amount(0 if is_debit else posting.amount),
                    balance=as_amount(balance),
                    description=journal_entry.description,
                    notes=journal_entry.notes,
                    journal_entry=journal_entry,
                    currency_sign=posting.currency_sign,
                )
            )
            serial_seed += 1

    ledger = Ledger(
        account=account,
        is_balance_debit=is_balance_debit,
        ledger_entry_list=ledger_entry_list,
        balance_list=[
            LedgerBalance(currency_id=currency_id, balance=as_amount(balance))
            for currency_id, balance in currency_vs_balance.items()
        ],
    )

    if currency_map:
        _inject_currency_metadata(ledger, currency_map)

    return ledger


def _inject_currency_metadata(ledger: Ledger, currency_map: dict[str, Currency]) -> None:
    for ledger_entry in ledger.ledger_entry_list:
        currency = currency_map.get(ledger_entry.currency_id)
        if currency is not None:
            ledger_entry.currency_sign = currency.sign
    for balance in ledger.balance_list:
        balance.currency = currency_map.get(balance.currency_id)
