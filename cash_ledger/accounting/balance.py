"""
Balance Checker

A currency balances when its debits minus its credits land within
BALANCE_TOLERANCE of zero. The tolerance absorbs drift from rounding
each posting to 2 decimals.
"""

from decimal import Decimal
from typing import Iterable

from cash_ledger.models.accounting import BalanceCheck, Posting

BALANCE_TOLERANCE = Decimal("0.001")


def check_balance(
    debit_list: Iterable[Posting],
    credit_list: Iterable[Posting],
) -> BalanceCheck:
    """Per-currency balance check of one set of postings."""
    currency_vs_balance: dict[str, Decimal] = {}

    for debit in debit_list:
        currency_vs_balance.setdefault(debit.currency_id, Decimal("0"))
        currency_vs_balance[debit.currency_id] += debit.amount

    for credit in credit_list:
        currency_vs_balance.setdefault(credit.currency_id, Decimal("0"))
        currency_vs_balance[credit.currency_id] -= credit.amount

    is_balanced = all(
        abs(balance) <= BALANCE_TOLERANCE for balance in currency_vs_balance.values()
    )

    return BalanceCheck(
        currency_id_list=list(currency_vs_balance.keys()),
        is_multi_currency=len(currency_vs_balance) > 1,
        is_balanced=is_balanced,
    )
