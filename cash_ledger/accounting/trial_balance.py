"""
Trial Balance Generator

Nets every account per currency, groups the accounts by type and closes
income and expense into retained earnings.

DESIGN DECISION: The closing check compares retained earnings and the
permanent-account gap by exact equality after rounding to 2 decimals.
Entry-level balance checks allow 0.001 of drift; this one allows none.
A mismatch is a warning, not an error: the user still gets the trial
balance, with Equity left un-closed.
"""

from decimal import Decimal
from typing import Callable, Optional

import structlog

from cash_ledger.accounting import accounts as codes
from cash_ledger.accounting.accounts import ACCOUNT_TYPE_ORDER
from cash_ledger.models.accounting import (
    Account,
    AccountType,
    JournalEntry,
    TrialBalance,
    TrialBalanceLine,
    TrialBalanceOfType,
    TrialBalanceWithCurrency,
)
from cash_ledger.models.documents import Currency
from cash_ledger.utils.amounts import as_amount


logger = structlog.get_logger()

AlertCallback = Callable[[str, str], None]

MISMATCH_MESSAGE = (
    "The Trial Balance has been generated. However, a mismatch was found "
    "regarding Retained Earnings."
)


def _close_trial_balance_with_currency(
    trial_balance_with_currency: TrialBalanceWithCurrency,
    account_map: dict[str, Account],
    alert: Optional[AlertCallback],
) -> None:
    of_type = trial_balance_with_currency.of_type

    retained_earnings = as_amount(
        of_type(AccountType.INCOME).total_balance - of_type(AccountType.EXPENSE).total_balance
    )
    gap = as_amount(
        of_type(AccountType.ASSET).total_balance
        - (of_type(AccountType.LIABILITY).total_balance + of_type(AccountType.EQUITY).total_balance)
    )
    trial_balance_with_currency.retained_earnings = retained_earnings
    trial_balance_with_currency.gap = gap

    if retained_earnings != gap:
        logger.warning(
            "trial_balance_mismatch",
            currency_id=trial_balance_with_currency.currency_id,
            retained_earnings=str(retained_earnings),
            gap=str(gap),
        )
        if alert:
            alert("Error", MISMATCH_MESSAGE)
        trial_balance_with_currency.is_closed = False
        return

    equity = of_type(AccountType.EQUITY)
    equity.balance_list.append(
        TrialBalanceLine(
            account=account_map[codes.EQUITY__RETAINED_EARNINGS],
            balance=retained_earnings,
            is_balance_debit=False,
        )
    )
    equity.total_balance += retained_earnings
    trial_balance_with_currency.is_closed = True


def _prepare_trial_balance_with_currency(
    currency_id: str,
    account_vs_debit_balance: dict[str, Decimal],
    account_map: dict[str, Account],
    currency: Optional[Currency],
    alert: Optional[AlertCallback],
) -> TrialBalanceWithCurrency:
    trial_balance_with_currency = TrialBalanceWithCurrency(
        currency_id=currency_id,
        currency=currency,
        trial_balance_of_type_map={
            account_type: TrialBalanceOfType(
                is_balance_debit=account_type in (AccountType.ASSET, AccountType.EXPENSE),
            )
            for account_type in ACCOUNT_TYPE_ORDER
        },
    )

    for account_code, debit_balance in account_vs_debit_balance.items():
        account = account_map[account_code]
        bucket = trial_balance_with_currency.of_type(account.type)
        # credit-natured accounts were accumulated debit-positive
        balance = as_amount(debit_balance)
        if not account.increases_on_debit:
            balance = -balance
        bucket.total_balance += balance
        bucket.balance_list.append(
            TrialBalanceLine(
                account=account,
                balance=balance,
                is_balance_debit=account.increases_on_debit,
            )
        )

    _close_trial_balance_with_currency(trial_balance_with_currency, account_map, alert)

    for bucket in trial_balance_with_currency.trial_balance_of_type_map.values():
        bucket.total_balance = as_amount(bucket.total_balance)

    return trial_balance_with_currency


def generate_trial_balance_from_journal(
    journal_entry_list: list[JournalEntry],
    account_map: dict[str, Account],
    currency_map: Optional[dict[str, Currency]] = None,
    alert: Optional[AlertCallback] = None,
) -> TrialBalance:
    """
    Build one trial balance per currency.

    Currencies come from currency_map first, then any other currency the
    journal uses, in order of first appearance.

    Args:
        journal_entry_list: Full or filtered journal
        account_map: Chart of accounts
        currency_map: Currency documents by id, attached to the output
        alert: Called with (title, message) when a currency fails to close
    """
    currency_vs_account_balance: dict[str, dict[str, Decimal]] = {
        currency_id: {} for currency_id in (currency_map or {})
    }

    for journal_entry in journal_entry_list:
        for debit in journal_entry.debit_list:
            balances = currency_vs_account_balance.setdefault(debit.currency_id, {})
            balances[debit.account.code] = balances.get(debit.account.code, Decimal("0")) + debit.amount
        for credit in journal_entry.credit_list:
            balances = currency_vs_account_balance.setdefault(credit.currency_id, {})
            balances[credit.account.code] = balances.get(credit.account.code, Decimal("0")) - credit.amount

    trial_balance = TrialBalance()
    for currency_id, account_vs_debit_balance in currency_vs_account_balance.items():
        trial_balance.trial_balance_with_currency_list.append(
            _prepare_trial_balance_with_currency(
                currency_id,
                account_vs_debit_balance,
                account_map,
                (currency_map or {}).get(currency_id),
                alert,
            )
        )

    return trial_balance
