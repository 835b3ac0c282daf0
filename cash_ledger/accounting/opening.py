"""
Opening Balance Synthesizer

Two ways of producing synthetic opening entries:

- Variant A (beginning of time): one entry per currency built from the
  initial balances of wallets and assets, credited against Opening Balance.
- Variant B (before a window): collapse every journal entry older than the
  window start into per-account balances, one entry per currency for the
  history that balanced per currency and a single merged entry for the
  history that did not.

DESIGN DECISION: Both variants return entries with serials 0..k. Callers
decide how the synthetic entries are placed relative to standard entries.
"""

from decimal import Decimal
from typing import Iterable, Optional

from cash_ledger.accounting import accounts as codes
from cash_ledger.accounting.accounts import liquidity_account_code, wallet_account_code
from cash_ledger.accounting.balance import check_balance
from cash_ledger.models.accounting import Account, JournalEntry, JournalModality, Posting
from cash_ledger.models.documents import Asset, Wallet, WalletType
from cash_ledger.utils.amounts import as_amount


def flatten_postings(posting_list: Iterable[Posting]) -> list[Posting]:
    """
    Merge postings that share an account and a currency.

    Lines that sum to zero or less are dropped. The rest are ordered by
    amount, ascending; ties keep first-appearance order.
    """
    grouped: dict[tuple[str, str], Posting] = {}
    totals: dict[tuple[str, str], Decimal] = {}

    for posting in posting_list:
        key = (posting.account.code, posting.currency_id)
        if key not in grouped:
            grouped[key] = posting
            totals[key] = Decimal("0")
        totals[key] += posting.amount

    flattened = [
        grouped[key].model_copy(update={"amount": as_amount(total)})
        for key, total in totals.items()
        if total > 0
    ]
    flattened.sort(key=lambda posting: posting.amount)
    return flattened


def _build_entry(
    serial: int,
    debit_list: list[Posting],
    credit_list: list[Posting],
    description: str,
) -> JournalEntry:
    balance = check_balance(debit_list, credit_list)
    return JournalEntry(
        serial=serial,
        entry_epoch=0,
        modality=JournalModality.OPENING,
        debit_list=debit_list,
        credit_list=credit_list,
        description=description,
        is_balanced=balance.is_balanced,
        is_multi_currency=balance.is_multi_currency,
        currency_id_list=balance.currency_id_list,
    )


# =============================================================================
# VARIANT A: BEGINNING OF TIME
# =============================================================================

def synthesize_initial_opening_entries(
    asset_list: list[Asset],
    wallet_list: list[Wallet],
    currency_id_list: list[str],
    account_map: dict[str, Account],
) -> list[JournalEntry]:
    """One opening entry per currency from wallet and asset initial balances."""
    entries: list[JournalEntry] = []

    def line(code: str, currency_id: str, amount: Decimal) -> Posting:
        return Posting(account=account_map[code], currency_id=currency_id, amount=as_amount(amount))

    for currency_id in currency_id_list:
        debit_list: list[Posting] = []
        credit_list: list[Posting] = []

        for asset in asset_list:
            if asset.currency_id != currency_id:
                continue
            balance = as_amount(asset.initial_balance)
            bucket = liquidity_account_code(asset.liquidity)
            if balance > 0:
                debit_list.append(line(bucket, currency_id, balance))
                credit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, balance))
            elif balance < 0:
                credit_list.append(line(bucket, currency_id, -balance))
                debit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, -balance))

        for wallet in wallet_list:
            if wallet.currency_id != currency_id:
                continue
            balance = as_amount(wallet.initial_balance)
            if balance == 0:
                continue
            account_code = wallet_account_code(wallet.type)

            if wallet.type == WalletType.CREDIT_CARD.value:
                # negative is money owed on the card, positive is an advance
                if balance < 0:
                    credit_list.append(line(account_code, currency_id, -balance))
                    debit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, -balance))
                else:
                    debit_list.append(line(account_code, currency_id, balance))
                    credit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, balance))
            elif balance > 0:
                debit_list.append(line(account_code, currency_id, balance))
                credit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, balance))
            else:
                credit_list.append(line(account_code, currency_id, -balance))
                debit_list.append(line(codes.EQUITY__OPENING_BALANCE, currency_id, -balance))

        debit_list = flatten_postings(debit_list)
        credit_list = flatten_postings(credit_list)
        if not debit_list and not credit_list:
            continue

        entries.append(
            _build_entry(
                serial=len(entries),
                debit_list=debit_list,
                credit_list=credit_list,
                description="Opening balances of wallets and assets.",
            )
        )

    return entries


# =============================================================================
# VARIANT B: BEFORE A WINDOW
# =============================================================================

def _collapse_group(
    entry_list: list[JournalEntry],
    account_map: Optional[dict[str, Account]] = None,
) -> list[tuple[list[Posting], list[Posting]]]:
    """Per currency, net every account into a single debit or credit line."""
    accounts: dict[str, Account] = dict(account_map or {})
    currency_signs: dict[str, Optional[str]] = {}
    currency_vs_account_balance: dict[str, dict[str, Decimal]] = {}

    for entry in entry_list:
        signed = [(debit, Decimal("1")) for debit in entry.debit_list]
        signed += [(credit, Decimal("-1")) for credit in entry.credit_list]
        for posting, sign in signed:
            code = posting.account.code
            accounts.setdefault(code, posting.account)
            currency_signs.setdefault(posting.currency_id, posting.currency_sign)
            balances = currency_vs_account_balance.setdefault(posting.currency_id, {})
            balances[code] = balances.get(code, Decimal("0")) + sign * posting.amount

    pairs = []
    for currency_id, balances in currency_vs_account_balance.items():
        debit_list: list[Posting] = []
        credit_list: list[Posting] = []
        for code, balance in balances.items():
            balance = as_amount(balance)
            if balance == 0:
                continue
            posting = Posting(
                account=accounts[code],
                currency_id=currency_id,
                amount=abs(balance),
                currency_sign=currency_signs.get(currency_id),
            )
            if balance > 0:
                debit_list.append(posting)
            else:
                credit_list.append(posting)
        if debit_list or credit_list:
            pairs.append((debit_list, credit_list))
    return pairs


def synthesize_opening_entries_before(
    journal_entry_list: list[JournalEntry],
    start_epoch: int,
    account_map: Optional[dict[str, Account]] = None,
) -> list[JournalEntry]:
    """
    Summarize all history before start_epoch into opening entries.

    Returns the balanced-history entries (one per currency) followed by at
    most one entry for history that crossed currencies unbalanced. Accounts
    missing from account_map are taken from the postings themselves.
    """
    prior = [entry for entry in journal_entry_list if entry.entry_epoch < start_epoch]
    balanced_group = [entry for entry in prior if entry.is_balanced]
    unbalanced_group = [entry for entry in prior if not entry.is_balanced]

    entries: list[JournalEntry] = []
    for debit_list, credit_list in _collapse_group(balanced_group, account_map):
        entries.append(
            _build_entry(len(entries), debit_list, credit_list, "Opening balance.")
        )

    merged: Optional[JournalEntry] = None
    unbalanced_pairs = _collapse_group(unbalanced_group, account_map)
    for debit_list, credit_list in unbalanced_pairs:
        if merged is None:
            merged = _build_entry(len(entries), debit_list, credit_list, "Opening balance.")
            continue
        merged.debit_list.extend(debit_list)
        merged.credit_list.extend(credit_list)
        for currency_id in check_balance(debit_list, credit_list).currency_id_list:
            if currency_id not in merged.currency_id_list:
                merged.currency_id_list.append(currency_id)

    if merged is not None:
        if len(unbalanced_pairs) > 1:
            merged.is_balanced = False
            merged.is_multi_currency = True
        entries.append(merged)

    return entries
