"""
Account Registry

The chart of accounts is fixed. Codes are constants here and are never
derived from user data; everything else looks accounts up by code.
"""

from cash_ledger.models.accounting import Account, AccountType
from cash_ledger.models.documents import AssetLiquidity, WalletType


# code -> (type, name)
DEFAULT_ACCOUNTS: dict[str, tuple[AccountType, str]] = {
    "EQUITY__OPENING_BALANCE": (AccountType.EQUITY, "Opening Balance"),
    "EQUITY__RETAINED_EARNINGS": (AccountType.EQUITY, "Retained Earnings"),
    "EQUITY__INTERCURRENCY": (AccountType.EQUITY, "Intercurrency Transfers"),
    "ASSET__CURRENT_ASSET__CASH": (AccountType.ASSET, "Cash"),
    "ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT": (AccountType.ASSET, "Bank and Equivalent"),
    "ASSET__NON_CURRENT_ASSET__HIGH_LIQUIDITY": (AccountType.ASSET, "High Liquidity Assets"),
    "ASSET__NON_CURRENT_ASSET__MEDIUM_LIQUIDITY": (AccountType.ASSET, "Medium Liquidity Assets"),
    "ASSET__NON_CURRENT_ASSET__LOW_LIQUIDITY": (AccountType.ASSET, "Low Liquidity Assets"),
    "ASSET__NON_CURRENT_ASSET__UNKNOWN_LIQUIDITY": (AccountType.ASSET, "Unknown Liquidity Assets"),
    "ASSET__ACCOUNTS_RECEIVABLE": (AccountType.ASSET, "Accounts Receivable"),
    "LIABILITY__ACCOUNTS_PAYABLE": (AccountType.LIABILITY, "Accounts Payable"),
    "LIABILITY__CREDIT_CARD_DEBT": (AccountType.LIABILITY, "Credit Card Debt"),
    "INCOME__COMBINED_INCOME": (AccountType.INCOME, "Combined Income"),
    "INCOME__MINOR_ADJUSTMENT": (AccountType.INCOME, "Minor Income Adjustment"),
    "INCOME__ASSET_APPRECIATION": (AccountType.INCOME, "Asset Appreciation"),
    "EXPENSE__COMBINED_EXPENSE": (AccountType.EXPENSE, "Combined Expense"),
    "EXPENSE__MINOR_ADJUSTMENT": (AccountType.EXPENSE, "Minor Expense Adjustment"),
    "EXPENSE__ASSET_DEPRECIATION": (AccountType.EXPENSE, "Asset Depreciation"),
}

EQUITY__OPENING_BALANCE = "EQUITY__OPENING_BALANCE"
EQUITY__RETAINED_EARNINGS = "EQUITY__RETAINED_EARNINGS"
EQUITY__INTERCURRENCY = "EQUITY__INTERCURRENCY"
ASSET__CURRENT_ASSET__CASH = "ASSET__CURRENT_ASSET__CASH"
ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT = "ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT"
ASSET__NON_CURRENT_ASSET__HIGH_LIQUIDITY = "ASSET__NON_CURRENT_ASSET__HIGH_LIQUIDITY"
ASSET__NON_CURRENT_ASSET__MEDIUM_LIQUIDITY = "ASSET__NON_CURRENT_ASSET__MEDIUM_LIQUIDITY"
ASSET__NON_CURRENT_ASSET__LOW_LIQUIDITY = "ASSET__NON_CURRENT_ASSET__LOW_LIQUIDITY"
ASSET__NON_CURRENT_ASSET__UNKNOWN_LIQUIDITY = "ASSET__NON_CURRENT_ASSET__UNKNOWN_LIQUIDITY"
ASSET__ACCOUNTS_RECEIVABLE = "ASSET__ACCOUNTS_RECEIVABLE"
LIABILITY__ACCOUNTS_PAYABLE = "LIABILITY__ACCOUNTS_PAYABLE"
LIABILITY__CREDIT_CARD_DEBT = "LIABILITY__CREDIT_CARD_DEBT"
INCOME__COMBINED_INCOME = "INCOME__COMBINED_INCOME"
INCOME__MINOR_ADJUSTMENT = "INCOME__MINOR_ADJUSTMENT"
INCOME__ASSET_APPRECIATION = "INCOME__ASSET_APPRECIATION"
EXPENSE__COMBINED_EXPENSE = "EXPENSE__COMBINED_EXPENSE"
EXPENSE__MINOR_ADJUSTMENT = "EXPENSE__MINOR_ADJUSTMENT"
EXPENSE__ASSET_DEPRECIATION = "EXPENSE__ASSET_DEPRECIATION"

LIQUIDITY_ACCOUNT_CODES: dict[str, str] = {
    AssetLiquidity.HIGH.value: ASSET__NON_CURRENT_ASSET__HIGH_LIQUIDITY,
    AssetLiquidity.MODERATE.value: ASSET__NON_CURRENT_ASSET__MEDIUM_LIQUIDITY,
    AssetLiquidity.LOW.value: ASSET__NON_CURRENT_ASSET__LOW_LIQUIDITY,
    AssetLiquidity.UNSURE.value: ASSET__NON_CURRENT_ASSET__UNKNOWN_LIQUIDITY,
}

ACCOUNT_TYPE_ORDER = [
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.INCOME,
    AccountType.EXPENSE,
]


def populate_accounts() -> tuple[dict[str, Account], list[Account]]:
    """Build the chart of accounts. Returns (account_map, account_list)."""
    account_map = {
        code: Account(code=code, name=name, type=account_type)
        for code, (account_type, name) in DEFAULT_ACCOUNTS.items()
    }
    return account_map, list(account_map.values())


def wallet_account_code(wallet_type: str) -> str:
    """Credit cards are liabilities, cash is cash, everything else is a bank."""
    if wallet_type == WalletType.CREDIT_CARD.value:
        return LIABILITY__CREDIT_CARD_DEBT
    if wallet_type == WalletType.CASH.value:
        return ASSET__CURRENT_ASSET__CASH
    return ASSET__CURRENT_ASSET__BANK_AND_EQUIVALENT


def liquidity_account_code(liquidity: str) -> str:
    return LIQUIDITY_ACCOUNT_CODES.get(liquidity, ASSET__NON_CURRENT_ASSET__UNKNOWN_LIQUIDITY)
