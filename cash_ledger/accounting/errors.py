"""
Accounting Errors

All of these are data-integrity failures, not user mistakes. They abort
the whole build; no partial journal is ever returned.
"""

from typing import Optional


class AccountingError(Exception):
    """Base exception for the accounting engine."""
    pass


class MalformattedDataError(AccountingError):
    """A record is inconsistent with its own declared type."""

    def __init__(self, record_type: str, message: str, record_id: Optional[str] = None):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"Malformatted Data: {message}")


class MissingCurrencyError(AccountingError):
    """A posting references a currency absent from the currency list."""

    def __init__(self, currency_id: str, serial: Optional[int] = None):
        self.currency_id = currency_id
        self.serial = serial
        super().__init__(f"Missing Currency: {currency_id}")


class UnknownAccountError(AccountingError):
    """An account code that is not part of the chart of accounts."""
    pass
