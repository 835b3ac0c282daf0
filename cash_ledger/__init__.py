"""
Cash Ledger - Source Package

The double-entry accounting engine behind a personal finance ledger.
Source records (expenses, incomes, transfers, asset trades, loans) are
derived into a journal, from which ledgers and trial balances are built.

DESIGN PRINCIPLES:
1. The journal is derived, never stored
2. Fail early, fail visibly on corrupt data
3. Every currency balances on its own
4. Every report must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Cash Ledger Team"
