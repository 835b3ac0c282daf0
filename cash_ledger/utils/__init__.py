"""Small shared helpers."""

from cash_ledger.utils.amounts import MONEY_QUANT, as_amount
from cash_ledger.utils.pool import map_bounded

__all__ = ["MONEY_QUANT", "as_amount", "map_bounded"]
