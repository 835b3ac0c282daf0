"""
Accounting Cache

Holds the last built journal until any document changes.

DESIGN DECISION: Invalidation is coarse. Any upsert or removal, in any
collection, drops the cached result. Nothing is recomputed incrementally.

The generation counter guards against a race: a build that started before
an invalidation must not store its (stale) result afterwards.
"""

from typing import Optional

import structlog

from cash_ledger.models.accounting import AccountingResult
from cash_ledger.services.storage import DocumentChange


logger = structlog.get_logger()


class AccountingCache:
    """Single-slot cache owned by the composition root."""

    def __init__(self):
        self._result: Optional[AccountingResult] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self) -> Optional[AccountingResult]:
        return self._result

    def store(self, result: AccountingResult, generation: int) -> bool:
        """
        Keep a build result.

        Returns False (and keeps nothing) when the cache was invalidated
        after the build read its generation.
        """
        if generation != self._generation:
            logger.info(
                "journal_cache_store_skipped",
                build_generation=generation,
                current_generation=self._generation,
            )
            return False
        self._result = result
        return True

    def invalidate(self, change: Optional[DocumentChange] = None) -> None:
        """Drop the cached result. Usable directly as a store change listener."""
        self._generation += 1
        had_result = self._result is not None
        self._result = None
        logger.info(
            "journal_cache_invalidated",
            generation=self._generation,
            had_result=had_result,
            action=change.action if change else None,
            collection=change.collection if change else None,
        )
