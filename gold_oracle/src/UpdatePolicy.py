"""UpdatePolicy: Decide whether a new price is worth an on-chain write.

Every write costs gas, so the oracle only updates when the price per gram
moved by more than a fixed number of raw units (default 10000, i.e. 0.0001
USD at the 10^8 scale). An uninitialized record is always updated.

.. code-block:: python

    >>> record = LedgerRecord(calculate_prices("2037.50"), last_updated_at=1700000000)
    >>> UpdatePolicy().should_update(record, calculate_prices("2037.50"))
    False
    >>> UpdatePolicy().should_update(record, calculate_prices("2040.00"))
    True
"""

from __future__ import annotations

import logging

from .GoldOracleContract import LedgerRecord
from .PriceCalculator import PriceSet

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 10_000


class UpdatePolicy:
    """Price-change threshold policy.

    Only ``per_gram`` is compared. The karat fields are derived from the same
    spot price, so they move together with it.

    :ivar threshold: Minimum absolute per-gram change (raw units) to update.
    """

    def __init__(self, threshold: int = DEFAULT_THRESHOLD) -> None:
        """Initialize the policy.

        :param threshold: Minimum absolute change in raw units (default: 10000).
        :raises ValueError: If threshold is negative.
        """
        if threshold < 0:
            raise ValueError("threshold must not be negative")
        self.threshold = threshold

    def should_update(self, current: LedgerRecord, candidate: PriceSet) -> bool:
        """Check whether candidate prices justify an on-chain update.

        :param current: Record currently stored on-chain.
        :param candidate: Freshly calculated prices.
        :returns: True if never initialized or per-gram diff exceeds threshold.
        """
        if not current.is_initialized:
            logger.info("On-chain record was never updated, update required")
            return True

        diff = abs(current.prices.per_gram - candidate.per_gram)
        logger.debug(
            f"Per-gram change: {diff} raw units (threshold {self.threshold})"
        )
        return diff > self.threshold
