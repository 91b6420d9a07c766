"""UpdateOrchestrator: One end-to-end price update cycle.

A cycle runs these steps sequentially:
    1. Fetch the spot quote and calculate prices, retrying on FetchError
    2. Read the current on-chain record
    3. Ask the UpdatePolicy whether the change is significant
    4. Submit the new prices (or skip) and report an UpdateResult

Cycles are serialized by a lock: the periodic loop and manual HTTP triggers
may race, and two overlapping cycles could both decide to write.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import FetchError
from .PriceCalculator import PriceSet, calculate_prices, format_usd
from .UpdatePolicy import UpdatePolicy

if TYPE_CHECKING:
    from .fetchers import BaseFetcher
    from .GoldOracleContract import GoldOracleContract
    from .LedgerSubmitter import LedgerSubmitter, SubmissionReceipt

logger = logging.getLogger(__name__)

NO_CHANGE_REASON = "no significant price change"


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one update cycle.

    :ivar updated: True if a transaction was confirmed.
    :ivar reason: Why the update was skipped (when updated is False).
    :ivar receipt: Confirmed transaction (when updated is True).
    :ivar prices: Prices that were submitted (when updated is True).
    """

    updated: bool
    reason: str | None = None
    receipt: SubmissionReceipt | None = None
    prices: PriceSet | None = None

    @classmethod
    def skipped(cls, reason: str = NO_CHANGE_REASON) -> UpdateResult:
        """Build a result for a skipped update."""
        return cls(updated=False, reason=reason)

    @classmethod
    def submitted(cls, receipt: SubmissionReceipt, prices: PriceSet) -> UpdateResult:
        """Build a result for a confirmed update."""
        return cls(updated=True, receipt=receipt, prices=prices)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used by the API and CLI."""
        if not self.updated or self.receipt is None or self.prices is None:
            return {"updated": False, "reason": self.reason}
        return {
            "updated": True,
            "transactionHash": self.receipt.transaction_id,
            "blockNumber": self.receipt.block_number,
            "gasUsed": str(self.receipt.gas_used),
            "prices": self.prices.to_dict(),
        }


class UpdateOrchestrator:
    """Composes fetch, calculate, decide and submit into one cycle.

    :ivar fetcher: Quote source.
    :ivar ledger: On-chain record binding.
    :ivar submitter: Transaction submitter.
    :ivar policy: Change threshold policy.
    :ivar max_retries: Retries after the first failed fetch.
    :ivar retry_delay: Seconds to wait between fetch attempts.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        ledger: GoldOracleContract,
        submitter: LedgerSubmitter,
        policy: UpdatePolicy | None = None,
        max_retries: int = 3,
        retry_delay: float = 5.0,
    ) -> None:
        """Initialize the orchestrator.

        :param fetcher: Quote fetcher.
        :param ledger: GoldOracle contract binding.
        :param submitter: Ledger submitter.
        :param policy: Update policy (default: UpdatePolicy()).
        :param max_retries: Fetch retries after the first attempt (default: 3).
        :param retry_delay: Delay between fetch attempts in seconds (default: 5.0).
        :raises ValueError: If max_retries or retry_delay is negative.
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if retry_delay < 0:
            raise ValueError("retry_delay must not be negative")

        self.fetcher = fetcher
        self.ledger = ledger
        self.submitter = submitter
        self.policy = policy or UpdatePolicy()
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._cycle_lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """Check if a cycle is currently running."""
        return self._cycle_lock.locked()

    async def fetch_prices(self) -> PriceSet:
        """Fetch a quote and calculate prices, retrying transient failures.

        Makes up to ``max_retries + 1`` attempts with ``retry_delay`` seconds
        between them. Only FetchError is retried; InvalidQuoteError is raised
        immediately.

        :returns: Calculated prices.
        :raises FetchError: The last fetch error once attempts are exhausted.
        :raises InvalidQuoteError: If the quote cannot be converted.
        """
        last_error: FetchError | None = None
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                logger.warning(
                    f"Retry attempt {attempt}/{self.max_retries} "
                    f"after {self.retry_delay}s"
                )
                await asyncio.sleep(self.retry_delay)

            try:
                quote = await self.fetcher.fetch()
            except FetchError as e:
                logger.warning(f"Fetch attempt {attempt + 1} failed: {e}")
                last_error = e
                continue

            prices = calculate_prices(quote.spot_price_per_ounce)
            self._log_prices(prices)
            return prices

        logger.error("Max retries reached, unable to fetch gold prices")
        assert last_error is not None
        raise last_error

    async def run_cycle(self) -> UpdateResult:
        """Run one update cycle.

        :returns: UpdateResult describing whether an update was submitted.
        :raises FetchError: If the quote could not be fetched after retries.
        :raises InvalidQuoteError: If the quote is not a valid price.
        :raises LedgerReadError: If the on-chain record cannot be read.
        :raises SubmissionError: If the update transaction fails.
        """
        async with self._cycle_lock:
            logger.info("Starting price update process...")

            prices = await self.fetch_prices()

            # web3 calls block, keep them off the event loop
            current = await asyncio.to_thread(self.ledger.read)

            if not self.policy.should_update(current, prices):
                logger.info("Prices have not changed significantly, skipping update")
                return UpdateResult.skipped()

            receipt = await asyncio.to_thread(self.submitter.submit, prices)
            return UpdateResult.submitted(receipt, prices)

    @staticmethod
    def _log_prices(prices: PriceSet) -> None:
        """Log calculated prices in raw and human-readable form."""
        logger.info("Calculated prices:")
        logger.info(f"  Per Gram: {prices.per_gram} ({format_usd(prices.per_gram)})")
        logger.info(f"  Per Ounce: {prices.per_ounce} ({format_usd(prices.per_ounce)})")
        logger.info(
            f"  24K per Gram: {prices.per_karat_24} ({format_usd(prices.per_karat_24)})"
        )
        logger.info(
            f"  22K per Gram: {prices.per_karat_22} ({format_usd(prices.per_karat_22)})"
        )
        logger.info(
            f"  18K per Gram: {prices.per_karat_18} ({format_usd(prices.per_karat_18)})"
        )
