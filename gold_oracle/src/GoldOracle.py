"""GoldOracle: Service context and periodic update loop.

This module wires the oracle components together once at startup:
    - Web3 connection with a local signing account (ContractUtility)
    - GoldAPI.io quote fetcher
    - GoldOracle contract binding and transaction submitter
    - UpdateOrchestrator running one fetch/decide/submit cycle

The resulting GoldOracle object is passed explicitly to the HTTP API and
the CLI; there is no module-level connection state. Its run() coroutine
triggers a cycle every update interval and never lets a failed cycle stop
the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .ContractUtility import ContractUtility
from .errors import LedgerReadError, OracleError
from .fetchers import BaseFetcher, GoldApiFetcher
from .GoldOracleContract import GoldOracleContract, LedgerRecord
from .LedgerSubmitter import LedgerSubmitter, SubmissionReceipt
from .PriceCalculator import PriceSet
from .UpdateOrchestrator import UpdateOrchestrator, UpdateResult

if TYPE_CHECKING:
    from .config import OracleSettings

logger = logging.getLogger(__name__)


class GoldOracle:
    """Main service object for the gold price oracle.

    :ivar settings: Validated settings.
    :ivar ledger: GoldOracle contract binding.
    :ivar submitter: Transaction submitter.
    :ivar orchestrator: Update cycle orchestrator.
    :ivar update_interval: Seconds between scheduled cycles.
    :ivar initial_delay: Seconds before the first scheduled cycle.
    """

    def __init__(
        self,
        settings: OracleSettings,
        ledger: GoldOracleContract,
        submitter: LedgerSubmitter,
        orchestrator: UpdateOrchestrator,
    ) -> None:
        """Initialize the oracle from already constructed components.

        Use :meth:`from_settings` to build the components from configuration.

        :param settings: Validated settings.
        :param ledger: GoldOracle contract binding.
        :param submitter: Transaction submitter.
        :param orchestrator: Update cycle orchestrator.
        """
        self.settings = settings
        self.ledger = ledger
        self.submitter = submitter
        self.orchestrator = orchestrator
        self.update_interval = settings.update_interval_seconds
        self.initial_delay = settings.initial_delay

    @classmethod
    def from_settings(cls, settings: OracleSettings) -> GoldOracle:
        """Connect to the network and build all components.

        :param settings: Settings to use; validated before connecting.
        :returns: Ready-to-run GoldOracle.
        :raises ConfigurationError: If settings are missing or invalid.
        """
        settings.validate()

        logger.info("Initializing blockchain connection...")
        contract_utility = ContractUtility(settings.rpc_url, settings.private_key)
        ledger = GoldOracleContract(
            contract_utility.get_contract(settings.contract_address)
        )
        logger.info(f"Connected to contract at: {ledger.address}")
        logger.info(f"Using wallet address: {contract_utility.account.address}")
        cls.check_owner(ledger, contract_utility.account.address)

        fetcher = GoldApiFetcher(
            api_key=settings.gold_api_key,
            timeout=settings.fetch_timeout,
            base_url=settings.gold_api_url,
            symbol=settings.symbol,
            currency=settings.currency,
        )
        submitter = LedgerSubmitter(
            contract_utility.w3,
            ledger,
            confirmation_timeout=settings.confirmation_timeout,
        )
        orchestrator = UpdateOrchestrator(
            fetcher=fetcher,
            ledger=ledger,
            submitter=submitter,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
        )
        return cls(settings, ledger, submitter, orchestrator)

    @staticmethod
    def check_owner(ledger: GoldOracleContract, address: str) -> bool:
        """Warn if the signing account cannot write to the contract.

        :param ledger: GoldOracle contract binding.
        :param address: Address of the signing account.
        :returns: True if the account is the contract owner.
        """
        try:
            owner = ledger.owner()
        except LedgerReadError as e:
            logger.warning(f"Could not verify contract owner: {e}")
            return False

        if owner.lower() != address.lower():
            logger.warning(
                f"Wallet {address} is not the contract owner ({owner}); "
                "price updates will revert"
            )
            return False
        return True

    async def run_cycle(self) -> UpdateResult:
        """Run one update cycle (see UpdateOrchestrator.run_cycle)."""
        if self.orchestrator.busy:
            logger.info("An update cycle is already running, waiting for it to finish")
        return await self.orchestrator.run_cycle()

    async def fetch_prices(self) -> PriceSet:
        """Fetch and calculate prices without touching the ledger."""
        return await self.orchestrator.fetch_prices()

    async def read_record(self) -> LedgerRecord:
        """Read the current on-chain record."""
        return await asyncio.to_thread(self.ledger.read)

    async def is_stale(self) -> bool:
        """Ask the contract whether its record is stale."""
        return await asyncio.to_thread(self.ledger.is_stale)

    def transfer_ownership(self, new_owner: str) -> SubmissionReceipt:
        """Transfer write authority over the contract to another account."""
        return self.submitter.transfer_ownership(new_owner)

    async def scheduled_update(self) -> UpdateResult | None:
        """Run one cycle on behalf of the timer.

        Failures are logged and swallowed so the next tick still runs.

        :returns: The cycle result, or None if the cycle failed.
        """
        logger.info("=== Scheduled price update started ===")
        try:
            result = await self.run_cycle()
        except OracleError as e:
            logger.error(f"Scheduled price update failed: {e}")
            return None
        except Exception:
            logger.exception("Scheduled price update failed unexpectedly")
            return None

        if result.updated and result.receipt is not None:
            logger.info("Scheduled update completed successfully")
            logger.info(f"Transaction: {result.receipt.transaction_id}")
        else:
            logger.info(f"Scheduled update skipped: {result.reason}")
        return result

    async def run(self) -> None:
        """Run the periodic update loop until cancelled.

        Waits ``initial_delay`` seconds, then runs a cycle every
        ``update_interval`` seconds.
        """
        logger.info(
            f"Updates will run every {self.update_interval // 60} minutes, "
            f"first run in {self.initial_delay}s"
        )
        try:
            await asyncio.sleep(self.initial_delay)
            while True:
                await self.scheduled_update()
                await asyncio.sleep(self.update_interval)
        finally:
            await self.close()

    async def close(self) -> None:
        """Release the shared HTTP client."""
        await BaseFetcher.close_shared_client()
