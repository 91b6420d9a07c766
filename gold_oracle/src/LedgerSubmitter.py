"""LedgerSubmitter: Fee-aware transaction submission with confirmation tracking.

Submission steps:
    1. Estimate gas for the contract call (failure aborts, nothing is sent)
    2. Query EIP-1559 fee levels, falling back to fixed defaults
    3. Send the transaction, signed by the local account middleware
    4. Wait (bounded) for one confirmation and check the receipt status

There is no retry here: a failed submission is fatal for the current cycle
and the next cycle starts from a fresh on-chain read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from .errors import SubmissionError
from .GoldOracleContract import GoldOracleContract
from .PriceCalculator import PriceSet

if TYPE_CHECKING:
    from web3.contract.contract import ContractFunction

logger = logging.getLogger(__name__)

# Fallback fee levels used when the node cannot report them.
DEFAULT_MAX_PRIORITY_FEE_PER_GAS = Web3.to_wei(30, "gwei")
DEFAULT_MAX_FEE_PER_GAS = Web3.to_wei(50, "gwei")

DEFAULT_CONFIRMATION_TIMEOUT = 120.0

# RPC and transport failures surfaced by web3 (RPC errors may be ValueError,
# HTTP transport errors derive from OSError).
RPC_ERRORS = (Web3Exception, ValueError, OSError)


@dataclass(frozen=True)
class SubmissionReceipt:
    """Confirmed transaction summary.

    :ivar transaction_id: 0x-prefixed transaction hash.
    :ivar block_number: Block the transaction was included in.
    :ivar gas_used: Gas consumed by the transaction.
    """

    transaction_id: str
    block_number: int
    gas_used: int


class LedgerSubmitter:
    """Submits writes to the GoldOracle contract.

    :ivar w3: Web3 instance whose default account signs transactions.
    :ivar ledger: Contract binding used to build calls.
    :ivar confirmation_timeout: Seconds to wait for a receipt.
    :ivar default_max_fee_per_gas: Fallback max fee (wei).
    :ivar default_max_priority_fee_per_gas: Fallback priority fee (wei).
    """

    def __init__(
        self,
        w3: Web3,
        ledger: GoldOracleContract,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        default_max_fee_per_gas: int = DEFAULT_MAX_FEE_PER_GAS,
        default_max_priority_fee_per_gas: int = DEFAULT_MAX_PRIORITY_FEE_PER_GAS,
        poll_latency: float = 1.0,
    ) -> None:
        """Initialize the submitter.

        :param w3: Web3 instance with a signing default account.
        :param ledger: GoldOracle contract binding.
        :param confirmation_timeout: Max seconds to wait for confirmation
            (default: 120).
        :param default_max_fee_per_gas: Max fee fallback in wei (default: 50 gwei).
        :param default_max_priority_fee_per_gas: Priority fee fallback in wei
            (default: 30 gwei).
        :param poll_latency: Seconds between receipt polls (default: 1.0).
        :raises ValueError: If the timeout is not positive.
        """
        if confirmation_timeout <= 0:
            raise ValueError("confirmation_timeout must be positive")

        self.w3 = w3
        self.ledger = ledger
        self.confirmation_timeout = confirmation_timeout
        self.default_max_fee_per_gas = default_max_fee_per_gas
        self.default_max_priority_fee_per_gas = default_max_priority_fee_per_gas
        self.poll_latency = poll_latency

    @property
    def sender(self) -> Any:
        """Return the account address transactions are sent from."""
        return self.w3.eth.default_account

    def submit(self, prices: PriceSet) -> SubmissionReceipt:
        """Write new prices to the contract and wait for confirmation.

        :param prices: Prices to store.
        :returns: Receipt summary of the confirmed transaction.
        :raises SubmissionError: On estimation, send, revert or timeout failure.
        """
        logger.info("Preparing to update contract prices...")
        call = self.ledger.update_prices_call(prices)
        return self._send(call, "updatePrices")

    def transfer_ownership(self, new_owner: str) -> SubmissionReceipt:
        """Hand write authority over to another account.

        :param new_owner: Address of the new owner.
        :returns: Receipt summary of the confirmed transaction.
        :raises SubmissionError: On invalid address or submission failure.
        """
        logger.info(f"Preparing to transfer ownership to {new_owner}...")
        call = self.ledger.transfer_ownership_call(new_owner)
        return self._send(call, "transferOwnership")

    def estimate_gas(self, call: ContractFunction) -> int:
        """Estimate gas for a contract call.

        :param call: Unsent contract function call.
        :returns: Gas estimate.
        :raises SubmissionError: If estimation fails (e.g., the call would revert).
        """
        try:
            gas = call.estimate_gas({"from": self.sender})
        except RPC_ERRORS as e:
            raise SubmissionError(f"Gas estimation failed: {e}") from e
        logger.info(f"Estimated gas: {gas}")
        return int(gas)

    def fee_params(self) -> dict[str, int]:
        """Select EIP-1559 fee parameters.

        Uses the node's suggested priority fee and ``2 * baseFee + priority``
        as max fee. Each value falls back to its default independently when
        the node cannot supply it.

        :returns: Dict with maxFeePerGas and maxPriorityFeePerGas (wei).
        """
        priority_fee: int | None
        try:
            priority_fee = int(self.w3.eth.max_priority_fee)
        except RPC_ERRORS as e:
            logger.warning(f"Priority fee unavailable, using default: {e}")
            priority_fee = None

        base_fee: int | None
        try:
            base_fee = self.w3.eth.get_block("latest").get("baseFeePerGas")
        except RPC_ERRORS as e:
            logger.warning(f"Base fee unavailable, using default: {e}")
            base_fee = None

        if priority_fee is None:
            priority_fee = self.default_max_priority_fee_per_gas

        if base_fee is None:
            max_fee = self.default_max_fee_per_gas
        else:
            max_fee = 2 * int(base_fee) + priority_fee

        # A priority fee above the max fee is rejected by the node
        max_fee = max(max_fee, priority_fee)

        logger.info(f"Max fee per gas: {Web3.from_wei(max_fee, 'gwei')} gwei")
        logger.info(
            f"Max priority fee per gas: {Web3.from_wei(priority_fee, 'gwei')} gwei"
        )
        return {"maxFeePerGas": max_fee, "maxPriorityFeePerGas": priority_fee}

    def _send(self, call: ContractFunction, label: str) -> SubmissionReceipt:
        """Estimate, price, send and confirm a contract call.

        :param call: Unsent contract function call.
        :param label: Function name for logging.
        :returns: Receipt summary.
        :raises SubmissionError: On any failure along the way.
        """
        gas = self.estimate_gas(call)
        tx_params = {"from": self.sender, "gas": gas, **self.fee_params()}

        try:
            tx_hash = call.transact(tx_params)
        except RPC_ERRORS as e:
            raise SubmissionError(f"Failed to send {label} transaction: {e}") from e

        transaction_id = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {transaction_id}")
        logger.info("Waiting for confirmation...")

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_latency,
            )
        except TimeExhausted as e:
            raise SubmissionError(
                f"Transaction {transaction_id} not confirmed within "
                f"{self.confirmation_timeout}s"
            ) from e
        except RPC_ERRORS as e:
            raise SubmissionError(
                f"Failed waiting for transaction {transaction_id}: {e}"
            ) from e

        if receipt["status"] != 1:
            raise SubmissionError(
                f"Transaction {transaction_id} reverted in block {receipt['blockNumber']}"
            )

        result = SubmissionReceipt(
            transaction_id=transaction_id,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
        )
        logger.info(f"Transaction confirmed in block {result.block_number}")
        logger.info(f"Gas used: {result.gas_used}")
        return result
