"""GoldOracleContract: Typed access to the on-chain GoldOracle record.

The contract keeps five fixed-point prices plus the timestamp of the last
update. Reads are open to anyone; writes are restricted to the owner.
Raw contract tuples are validated here into a :class:`LedgerRecord` before
they reach the update pipeline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Sequence

from web3 import Web3
from web3.exceptions import Web3Exception

from .errors import LedgerReadError, SubmissionError
from .PriceCalculator import MAX_UINT256, PriceSet

if TYPE_CHECKING:
    from web3.contract import Contract
    from web3.contract.contract import ContractFunction

logger = logging.getLogger(__name__)

# A record older than this is stale (mirrors STALENESS_THRESHOLD on-chain).
STALENESS_THRESHOLD = 3600

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class LedgerRecord:
    """The prices currently stored on-chain.

    :ivar prices: Stored fixed-point prices.
    :ivar last_updated_at: Unix timestamp of the last update, 0 if never.
    """

    prices: PriceSet
    last_updated_at: int

    @property
    def is_initialized(self) -> bool:
        """Check if the record has ever been written."""
        return self.last_updated_at != 0

    def is_stale(
        self, now: float | None = None, threshold: int = STALENESS_THRESHOLD
    ) -> bool:
        """Check if the record is missing or older than the freshness window.

        :param now: Current unix time (default: time.time()).
        :param threshold: Freshness window in seconds (default: 3600).
        :returns: True if never updated or older than threshold.
        """
        if not self.is_initialized:
            return True
        if now is None:
            now = time.time()
        return now - self.last_updated_at > threshold

    def last_updated_iso(self) -> str | None:
        """Return the last update time as ISO 8601, or None if never updated."""
        if not self.is_initialized:
            return None
        return datetime.fromtimestamp(self.last_updated_at, tz=timezone.utc).isoformat()

    @classmethod
    def from_contract_tuple(cls, raw: Sequence[Any]) -> LedgerRecord:
        """Parse the getAllPrices() return value.

        :param raw: Sequence (gram, ounce, k24, k22, k18, lastUpdated).
        :returns: Validated LedgerRecord.
        :raises LedgerReadError: If the tuple has the wrong shape or values.
        """
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) != 6:
            raise LedgerReadError(f"Unexpected getAllPrices() result: {raw!r}")

        values: list[int] = []
        for value in raw:
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise LedgerReadError(f"Invalid value in getAllPrices() result: {raw!r}")
            values.append(value)

        gram, ounce, k24, k22, k18, last_updated = values
        return cls(
            prices=PriceSet(
                per_gram=gram,
                per_ounce=ounce,
                per_karat_24=k24,
                per_karat_22=k22,
                per_karat_18=k18,
            ),
            last_updated_at=last_updated,
        )


class GoldOracleContract:
    """Read/write binding for a deployed GoldOracle contract.

    :ivar contract: web3 Contract instance.
    """

    def __init__(self, contract: Contract) -> None:
        """Initialize the binding.

        :param contract: web3 Contract bound to the GoldOracle ABI.
        """
        self.contract = contract

    @property
    def address(self) -> str:
        """Return the contract address."""
        return self.contract.address

    def read(self) -> LedgerRecord:
        """Read the current on-chain record.

        :returns: Validated LedgerRecord.
        :raises LedgerReadError: If the call fails or returns malformed data.
        """
        try:
            raw = self.contract.functions.getAllPrices().call()
        except (Web3Exception, ValueError, OSError) as e:
            raise LedgerReadError(f"Failed to read contract prices: {e}") from e
        return LedgerRecord.from_contract_tuple(raw)

    def is_stale(self) -> bool:
        """Ask the contract whether its record is stale.

        :returns: Result of the isStale() view.
        :raises LedgerReadError: If the call fails.
        """
        try:
            return bool(self.contract.functions.isStale().call())
        except (Web3Exception, ValueError, OSError) as e:
            raise LedgerReadError(f"Failed to check staleness: {e}") from e

    def owner(self) -> str:
        """Return the address authorized to write prices.

        :raises LedgerReadError: If the call fails.
        """
        try:
            return self.contract.functions.owner().call()
        except (Web3Exception, ValueError, OSError) as e:
            raise LedgerReadError(f"Failed to read contract owner: {e}") from e

    def update_prices_call(self, prices: PriceSet) -> ContractFunction:
        """Build the updatePrices() call for a PriceSet.

        :param prices: Prices to write; every field must be positive.
        :returns: Unsent contract function call.
        :raises SubmissionError: If any price is zero (the contract would revert)
            or does not fit a uint256.
        """
        zero_fields = [name for name, value in prices.to_dict().items() if value <= 0]
        if zero_fields:
            raise SubmissionError(f"Refusing to submit non-positive prices: {zero_fields}")
        oversized = [name for name, value in prices.to_dict().items() if value > MAX_UINT256]
        if oversized:
            raise SubmissionError(f"Refusing to submit prices above uint256: {oversized}")
        return self.contract.functions.updatePrices(*prices.as_args())

    def transfer_ownership_call(self, new_owner: str) -> ContractFunction:
        """Build the transferOwnership() call.

        :param new_owner: Address of the new owner.
        :returns: Unsent contract function call.
        :raises SubmissionError: If the address is invalid or the zero address.
        """
        if not Web3.is_address(new_owner):
            raise SubmissionError(f"Invalid new owner address: {new_owner}")
        checksum = Web3.to_checksum_address(new_owner)
        if checksum == ZERO_ADDRESS:
            raise SubmissionError("New owner is the zero address")
        return self.contract.functions.transferOwnership(checksum)
