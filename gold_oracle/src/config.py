"""Oracle settings and validation.

Settings are collected by the CLI from arguments and environment variables
(see ``gold_oracle.main``) and validated once at startup. A missing or
invalid setting is fatal: the process exits before touching the network.
"""

from __future__ import annotations

from dataclasses import dataclass

from web3 import Web3

from .errors import ConfigurationError
from .fetchers import GoldApiFetcher

# (environment variable, attribute) pairs that must be set.
REQUIRED_SETTINGS = (
    ("GOLD_API_KEY", "gold_api_key"),
    ("RPC_URL", "rpc_url"),
    ("PRIVATE_KEY", "private_key"),
    ("CONTRACT_ADDRESS", "contract_address"),
)


@dataclass
class OracleSettings:
    """Runtime configuration of the oracle service.

    :ivar gold_api_key: GoldAPI.io access token.
    :ivar rpc_url: JSON-RPC endpoint of the network.
    :ivar private_key: Private key of the contract owner account.
    :ivar contract_address: Address of the deployed GoldOracle contract.
    :ivar api_key: Shared secret for protected HTTP routes (None disables them).
    :ivar update_interval_minutes: Minutes between scheduled cycles.
    :ivar max_retries: Fetch retries per cycle.
    :ivar retry_delay: Seconds between fetch retries.
    """

    gold_api_key: str | None = None
    rpc_url: str | None = None
    private_key: str | None = None
    contract_address: str | None = None
    gold_api_url: str = GoldApiFetcher.BASE_URL
    symbol: str = "XAU"
    currency: str = "USD"
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str | None = None
    update_interval_minutes: int = 15
    max_retries: int = 3
    retry_delay: float = 5.0
    fetch_timeout: float = 10.0
    confirmation_timeout: float = 120.0
    initial_delay: float = 10.0

    @property
    def update_interval_seconds(self) -> int:
        """Return the update interval in seconds."""
        return self.update_interval_minutes * 60

    def validate(self) -> None:
        """Check that required settings are present and values are in range.

        :raises ConfigurationError: Listing every missing variable, or the
            first out-of-range value.
        """
        missing = [env for env, attr in REQUIRED_SETTINGS if not getattr(self, attr)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please check your .env file and ensure all required variables are set."
            )

        if not Web3.is_address(self.contract_address):
            raise ConfigurationError(
                f"CONTRACT_ADDRESS is not a valid address: {self.contract_address}"
            )
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"PORT must be between 1 and 65535, got {self.port}")
        if self.update_interval_minutes < 1:
            raise ConfigurationError("Update interval must be at least 1 minute")
        if self.max_retries < 0:
            raise ConfigurationError("Max retries must not be negative")
        if self.retry_delay < 0:
            raise ConfigurationError("Retry delay must not be negative")
        if self.initial_delay < 0:
            raise ConfigurationError("Initial delay must not be negative")
        if self.fetch_timeout <= 0:
            raise ConfigurationError("Fetch timeout must be positive")
        if self.confirmation_timeout <= 0:
            raise ConfigurationError("Confirmation timeout must be positive")

    def summary(self) -> list[tuple[str, str]]:
        """Return (label, value) pairs for the startup banner, secrets redacted."""
        return [
            ("Quote Source", f"{self.gold_api_url}/{self.symbol}/{self.currency}"),
            ("RPC URL", str(self.rpc_url)),
            ("Contract", str(self.contract_address)),
            ("Listen", f"{self.host}:{self.port}"),
            ("Update Interval", f"{self.update_interval_minutes} min"),
            ("Max Retries", str(self.max_retries)),
            ("Retry Delay", f"{self.retry_delay}s"),
            ("Fetch Timeout", f"{self.fetch_timeout}s"),
            ("Confirm Timeout", f"{self.confirmation_timeout}s"),
            ("Manual Update", "enabled" if self.api_key else "disabled (API_KEY not set)"),
        ]
