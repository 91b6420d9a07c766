"""
Gold Price Oracle - Update Pipeline

This module provides the conditional on-chain price update pipeline:
- fetchers: GoldAPI.io quote fetcher
- PriceCalculator: Spot price to fixed-point per-gram/ounce/karat prices
- UpdatePolicy: Price-change threshold for on-chain writes
- GoldOracleContract: Typed reads of the on-chain record
- LedgerSubmitter: Fee-aware transaction submission and confirmation
- UpdateOrchestrator: One fetch/decide/submit cycle with fetch retry
- GoldOracle: Service context and periodic update loop
"""

from .errors import (
    ConfigurationError,
    FetchError,
    InvalidQuoteError,
    LedgerReadError,
    OracleError,
    SubmissionError,
)
from .GoldOracle import GoldOracle
from .GoldOracleContract import STALENESS_THRESHOLD, GoldOracleContract, LedgerRecord
from .LedgerSubmitter import LedgerSubmitter, SubmissionReceipt
from .PriceCalculator import NUM_DECIMALS, PriceSet, calculate_prices
from .UpdateOrchestrator import UpdateOrchestrator, UpdateResult
from .UpdatePolicy import UpdatePolicy

__all__ = [
    "ConfigurationError",
    "FetchError",
    "GoldOracle",
    "GoldOracleContract",
    "InvalidQuoteError",
    "LedgerReadError",
    "LedgerRecord",
    "LedgerSubmitter",
    "NUM_DECIMALS",
    "OracleError",
    "PriceSet",
    "STALENESS_THRESHOLD",
    "SubmissionError",
    "SubmissionReceipt",
    "UpdateOrchestrator",
    "UpdatePolicy",
    "UpdateResult",
    "calculate_prices",
]
