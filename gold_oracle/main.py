#!/usr/bin/env python3
"""Gold Price Oracle.

Fetches the gold spot price from GoldAPI.io, derives per-gram, per-ounce and
per-karat prices, and writes them to the GoldOracle contract whenever the
price moved significantly.

Configure via environment variables or a .env file. See --help.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from .src.api import create_app
from .src.config import OracleSettings
from .src.errors import ConfigurationError, OracleError
from .src.fetchers import GoldApiFetcher
from .src.GoldOracle import GoldOracle

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Defaults are read from the environment at call time, so a .env file
    must be loaded before calling this.

    :returns: Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        description="Gold Price Oracle: GoldAPI.io spot price to on-chain GoldOracle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the HTTP API and update every 15 minutes
  python -m gold_oracle.main

  # Run a single update cycle and exit
  python -m gold_oracle.main --once

  # Hand contract ownership to another account
  python -m gold_oracle.main --transfer-ownership 0xNewOwner

Environment variables (CLI args take precedence):
  GOLD_API_KEY, GOLD_API_URL, GOLD_SYMBOL, GOLD_CURRENCY, RPC_URL,
  PRIVATE_KEY, CONTRACT_ADDRESS, HOST, PORT, API_KEY,
  UPDATE_INTERVAL_MINUTES, MAX_RETRIES, RETRY_DELAY_SECONDS, FETCH_TIMEOUT,
  CONFIRMATION_TIMEOUT, INITIAL_DELAY

PRIVATE_KEY and API_KEY are only read from the environment.
""",
    )

    parser.add_argument(
        "--gold-api-key",
        dest="gold_api_key",
        type=str,
        help="GoldAPI.io access token",
        default=os.environ.get("GOLD_API_KEY"),
    )

    parser.add_argument(
        "--gold-api-url",
        dest="gold_api_url",
        type=str,
        help=f"GoldAPI base URL (default: {GoldApiFetcher.BASE_URL})",
        default=os.environ.get("GOLD_API_URL") or GoldApiFetcher.BASE_URL,
    )

    parser.add_argument(
        "--symbol",
        type=str,
        help="Metal symbol to quote (default: XAU)",
        default=os.environ.get("GOLD_SYMBOL") or "XAU",
    )

    parser.add_argument(
        "--currency",
        type=str,
        help="Quote currency (default: USD)",
        default=os.environ.get("GOLD_CURRENCY") or "USD",
    )

    parser.add_argument(
        "--rpc-url",
        dest="rpc_url",
        type=str,
        help="JSON-RPC endpoint of the network",
        default=os.environ.get("RPC_URL"),
    )

    parser.add_argument(
        "--contract-address",
        dest="contract_address",
        type=str,
        help="Address of the deployed GoldOracle contract",
        default=os.environ.get("CONTRACT_ADDRESS"),
    )

    parser.add_argument(
        "--host",
        type=str,
        help="HTTP listen address (default: 0.0.0.0)",
        default=os.environ.get("HOST") or "0.0.0.0",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="HTTP port (default: 3000)",
        default=int(os.environ.get("PORT") or "3000"),
    )

    parser.add_argument(
        "--update-interval",
        dest="update_interval",
        type=int,
        help="Minutes between scheduled updates (minimum: 1, default: 15)",
        default=int(os.environ.get("UPDATE_INTERVAL_MINUTES") or "15"),
    )

    parser.add_argument(
        "--max-retries",
        dest="max_retries",
        type=int,
        help="Quote fetch retries per cycle (default: 3)",
        default=int(os.environ.get("MAX_RETRIES") or "3"),
    )

    parser.add_argument(
        "--retry-delay",
        dest="retry_delay",
        type=float,
        help="Seconds between quote fetch retries (default: 5.0)",
        default=float(os.environ.get("RETRY_DELAY_SECONDS") or "5.0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for quote requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "--confirmation-timeout",
        dest="confirmation_timeout",
        type=float,
        help="Seconds to wait for transaction confirmation (default: 120)",
        default=float(os.environ.get("CONFIRMATION_TIMEOUT") or "120"),
    )

    parser.add_argument(
        "--initial-delay",
        dest="initial_delay",
        type=float,
        help="Seconds before the first scheduled update (default: 10)",
        default=float(os.environ.get("INITIAL_DELAY") or "10"),
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single update cycle, print the result and exit",
    )
    mode.add_argument(
        "--transfer-ownership",
        dest="new_owner",
        metavar="ADDRESS",
        type=str,
        help="Transfer contract ownership to ADDRESS and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> OracleSettings:
    """Build settings from parsed arguments and env-only secrets.

    :param args: Parsed CLI arguments.
    :returns: Unvalidated OracleSettings.
    """
    return OracleSettings(
        gold_api_key=args.gold_api_key,
        rpc_url=args.rpc_url,
        private_key=os.environ.get("PRIVATE_KEY"),
        contract_address=args.contract_address,
        gold_api_url=args.gold_api_url,
        symbol=args.symbol,
        currency=args.currency,
        host=args.host,
        port=args.port,
        api_key=os.environ.get("API_KEY") or None,
        update_interval_minutes=args.update_interval,
        max_retries=args.max_retries,
        retry_delay=args.retry_delay,
        fetch_timeout=args.fetch_timeout,
        confirmation_timeout=args.confirmation_timeout,
        initial_delay=args.initial_delay,
    )


async def run_once(oracle: GoldOracle) -> dict:
    """Run one update cycle and release resources.

    :param oracle: Oracle to run.
    :returns: JSON-serializable result.
    """
    try:
        result = await oracle.run_cycle()
    finally:
        await oracle.close()
    return result.to_dict()


def main() -> None:
    """Main entry point for the Gold Price Oracle CLI."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    settings = settings_from_args(args)
    try:
        settings.validate()
    except ConfigurationError as e:
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    # Log configuration
    logger.info("=" * 60)
    logger.info("Gold Price Oracle")
    logger.info("=" * 60)
    for label, value in settings.summary():
        logger.info(f"{label + ':':<18} {value}")
    logger.info("=" * 60)

    try:
        oracle = GoldOracle.from_settings(settings)

        if args.once:
            print(json.dumps(asyncio.run(run_once(oracle)), indent=2))
            return

        if args.new_owner:
            receipt = oracle.transfer_ownership(args.new_owner)
            logger.info(
                f"Ownership transferred to {args.new_owner} "
                f"in transaction {receipt.transaction_id}"
            )
            return

        app = create_app(oracle)
        logger.info(f"Gold Oracle API server running on port {settings.port}")
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except OracleError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    except Exception:
        logger.exception("Uncaught exception")
        sys.exit(1)


if __name__ == "__main__":
    main()
