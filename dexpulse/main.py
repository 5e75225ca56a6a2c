#!/usr/bin/env python3
"""DexPulse.

Keeps a live view of token pair prices across DEX liquidity pools by polling
pool reserves and refreshing on swap events, and periodically logs the widest
cross-exchange price gap for every configured pair.

Run with a JSON exchange config. See exchanges.example.json for the format.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.ContractUtility import NETWORKS
from .src.ExchangeConfig import EngineConfig, load_config
from .src.PricePulse import PricePulse
from .src.Web3ChainClient import Web3ChainClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    :returns: Configured parser, with environment-variable defaults.
    """
    parser = argparse.ArgumentParser(
        description="DexPulse: Real-time DEX price aggregation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available networks:
  {', '.join(NETWORKS)} (or pass an RPC URL, or set RPC_URL)

Examples:
  # Track the pairs in a config file on mainnet
  python -m dexpulse.main --config exchanges.json --network mainnet

  # Faster polling, report every 30 seconds
  python -m dexpulse.main --config exchanges.json --poll-interval 5000 \\
      --report-period 30

Environment variables (CLI args take precedence):
  EXCHANGES_CONFIG, NETWORK, RPC_URL, POLL_INTERVAL_MS, LOG_POLL_INTERVAL,
  REPORT_PERIOD, MAX_AGE_MS
""",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to the JSON exchange config",
        default=os.environ.get("EXCHANGES_CONFIG") or "exchanges.json",
    )

    parser.add_argument(
        "--network",
        type=str,
        help=f"Network to connect to ({', '.join(NETWORKS)}) or an RPC URL",
        default=os.environ.get("NETWORK") or "mainnet",
    )

    parser.add_argument(
        "--poll-interval",
        dest="poll_interval",
        type=int,
        help="Milliseconds between polling cycles (overrides the config file)",
        default=int(os.environ["POLL_INTERVAL_MS"]) if os.environ.get("POLL_INTERVAL_MS") else None,
    )

    parser.add_argument(
        "--log-poll-interval",
        dest="log_poll_interval",
        type=float,
        help="Seconds between swap event log polls (default: 2.0)",
        default=float(os.environ.get("LOG_POLL_INTERVAL") or "2.0"),
    )

    parser.add_argument(
        "--report-period",
        dest="report_period",
        type=float,
        help="Seconds between price gap reports (default: 60, 0 to disable)",
        default=float(os.environ.get("REPORT_PERIOD") or "60"),
    )

    parser.add_argument(
        "--max-age",
        dest="max_age",
        type=int,
        help="Milliseconds after which a price is stale in reports (default: 60000)",
        default=int(os.environ.get("MAX_AGE_MS") or "60000"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser


def main() -> None:
    """Main entry point for the DexPulse CLI."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.poll_interval is not None and args.poll_interval < 1:
        parser.error("--poll-interval must be at least 1 millisecond")

    if args.log_poll_interval <= 0:
        parser.error("--log-poll-interval must be positive")

    if args.report_period < 0:
        parser.error("--report-period must not be negative")

    if args.max_age < 0:
        parser.error("--max-age must not be negative")

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        parser.error(f"Cannot load config {args.config}: {e}")

    if args.poll_interval is not None:
        config = EngineConfig(exchanges=config.exchanges, poll_interval_ms=args.poll_interval)

    # Log configuration
    logger.info("=" * 60)
    logger.info("DexPulse - DEX Price Aggregation")
    logger.info("=" * 60)
    logger.info(f"Network:           {args.network}")
    logger.info(f"Exchanges:         {', '.join(e.name for e in config.exchanges)}")
    logger.info(f"Pairs:             {sum(len(e.pairs) for e in config.exchanges)}")
    logger.info(f"Poll Interval:     {config.poll_interval_ms}ms")
    logger.info(f"Log Poll Interval: {args.log_poll_interval}s")
    logger.info(
        f"Report Period:     {args.report_period}s" if args.report_period else "Report Period:     disabled"
    )
    logger.info(f"Max Age:           {args.max_age}ms")
    logger.info("=" * 60)

    try:
        chain = Web3ChainClient.for_network(args.network, args.log_poll_interval)
        engine = PricePulse(chain, config)
        asyncio.run(engine.run(args.report_period, args.max_age))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
