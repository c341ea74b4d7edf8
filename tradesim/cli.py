"""
Command line entry point.

    tradesim backtest bars.csv [output_dir]
    tradesim regime-backtest --confidence-file latest.json --price-file btc.csv
    tradesim rebalance --current bull2x=0.25 --current usdc=0.75
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from tradesim import __version__
from tradesim.backtesting.report import print_results
from tradesim.backtesting.run_backtest import run_backtest
from tradesim.core.config import Settings, ThresholdPreset, VaultSettings, get_settings
from tradesim.core.exceptions import ConfigurationError, TradingSystemError
from tradesim.core.logging_config import get_logger, setup_logging
from tradesim.regime.backtest import run_regime_backtest
from tradesim.regime.cbbi import ASSETS
from tradesim.regime.rebalancer import RegimeRebalancer

logger = get_logger("cli")


def parse_weights(pairs: List[str]) -> Dict[str, float]:
    """Parse repeated ``asset=weight`` arguments."""
    weights = {}
    for pair in pairs:
        asset, sep, value = pair.partition("=")
        if not sep or asset not in ASSETS:
            raise argparse.ArgumentTypeError(
                f"Expected asset=weight with asset in {', '.join(ASSETS)}, got {pair!r}"
            )
        try:
            weights[asset] = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Weight for {asset} is not a number: {value!r}")
    return weights


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tradesim", description="Strategy backtesting tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", type=str, default=None, help="Override LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write log lines to this file")

    sub = parser.add_subparsers(dest="command", required=True)

    bt = sub.add_parser("backtest", help="Run the bar-by-bar breakdown backtest")
    bt.add_argument("csv_file", help="Bar CSV with time,open,high,low,close")
    bt.add_argument("output_dir", nargs="?", default="./artifacts", help="Artifact directory")
    bt.add_argument("--strict", action="store_true", help="Reject malformed rows")
    bt.add_argument("--progress", action="store_true", help="Show a progress bar")

    rb = sub.add_parser("regime-backtest", help="Run the CBBI regime-weight backtest")
    rb.add_argument("--confidence-file", required=True, help="Saved confidence index (JSON or RTF)")
    rb.add_argument("--price-file", required=True, help="Daily price CSV (time, PriceUSD)")
    rb.add_argument("--output", default="artifacts/cbbi_backtest.csv", help="Output CSV path")
    rb.add_argument(
        "--thresholds",
        choices=[p.value for p in ThresholdPreset],
        default=None,
        help="Threshold preset (default: REGIME_THRESHOLDS)"
    )

    rp = sub.add_parser("rebalance", help="Plan a regime rebalance from live confidence (dry run)")
    rp.add_argument(
        "--current",
        action="append",
        default=[],
        metavar="ASSET=WEIGHT",
        help="Current weight of a bucket, repeatable"
    )
    rp.add_argument("--with-vault", action="store_true", help="Load vault settings for token addresses")

    return parser


def cmd_backtest(args: argparse.Namespace, settings: Settings) -> int:
    result = run_backtest(
        args.csv_file,
        output_dir=args.output_dir,
        settings=settings,
        strict=args.strict,
        show_progress=args.progress
    )
    print_results(result)
    return 0


def cmd_regime_backtest(args: argparse.Namespace, settings: Settings) -> int:
    if args.thresholds:
        settings = settings.model_copy(update={"regime_thresholds": ThresholdPreset(args.thresholds)})

    result = run_regime_backtest(
        args.confidence_file,
        args.price_file,
        output_path=args.output,
        settings=settings
    )
    print(json.dumps(result.summary.to_dict(), indent=2))
    return 0


def cmd_rebalance(args: argparse.Namespace, settings: Settings) -> int:
    current = parse_weights(args.current)

    vault = None
    if args.with_vault:
        try:
            vault = VaultSettings()
        except ValidationError as e:
            raise ConfigurationError("Invalid vault settings", {"errors": e.errors()})

    rebalancer = RegimeRebalancer.from_settings(settings, vault=vault)
    try:
        plan = rebalancer.plan(current)
    finally:
        rebalancer.client.close()

    print(json.dumps(plan.to_dict(), indent=2))
    return 0


COMMANDS = {
    "backtest": cmd_backtest,
    "regime-backtest": cmd_regime_backtest,
    "rebalance": cmd_rebalance,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(
        settings,
        log_level=args.log_level,
        log_file=args.log_file,
        json_format=True if args.json_logs else None
    )

    for warning in settings.validate_trading_config():
        logger.warning("Configuration warning", message=warning)

    try:
        return COMMANDS[args.command](args, settings)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except TradingSystemError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
