"""
Portfolio snapshot CLI.

Usage:
    crypto-portfolio-snapshot                   # capture the current month
    crypto-portfolio-snapshot --first           # mark as the first snapshot
    crypto-portfolio-snapshot --month 2026-02   # capture a specific month
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import settings
from .holdings_file import load_holdings
from .logging_config import setup_logging
from .models import Holding, PortfolioReport, Snapshot
from .portfolio_service import open_portfolio_service
from .snapshot_store import (
    add_snapshot,
    build_snapshot,
    current_month,
    is_valid_month,
    load_snapshots,
    save_snapshots,
)

logger = logging.getLogger(__name__)


def _month_arg(value: str) -> str:
    value = value.strip()
    if not is_valid_month(value):
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crypto-portfolio-snapshot",
        description="Capture a monthly portfolio snapshot",
    )
    parser.add_argument(
        "--first",
        action="store_true",
        help="Mark as the first snapshot (nothing to compare against)",
    )
    parser.add_argument(
        "--month",
        type=_month_arg,
        default=None,
        help="Month to capture as YYYY-MM (default: current month)",
    )
    parser.add_argument(
        "--holdings",
        type=Path,
        default=None,
        help="Path to finances.yaml (default: PORTFOLIO_HOLDINGS_PATH)",
    )
    parser.add_argument(
        "--snapshots",
        type=Path,
        default=None,
        help="Path to snapshots.yaml (default: PORTFOLIO_SNAPSHOTS_PATH)",
    )
    return parser


async def value_holdings(holdings: list[Holding]) -> PortfolioReport:
    async with open_portfolio_service() as service:
        return await service.compute_report(holdings)


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _print_breakdown(month: str, report: PortfolioReport, snapshot: Snapshot, snapshots_path: Path) -> None:
    print("\nSnapshot captured successfully!\n")
    print(f"   Month: {month}")
    print(f"   Total Value: {_money(report.total_value)}")
    print(f"   Assets: {len(report.assets)}")
    print("")
    print("   Breakdown:")
    for asset in snapshot.assets:
        print(f"      {asset.symbol:<10} {asset.percentage:>5.1f}%  {_money(asset.value)}")
    print(f"\n   Saved to: {snapshots_path}\n")


def run(
    *,
    month: str,
    is_first: bool,
    holdings_path: Path,
    snapshots_path: Path,
) -> int:
    print("\nPortfolio Snapshot Tool\n")
    print(f"Month: {month}")
    print(f"First snapshot: {'Yes' if is_first else 'No'}\n")

    snapshots = load_snapshots(snapshots_path)

    existing = snapshots.get(month)
    if existing is not None:
        print(f"\nSnapshot for {month} already exists!")
        print(f"   Total value: {_money(existing.total_value)}")
        print("\n   Use --month YYYY-MM to specify a different month, or delete the existing snapshot first.\n")
        return 1

    logger.info("Reading holdings from %s", holdings_path)
    holdings = load_holdings(holdings_path)

    print("Calculating portfolio...\n")
    report = asyncio.run(value_holdings(holdings))

    snapshot = build_snapshot(report, is_first=is_first)
    save_snapshots(snapshots_path, add_snapshot(snapshots, month, snapshot))

    _print_breakdown(month, report, snapshot, snapshots_path)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        return run(
            month=args.month or current_month(),
            is_first=args.first,
            holdings_path=args.holdings or settings.get_holdings_path(),
            snapshots_path=args.snapshots or settings.get_snapshots_path(),
        )
    except Exception:
        logger.exception("Snapshot failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
