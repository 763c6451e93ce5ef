from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Sequence

from clients.coinbase import CoinbaseClient
from config import AppSettings, config
from domain.ledger import Account, Transaction
from domain.pricing import PriceSnapshot, SpotPriceProvider
from domain.valuation import SummaryRow, compute_summary
from services.incremental_fetch import PagedLedgerClient
from services.ledger_sync import LedgerSynchronizer
from services.price_service import SpotPriceService
from store.csv_report import CsvReportWriter
from store.json_store import JsonDocumentStore, PersistenceError
from utils.reports import SUMMARY_REPORT, render_summary, summary_report_rows

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DEFAULT_LOG_DIR = Path("logs")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    refresh_accounts: bool = False
    refresh_transactions: bool = False
    include_sent: bool = False
    walk_all_pages: bool = False


@dataclass
class RunContext:
    """State of one run, filled in order: accounts, transactions, prune, prices, summary."""

    accounts: list[Account] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    prices: PriceSnapshot = field(default_factory=dict)
    summary: list[SummaryRow] = field(default_factory=list)


def run(
    client: PagedLedgerClient,
    price_provider: SpotPriceProvider,
    *,
    store: JsonDocumentStore,
    reports: CsvReportWriter,
    options: RunOptions,
) -> RunContext:
    started = perf_counter()
    logger.info("Starting...")
    synchronizer = LedgerSynchronizer(
        client,
        store,
        reports,
        refresh_accounts=options.refresh_accounts,
        refresh_transactions=options.refresh_transactions,
        walk_all_pages=options.walk_all_pages,
    )
    ctx = RunContext()

    ctx.accounts = synchronizer.sync_accounts()
    ctx.transactions = synchronizer.sync_transactions(ctx.accounts)
    ctx.accounts = synchronizer.prune_accounts(ctx.accounts, ctx.transactions)

    logger.info("Retrieving current prices...")
    ctx.prices = price_provider.snapshot(account.code for account in ctx.accounts)

    logger.info("Computing summary for %d accounts", len(ctx.accounts))
    ctx.summary = compute_summary(
        ctx.accounts,
        ctx.transactions,
        ctx.prices,
        include_sent=options.include_sent,
    )
    try:
        reports.write(SUMMARY_REPORT, summary_report_rows(ctx.summary))
    except PersistenceError as exc:
        logger.error("Failed to write %s report: %s", SUMMARY_REPORT, exc)

    logger.info("Done in %.2fs", perf_counter() - started)
    return ctx


def build_client(settings: AppSettings) -> CoinbaseClient:
    return CoinbaseClient(
        api_key=settings.coinbase_api_key,
        api_secret=settings.coinbase_api_secret,
        base_url=settings.coinbase_base_url,
        api_version=settings.coinbase_api_version,
        timeout=settings.request_timeout,
    )


def configure_logging(log_dir: Path, *, verbose: bool = False) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{datetime.now(timezone.utc):%Y-%m-%d}.txt"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8", delay=True))
    except OSError as exc:
        print(f"File logging disabled: {exc}", file=sys.stderr)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT, handlers=handlers)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync Coinbase accounts/transactions and write a portfolio summary.")
    parser.add_argument("-a", "--refresh-accounts", action="store_true", help="look for new accounts")
    parser.add_argument("-t", "--refresh-transactions", action="store_true", help="look for new transactions")
    parser.add_argument("-s", "--include-sent", action="store_true", help="keep sent transactions in the valuation")
    parser.add_argument("--walk-all-pages", action="store_true", help="follow every page instead of stopping early")
    parser.add_argument("--data-dir", type=Path, help="defaults to DATA_DIR from the environment/.env")
    parser.add_argument("--output-dir", type=Path, help="defaults to OUTPUT_DIR from the environment/.env")
    parser.add_argument("--log-dir", type=Path, default=DEFAULT_LOG_DIR)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    # Logging comes up before settings load, so settings errors get logged too.
    configure_logging(args.log_dir, verbose=args.verbose)
    options = RunOptions(
        refresh_accounts=args.refresh_accounts,
        refresh_transactions=args.refresh_transactions,
        include_sent=args.include_sent,
        walk_all_pages=args.walk_all_pages,
    )
    try:
        settings = config()
        client = build_client(settings)
        ctx = run(
            client,
            SpotPriceService(client),
            store=JsonDocumentStore(root_dir=args.data_dir or settings.data_dir),
            reports=CsvReportWriter(root_dir=args.output_dir or settings.output_dir),
            options=options,
        )
    except Exception:
        logger.exception("Run failed")
        return 1

    render_summary(ctx.summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
