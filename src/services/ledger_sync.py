from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from domain.ledger import Account, Transaction, sort_newest_first
from importers.coinbase_importer import account_from_record, transaction_from_record
from store.csv_report import CsvReportWriter
from store.json_store import JsonDocumentStore, PersistenceError
from utils.reports import TRANSACTIONS_REPORT, transaction_report_rows

from .incremental_fetch import PagedLedgerClient, ResourceContext, fetch_new_items

logger = logging.getLogger(__name__)

ACCOUNTS_DOCUMENT = "accounts"
TRANSACTIONS_DOCUMENT = "transactions"

ModelT = TypeVar("ModelT", bound=BaseModel)


class LedgerSynchronizer:
    """Keeps the local accounts/transactions documents in step with the exchange.

    Both datasets are append-only: known ids are never fetched or rewritten.
    When a document already exists and no refresh is requested, nothing touches
    the network.
    """

    def __init__(
        self,
        client: PagedLedgerClient,
        store: JsonDocumentStore,
        reports: CsvReportWriter,
        *,
        refresh_accounts: bool = False,
        refresh_transactions: bool = False,
        walk_all_pages: bool = False,
    ) -> None:
        self.client = client
        self.store = store
        self.reports = reports
        self.refresh_accounts = refresh_accounts
        self.refresh_transactions = refresh_transactions
        self.walk_all_pages = walk_all_pages

    def sync_accounts(self) -> list[Account]:
        stored = self._load(ACCOUNTS_DOCUMENT, Account)
        accounts = list(stored or [])
        if stored is not None and not self.refresh_accounts:
            logger.info("Using %d stored accounts", len(accounts))
            return accounts

        logger.info("Retrieving accounts...")
        raw_accounts = fetch_new_items(
            self.client,
            "accounts",
            [account.id for account in accounts],
            walk_all_pages=self.walk_all_pages,
        )
        accounts.extend(account_from_record(raw) for raw in raw_accounts)
        self._save(ACCOUNTS_DOCUMENT, [account.model_dump(mode="json") for account in accounts])
        return accounts

    def sync_transactions(self, accounts: list[Account]) -> list[Transaction]:
        stored = self._load(TRANSACTIONS_DOCUMENT, Transaction)
        transactions = list(stored or [])
        if stored is not None and not self.refresh_transactions:
            logger.info("Using %d stored transactions", len(transactions))
            return transactions

        known_ids = {txn.id for txn in transactions}
        for account in accounts:
            logger.info("Retrieving %s transactions...", account.code)
            raw_transactions = fetch_new_items(
                self.client,
                "transactions",
                known_ids,
                context=ResourceContext(collection="accounts", id=account.id),
                walk_all_pages=self.walk_all_pages,
            )
            new_transactions = [transaction_from_record(raw) for raw in raw_transactions]
            transactions.extend(new_transactions)
            known_ids.update(txn.id for txn in new_transactions)

        transactions = sort_newest_first(transactions)
        self._save(TRANSACTIONS_DOCUMENT, [txn.model_dump(mode="json") for txn in transactions])
        self._write_report(TRANSACTIONS_REPORT, transaction_report_rows(transactions))
        return transactions

    def prune_accounts(self, accounts: list[Account], transactions: list[Transaction]) -> list[Account]:
        used_codes = {txn.code for txn in transactions}
        kept = [account for account in accounts if account.code in used_codes]
        if len(kept) < len(accounts):
            logger.info("Dropping %d accounts without transactions", len(accounts) - len(kept))
            self._save(ACCOUNTS_DOCUMENT, [account.model_dump(mode="json") for account in kept])
        return kept

    def _load(self, name: str, model: type[ModelT]) -> list[ModelT] | None:
        try:
            rows = self.store.read(name)
            if rows is None:
                return None
            return [model.model_validate(row) for row in rows]
        except (PersistenceError, ValidationError) as exc:
            logger.warning("Ignoring unreadable %s document, running a full sync: %s", name, exc)
            return None

    def _save(self, name: str, rows: list[dict[str, Any]]) -> None:
        try:
            self.store.write(name, rows)
        except PersistenceError as exc:
            logger.error("Failed to persist %s: %s", name, exc)

    def _write_report(self, name: str, rows: list[dict[str, str]]) -> None:
        try:
            self.reports.write(name, rows)
        except PersistenceError as exc:
            logger.error("Failed to write %s report: %s", name, exc)


__all__ = ["ACCOUNTS_DOCUMENT", "TRANSACTIONS_DOCUMENT", "LedgerSynchronizer"]
