from __future__ import annotations

from dataclasses import fields
from typing import Iterable, Sequence

from domain.ledger import Transaction
from domain.valuation import SummaryRow

from .formatting import format_currency, format_decimal, format_report_date

TRANSACTIONS_REPORT = "transactions"
SUMMARY_REPORT = "summary"


def transaction_report_rows(transactions: Iterable[Transaction]) -> list[dict[str, str]]:
    return [
        {
            "id": txn.id,
            "type": txn.type,
            "amount": format_decimal(txn.amount),
            "code": txn.code,
            "usd": format_decimal(txn.usd),
            "price": format_decimal(txn.price),
            "fee": format_decimal(txn.fee),
            "date": format_report_date(txn.date),
        }
        for txn in transactions
    ]


def summary_report_rows(rows: Iterable[SummaryRow]) -> list[dict[str, str]]:
    report: list[dict[str, str]] = []
    for row in rows:
        record: dict[str, str] = {}
        for column in fields(SummaryRow):
            value = getattr(row, column.name)
            if column.name.endswith("_date"):
                record[column.name] = format_report_date(value)
            elif isinstance(value, str):
                record[column.name] = value
            else:
                record[column.name] = format_decimal(value)
        report.append(record)
    return report


def render_summary(rows: Sequence[SummaryRow]) -> None:
    print("Portfolio summary:")
    if not rows:
        print("  (empty)")
        return

    labels = ("Asset", "Amount", "Invested USD", "Value USD", "Diff USD", "Diff %", "Last buy %", "Last sell %")
    table: list[tuple[str, ...]] = []
    for row in rows:
        table.append(
            (
                row.code or row.name,
                format_decimal(row.amount),
                format_currency(row.invested_value),
                format_currency(row.current_value),
                format_currency(row.value_difference),
                format_currency(row.pct_change_value),
                format_currency(row.pct_change_last_buy),
                format_currency(row.pct_change_last_sell),
            )
        )

    widths = [max(len(label), max(len(cells[idx]) for cells in table)) for idx, label in enumerate(labels)]
    header = " ".join(
        f"{label:<{widths[idx]}}" if idx == 0 else f"{label:>{widths[idx]}}" for idx, label in enumerate(labels)
    )
    lines = [header, "-" * len(header)]
    for position, cells in enumerate(table):
        if position == len(table) - 1:
            lines.append("-" * len(header))
        lines.append(
            " ".join(
                f"{cell:<{widths[idx]}}" if idx == 0 else f"{cell:>{widths[idx]}}" for idx, cell in enumerate(cells)
            )
        )
    print("\n".join(lines))
