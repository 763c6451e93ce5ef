from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from typing import Iterable, Sequence

from .ledger import Account, Transaction, TransactionType, sort_newest_first
from .pricing import PriceSnapshot

HUNDRED = Decimal(100)
HALF = Decimal("0.5")
TOTALS_NAME = "Total"


def round2(value: Decimal) -> Decimal:
    """Round to cents with ties going toward +infinity (100.005 -> 100.01, -1.005 -> -1.00)."""
    cents = (value * HUNDRED + HALF).to_integral_value(rounding=ROUND_FLOOR)
    return cents.scaleb(-2)


def pct_change(current: Decimal, reference: Decimal | None) -> Decimal | None:
    if not reference:
        return None
    return round2((current - reference) / reference * HUNDRED)


@dataclass
class SummaryRow:
    name: str
    code: str
    avg_invest_price: Decimal | None = None
    current_price: Decimal | None = None
    last_buy_price: Decimal | None = None
    pct_change_last_buy: Decimal | None = None
    last_sell_price: Decimal | None = None
    pct_change_last_sell: Decimal | None = None
    amount: Decimal | None = None
    current_value: Decimal = Decimal(0)
    invested_value: Decimal = Decimal(0)
    value_difference: Decimal = Decimal(0)
    pct_change_value: Decimal | None = None
    last_buy_date: datetime | None = None
    last_sell_date: datetime | None = None


def select_transactions(
    transactions: Iterable[Transaction], code: str, *, include_sent: bool = False
) -> list[Transaction]:
    selected = [txn for txn in transactions if txn.code == code and (include_sent or not txn.is_sent)]
    return sort_newest_first(selected)


def _latest_of_type(transactions: Sequence[Transaction], tx_type: TransactionType) -> Transaction | None:
    return next((txn for txn in transactions if txn.type == tx_type), None)


def value_account(
    account: Account,
    transactions: Iterable[Transaction],
    current_price: Decimal,
    *,
    include_sent: bool = False,
) -> SummaryRow:
    txns = select_transactions(transactions, account.code, include_sent=include_sent)

    amount = sum((txn.amount for txn in txns), start=Decimal(0))
    invested_value = sum((txn.usd for txn in txns if not txn.is_reward), start=Decimal(0))

    current_value = round2(amount * current_price)
    value_difference = round2(current_value - invested_value)
    pct_change_value = round2(value_difference / invested_value * HUNDRED) if invested_value else None
    avg_invest_price = invested_value / amount if invested_value and amount else None

    last_buy = _latest_of_type(txns, TransactionType.BUY)
    last_sell = _latest_of_type(txns, TransactionType.SELL)
    if last_sell is None:
        sold_last = False
    else:
        sold_last = last_buy is None or last_buy.date < last_sell.date

    return SummaryRow(
        name=account.name,
        code=account.code,
        avg_invest_price=avg_invest_price,
        current_price=current_price,
        last_buy_price=last_buy.price if last_buy else None,
        pct_change_last_buy=pct_change(current_price, last_buy.price) if last_buy and not sold_last else None,
        last_sell_price=last_sell.price if last_sell else None,
        pct_change_last_sell=pct_change(current_price, last_sell.price) if last_sell and sold_last else None,
        amount=amount,
        current_value=current_value,
        invested_value=invested_value,
        value_difference=value_difference,
        pct_change_value=pct_change_value,
        last_buy_date=last_buy.date if last_buy else None,
        last_sell_date=last_sell.date if last_sell else None,
    )


def summary_sort_key(row: SummaryRow) -> tuple[int, Decimal, int, Decimal]:
    # Not-applicable ranks below any number: last for the descending buy key,
    # first for the ascending sell key.
    buy = row.pct_change_last_buy
    sell = row.pct_change_last_sell
    return (
        0 if buy is not None else 1,
        -buy if buy is not None else Decimal(0),
        0 if sell is None else 1,
        sell if sell is not None else Decimal(0),
    )


def totals_row(rows: Iterable[SummaryRow]) -> SummaryRow:
    rows = list(rows)
    invested_value = sum((row.invested_value for row in rows), start=Decimal(0))
    current_value = sum((row.current_value for row in rows), start=Decimal(0))
    value_difference = round2(current_value - invested_value)
    pct_change_value = round2(value_difference / invested_value * HUNDRED) if invested_value else None
    return SummaryRow(
        name=TOTALS_NAME,
        code="",
        current_value=current_value,
        invested_value=invested_value,
        value_difference=value_difference,
        pct_change_value=pct_change_value,
    )


def compute_summary(
    accounts: Iterable[Account],
    transactions: Sequence[Transaction],
    prices: PriceSnapshot,
    *,
    include_sent: bool = False,
) -> list[SummaryRow]:
    """Per-account valuation rows, sorted by last-trade signal, followed by the totals row."""
    rows: list[SummaryRow] = []
    for account in accounts:
        current_price = prices.get(account.code)
        if current_price is None:
            msg = f"No spot price for {account.code}"
            raise ValueError(msg)
        rows.append(value_account(account, transactions, current_price, include_sent=include_sent))

    rows.sort(key=summary_sort_key)
    rows.append(totals_row(rows))
    return rows


__all__ = [
    "SummaryRow",
    "compute_summary",
    "pct_change",
    "round2",
    "select_transactions",
    "summary_sort_key",
    "totals_row",
    "value_account",
]
