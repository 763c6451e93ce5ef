from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, field_validator, model_validator

AccountId = NewType("AccountId", str)
TransactionId = NewType("TransactionId", str)
AssetCode = NewType("AssetCode", str)

USD = AssetCode("USD")


class TransactionType(StrEnum):
    """Transaction types the valuation cares about.

    Coinbase reports many more (``fiat_deposit``, ``trade``, ``advanced_trade_fill`` ...);
    those are stored verbatim and only take part in balance sums.
    """

    BUY = "buy"
    SELL = "sell"
    SEND = "send"
    STAKING_REWARD = "staking_reward"
    INFLATION_REWARD = "inflation_reward"


REWARD_TYPES = frozenset({TransactionType.STAKING_REWARD, TransactionType.INFLATION_REWARD})


class Account(BaseModel):
    id: AccountId
    code: AssetCode
    name: str

    @model_validator(mode="after")
    def _validate_fields(self) -> Account:
        if not self.id:
            raise ValueError("Account.id must be non-empty")
        if not self.code:
            raise ValueError("Account.code must be non-empty")
        return self


class Transaction(BaseModel):
    """A normalized ledger transaction.

    Sign convention for ``amount``: positive when the asset balance grows, negative when
    it shrinks (outgoing sends, sells). ``usd`` follows the same sign as reported by
    the exchange. ``fee`` and ``price`` are derived at import time and never recomputed.
    """

    id: TransactionId
    type: str
    amount: Decimal
    code: AssetCode
    usd: Decimal
    price: Decimal | None = None
    fee: Decimal = Decimal(0)
    date: datetime

    @field_validator("date")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _validate_fields(self) -> Transaction:
        if not self.id:
            raise ValueError("Transaction.id must be non-empty")
        if self.fee < 0:
            raise ValueError("Transaction.fee must be >= 0")
        return self

    @property
    def is_reward(self) -> bool:
        return self.type in REWARD_TYPES

    @property
    def is_sent(self) -> bool:
        return self.type == TransactionType.SEND and self.code != USD


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda txn: txn.date, reverse=True)
