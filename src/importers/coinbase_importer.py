from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, field_validator

from domain.ledger import USD, Account, AccountId, AssetCode, Transaction, TransactionId, TransactionType

BUY_FEE_RATE = Decimal("0.015")
MIN_BUY_FEE = Decimal("3")


class CoinbaseCurrency(BaseModel):
    code: str
    name: str


class CoinbaseMoney(BaseModel):
    amount: Decimal
    currency: str

    @field_validator("currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class CoinbaseAccountRecord(BaseModel):
    id: str
    currency: CoinbaseCurrency


class CoinbaseTransactionRecord(BaseModel):
    id: str
    type: str
    amount: CoinbaseMoney
    native_amount: CoinbaseMoney
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def buy_fee(tx_type: str, code: str, usd: Decimal) -> Decimal:
    """Estimated Coinbase spread+fee on a crypto buy: 1.5% with a $3 floor."""
    if tx_type != TransactionType.BUY or code == USD:
        return Decimal(0)
    return max(usd * BUY_FEE_RATE, MIN_BUY_FEE)


def effective_price(usd: Decimal, fee: Decimal, amount: Decimal) -> Decimal | None:
    if amount == 0:
        return None
    return (usd - fee) / amount


def account_from_record(raw: dict[str, Any]) -> Account:
    record = CoinbaseAccountRecord.model_validate(raw)
    return Account(
        id=AccountId(record.id),
        code=AssetCode(record.currency.code.upper()),
        name=record.currency.name,
    )


def transaction_from_record(raw: dict[str, Any]) -> Transaction:
    record = CoinbaseTransactionRecord.model_validate(raw)
    amount = record.amount.amount
    code = record.amount.currency
    usd = record.native_amount.amount
    fee = buy_fee(record.type, code, usd)
    return Transaction(
        id=TransactionId(record.id),
        type=record.type,
        amount=amount,
        code=AssetCode(code),
        usd=usd,
        price=effective_price(usd, fee, amount),
        fee=fee,
        date=record.created_at,
    )


__all__ = [
    "CoinbaseAccountRecord",
    "CoinbaseTransactionRecord",
    "account_from_record",
    "buy_fee",
    "effective_price",
    "transaction_from_record",
]
