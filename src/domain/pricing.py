from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol

from .ledger import AssetCode

PriceSnapshot = dict[AssetCode, Decimal]


class SpotPriceProvider(Protocol):
    """Lookup interface for the current asset→USD spot price."""

    def snapshot(self, codes: Iterable[AssetCode]) -> PriceSnapshot: ...
