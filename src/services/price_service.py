from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from domain.ledger import USD, AssetCode
from domain.pricing import PriceSnapshot, SpotPriceProvider

logger = logging.getLogger(__name__)


class SpotPriceClient(Protocol):
    def get_spot_price(self, code: str, quote: str = "USD") -> Decimal: ...


class SpotPriceService(SpotPriceProvider):
    def __init__(self, client: SpotPriceClient, *, quote: str = USD) -> None:
        self.client = client
        self.quote = quote

    def snapshot(self, codes: Iterable[AssetCode]) -> PriceSnapshot:
        prices: PriceSnapshot = {}
        for code in codes:
            if code in prices:
                continue
            prices[code] = self.client.get_spot_price(code, self.quote)
            logger.debug("Spot price %s-%s=%s", code, self.quote, prices[code])
        logger.info("Retrieved %d spot prices", len(prices))
        return prices


__all__ = ["SpotPriceService"]
