from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)


# API docs: https://docs.cloud.coinbase.com/sign-in-with-coinbase/docs/api-key-authentication
class CoinbaseAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AuthError(CoinbaseAPIError):
    """API key or secret is missing or malformed."""


class HttpError(CoinbaseAPIError):
    """Remote answered with a non-2xx status (or a body we cannot read)."""

    def __str__(self) -> str:
        return f"{super().__str__()} (status={self.status_code}, payload={self.payload!r})"


class TransportError(CoinbaseAPIError):
    """No response at all: DNS, connection or timeout failure."""


@dataclass(frozen=True)
class LedgerPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None


class CoinbaseClient:
    """Coinbase v2 REST client for the paginated listings and spot prices."""

    def __init__(
        self,
        *,
        api_key: str | None,
        api_secret: str | None,
        base_url: str = "https://api.coinbase.com",
        api_version: str = "2021-04-29",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

    def fetch_page(self, path: str) -> LedgerPage:
        headers = self._signed_headers("GET", path)
        payload = self._request("GET", path, headers=headers)

        items = payload.get("data") or []
        if not isinstance(items, list):
            raise HttpError("Coinbase listing 'data' is not a list", status_code=200, payload=payload)

        pagination = payload.get("pagination") or {}
        next_cursor = pagination.get("next_uri") if isinstance(pagination, dict) else None
        return LedgerPage(items=items, next_cursor=next_cursor or None)

    def get_spot_price(self, code: str, quote: str = "USD") -> Decimal:
        path = f"/v2/prices/{code.upper()}-{quote.upper()}/spot"
        payload = self._request("GET", path)
        data = payload.get("data")
        amount = data.get("amount") if isinstance(data, dict) else None
        if amount is None:
            raise HttpError("Coinbase spot price payload missing data.amount", status_code=200, payload=payload)
        return Decimal(str(amount))

    def _signed_headers(self, method: str, path: str) -> dict[str, str]:
        key = (self.api_key or "").strip()
        secret = (self.api_secret or "").strip()
        if not key or not secret:
            raise AuthError("Coinbase API credentials missing")

        timestamp = str(round(self._clock()))
        signature = sign_request(secret, timestamp, method, path)
        return {
            "Content-Type": "application/json",
            "CB-ACCESS-KEY": key,
            "CB-ACCESS-SIGN": signature,
            "CB-ACCESS-TIMESTAMP": timestamp,
            "CB-VERSION": self.api_version,
        }

    def _request(self, method: str, path: str, *, headers: dict[str, str] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, path)
        try:
            response = self._session.request(method, url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            if not 200 <= response.status_code < 300:
                raise requests.HTTPError(f"Unexpected status {response.status_code}", response=response)
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            payload: Any | None = None
            if resp is not None:
                try:
                    payload = resp.json()
                except ValueError:
                    payload = resp.text
            raise HttpError("Coinbase request failed", status_code=status_code, payload=payload) from exc
        except requests.RequestException as exc:
            raise TransportError(f"Coinbase request failed: {exc}") from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise HttpError(
                "Coinbase returned invalid JSON", status_code=response.status_code, payload=response.text
            ) from exc

        if not isinstance(payload_raw, dict):
            raise HttpError(
                "Coinbase returned unexpected payload type", status_code=response.status_code, payload=payload_raw
            )

        return payload_raw


def sign_request(secret: str, timestamp: str, method: str, path: str) -> str:
    message = f"{timestamp}{method.upper()}{path}"
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


__all__ = [
    "AuthError",
    "CoinbaseAPIError",
    "CoinbaseClient",
    "HttpError",
    "LedgerPage",
    "TransportError",
    "sign_request",
]
