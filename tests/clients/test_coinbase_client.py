from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from clients.coinbase import AuthError, CoinbaseClient, HttpError, TransportError, sign_request


def _mock_response(payload: object, status_code: int = 200) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = "payload"
    response.raise_for_status.return_value = None
    return response


def _client(session: Mock, **kwargs: object) -> CoinbaseClient:
    params: dict[str, object] = {"api_key": "key", "api_secret": "secret", "clock": lambda: 1_700_000_000.4}
    params.update(kwargs)
    return CoinbaseClient(session=session, **params)  # type: ignore[arg-type]


def test_fetch_page_parses_items_and_cursor() -> None:
    session = Mock()
    payload = {
        "pagination": {"next_uri": "/v2/accounts?starting_after=abc"},
        "data": [{"id": "abc"}, {"id": "def"}],
    }
    session.request.return_value = _mock_response(payload)

    page = _client(session).fetch_page("/v2/accounts")

    assert [item["id"] for item in page.items] == ["abc", "def"]
    assert page.next_cursor == "/v2/accounts?starting_after=abc"
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.coinbase.com/v2/accounts")
    assert kwargs["timeout"] == 10.0


def test_fetch_page_without_next_uri_has_no_cursor() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"pagination": {"next_uri": None}, "data": []})

    page = _client(session).fetch_page("/v2/accounts")

    assert page.items == []
    assert page.next_cursor is None


def test_fetch_page_signs_request() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"data": []})
    path = "/v2/accounts/abc/transactions"

    _client(session).fetch_page(path)

    headers = session.request.call_args.kwargs["headers"]
    expected = hmac.new(b"secret", f"1700000000GET{path}".encode(), hashlib.sha256).hexdigest()
    assert headers["CB-ACCESS-KEY"] == "key"
    assert headers["CB-ACCESS-TIMESTAMP"] == "1700000000"
    assert headers["CB-ACCESS-SIGN"] == expected
    assert headers["CB-VERSION"] == "2021-04-29"


def test_sign_request_includes_method_and_path() -> None:
    first = sign_request("secret", "1", "GET", "/v2/accounts")
    second = sign_request("secret", "1", "GET", "/v2/accounts?starting_after=x")

    assert first != second
    assert len(first) == 64


@pytest.mark.parametrize(("api_key", "api_secret"), [(None, "secret"), ("key", None), ("  ", "secret")])
def test_missing_credentials_raise_before_any_request(api_key: str | None, api_secret: str | None) -> None:
    session = Mock()
    client = _client(session, api_key=api_key, api_secret=api_secret)

    with pytest.raises(AuthError):
        client.fetch_page("/v2/accounts")

    session.request.assert_not_called()


def test_non_2xx_response_becomes_http_error_with_body() -> None:
    session = Mock()
    body = {"errors": [{"id": "authentication_error", "message": "invalid signature"}]}
    response = _mock_response(body, status_code=401)
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    session.request.return_value = response

    with pytest.raises(HttpError) as excinfo:
        _client(session).fetch_page("/v2/accounts")

    assert excinfo.value.status_code == 401
    assert excinfo.value.payload == body
    assert "401" in str(excinfo.value)


@pytest.mark.parametrize("status_code", [101, 204, 304])
def test_status_outside_2xx_is_http_error_even_without_raise(status_code: int) -> None:
    session = Mock()
    body = {"data": [{"id": "abc"}]}
    session.request.return_value = _mock_response(body, status_code=status_code)

    with pytest.raises(HttpError) as excinfo:
        _client(session).fetch_page("/v2/accounts")

    assert excinfo.value.status_code == status_code
    assert excinfo.value.payload == body


def test_non_json_error_body_is_kept_as_text() -> None:
    session = Mock()
    response = _mock_response(None, status_code=502)
    response.json.side_effect = ValueError("no json")
    response.text = "<html>bad gateway</html>"
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    session.request.return_value = response

    with pytest.raises(HttpError) as excinfo:
        _client(session).fetch_page("/v2/accounts")

    assert excinfo.value.payload == "<html>bad gateway</html>"


def test_connection_failure_becomes_transport_error() -> None:
    session = Mock()
    original = requests.ConnectionError("dns failure")
    session.request.side_effect = original

    with pytest.raises(TransportError) as excinfo:
        _client(session).fetch_page("/v2/accounts")

    assert excinfo.value.__cause__ is original
    assert excinfo.value.status_code is None


def test_get_spot_price_is_unsigned_and_returns_decimal() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"data": {"base": "BTC", "currency": "USD", "amount": "43210.55"}})

    price = _client(session, api_key=None, api_secret=None).get_spot_price("btc")

    assert price == Decimal("43210.55")
    args, kwargs = session.request.call_args
    assert args[1] == "https://api.coinbase.com/v2/prices/BTC-USD/spot"
    assert kwargs["headers"] is None


def test_get_spot_price_rejects_payload_without_amount() -> None:
    session = Mock()
    session.request.return_value = _mock_response({"data": {}})

    with pytest.raises(HttpError):
        _client(session).get_spot_price("ETH")
