import asyncio
import json

import aiohttp
import pytest

from fixedfloat.async_client import AsyncFixedFloatClient
from fixedfloat.errors import (
    ConfigurationError,
    FixedFloatAPIError,
    SessionError,
    TransportError,
    ValidationError,
)
from fixedfloat.order import AsyncOrder
from fixedfloat.signing import sign


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside ``async with``."""

    def __init__(self, payload=None, status=200, text=None, reason="OK"):
        self.status = status
        self.reason = reason
        self._text = text if text is not None else json.dumps(payload)

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Records requests and replays queued responses (or raises queued errors)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    async def close(self):
        self.closed = True


def make_client(*responses, **kwargs):
    session = FakeSession(*responses)
    return AsyncFixedFloatClient("test-key", "test-secret", session=session, **kwargs), session


def test_missing_credentials_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        AsyncFixedFloatClient("", "secret")
    with pytest.raises(ConfigurationError):
        AsyncFixedFloatClient("key", None)


@pytest.mark.asyncio
async def test_context_manager_initializes_session():
    """Verify async context manager sets up and closes its own session."""
    client = AsyncFixedFloatClient(api_key="k", secret_key="s")
    assert client.session is None
    async with client:
        assert isinstance(client.session, aiohttp.ClientSession)
    assert client.session.closed


@pytest.mark.asyncio
async def test_injected_session_is_not_closed():
    client, session = make_client()
    async with client:
        assert client.session is session
    assert session.closed is False


@pytest.mark.asyncio
async def test_request_without_session_raises():
    client = AsyncFixedFloatClient(api_key="k", secret_key="s")
    with pytest.raises(SessionError, match="Session not initialized"):
        await client.get_currencies()


@pytest.mark.asyncio
async def test_request_signs_the_exact_body_sent():
    client, session = make_client(FakeResponse({"code": 0, "data": {"ok": True}}))

    result = await client._request("order", {"id": "X1", "token": "T1"})

    assert result == {"ok": True}
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://ff.io/api/v2/order")
    assert kwargs["data"] == b'{"id":"X1","token":"T1"}'
    assert kwargs["headers"]["X-API-KEY"] == "test-key"
    assert kwargs["headers"]["X-API-SIGN"] == sign("test-secret", '{"id":"X1","token":"T1"}')
    assert "timeout" not in kwargs


@pytest.mark.asyncio
async def test_timeout_is_forwarded_when_configured():
    client, session = make_client(FakeResponse({"code": 0, "data": []}), timeout=7)

    await client.get_currencies()

    timeout = session.calls[0][2]["timeout"]
    assert isinstance(timeout, aiohttp.ClientTimeout)
    assert timeout.total == 7


@pytest.mark.asyncio
async def test_get_price_scenario():
    quote = {"from": {"code": "BTC", "amount": "0.5"}, "to": {"code": "ETH", "amount": "7.9"}}
    client, session = make_client(FakeResponse({"code": 0, "msg": "OK", "data": quote}))

    result = await client.get_price(from_ccy="BTC", to_ccy="ETH", amount=0.5)

    assert result == quote
    method, url, kwargs = session.calls[0]
    assert url.endswith("/price")
    assert json.loads(kwargs["data"]) == {"fromCcy": "BTC", "toCcy": "ETH", "amount": 0.5, "direction": "from", "type": "float"}


@pytest.mark.asyncio
async def test_create_order_scenario():
    client, _ = make_client(FakeResponse({"code": 0, "data": {"id": "SRV7", "token": "TK7", "status": "NEW"}}))

    order = await client.create_order(from_ccy="BTC", to_ccy="ETH", to_address="0xabc", amount=1)

    assert isinstance(order, AsyncOrder)
    assert (order.id, order.token, order.status) == ("SRV7", "TK7", "NEW")


@pytest.mark.asyncio
async def test_create_order_rejected_by_server():
    client, _ = make_client(FakeResponse({"code": 422, "msg": "bad address"}))

    with pytest.raises(FixedFloatAPIError, match="bad address") as excinfo:
        await client.create_order(from_ccy="BTC", to_ccy="ETH", to_address="0xabc", amount=1)
    assert excinfo.value.code == 422


@pytest.mark.asyncio
async def test_http_error_status_raises_api_error():
    client, _ = make_client(FakeResponse(status=503, text="maintenance", reason="Service Unavailable"))

    with pytest.raises(FixedFloatAPIError, match="503 Service Unavailable") as excinfo:
        await client.get_currencies()
    assert excinfo.value.http_status == 503


@pytest.mark.asyncio
async def test_invalid_json_raises_api_error():
    client, _ = make_client(FakeResponse(text="not json"))

    with pytest.raises(FixedFloatAPIError, match="Invalid JSON"):
        await client.get_currencies()


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error():
    client, _ = make_client(aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(TransportError, match="connection reset"):
        await client.get_currencies()


@pytest.mark.asyncio
async def test_timeout_raises_transport_error():
    client, _ = make_client(asyncio.TimeoutError())

    with pytest.raises(TransportError, match="timeout"):
        await client.get_currencies()


@pytest.mark.asyncio
async def test_validation_happens_before_dispatch():
    client, session = make_client()

    with pytest.raises(ValidationError) as excinfo:
        await client.create_order(from_ccy="BTC", to_ccy="ETH", to_address="", amount=1)
    assert excinfo.value.missing == ["to_address"]

    with pytest.raises(ValidationError):
        await client.set_emergency("X1", "T1", "REFUND", None)

    with pytest.raises(ValidationError):
        await client.get_rates_xml("hourly")

    assert session.calls == []


@pytest.mark.asyncio
async def test_set_emergency_exchange_without_address():
    client, session = make_client(FakeResponse({"code": 0, "data": True}))

    assert await client.set_emergency("X1", "T1", "EXCHANGE") is True
    assert json.loads(session.calls[0][2]["data"]) == {"id": "X1", "token": "T1", "choice": "EXCHANGE"}


@pytest.mark.asyncio
async def test_get_qr_codes_returns_list():
    codes = [
        {"title": "Address", "src": "data:image/png;base64,AAAA", "checked": True},
        {"title": "With amount", "src": "data:image/png;base64,BBBB", "checked": False},
    ]
    client, session = make_client(FakeResponse({"code": 0, "data": codes}))

    assert await client.get_qr_codes("X1", "T1") == codes
    assert session.calls[0][1].endswith("/qr")


@pytest.mark.asyncio
async def test_get_rates_xml_is_unsigned():
    xml = "<rates><item><from>BTC</from><to>ETH</to></item></rates>"
    client, session = make_client(FakeResponse(text=xml))

    assert await client.get_rates_xml() == xml
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://ff.io/rates/float.xml")
    assert "headers" not in kwargs


@pytest.mark.asyncio
async def test_get_rates_xml_http_error():
    client, _ = make_client(FakeResponse(status=500, text="", reason="Internal Server Error"))

    with pytest.raises(FixedFloatAPIError, match="Failed to get rates XML: 500"):
        await client.get_rates_xml("fixed")


@pytest.mark.asyncio
async def test_get_order_uses_server_identity():
    client, session = make_client(
        FakeResponse({"code": 0, "data": {"id": "SRV9", "token": "TK9", "status": "PENDING"}}),
        FakeResponse({"code": 0, "data": {"id": "SRV9", "token": "TK9", "status": "EXPIRED"}}),
    )

    order = await client.get_order("X1", "T1")
    assert isinstance(order, AsyncOrder)
    assert (order.id, order.token, order.status) == ("SRV9", "TK9", "PENDING")
    assert json.loads(session.calls[0][2]["data"]) == {"id": "X1", "token": "T1"}

    await order.refresh()
    assert json.loads(session.calls[1][2]["data"]) == {"id": "SRV9", "token": "TK9"}
    assert order.is_terminal


@pytest.mark.asyncio
async def test_null_order_payload_raises_api_error():
    client, _ = make_client(FakeResponse({"code": 0, "msg": "OK", "data": None}))

    with pytest.raises(FixedFloatAPIError, match="Missing order payload"):
        await client.get_order("X1", "T1")


@pytest.mark.asyncio
async def test_get_rates_xml_connection_failure():
    client, _ = make_client(aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(TransportError, match="Failed to get rates XML: connection reset") as excinfo:
        await client.get_rates_xml()
    assert isinstance(excinfo.value.__cause__, aiohttp.ClientConnectionError)


@pytest.mark.asyncio
async def test_unencodable_text_is_rejected_before_sending():
    client, session = make_client()

    with pytest.raises(ValidationError, match="UTF-8"):
        await client.set_email_notification("X1", "T1", "a\udcffb@example.com")
    assert session.calls == []
