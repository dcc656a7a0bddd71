import asyncio
import json
from typing import Any, Optional

import aiohttp

from . import api
from .errors import ConfigurationError, FixedFloatAPIError, SessionError, TransportError, ValidationError
from .logging_setup import logger
from .order import AsyncOrder
from .secrets import FixedFloatCredentials, load_credentials
from .signing import build_headers, canonical_json


class AsyncFixedFloatClient:
    """Async FixedFloat API client using aiohttp.

    Features:
    - Non-blocking async/await using aiohttp.
    - Request signing (X-API-KEY / X-API-SIGN headers) over the exact JSON body.
    - Envelope unwrapping: callers get the ``data`` field, or a typed error.
    - Automatic connection pooling and session reuse inside ``async with``.

    Calls through one client are not serialized; concurrency is whatever the
    aiohttp session allows.

    Usage:
        async with AsyncFixedFloatClient(api_key, secret_key) as client:
            order = await client.create_order("BTC", "ETH", "0xabc", 0.5)
    """

    def __init__(self, api_key: str, secret_key: str, *, base_url: str = api.BASE_URL, rates_url: str = api.RATES_URL, timeout: Optional[float] = None, session: Optional[aiohttp.ClientSession] = None):
        if not api_key or not secret_key:
            raise ConfigurationError("Please provide an API and secret keys")
        self._api_key = api_key
        self._secret_key = secret_key
        self.base_url = base_url.rstrip("/") + "/"
        self.rates_url = rates_url.rstrip("/")
        self.timeout = timeout
        # an injected session belongs to the caller and is never closed here
        self._owns_session = session is None
        self.session: Optional[aiohttp.ClientSession] = session

    @classmethod
    def from_credentials(cls, credentials: FixedFloatCredentials, **kwargs) -> "AsyncFixedFloatClient":
        """Create a client from FixedFloatCredentials (loaded via the secrets module)."""
        return cls(api_key=credentials.api_key, secret_key=credentials.api_secret, **kwargs)

    @classmethod
    def from_env(cls, config_path: Optional[str] = None, **kwargs) -> "AsyncFixedFloatClient":
        """Create a client from FF_API_KEY / FF_API_SECRET, falling back to the JSON credentials file."""
        return cls.from_credentials(load_credentials(config_path), **kwargs)

    @classmethod
    def from_config(cls, config, credentials: FixedFloatCredentials, **kwargs) -> "AsyncFixedFloatClient":
        """Create a client from a ClientConfig and credentials."""
        return cls.from_credentials(
            credentials,
            base_url=config.api.base_url,
            rates_url=config.api.rates_url,
            timeout=config.api.timeout,
            **kwargs
        )

    @property
    def api_key(self) -> str:
        return self._api_key

    async def __aenter__(self):
        if self._owns_session:
            self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session:
            await self.session.close()

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            raise SessionError("Session not initialized; use 'async with' context manager")
        return self.session

    def _request_kwargs(self) -> dict:
        if self.timeout is None:
            return {}
        return {"timeout": aiohttp.ClientTimeout(total=self.timeout)}

    async def _request(self, api_method: str, params: Optional[dict] = None, http_method: str = "POST") -> Any:
        """Sign and send one API call; return the envelope's ``data``."""
        if not api_method:
            raise ValidationError("Required param: api_method", missing=["api_method"])
        session = self._require_session()

        body = canonical_json(params)
        headers = build_headers(self._api_key, self._secret_key, body)
        url = self.base_url + api_method
        logger.debug(f"API request | method={api_method} verb={http_method}")

        try:
            async with session.request(http_method, url, headers=headers, data=body.encode("utf-8"), **self._request_kwargs()) as resp:
                text = await resp.text()
                status = resp.status
                reason = resp.reason
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timeout: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed: {e}") from e

        if not (200 <= status < 300):
            error = api.error_from_http(status, reason, text)
            logger.warning(f"API HTTP error | method={api_method} status={status}")
            raise error

        try:
            payload = json.loads(text)
        except ValueError as e:
            raise FixedFloatAPIError(f"Invalid JSON response: {text[:200]}", http_status=status) from e

        try:
            return api.unwrap_envelope(payload)
        except FixedFloatAPIError as e:
            logger.warning(f"API error | method={api_method} code={e.code} msg={e.message}")
            raise

    async def get_currencies(self) -> Any:
        """List all currencies available for exchange."""
        return await self._request(api.CURRENCIES)

    async def get_price(self, from_ccy: str, to_ccy: str, amount: Any, direction: str = "from", order_type: str = "float") -> Any:
        """Quote a currency pair for a given amount."""
        return await self._request(api.PRICE, api.price_params(from_ccy, to_ccy, amount, direction, order_type))

    async def create_order(
        self,
        from_ccy: str,
        to_ccy: str,
        to_address: str,
        amount: Any,
        direction: str = "from",
        order_type: str = "float",
        extra_id: Optional[str] = None,
        refund_address: Optional[str] = None,
        refund_extra_id: Optional[str] = None,
    ) -> AsyncOrder:
        """Create an exchange order and return its handle."""
        params = api.create_order_params(
            from_ccy, to_ccy, to_address, amount, direction, order_type,
            extra_id=extra_id, refund_address=refund_address, refund_extra_id=refund_extra_id,
        )
        data = await self._request(api.CREATE, params)
        order = AsyncOrder(data, self)
        logger.info(f"Order created | id={order.snapshot.id} status={order.snapshot.status}")
        return order

    async def _fetch_order_data(self, order_id: str, token: str) -> Any:
        return await self._request(api.ORDER, api.order_params(order_id, token, operation="fetch_order"))

    async def get_order(self, order_id: str, token: str) -> AsyncOrder:
        """Fetch an existing order by id and token."""
        return AsyncOrder(await self._fetch_order_data(order_id, token), self)

    async def set_emergency(self, order_id: str, token: str, choice: str, address: Optional[str] = None) -> Any:
        """Choose EXCHANGE or REFUND for an order in EMERGENCY status."""
        return await self._request(api.EMERGENCY, api.emergency_params(order_id, token, choice, address))

    async def set_email_notification(self, order_id: str, token: str, email: str) -> Any:
        return await self._request(api.SET_EMAIL, api.email_params(order_id, token, email))

    async def get_qr_codes(self, order_id: str, token: str) -> Any:
        return await self._request(api.QR, api.order_params(order_id, token, operation="get_qr_codes"))

    async def get_rates_xml(self, rate_type: str = "float") -> str:
        """Download the public XML rates export; no credentials are sent."""
        url = api.rates_url(rate_type, self.rates_url)
        session = self._require_session()
        try:
            async with session.request("GET", url, **self._request_kwargs()) as resp:
                text = await resp.text()
                status = resp.status
                reason = resp.reason
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request timeout: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to get rates XML: {e}") from e

        if not (200 <= status < 300):
            raise FixedFloatAPIError(f"Failed to get rates XML: {status} {reason}", http_status=status)
        return text
