from typing import Any, Optional

import requests

from . import api
from .errors import ConfigurationError, FixedFloatAPIError, TransportError, ValidationError
from .logging_setup import logger
from .order import Order
from .secrets import FixedFloatCredentials, load_credentials
from .signing import build_headers, canonical_json


class FixedFloatClient:
    """Synchronous FixedFloat API client built on requests.

    Features:
    - Request signing (X-API-KEY / X-API-SIGN headers) over the exact JSON body.
    - Envelope unwrapping: callers get the ``data`` field, or a typed error.
    - Order handles that refresh themselves through this client.

    Notes:
    - No retries, caching or rate limiting; every failure surfaces once.
    - ``timeout`` defaults to None (no limit); pass one or set it in config.
    - Get a key pair from https://fixedfloat.com/apikey
    """

    def __init__(self, api_key: str, secret_key: str, *, base_url: str = api.BASE_URL, rates_url: str = api.RATES_URL, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        if not api_key or not secret_key:
            raise ConfigurationError("Please provide an API and secret keys")
        self._api_key = api_key
        self._secret_key = secret_key
        self.base_url = base_url.rstrip("/") + "/"
        self.rates_url = rates_url.rstrip("/")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    @classmethod
    def from_credentials(cls, credentials: FixedFloatCredentials, **kwargs) -> "FixedFloatClient":
        """Create a client from FixedFloatCredentials (loaded via the secrets module)."""
        return cls(api_key=credentials.api_key, secret_key=credentials.api_secret, **kwargs)

    @classmethod
    def from_env(cls, config_path: Optional[str] = None, **kwargs) -> "FixedFloatClient":
        """Create a client from FF_API_KEY / FF_API_SECRET, falling back to the JSON credentials file."""
        return cls.from_credentials(load_credentials(config_path), **kwargs)

    @classmethod
    def from_config(cls, config, credentials: FixedFloatCredentials, **kwargs) -> "FixedFloatClient":
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

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(self, api_method: str, params: Optional[dict] = None, http_method: str = "POST") -> Any:
        """Sign and send one API call; return the envelope's ``data``."""
        if not api_method:
            raise ValidationError("Required param: api_method", missing=["api_method"])

        body = canonical_json(params)
        headers = build_headers(self._api_key, self._secret_key, body)
        url = self.base_url + api_method
        logger.debug(f"API request | method={api_method} verb={http_method}")

        try:
            resp = self.session.request(http_method, url, headers=headers, data=body.encode("utf-8"), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        if not resp.ok:
            error = api.error_from_http(resp.status_code, resp.reason, resp.text)
            logger.warning(f"API HTTP error | method={api_method} status={resp.status_code}")
            raise error

        try:
            payload = resp.json()
        except ValueError as e:
            raise FixedFloatAPIError(f"Invalid JSON response: {resp.text[:200]}", http_status=resp.status_code) from e

        try:
            return api.unwrap_envelope(payload)
        except FixedFloatAPIError as e:
            logger.warning(f"API error | method={api_method} code={e.code} msg={e.message}")
            raise

    def get_currencies(self) -> Any:
        """List all currencies available for exchange."""
        return self._request(api.CURRENCIES)

    def get_price(self, from_ccy: str, to_ccy: str, amount: Any, direction: str = "from", order_type: str = "float") -> Any:
        """Quote a currency pair for a given amount.

        Args:
            from_ccy: Currency code to sell (e.g. "BTC")
            to_ccy: Currency code to buy (e.g. "ETH")
            amount: Amount to exchange, coerced to float
            direction: Which amount is fixed, "from" or "to"
            order_type: "fixed" or "float"
        """
        return self._request(api.PRICE, api.price_params(from_ccy, to_ccy, amount, direction, order_type))

    def create_order(
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
    ) -> Order:
        """Create an exchange order and return its handle.

        ``extra_id`` is the MEMO or destination tag for ``to_address``;
        ``refund_address``/``refund_extra_id`` are used if the order fails.
        """
        params = api.create_order_params(
            from_ccy, to_ccy, to_address, amount, direction, order_type,
            extra_id=extra_id, refund_address=refund_address, refund_extra_id=refund_extra_id,
        )
        data = self._request(api.CREATE, params)
        order = Order(data, self)
        logger.info(f"Order created | id={order.snapshot.id} status={order.snapshot.status}")
        return order

    def _fetch_order_data(self, order_id: str, token: str) -> Any:
        return self._request(api.ORDER, api.order_params(order_id, token, operation="fetch_order"))

    def get_order(self, order_id: str, token: str) -> Order:
        """Fetch an existing order by id and token."""
        return Order(self._fetch_order_data(order_id, token), self)

    def set_emergency(self, order_id: str, token: str, choice: str, address: Optional[str] = None) -> Any:
        """Choose EXCHANGE or REFUND for an order in EMERGENCY status."""
        return self._request(api.EMERGENCY, api.emergency_params(order_id, token, choice, address))

    def set_email_notification(self, order_id: str, token: str, email: str) -> Any:
        return self._request(api.SET_EMAIL, api.email_params(order_id, token, email))

    def get_qr_codes(self, order_id: str, token: str) -> Any:
        """List QR code images for an order: ``[{title, src, checked}, ...]``."""
        return self._request(api.QR, api.order_params(order_id, token, operation="get_qr_codes"))

    def get_rates_xml(self, rate_type: str = "float") -> str:
        """Download the public XML rates export; no credentials are sent."""
        url = api.rates_url(rate_type, self.rates_url)
        try:
            resp = self.session.request("GET", url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to get rates XML: {e}") from e

        if not resp.ok:
            raise FixedFloatAPIError(f"Failed to get rates XML: {resp.status_code} {resp.reason}", http_status=resp.status_code)
        return resp.text
