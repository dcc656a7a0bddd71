"""
FixedFloat API Client.

A client library for the FixedFloat (ff.io) crypto exchange API featuring:
- HMAC-SHA256 request signing over the exact JSON body
- Async client (aiohttp) and sync client (requests) sharing one request layer
- Typed errors for configuration, validation, API, transport and order state failures
- Order handles that refresh themselves and perform order-scoped actions
- Structured logging via loguru
- Configuration-driven (YAML) with credentials from env or a config file

Core Modules:
    async_client: Asynchronous API client
    client: Synchronous API client
    order: Order handles and snapshots
    api: Parameter builders and response envelope handling
    signing: Canonical body serialization and HMAC signature
    errors: Exception hierarchy
    config: Configuration loading
    secrets: Credential management

Example:
    >>> from fixedfloat import AsyncFixedFloatClient, load_credentials
    >>>
    >>> creds = load_credentials()
    >>> async with AsyncFixedFloatClient.from_credentials(creds) as client:
    ...     quote = await client.get_price("BTC", "ETH", 0.5)
    ...     order = await client.create_order("BTC", "ETH", "0xabc", 0.5)
    ...     await order.refresh()
"""

from .async_client import AsyncFixedFloatClient
from .client import FixedFloatClient
from .errors import (
    ConfigurationError,
    FixedFloatAPIError,
    FixedFloatError,
    OrderStateError,
    SessionError,
    TransportError,
    ValidationError,
)
from .order import AsyncOrder, CurrencyLeg, Order, OrderSnapshot, OrderStatus
from .secrets import FixedFloatCredentials, load_credentials

__version__ = "0.1.0"
__all__ = [
    "AsyncFixedFloatClient",
    "FixedFloatClient",
    "AsyncOrder",
    "Order",
    "OrderSnapshot",
    "OrderStatus",
    "CurrencyLeg",
    "FixedFloatCredentials",
    "load_credentials",
    "FixedFloatError",
    "ConfigurationError",
    "ValidationError",
    "FixedFloatAPIError",
    "TransportError",
    "OrderStateError",
    "SessionError",
]
