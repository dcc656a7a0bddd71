"""
Order handles for FixedFloat exchange orders.

An order is identified by ``(id, token)``; the token is the capability that
allows acting on it. The handle keeps the last snapshot the server reported
and a reference to the client that created it, which it uses to refresh
itself and to perform order-scoped actions.

Status values (informational, never validated locally):
    NEW        New order
    PENDING    Transaction received, pending confirmation
    EXCHANGE   Transaction confirmed, exchange in progress
    WITHDRAW   Sending funds
    DONE       Order completed
    EXPIRED    Order expired
    EMERGENCY  Emergency, customer choice required

Examples:
    >>> async with AsyncFixedFloatClient(key, secret) as client:
    ...     order = await client.get_order("ABC123", "token")
    ...     await order.refresh()
    ...     order.status
    'PENDING'
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import FixedFloatAPIError, OrderStateError
from .logging_setup import logger


class OrderStatus(str, Enum):
    """Order status strings reported by the server."""

    NEW = "NEW"
    PENDING = "PENDING"
    EXCHANGE = "EXCHANGE"
    WITHDRAW = "WITHDRAW"
    DONE = "DONE"
    EXPIRED = "EXPIRED"
    EMERGENCY = "EMERGENCY"


# EMERGENCY stays put until the customer picks EXCHANGE or REFUND
TERMINAL_STATUSES = frozenset({OrderStatus.DONE.value, OrderStatus.EXPIRED.value, OrderStatus.EMERGENCY.value})

# wire name -> model field, so attribute access also works with server keys
_FIELD_ALIASES = {"toAddress": "to_address", "extraId": "extra_id"}


class CurrencyLeg(BaseModel):
    """One side of an order: currency code, name and amount, plus any extra keys."""

    model_config = ConfigDict(extra="allow", frozen=True)

    ccy: Any = None
    name: Any = None
    amount: Any = None


class OrderSnapshot(BaseModel):
    """Immutable copy of the order data returned by the server.

    The known fields are named but untyped, so whatever shape the server
    uses is kept verbatim; anything else it sends lands in the model's extra
    bag and is still reachable as an attribute.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: Any = None
    token: Any = None
    status: Any = None
    type: Any = None
    email: Any = None
    address: Any = None
    to_address: Any = Field(default=None, alias="toAddress")
    extra_id: Any = Field(default=None, alias="extraId")
    from_: Any = Field(default=None, alias="from")
    to: Any = None
    used: Any = None
    expire: Any = None
    remaining: Any = None

    @classmethod
    def from_api(cls, data: Any) -> "OrderSnapshot":
        if data is None:
            raise FixedFloatAPIError("Missing order payload in response")
        if not isinstance(data, Mapping):
            raise FixedFloatAPIError(f"Unexpected order payload: {data!r}")
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            raise FixedFloatAPIError(f"Malformed order payload: {e}", data=data) from e

    def to_dict(self) -> Dict[str, Any]:
        """Order data keyed the way the server sent it."""
        return self.model_dump(by_alias=True, exclude_unset=True)


def _leg(value: Any) -> Any:
    # typed view when the leg is an object, otherwise the raw value
    if isinstance(value, Mapping):
        return CurrencyLeg.model_validate(dict(value))
    return value


class _OrderHandle:
    """State and attribute access shared by the sync and async handles."""

    def __init__(self, order_data: Any, client: Any):
        if client is None:
            raise ValueError("A client instance is required to create an Order object.")
        self._client = client
        self._snapshot = OrderSnapshot.from_api(order_data)

    def _replace(self, order_data: Any) -> None:
        # whole snapshot swap: fields dropped by the server disappear here too
        self._snapshot = OrderSnapshot.from_api(order_data)

    def _require_identity(self, action: str) -> None:
        if not self._snapshot.id or not self._snapshot.token:
            raise OrderStateError(f"Order ID and token are missing, cannot {action}.")

    @property
    def snapshot(self) -> OrderSnapshot:
        return self._snapshot

    @property
    def from_leg(self) -> Any:
        """The ``from`` leg as a CurrencyLeg, or the raw value if it is not an object."""
        return _leg(self._snapshot.from_)

    @property
    def to_leg(self) -> Any:
        return _leg(self._snapshot.to)

    @property
    def is_terminal(self) -> bool:
        status = self._snapshot.status
        return isinstance(status, str) and status in TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return self._snapshot.to_dict()

    def __getattr__(self, name: str) -> Any:
        # only called when normal lookup fails; guard against recursion before init
        if name.startswith("_"):
            raise AttributeError(name)
        snapshot = self.__dict__.get("_snapshot")
        if snapshot is None:
            raise AttributeError(name)
        extra = snapshot.model_extra or {}
        if name in extra:
            return extra[name]
        field = _FIELD_ALIASES.get(name, name)
        if field in type(snapshot).model_fields:
            return getattr(snapshot, field)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __getitem__(self, key: str) -> Any:
        return self._snapshot.to_dict()[key]

    def __contains__(self, key: str) -> bool:
        return key in self._snapshot.to_dict()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._snapshot.id!r}, status={self._snapshot.status!r})"


class Order(_OrderHandle):
    """Order handle bound to a synchronous ``FixedFloatClient``."""

    def refresh(self) -> "Order":
        """Reload the order from the server, replacing every field."""
        self._require_identity("refresh")
        data = self._client._fetch_order_data(self._snapshot.id, self._snapshot.token)
        self._replace(data)
        logger.info(f"Order refreshed | id={self._snapshot.id} status={self._snapshot.status}")
        return self

    def set_emergency(self, choice: str, address: Optional[str] = None) -> Any:
        self._require_identity("set emergency choice")
        return self._client.set_emergency(self._snapshot.id, self._snapshot.token, choice, address)

    def set_email_notification(self, email: str) -> Any:
        self._require_identity("subscribe to notifications")
        return self._client.set_email_notification(self._snapshot.id, self._snapshot.token, email)

    def get_qr_codes(self) -> Any:
        self._require_identity("get QR codes")
        return self._client.get_qr_codes(self._snapshot.id, self._snapshot.token)


class AsyncOrder(_OrderHandle):
    """Order handle bound to an ``AsyncFixedFloatClient``."""

    async def refresh(self) -> "AsyncOrder":
        """Reload the order from the server, replacing every field."""
        self._require_identity("refresh")
        data = await self._client._fetch_order_data(self._snapshot.id, self._snapshot.token)
        self._replace(data)
        logger.info(f"Order refreshed | id={self._snapshot.id} status={self._snapshot.status}")
        return self

    async def set_emergency(self, choice: str, address: Optional[str] = None) -> Any:
        self._require_identity("set emergency choice")
        return await self._client.set_emergency(self._snapshot.id, self._snapshot.token, choice, address)

    async def set_email_notification(self, email: str) -> Any:
        self._require_identity("subscribe to notifications")
        return await self._client.set_email_notification(self._snapshot.id, self._snapshot.token, email)

    async def get_qr_codes(self) -> Any:
        self._require_identity("get QR codes")
        return await self._client.get_qr_codes(self._snapshot.id, self._snapshot.token)
