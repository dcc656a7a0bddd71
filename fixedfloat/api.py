"""Request builders and response envelope handling shared by both clients.

Each builder validates its inputs and returns the parameter mapping for one
API method, so the sync and async clients only differ in how they send it.
"""
import json
import math
from typing import Any, Dict, Mapping, Optional

from .errors import FixedFloatAPIError, ValidationError

BASE_URL = "https://ff.io/api/v2/"
RATES_URL = "https://ff.io/rates"

RATE_TYPES = ("fixed", "float")
DIRECTIONS = ("from", "to")
EMERGENCY_CHOICES = ("EXCHANGE", "REFUND")

# API method names (URL path segments under BASE_URL)
CURRENCIES = "ccies"
PRICE = "price"
CREATE = "create"
ORDER = "order"
EMERGENCY = "emergency"
SET_EMAIL = "setEmail"
QR = "qr"


def require_params(operation: str, **values: Any) -> None:
    """Raise ValidationError naming every value that is missing (falsy)."""
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Required params for {operation}: {', '.join(missing)}", missing=missing)


def coerce_amount(amount: Any) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {amount!r}")
    if not math.isfinite(value):
        raise ValidationError(f"Invalid amount: {amount!r}")
    return value


def price_params(from_ccy: str, to_ccy: str, amount: Any, direction: str = "from", order_type: str = "float") -> Dict[str, Any]:
    require_params("get_price", from_ccy=from_ccy, to_ccy=to_ccy, amount=amount)
    return {
        "fromCcy": from_ccy,
        "toCcy": to_ccy,
        "amount": coerce_amount(amount),
        "direction": direction,
        "type": order_type,
    }


def create_order_params(
    from_ccy: str,
    to_ccy: str,
    to_address: str,
    amount: Any,
    direction: str = "from",
    order_type: str = "float",
    extra_id: Optional[str] = None,
    refund_address: Optional[str] = None,
    refund_extra_id: Optional[str] = None,
) -> Dict[str, Any]:
    require_params("create_order", from_ccy=from_ccy, to_ccy=to_ccy, to_address=to_address, amount=amount)
    body = {
        "fromCcy": from_ccy,
        "toCcy": to_ccy,
        "toAddress": to_address,
        "amount": coerce_amount(amount),
        "direction": direction,
        "type": order_type,
    }
    # optional fields are only sent when set
    if extra_id:
        body["extraId"] = extra_id
    if refund_address:
        body["refundAddress"] = refund_address
    if refund_extra_id:
        body["refundExtraId"] = refund_extra_id
    return body


def order_params(order_id: str, token: str, operation: str = "get_order") -> Dict[str, Any]:
    require_params(operation, order_id=order_id, token=token)
    return {"id": order_id, "token": token}


def emergency_params(order_id: str, token: str, choice: str, address: Optional[str] = None) -> Dict[str, Any]:
    require_params("set_emergency", order_id=order_id, token=token, choice=choice)
    if choice not in EMERGENCY_CHOICES:
        raise ValidationError(f"Invalid choice for set_emergency: {choice!r}. Must be one of {', '.join(EMERGENCY_CHOICES)}")
    if choice == "REFUND" and not address:
        raise ValidationError("Address is required for REFUND choice in set_emergency", missing=["address"])
    body = {"id": order_id, "token": token, "choice": choice}
    if address:
        body["address"] = address
    return body


def email_params(order_id: str, token: str, email: str) -> Dict[str, Any]:
    require_params("set_email_notification", order_id=order_id, token=token, email=email)
    return {"id": order_id, "token": token, "email": email}


def rates_url(rate_type: str = "float", base: str = RATES_URL) -> str:
    if rate_type not in RATE_TYPES:
        raise ValidationError(f"Invalid type for get_rates_xml: {rate_type!r}. Must be 'fixed' or 'float'.")
    return f"{base.rstrip('/')}/{rate_type}.xml"


def unwrap_envelope(payload: Any) -> Any:
    """Return ``data`` from a ``{code, msg, data}`` envelope or raise the API error."""
    if not isinstance(payload, Mapping) or "code" not in payload:
        raise FixedFloatAPIError(f"Unexpected response payload: {payload!r}")

    code = payload["code"]
    if code != 0:
        data = payload.get("data")
        message = payload.get("msg")
        if not message and isinstance(data, Mapping):
            message = data.get("message")
        raise FixedFloatAPIError(message or "Unknown API error", code=code, data=data)
    return payload.get("data")


def error_from_http(status: int, reason: Optional[str], text: str) -> FixedFloatAPIError:
    """Build the error for a non-2xx response, keeping the envelope message if any."""
    message = f"Request failed: {status} {reason or ''}".rstrip()
    code = None
    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None

    if isinstance(payload, Mapping) and payload.get("msg"):
        message += f" - API Message: {payload['msg']}"
        code = payload.get("code")
    elif text:
        message += f" - Body: {text}"
    return FixedFloatAPIError(message, code=code, http_status=status)
