"""Request body serialization and HMAC signing.

The signature covers the exact body bytes, so the string returned by
``canonical_json`` must be sent as-is. Keys keep insertion order and the
separators are compact, which is the encoding the FixedFloat service checks
signatures against.
"""
import hashlib
import hmac
import json
from typing import Any, Dict, Mapping, Optional

from .errors import ValidationError

API_KEY_HEADER = "X-API-KEY"
API_SIGN_HEADER = "X-API-SIGN"
CONTENT_TYPE = "application/json; charset=UTF-8"


def canonical_json(params: Optional[Mapping[str, Any]]) -> str:
    """Serialize request parameters to the body string that gets signed and sent."""
    body = json.dumps(dict(params or {}), separators=(",", ":"), ensure_ascii=False)
    try:
        body.encode("utf-8")
    except UnicodeEncodeError as e:
        # lone surrogates (e.g. from surrogateescape-decoded argv) have no UTF-8 form
        raise ValidationError(f"Request parameters are not valid UTF-8 text: {e.reason}") from e
    return body


def sign(secret: str, body: str) -> str:
    """Hex-encoded HMAC-SHA256 of ``body`` keyed by ``secret``."""
    digest = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()


def build_headers(api_key: str, secret: str, body: str) -> Dict[str, str]:
    return {
        API_KEY_HEADER: api_key,
        API_SIGN_HEADER: sign(secret, body),
        "Content-Type": CONTENT_TYPE,
    }
