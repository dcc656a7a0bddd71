import hashlib
import hmac

import pytest

from fixedfloat.errors import ValidationError
from fixedfloat.signing import API_KEY_HEADER, API_SIGN_HEADER, build_headers, canonical_json, sign


def test_canonical_json_is_compact_and_keeps_insertion_order():
    """Keys stay in insertion order with no whitespace between tokens."""
    body = canonical_json({"toCcy": "ETH", "fromCcy": "BTC", "amount": 0.5})
    assert body == '{"toCcy":"ETH","fromCcy":"BTC","amount":0.5}'


def test_canonical_json_of_empty_params():
    assert canonical_json(None) == "{}"
    assert canonical_json({}) == "{}"


def test_canonical_json_keeps_non_ascii_as_utf8():
    assert canonical_json({"email": "jürgen@example.com"}) == '{"email":"jürgen@example.com"}'


def test_canonical_json_rejects_lone_surrogates():
    # os.fsdecode of undecodable argv bytes yields these
    with pytest.raises(ValidationError, match="not valid UTF-8"):
        canonical_json({"email": "a\udcffb@example.com"})


def test_sign_matches_reference_vector():
    """Known HMAC-SHA256 test vector."""
    sig = sign("key", "The quick brown fox jumps over the lazy dog")
    assert sig == "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"


def test_sign_is_deterministic():
    body = canonical_json({"id": "X1", "token": "T1"})
    assert sign("secret", body) == sign("secret", body)


def test_sign_changes_when_any_value_changes():
    base = {"fromCcy": "BTC", "toCcy": "ETH", "amount": 0.5, "direction": "from", "type": "float"}
    reference = sign("secret", canonical_json(base))
    for key, value in [("fromCcy", "LTC"), ("toCcy", "XMR"), ("amount", 0.51), ("direction", "to"), ("type", "fixed")]:
        changed = dict(base, **{key: value})
        assert sign("secret", canonical_json(changed)) != reference


def test_sign_depends_on_secret():
    body = canonical_json({"id": "X1"})
    assert sign("secret-a", body) != sign("secret-b", body)


def test_build_headers():
    body = '{"id":"X1"}'
    headers = build_headers("my-key", "my-secret", body)
    assert headers[API_KEY_HEADER] == "my-key"
    expected = hmac.new(b"my-secret", body.encode("utf-8"), hashlib.sha256).hexdigest()
    assert headers[API_SIGN_HEADER] == expected
    assert headers["Content-Type"] == "application/json; charset=UTF-8"
