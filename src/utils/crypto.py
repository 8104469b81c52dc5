import hashlib
import hmac
import json
import math
from decimal import Decimal
from typing import Any

SIGNATURE_FIELD = "signature"

# Integers beyond this are not exact doubles on the signing side.
MAX_SAFE_INTEGER = 2**53


def format_number(value: int | float) -> str:
    """Render a number exactly as JavaScript's Number#toString does.

    The origin gateway signs ``JSON.stringify`` output, so ``100.0`` must
    become ``100``, ``1e-07`` must become ``1e-7`` and ``1e21`` must stay in
    exponent form as ``1e+21``.
    """
    if isinstance(value, int) and abs(value) <= MAX_SAFE_INTEGER:
        return str(value)
    try:
        value = float(value)
    except OverflowError as exc:
        raise ValueError(f"Integer too large for a JSON number: {value}") from exc
    if not math.isfinite(value):
        raise ValueError(f"Out of range float values are not JSON compliant: {value!r}")
    if value == 0:
        return "0"
    if value < 0:
        return "-" + format_number(-value)

    # repr() yields the shortest round-tripping digits, as JavaScript does.
    _, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = k + exponent  # position of the decimal point relative to the digits

    if k <= n <= 21:
        return digits + "0" * (n - k)
    if 0 < n <= 21:
        return f"{digits[:n]}.{digits[n:]}"
    if -6 < n <= 0:
        return "0." + "0" * -n + digits
    mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{mantissa}e{n - 1:+d}"


def _encode(value: Any) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, dict):
        items = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"keys must be str, not {type(key).__name__}")
            items.append(f"{_encode(key)}:{_encode(item)}")
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(item) for item in value) + "]"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_json(payload: dict) -> str:
    """Serialize a payload the way the origin gateway signs it.

    The top-level signature field is dropped, key order is kept as received,
    the output is compact with non-ASCII characters left unescaped, and
    numbers follow JavaScript formatting.
    """
    unsigned = {k: v for k, v in payload.items() if k != SIGNATURE_FIELD}
    return _encode(unsigned)


def sign_body(body: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of a raw request body."""
    return hmac.new(
        secret.encode("utf-8"),
        body.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def generate_signature(payload: dict, secret: str) -> str:
    """Generate HMAC-SHA256 signature for a JSON payload."""
    return sign_body(canonical_json(payload), secret)


def verify_signature(payload: dict, secret: str, signature: str) -> bool:
    """Verify HMAC-SHA256 signature against a JSON payload."""
    if not isinstance(payload, dict) or not isinstance(signature, str) or not signature:
        return False
    try:
        expected = generate_signature(payload, secret)
        return hmac.compare_digest(expected, signature)
    except (TypeError, ValueError):
        return False
