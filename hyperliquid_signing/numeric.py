"""Number formatting for the Hyperliquid wire format.

Prices, sizes and trigger prices travel as canonical decimal strings.
Some hashed fields use fixed-point integers instead.

Any rounding at this stage would make the signed action differ from what
the caller meant, so lossy conversions raise :py:class:`~hyperliquid_signing.exceptions.PrecisionError`
instead of silently rounding.

Example::

    from hyperliquid_signing.numeric import float_to_wire, float_to_usd_int

    assert float_to_wire(1670.10) == "1670.1"
    assert float_to_usd_int(100.123456) == 100123456
"""

import math
import re
import time
from decimal import Decimal

from hyperliquid_signing.constants import HASHING_DECIMALS, USD_DECIMALS, WIRE_DECIMALS
from hyperliquid_signing.exceptions import PrecisionError

#: Largest signed 64-bit integer
INT64_MAX = 2**63 - 1

#: Smallest signed 64-bit integer
INT64_MIN = -(2**63)

#: Maximum distance between the input and its 8-decimal rounding
WIRE_ROUNDING_TOLERANCE = 1e-12

#: Maximum distance between the scaled input and the nearest integer
INT_ROUNDING_TOLERANCE = 1e-3

_CANONICAL_DECIMAL_RE = re.compile(r"-?(0|[1-9][0-9]*)(\.[0-9]{0,7}[1-9])?")


def _check_finite(x: float):
    if not math.isfinite(x):
        raise PrecisionError("Cannot encode non-finite number", x)


def float_to_wire(x: float) -> str:
    """Convert a price or a size to its canonical wire string.

    - Round to 8 fractional digits
    - Refuse if the rounding changed the value
    - Drop trailing zeros and a dangling decimal point

    :param x:
        Price or size as a float

    :return:
        E.g. ``"1.5"``, ``"0"``, ``"1000000"``, ``"0.00000001"``

    :raise PrecisionError:
        If ``x`` is not finite or has more than 8 significant fractional digits
    """
    _check_finite(x)
    rounded = f"{x:.{WIRE_DECIMALS}f}"
    if abs(float(rounded) - x) >= WIRE_ROUNDING_TOLERANCE:
        raise PrecisionError("float_to_wire causes rounding", x)

    normalised = Decimal(rounded).normalize()
    if normalised.is_zero():
        # Also catches -0
        return "0"
    return f"{normalised:f}"


def float_to_int(x: float, power: int) -> int:
    """Convert a float to a fixed-point integer with ``power`` decimals.

    :param x:
        Input value

    :param power:
        Number of decimal places, e.g. 6 for USD

    :return:
        ``round(x * 10**power)`` as a signed 64-bit range integer

    :raise PrecisionError:
        If the scaled value is not within 1e-3 of an integer or does not fit int64
    """
    _check_finite(x)
    with_decimals = x * 10**power
    rounded = round(with_decimals)
    if abs(rounded - with_decimals) >= INT_ROUNDING_TOLERANCE:
        raise PrecisionError("float_to_int causes rounding", x)
    if not (INT64_MIN <= rounded <= INT64_MAX):
        raise PrecisionError("float_to_int overflows int64", x)
    return int(rounded)


def float_to_int_for_hashing(x: float) -> int:
    """Fixed-point integer with 8 decimals."""
    return float_to_int(x, HASHING_DECIMALS)


def float_to_usd_int(x: float) -> int:
    """Fixed-point integer with 6 decimals (USDC precision)."""
    return float_to_int(x, USD_DECIMALS)


def format_usd_amount(x: float) -> str:
    """Format an USD amount for transfer actions.

    Transfers carry the amount as a six decimal string, e.g. ``"1.000000"``.
    """
    _check_finite(x)
    # Refuse sub-micro amounts instead of rounding them away
    float_to_usd_int(x)
    return f"{x:.{USD_DECIMALS}f}"


def is_canonical_wire_decimal(value: str) -> bool:
    """Check a string follows the canonical decimal grammar.

    Optional ``-``, integer digits, optional ``.`` and 1-8 fractional
    digits without trailing zeros. ``"-0"`` is not canonical.
    """
    if not isinstance(value, str) or value == "-0":
        return False
    return _CANONICAL_DECIMAL_RE.fullmatch(value) is not None


def get_timestamp_ms() -> int:
    """Current UNIX time in milliseconds.

    The default nonce for actions.
    """
    return int(time.time() * 1000)
