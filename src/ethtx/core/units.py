"""
Denomination conversions between wei, gwei and ether.

Formatting uses integer arithmetic and parsing uses a wide Decimal context,
so large balances keep every digit.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Union

from ethtx.codec.hexutil import hex_to_int
from ethtx.errors import ValidationError

WEI_PER_GWEI = 10 ** 9
WEI_PER_ETHER = 10 ** 18

# Enough significant digits for any 256-bit wei amount
_DECIMAL_PRECISION = 80

Amount = Union[int, str, Decimal]


def to_wei_int(value: Amount) -> int:
    """Read a wei amount given as int, decimal string or hex string."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.startswith(("0x", "0X")):
        return hex_to_int(value)
    decimal = _to_decimal(value)
    if decimal != decimal.to_integral_value():
        raise ValidationError(f"Wei amounts must be whole numbers: {value!r}")
    return int(decimal)


def wei_to_ether(wei: Amount) -> str:
    """Format a wei amount as ether with 18 decimals."""
    return _format(to_wei_int(wei), WEI_PER_ETHER, 18)


def wei_to_gwei(wei: Amount) -> str:
    """Format a wei amount as gwei with 9 decimals."""
    return _format(to_wei_int(wei), WEI_PER_GWEI, 9)


def ether_to_wei(ether: Amount) -> int:
    return _scale(ether, WEI_PER_ETHER)


def gwei_to_wei(gwei: Amount) -> int:
    return _scale(gwei, WEI_PER_GWEI)


def _scale(amount: Amount, factor: int) -> int:
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        scaled = _to_decimal(amount) * factor
        if scaled < 0:
            raise ValidationError(f"Amount must not be negative: {amount!r}")
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"Not an amount: {value!r}")
    try:
        decimal = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"Not an amount: {value!r}") from e
    if not decimal.is_finite():
        raise ValidationError(f"Not an amount: {value!r}")
    return decimal


def _format(wei: int, factor: int, places: int) -> str:
    sign = "-" if wei < 0 else ""
    whole, fraction = divmod(abs(wei), factor)
    return f"{sign}{whole}.{fraction:0{places}d}"
