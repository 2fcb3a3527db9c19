"""Address validation and exact conversion between display and smallest units.

All arithmetic uses Decimal under a context wide enough for uint256, so no
value is ever routed through binary floating point.
"""

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from web3 import Web3

from minivault.exceptions import InvalidAddressError, InvalidAmountError

# uint256 max has 78 decimal digits
_PRECISION = 80
MAX_UINT256 = 2**256 - 1

_PLAIN_DECIMAL = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")


def validate_address(value: str) -> str:
    """Validate an EVM address and return its checksummed form.

    Accepts all-lowercase or all-uppercase hex, and mixed case only when the
    EIP-55 checksum is correct.

    Raises:
        InvalidAddressError: If the value is not a 20-byte hex address.
    """
    candidate = value.strip() if isinstance(value, str) else ""
    if not candidate or not Web3.is_address(candidate):
        raise InvalidAddressError("Destination address looks invalid.")
    return Web3.to_checksum_address(candidate)


def parse_amount(value: str) -> Decimal:
    """Parse a positive plain decimal amount.

    Raises:
        InvalidAmountError: On empty input, signs, exponents, non-numbers or
            values that are not strictly positive.
    """
    candidate = value.strip() if isinstance(value, str) else ""
    if not _PLAIN_DECIMAL.match(candidate):
        raise InvalidAmountError(f"Amount must be a positive decimal number, got {value!r}")

    try:
        amount = Decimal(candidate)
    except InvalidOperation as e:
        raise InvalidAmountError(f"Amount is not a number: {value!r}") from e

    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    return amount


def to_smallest_unit(amount: str | Decimal, decimals: int = 18) -> int:
    """Convert a display amount to the chain's smallest integer unit.

    Args:
        amount: Decimal string (or Decimal) in native-asset units.
        decimals: Number of fractional digits of the native asset.

    Returns:
        Exact integer amount, e.g. "1" -> 10**18 and "0.1" -> 10**17.

    Raises:
        InvalidAmountError: If the amount is not positive, has more fractional
            digits than the asset supports, or does not fit in uint256.
    """
    value = amount if isinstance(amount, Decimal) else parse_amount(amount)
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError("Amount must be greater than zero")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
        integral = scaled.to_integral_value(rounding=ROUND_DOWN)
        if scaled != integral:
            raise InvalidAmountError(
                f"Amount has more than {decimals} decimal places: {value}"
            )

    result = int(integral)
    if result > MAX_UINT256:
        raise InvalidAmountError("Amount is too large")
    return result


def from_smallest_unit(value: int, decimals: int = 18) -> Decimal:
    """Convert a smallest-unit integer to an exact Decimal display amount."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(value).scaleb(-decimals)


def format_amount(value: Decimal, places: int = 6) -> str:
    """Format an amount for display, rounding toward zero."""
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return str(value.quantize(quantum, rounding=ROUND_DOWN))
