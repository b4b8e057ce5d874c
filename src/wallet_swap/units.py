from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from .constants import MAX_UINT256
from .exceptions import AmountScalingError


def parse_units(amount: str, decimals: int) -> int:
    """Scale a human-readable decimal amount to integer native units.

    Args:
        amount: Decimal string such as ``"1.5"`` in whole-token units.
        decimals: Decimal precision of the token.

    Returns:
        The amount multiplied by ``10**decimals`` as an exact integer.

    Raises:
        AmountScalingError: If the amount is empty, not a finite decimal,
            negative, has more fractional digits than ``decimals``, or does
            not fit in a uint256.
    """
    if decimals < 0:
        raise AmountScalingError(amount, decimals, "decimals must be non-negative")

    text = amount.strip() if isinstance(amount, str) else ""
    if not text:
        raise AmountScalingError(amount, decimals, "amount is empty")

    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise AmountScalingError(amount, decimals, "not a decimal number") from e

    if not value.is_finite():
        raise AmountScalingError(amount, decimals, "not a finite number")
    if value < 0:
        raise AmountScalingError(amount, decimals, "amount is negative")

    with localcontext() as ctx:
        # Enough precision that scaling never rounds
        ctx.prec = len(value.as_tuple().digits) + decimals + 2
        native = value.scaleb(decimals)
        if native != native.to_integral_value():
            raise AmountScalingError(
                amount, decimals, f"more than {decimals} fractional digits"
            )
        result = int(native)

    if result > MAX_UINT256:
        raise AmountScalingError(amount, decimals, "amount exceeds uint256")

    return result


def format_units(value: int, decimals: int) -> str:
    """Format integer native units as a human-readable decimal string.

    Trailing fractional zeros are dropped, ``1500000`` at 6 decimals is ``"1.5"``.
    """
    if decimals < 0:
        raise ValueError("decimals must be non-negative")

    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    if decimals == 0 or frac == 0:
        return f"{sign}{whole}"
    frac_text = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{frac_text}"
