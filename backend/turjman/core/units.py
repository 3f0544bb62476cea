"""Fixed-point conversion between raw token integers and decimal strings."""

from decimal import Decimal, InvalidOperation


def format_units(raw: int, decimals: int) -> str:
    """
    Render a raw integer token amount as a decimal string.

    Trailing fractional zeros are trimmed but one fractional digit is always
    kept, e.g. ``format_units(75000000, 6) == "75.0"``.
    """
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(raw), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def parse_units(amount: str, decimals: int) -> int:
    """
    Parse a decimal string into the token's raw integer representation.

    Raises:
        ValueError: If the value is not numeric or has more fractional
            digits than the token supports
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")

    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)
