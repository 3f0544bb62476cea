"""Partner / platform revenue split in basis points."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple, Union

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Split:
    partner_bps: int
    platform_bps: int


DEFAULT_SPLIT = Split(partner_bps=9000, platform_bps=1000)


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calc_split(amount: Union[Decimal, str, int, float], split: Split = DEFAULT_SPLIT) -> Tuple[Decimal, Decimal]:
    """
    Split ``amount`` between partner and platform.

    The platform share is the remainder of the rounded amount, so the two
    shares always add up to ``round2(amount)``.
    """
    amount = Decimal(str(amount))
    partner = round2(amount * split.partner_bps / Decimal(10000))
    platform = round2(amount) - partner
    return partner, platform
