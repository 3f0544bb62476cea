"""Tests for token unit conversion and the revenue split."""

from decimal import Decimal

import pytest

from turjman.core.split import DEFAULT_SPLIT, Split, calc_split, round2
from turjman.core.units import format_units, parse_units


@pytest.mark.parametrize("raw,decimals,expected", [
    (75_000_000, 6, "75.0"),
    (1_250_000, 6, "1.25"),
    (1, 6, "0.000001"),
    (0, 6, "0.0"),
    (42, 0, "42.0"),
])
def test_format_units(raw, decimals, expected):
    assert format_units(raw, decimals) == expected


def test_parse_units():
    assert parse_units("1.00", 6) == 1_000_000
    assert parse_units(" 0.75 ", 6) == 750_000
    assert parse_units("3", 0) == 3


def test_parse_units_rejects_bad_input():
    with pytest.raises(ValueError):
        parse_units("abc", 6)
    with pytest.raises(ValueError):
        parse_units("1.0000001", 6)
    with pytest.raises(ValueError):
        parse_units("NaN", 6)


def test_default_split_shares():
    partner, platform = calc_split("1.00")
    assert partner == Decimal("0.90")
    assert platform == Decimal("0.10")


@pytest.mark.parametrize("amount", ["0", "0.01", "0.05", "1.25", "0.75", "33.333", "1000.005"])
def test_split_shares_sum_to_rounded_amount(amount):
    partner, platform = calc_split(amount, DEFAULT_SPLIT)
    assert partner + platform == round2(Decimal(amount))
    assert partner == round2(Decimal(amount) * DEFAULT_SPLIT.partner_bps / Decimal(10000))


def test_custom_split():
    partner, platform = calc_split("10", Split(partner_bps=7000, platform_bps=3000))
    assert (partner, platform) == (Decimal("7.00"), Decimal("3.00"))


def test_round2_half_up():
    assert round2(Decimal("0.005")) == Decimal("0.01")
    assert round2(Decimal("0.004")) == Decimal("0.00")
