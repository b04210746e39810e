from decimal import Decimal

import pytest
from django.test import override_settings

from commerce.pricing import normalize_price


@pytest.mark.parametrize("value, unit, expected", [
    (2500, "minor", "25.00"),
    ("1999", "minor", "19.99"),
    (2500, "major", "2500.00"),
    (19.999, "major", "20.00"),
    (5, "minor", "0.05"),
    (None, None, "0.00"),
    ("", "major", "0.00"),
])
def test_explicit_unit_wins(value, unit, expected):
    assert normalize_price(value, unit) == Decimal(expected)


@pytest.mark.parametrize("value, expected", [
    (2500, "25.00"),      # above threshold: cents
    (1000, "1000.00"),    # at threshold: major
    (19.99, "19.99"),
    ("250000", "2500.00"),
])
def test_legacy_threshold_without_unit(value, expected):
    assert normalize_price(value) == Decimal(expected)


@override_settings(CART_PRICE_MINOR_UNIT_THRESHOLD=100)
def test_threshold_is_configurable():
    assert normalize_price(150) == Decimal("1.50")


@pytest.mark.parametrize("value", ["abc", -1, "-0.01", True, "NaN", "Infinity"])
def test_invalid_prices_raise_value_error(value):
    with pytest.raises(ValueError):
        normalize_price(value, "major")


@pytest.mark.parametrize("value, unit", [
    ("1e30", "minor"),
    ("1e30", "major"),
    ("1e16", "major"),
    (10 ** 18, "minor"),
])
def test_prices_beyond_money_columns_raise_value_error(value, unit):
    with pytest.raises(ValueError):
        normalize_price(value, unit)


def test_largest_storable_price_passes():
    assert normalize_price("9999999999999999.99", "major") == Decimal("9999999999999999.99")
