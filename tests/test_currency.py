from decimal import Decimal

import pytest

from reconcile.currency import EUR, INR, USD, get_locale, parse_currency, try_parse_currency


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("₹1,23,456", Decimal("123456")),
        ("", Decimal("0")),
        (None, Decimal("0")),
        ("abc", Decimal("0")),
        ("₹ 50,000", Decimal("50000")),
        ("Rs. 5,000", Decimal("5000")),
        ("50000 approx", Decimal("50000")),
        ("12,500.75", Decimal("12500.75")),
        (75000, Decimal("75000")),
        (1500.5, Decimal("1500.5")),
    ],
)
def test_parse_currency_inr(raw, expected):
    assert parse_currency(raw, INR) == expected


def test_unreadable_value_is_distinguished_from_blank():
    assert try_parse_currency("abc", INR) is None
    assert try_parse_currency("   ", INR) == Decimal("0")
    assert try_parse_currency(None, INR) == Decimal("0")


def test_negative_amounts():
    assert parse_currency("(1,000)", INR) == Decimal("-1000")
    assert parse_currency("-₹500", INR) == Decimal("-500")


def test_non_finite_numbers_count_as_zero():
    assert try_parse_currency(float("nan"), INR) is None
    assert parse_currency(float("inf"), INR) == Decimal("0")


def test_booleans_are_not_money():
    assert parse_currency(True, INR) == Decimal("0")


def test_usd_and_eur_locales():
    assert parse_currency("$1,234.50", USD) == Decimal("1234.50")
    assert parse_currency("€1.234,50", EUR) == Decimal("1234.50")


def test_get_locale_falls_back_to_inr():
    assert get_locale("usd") is USD
    assert get_locale("XYZ") is INR
    assert get_locale(None) is INR
