"""Unit tests for money and quantity helpers."""

from decimal import Decimal

import pytest

from ffe_budget.services.money import (
    coerce_non_negative,
    format_currency,
    format_signed_currency,
    line_total,
    parse_non_negative,
    parse_number,
    parse_price_text,
    to_decimal,
)


pytestmark = pytest.mark.unit


class TestParseNumber:
    """parse_number / parse_non_negative 測試."""

    @pytest.mark.parametrize("value, expected", [
        (12, 12.0),
        (12.5, 12.5),
        ("12.5", 12.5),
        ("  7 ", 7.0),
        (Decimal("3.25"), 3.25),
        ("-4", -4.0),
    ])
    def test_parses_numbers(self, value, expected):
        """測試數字與數字字串."""
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "nan", "inf", float("nan"), float("-inf"), True, [1]])
    def test_rejects_non_numbers(self, value):
        """測試非數字與非有限值."""
        assert parse_number(value) is None

    def test_non_negative_rejects_negative(self):
        assert parse_non_negative(-5) is None
        assert parse_non_negative("-0.01") is None
        assert parse_non_negative(0) == 0.0

    def test_coerce_defaults_to_zero(self):
        """載入時無法解析的數值改為 0."""
        assert coerce_non_negative("abc") == 0.0
        assert coerce_non_negative(None) == 0.0
        assert coerce_non_negative(-3) == 0.0
        assert coerce_non_negative("4") == 4.0


class TestParsePriceText:
    """報價字串解析測試."""

    @pytest.mark.parametrize("text, expected", [
        ("$1,234.00", 1234.0),
        ("USD 89.99 / ea", 89.99),
        ("450", 450.0),
        ("$.50", 0.5),
    ])
    def test_extracts_price(self, text, expected):
        assert parse_price_text(text) == expected

    @pytest.mark.parametrize("text", [None, "", "call for price", "$"])
    def test_no_price(self, text):
        assert parse_price_text(text) is None


class TestDecimalMath:
    """Decimal 計算與顯示格式測試."""

    def test_to_decimal_uses_shortest_repr(self):
        """0.1 不應帶入二進位誤差."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")

    def test_line_total(self):
        assert line_total(50, 170) == Decimal("8500")
        assert line_total(3, 19.99) == Decimal("59.97")

    def test_format_currency_rounds_half_up(self):
        assert format_currency(Decimal("1932.125")) == "$1,932"
        assert format_currency(Decimal("18850.5")) == "$18,851"
        assert format_currency(0) == "$0"

    def test_format_currency_negative(self):
        assert format_currency(Decimal("-56.2")) == "-$56"

    def test_format_signed_currency(self):
        assert format_signed_currency(Decimal("729217.875")) == "+$729,218"
        assert format_signed_currency(Decimal("-1200")) == "-$1,200"
        assert format_signed_currency(0) == "+$0"
