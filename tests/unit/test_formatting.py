"""
Unit tests for number parsing and display formatting.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from estimator.utils.formatters import money, num, pct, date_us
from estimator.utils.number_format import parse_amount, to_decimal


class TestToDecimal:

    def test_float_keeps_short_repr(self):
        assert to_decimal(7.2) == Decimal('7.2')

    def test_negative_kept(self):
        assert to_decimal('-3.5') == Decimal('-3.5')

    @pytest.mark.parametrize('value', [None, True, '', 'abc', 'nan', 'Infinity', float('inf')])
    def test_garbage_reads_as_zero(self, value):
        assert to_decimal(value) == 0

    @pytest.mark.parametrize('value', ['1e400', '9e999999', Decimal('9e999999'), 10 ** 400, 1e300])
    def test_out_of_range_reads_as_zero(self, value):
        assert to_decimal(value) == 0

    def test_limit_is_inclusive(self):
        assert to_decimal('1e15') == Decimal('1e15')
        assert to_decimal('-1e16') == 0


class TestParseAmount:

    @pytest.mark.parametrize('raw, expected', [
        ('abc', '0'),
        ('', '0'),
        ('-5', '0'),
        ('$-5', '0'),
        ('$1,250.50', '1250.50'),
        ('1,5', '0'),
        ('0.25', '0.25'),
        (Decimal('4'), '4'),
    ])
    def test_policy(self, raw, expected):
        assert parse_amount(raw) == Decimal(expected)


class TestFormatters:

    def test_money(self):
        assert money(1500) == "$1,500.00"
        assert money(Decimal('93.324')) == "$93.32"
        assert money(-12.5) == "-$12.50"
        assert money(None) == "-"

    def test_num(self):
        assert num(2) == "2"
        assert num(Decimal('2.000')) == "2"
        assert num(1500.5) == "1,500.5"
        assert num(1.23456, decimals=2) == "1.23"
        assert num('x') == "-"

    def test_pct(self):
        assert pct(10) == "10%"
        assert pct(7.5) == "7.5%"

    def test_date_us(self):
        assert date_us(date(2026, 1, 12)) == "01/12/2026"
        assert date_us(datetime(2026, 3, 4, 15, 30)) == "03/04/2026"
        assert date_us(None) == "-"
