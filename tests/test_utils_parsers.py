"""Tests for utility parser functions."""

from __future__ import annotations

import sys
from datetime import date
from datetime import datetime
from datetime import timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from cachao.db.models import DiscountType
from cachao.db.models import StaffRole
from cachao.utils.parsers import (
    collect_query_params,
    first_param,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_decimal,
    parse_enum,
    parse_int,
    parse_iso_date_or_none,
)


class TestParseInt:
    """Tests for parse_int function."""

    def test_returns_none_for_none(self) -> None:
        assert parse_int(None) is None

    def test_returns_none_for_empty_string(self) -> None:
        assert parse_int('') is None

    def test_parses_positive_integer(self) -> None:
        assert parse_int('42') == 42

    def test_parses_whole_float(self) -> None:
        assert parse_int(3.0) == 3

    def test_rejects_fractional_float(self) -> None:
        with pytest.raises(ValueError):
            parse_int(2.5)

    def test_rejects_boolean(self) -> None:
        with pytest.raises(ValueError):
            parse_int(True)

    def test_raises_for_invalid_string(self) -> None:
        with pytest.raises(ValueError):
            parse_int('not-a-number')

    @pytest.mark.parametrize('value', [{'n': 1}, [1], object()])
    def test_rejects_non_scalar(self, value) -> None:
        with pytest.raises(ValueError):
            parse_int(value)


class TestParseDecimal:
    """Tests for parse_decimal function."""

    def test_returns_none_for_empty_string(self) -> None:
        assert parse_decimal('') is None

    def test_parses_decimal_value(self) -> None:
        assert parse_decimal('123.45') == Decimal('123.45')

    def test_float_keeps_its_written_value(self) -> None:
        assert parse_decimal(19.99) == Decimal('19.99')

    @pytest.mark.parametrize('value', ['invalid', 'NaN', 'Infinity', False])
    def test_rejects_non_finite_or_garbage(self, value) -> None:
        with pytest.raises(ValueError):
            parse_decimal(value)


class TestParseBool:
    @pytest.mark.parametrize('value', [True, 1, '1', 'true', 'Yes', 'on'])
    def test_truthy(self, value) -> None:
        assert parse_bool(value) is True

    @pytest.mark.parametrize('value', [False, 0, '0', 'false', 'NO', 'off'])
    def test_falsy(self, value) -> None:
        assert parse_bool(value) is False

    def test_missing_is_none(self) -> None:
        assert parse_bool(None) is None

    def test_rejects_other_strings(self) -> None:
        with pytest.raises(ValueError):
            parse_bool('maybe')


class TestParseDatetime:
    """Tests for parse_datetime function."""

    def test_returns_none_for_none(self) -> None:
        assert parse_datetime(None) is None

    def test_parses_iso_format_with_z(self) -> None:
        result = parse_datetime('2030-01-15T10:30:00Z')
        assert result == datetime(2030, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

    def test_naive_values_are_utc(self) -> None:
        result = parse_datetime('2030-01-15T10:30:00')
        assert result.tzinfo is timezone.utc

    def test_accepts_datetime_instances(self) -> None:
        naive = datetime(2030, 1, 15, 10, 30)
        assert parse_datetime(naive) == naive.replace(tzinfo=timezone.utc)

    def test_raises_for_invalid_format(self) -> None:
        with pytest.raises(ValueError):
            parse_datetime('not-a-date')


class TestParseDate:
    def test_plain_date(self) -> None:
        assert parse_date('2030-07-12') == date(2030, 7, 12)

    def test_datetime_string_is_truncated(self) -> None:
        assert parse_date('2030-07-12T23:00:00Z') == date(2030, 7, 12)

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_date('12/07/2030')


class TestParseIsoDateOrNone:
    def test_exact_date(self) -> None:
        assert parse_iso_date_or_none('2030-07-12') == date(2030, 7, 12)

    @pytest.mark.parametrize('value', ['2030-02-30', '12-07-2030', 'soon', 20300712, None])
    def test_anything_else_is_none(self, value) -> None:
        assert parse_iso_date_or_none(value) is None


class TestParseEnum:
    """Tests for parse_enum function."""

    def test_returns_none_for_empty_string(self) -> None:
        assert parse_enum('', StaffRole) is None

    def test_parses_valid_enum_value(self) -> None:
        assert parse_enum('artist', StaffRole) is StaffRole.ARTIST
        assert parse_enum('fixed', DiscountType) is DiscountType.FIXED

    def test_error_lists_allowed_values(self) -> None:
        with pytest.raises(ValueError, match='staff, artist'):
            parse_enum('dj', StaffRole)


class TestFirstParam:
    """Tests for first_param function."""

    def test_returns_none_for_missing_key(self) -> None:
        assert first_param({'other': ['value']}, 'missing') is None

    def test_returns_first_value(self) -> None:
        assert first_param({'key': ['first', 'second']}, 'key') == 'first'


class TestCollectQueryParams:
    """Tests for collect_query_params function."""

    def test_handles_empty_event(self) -> None:
        assert collect_query_params({}) == {}

    def test_collects_single_value_params(self) -> None:
        event = {'queryStringParameters': {'quantity': '2', 'discount_code': 'SALSA'}}
        assert collect_query_params(event) == {
            'quantity': ['2'],
            'discount_code': ['SALSA'],
        }

    def test_handles_none_values(self) -> None:
        event = {'queryStringParameters': {'key': None}}
        assert collect_query_params(event) == {}

    def test_multi_value_does_not_duplicate(self) -> None:
        event = {
            'queryStringParameters': {'limit': '10'},
            'multiValueQueryStringParameters': {'limit': ['10', '20']},
        }
        assert collect_query_params(event) == {'limit': ['10', '20']}
