"""Tests for validation and formatting helpers."""

from datetime import date

import pytest

from leadwidget.utils import format_long_date, is_valid_email, is_valid_phone


class TestIsValidPhone:
    @pytest.mark.parametrize("phone", [
        "0412 345 678",
        "+44 (20) 7946-0958",
        "1234567",
        "  0412345678  ",
    ])
    def test_valid(self, phone):
        assert is_valid_phone(phone)

    @pytest.mark.parametrize("phone", ["123456", "", "phone: 0412345678", "0412.345.678"])
    def test_invalid(self, phone):
        assert not is_valid_phone(phone)


class TestIsValidEmail:
    @pytest.mark.parametrize("email", ["a@b.co", "jane.doe+work@example.co.uk"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "jane", "jane@example", "ja ne@example.com", "@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)


class TestFormatLongDate:
    @pytest.mark.parametrize("value,expected", [
        (date(2026, 10, 19), "October 19th, 2026"),
        (date(2026, 3, 1), "March 1st, 2026"),
        (date(2026, 3, 2), "March 2nd, 2026"),
        (date(2026, 3, 3), "March 3rd, 2026"),
        (date(2026, 3, 11), "March 11th, 2026"),
        (date(2026, 3, 12), "March 12th, 2026"),
        (date(2026, 3, 13), "March 13th, 2026"),
        (date(2026, 3, 21), "March 21st, 2026"),
        (date(2026, 3, 22), "March 22nd, 2026"),
        (date(2026, 3, 31), "March 31st, 2026"),
    ])
    def test_ordinals(self, value, expected):
        assert format_long_date(value) == expected
