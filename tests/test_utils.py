"""Tests for input parsing helpers."""

from datetime import date

from salon_booking.tools.services import get_all_services, match_service
from salon_booking.utils import format_date, is_valid_tax_id, parse_date, parse_time


class TestTaxId:
    def test_eleven_digits(self):
        assert is_valid_tax_id("12345678901")

    def test_surrounding_whitespace_ignored(self):
        assert is_valid_tax_id("  12345678901 ")

    def test_too_short(self):
        assert not is_valid_tax_id("123")

    def test_letters(self):
        assert not is_valid_tax_id("abcdefghijk")

    def test_punctuation(self):
        assert not is_valid_tax_id("123.456.789-01")

    def test_non_ascii_digits(self):
        assert not is_valid_tax_id("١٢٣٤٥٦٧٨٩٠١")


class TestParseDate:
    def test_valid(self):
        assert parse_date("16/05/2030") == date(2030, 5, 16)

    def test_impossible_day(self):
        assert parse_date("31/02/2030") is None

    def test_iso_format_rejected(self):
        assert parse_date("2030-05-16") is None

    def test_unpadded_rejected(self):
        assert parse_date("6/5/2030") is None

    def test_format_round_trip(self):
        assert format_date(date(2030, 5, 6)) == "06/05/2030"


class TestParseTime:
    def test_padded(self):
        assert parse_time("09:00") == "09:00"

    def test_single_digit_hour_padded(self):
        assert parse_time("9:00") == "09:00"

    def test_out_of_range(self):
        assert parse_time("24:00") is None
        assert parse_time("10:75") is None

    def test_garbage(self):
        assert parse_time("noon") is None


class TestServices:
    def test_catalog_has_three_services(self):
        assert [label for _, label in get_all_services()] == [
            "Haircut", "Haircut + beard", "Hydration",
        ]

    def test_match_by_menu_number(self):
        assert match_service("3") == "Hydration"

    def test_unknown_choice(self):
        assert match_service("4") is None
