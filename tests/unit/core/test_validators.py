"""
Tests for payload normalization helpers.

Tests:
- Service date parsing (ISO, Z suffix, fallback formats)
- Monetary amounts (required vs optional)
- Image list encoding and defensive decoding
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from core.errors import ValidationError
from core.utils.validators import (
    clean_text,
    decode_images,
    encode_images,
    is_blank,
    parse_amount,
    parse_service_date,
)


class TestTextHelpers:
    @pytest.mark.parametrize("value,expected", [
        (None, True),
        ("", True),
        ("   ", True),
        ("x", False),
        (0, False),
    ])
    def test_is_blank(self, value, expected):
        assert is_blank(value) == expected

    def test_clean_text(self):
        assert clean_text("  Fix sink  ") == "Fix sink"
        assert clean_text("   ") is None
        assert clean_text(None) is None


class TestParseServiceDate:
    """Test service date parsing."""

    def test_iso_with_z_suffix(self):
        parsed = parse_service_date("2026-11-02T09:30:00Z")
        assert parsed == datetime(2026, 11, 2, 9, 30, tzinfo=timezone.utc)

    def test_iso_with_offset_is_converted_to_utc(self):
        parsed = parse_service_date("2026-11-02T09:30:00+02:00")
        assert parsed == datetime(2026, 11, 2, 7, 30, tzinfo=timezone.utc)

    def test_naive_values_are_utc(self):
        assert parse_service_date("2026-11-02").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", ["11/02/2026", "2026-11-02 09:30", "11/02/2026 09:30"])
    def test_fallback_formats(self, value):
        assert parse_service_date(value).date() == date(2026, 11, 2)

    def test_date_object(self):
        assert parse_service_date(date(2026, 11, 2)) == datetime(2026, 11, 2, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["soon", "", None, 12345, "2026-13-45"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_service_date(value)
        assert "Invalid date format" in exc_info.value.message


class TestParseAmount:
    """Test monetary amount parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("100", Decimal("100.00")),
        (99.999, Decimal("100.00")),
        (" 12.5 ", Decimal("12.50")),
        (7, Decimal("7.00")),
        ("9999999999.99", Decimal("9999999999.99")),
    ])
    def test_valid(self, value, expected):
        assert parse_amount(value, "bid_amount") == expected

    @pytest.mark.parametrize("value", [
        None, "", "0", 0, "-1", "abc", "NaN", "Infinity", True, "0.001", "1e30", "10000000000",
    ])
    def test_required_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value, "bid_amount")

    def test_optional_blank_is_none(self):
        assert parse_amount("", "min_budget", required=False) is None
        assert parse_amount(None, "min_budget", required=False) is None

    def test_optional_allows_zero_but_not_negative(self):
        assert parse_amount("0", "min_budget", required=False) == Decimal("0.00")
        with pytest.raises(ValidationError):
            parse_amount("-5", "min_budget", required=False)

    def test_field_name_in_message(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(None, "bid_amount")
        assert "bid_amount" in exc_info.value.message


class TestImages:
    """Test image list serialization."""

    def test_encode_strips_and_drops_blanks(self):
        assert encode_images([" a.jpg ", "", "b.jpg"]) == '["a.jpg", "b.jpg"]'

    def test_encode_none(self):
        assert encode_images(None) == "[]"

    @pytest.mark.parametrize("value", ["a.jpg", [1, 2], {"a": 1}])
    def test_encode_rejects_non_lists(self, value):
        with pytest.raises(ValidationError):
            encode_images(value)

    @pytest.mark.parametrize("stored,expected", [
        ('["a.jpg", "b.jpg"]', ["a.jpg", "b.jpg"]),
        ("", []),
        (None, []),
        ("not json", []),
        ('{"a": 1}', []),
        ('["a.jpg", 3]', ["a.jpg"]),
        (["x.jpg"], ["x.jpg"]),
    ])
    def test_decode_is_defensive(self, stored, expected):
        assert decode_images(stored) == expected
