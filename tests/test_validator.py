"""
Savings Tracker - Input Validator Tests.

Property-based and unit tests for InputValidator class.
Tests ensure amount parsing, lenient coercion, date parsing and
collection of every plan field error.

**Feature: savings-tracker, Property 5: Amount Parsing Precision**
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis.strategies import decimals, text

from savings_tracker.validator import InputValidator, InvalidInputError, ValidationError


class TestInputValidatorUnit:
    """Unit tests for InputValidator."""

    def setup_method(self) -> None:
        """Initialise InputValidator for each test."""
        self.validator = InputValidator()

    def test_parse_plain_amount(self) -> None:
        """Verify plain numbers parse to 2 decimal places."""
        assert self.validator.parse_amount("100", "Allowance") == Decimal("100.00")

    def test_parse_amount_with_symbol_and_separators(self) -> None:
        """Verify peso symbol, spaces and commas are stripped."""
        assert self.validator.parse_amount("₱ 1,250.50", "Allowance") == Decimal("1250.50")

    def test_parse_numeric_types(self) -> None:
        """Verify int, float and Decimal input is accepted."""
        assert self.validator.parse_amount(50, "Allowance") == Decimal("50.00")
        assert self.validator.parse_amount(12.5, "Allowance") == Decimal("12.50")
        assert self.validator.parse_amount(Decimal("7"), "Allowance") == Decimal("7.00")

    def test_parse_zero_allowed_by_default(self) -> None:
        """Verify zero is a valid allowance."""
        assert self.validator.parse_amount("0", "Allowance") == Decimal("0.00")

    def test_parse_zero_rejected_when_positive_required(self) -> None:
        """Verify zero fails when allow_zero is False."""
        with pytest.raises(InvalidInputError, match="positive"):
            self.validator.parse_amount("0", "Price", allow_zero=False)

    def test_parse_empty_amount_raises(self) -> None:
        """Verify a missing allowance is rejected."""
        with pytest.raises(InvalidInputError, match="Allowance cannot be empty"):
            self.validator.parse_amount("", "Allowance")

        with pytest.raises(InvalidInputError):
            self.validator.parse_amount(None, "Allowance")

    def test_parse_negative_amount_raises(self) -> None:
        """Verify negative amounts are rejected."""
        with pytest.raises(InvalidInputError, match="non-negative"):
            self.validator.parse_amount("-5", "Allowance")

    def test_parse_text_raises(self) -> None:
        """Verify non-numeric text is rejected."""
        with pytest.raises(InvalidInputError, match="valid number"):
            self.validator.parse_amount("lots", "Allowance")

    def test_error_carries_field(self) -> None:
        """Verify the raised error lists the failing field."""
        with pytest.raises(InvalidInputError) as exc_info:
            self.validator.parse_amount("abc", "Allowance")

        assert exc_info.value.errors[0].field_name == "Allowance"
        assert isinstance(exc_info.value, ValueError)

    def test_coerce_amount_defaults_to_zero(self) -> None:
        """Verify absent or invalid manual targets become 0."""
        assert self.validator.coerce_amount(None) == Decimal("0")
        assert self.validator.coerce_amount("") == Decimal("0")
        assert self.validator.coerce_amount("abc") == Decimal("0")
        assert self.validator.coerce_amount("nan") == Decimal("0")

    def test_coerce_amount_parses_numbers(self) -> None:
        """Verify valid values pass through coercion."""
        assert self.validator.coerce_amount("₱25.5") == Decimal("25.5")
        assert self.validator.coerce_amount(40) == Decimal("40")

    def test_coerce_amount_rounds_to_cents(self) -> None:
        """Verify coerced amounts use banker's rounding to 2 places."""
        assert str(self.validator.coerce_amount("10.005")) == "10.00"
        assert str(self.validator.coerce_amount("10.015")) == "10.02"
        assert str(self.validator.coerce_amount(7)) == "7.00"

    def test_coerce_amount_too_large_is_zero(self) -> None:
        """Verify values beyond Decimal precision coerce to 0."""
        assert self.validator.coerce_amount("1e999999") == Decimal("0")

    def test_parse_date(self) -> None:
        """Verify ISO strings, dates and datetimes parse to dates."""
        assert self.validator.parse_date("2024-01-31", "Start") == date(2024, 1, 31)
        assert self.validator.parse_date(date(2024, 1, 31), "Start") == date(2024, 1, 31)
        assert self.validator.parse_date(
            datetime(2024, 1, 31, 10, 0), "Start"
        ) == date(2024, 1, 31)

    def test_parse_invalid_date_raises(self) -> None:
        """Verify malformed dates are rejected."""
        with pytest.raises(InvalidInputError, match="YYYY-MM-DD"):
            self.validator.parse_date("31/01/2024", "Start")

    def test_validate_plan_fields_success(self) -> None:
        """Verify a complete fixed-end plan validates."""
        result = self.validator.validate_plan_fields(
            " Laptop ", "2024-01-01", "2024-06-28", True, "30,000"
        )

        assert result == (
            "Laptop", date(2024, 1, 1), date(2024, 6, 28), Decimal("30000.00")
        )

    def test_validate_plan_fields_indefinite(self) -> None:
        """Verify end date is ignored without use_end_date and goal defaults to 0."""
        name, start, end, goal = self.validator.validate_plan_fields(
            "Fund", "2024-01-01", "garbage", False, None
        )

        assert end is None
        assert goal == Decimal("0")

    def test_validate_plan_fields_collects_all_errors(self) -> None:
        """Verify every missing field is reported at once."""
        with pytest.raises(InvalidInputError) as exc_info:
            self.validator.validate_plan_fields("", "", None, True, "x")

        fields = [e.field_name for e in exc_info.value.errors]
        assert fields == ["Name", "Start Date", "End Date", "Goal"]

    def test_validate_plan_end_before_start(self) -> None:
        """Verify an end date before the start date is rejected."""
        with pytest.raises(InvalidInputError, match="before the start date"):
            self.validator.validate_plan_fields(
                "Plan", "2024-02-01", "2024-01-01", True
            )

    def test_validate_exclusion(self) -> None:
        """Verify a single-day exclusion is valid."""
        assert self.validator.validate_exclusion(
            "2024-01-03", "2024-01-03"
        ) == (date(2024, 1, 3), date(2024, 1, 3))

    def test_validate_exclusion_reversed_raises(self) -> None:
        """Verify start after end is rejected."""
        with pytest.raises(InvalidInputError, match="before its start"):
            self.validator.validate_exclusion("2024-01-05", "2024-01-03")

    def test_validate_product(self) -> None:
        """Verify products need a name and a valid price."""
        assert self.validator.validate_product("Coffee", "45") == (
            "Coffee", Decimal("45.00")
        )
        with pytest.raises(InvalidInputError) as exc_info:
            self.validator.validate_product(" ", "abc")
        assert len(exc_info.value.errors) == 2

    def test_validation_error_str(self) -> None:
        """Verify the formatted error message."""
        error = ValidationError("Allowance", "", "Allowance cannot be empty")

        assert str(error) == "Error: 'Allowance' - Allowance cannot be empty"

    def test_format_php(self) -> None:
        """Verify peso formatting."""
        assert self.validator.format_php(Decimal("12345.678")) == "₱12,345.68"


class TestInputValidatorProperty:
    """
    Property-based tests for amount parsing.

    **Feature: savings-tracker, Property 5: Amount Parsing Precision**
    """

    def setup_method(self) -> None:
        """Initialise InputValidator for each test."""
        self.validator = InputValidator()

    @given(decimals(
        min_value=Decimal("0"),
        max_value=Decimal("10000000"),
        places=2,
        allow_nan=False,
        allow_infinity=False
    ))
    @settings(max_examples=200)
    def test_formatted_amount_round_trips(self, amount: Decimal) -> None:
        """Property: a peso-formatted amount parses back to itself."""
        formatted = self.validator.format_php(amount)

        assert self.validator.parse_amount(formatted, "Allowance") == amount

    @given(text(max_size=20))
    @settings(max_examples=200)
    def test_coerce_never_raises(self, value: str) -> None:
        """Property: lenient coercion always returns a Decimal."""
        assert isinstance(self.validator.coerce_amount(value), Decimal)
