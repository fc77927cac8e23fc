"""
Savings Tracker - Input Validation Module.

This module validates and parses user-supplied values before any plan or
document is touched. Monetary values are converted to Decimal type and
every problem is reported with the field it belongs to.

Input Conventions:
    - Amounts may carry a peso sign, spaces and thousands separators
    - Dates use the ISO format YYYY-MM-DD
    - Manual daily targets are coerced leniently (invalid becomes 0)

Classes:
    ValidationError: A single validation failure with context.
    InvalidInputError: Exception raised when validation fails.
    InputValidator: Parses and validates user input.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Any, List, Optional, Tuple

ZERO = Decimal("0")


@dataclass
class ValidationError:
    """
    Represents a single validation error with context.

    Attributes:
        field_name: The name of the field that failed validation.
        value: The invalid value that was provided.
        message: A user-facing error message.
    """

    field_name: str
    value: str
    message: str

    def __str__(self) -> str:
        """Returns a formatted error message for display."""
        return f"Error: '{self.field_name}' - {self.message}"


class InvalidInputError(ValueError):
    """
    Raised when user input fails validation.

    No document or plan is mutated when this is raised.

    Attributes:
        errors: Every validation error that was found.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))


class InputValidator:
    """
    Parses and validates user input for plans, days and purchases.

    Example:
        >>> validator = InputValidator()
        >>> validator.parse_amount("₱1,250.50", "Allowance")
        Decimal('1250.50')
    """

    # Pattern to clean currency strings (removes peso sign, spaces, commas)
    CURRENCY_CLEAN_PATTERN = re.compile(r"[₱\s,]|^PHP", re.IGNORECASE)
    NUMBER_PATTERN = re.compile(r"^-?\d+\.?\d*$|^-?\.\d+$")

    def parse_amount(
        self,
        value: Any,
        field_name: str,
        allow_zero: bool = True
    ) -> Decimal:
        """
        Parses a required, non-negative monetary amount.

        Args:
            value: Number or string to parse.
            field_name: Name of the field for error messages.
            allow_zero: If False, the amount must be strictly positive.

        Returns:
            Amount rounded to 2 decimal places.

        Raises:
            InvalidInputError: If the value is empty, not a number or
                out of range.
        """
        amount, error = self._parse_decimal(value, field_name, allow_zero)
        if error:
            raise InvalidInputError([error])
        return amount

    def coerce_amount(self, value: Any) -> Decimal:
        """
        Leniently converts a value to an amount.

        Args:
            value: Number, string or None.

        Returns:
            Parsed amount rounded to 2 places, or 0 for absent or
            unparseable input.
        """
        if value is None or isinstance(value, bool):
            return ZERO
        if isinstance(value, (int, float, Decimal)):
            amount = self._to_decimal(str(value))
        else:
            cleaned = self.CURRENCY_CLEAN_PATTERN.sub("", str(value))
            amount = self._to_decimal(cleaned)
        if amount is None:
            return ZERO
        try:
            return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
        except InvalidOperation:
            # Too many digits to hold at 2 places.
            return ZERO

    def parse_date(self, value: Any, field_name: str) -> date:
        """
        Parses a required ISO date.

        Args:
            value: date, datetime or "YYYY-MM-DD" string.
            field_name: Name of the field for error messages.

        Returns:
            Parsed date.

        Raises:
            InvalidInputError: If the value is empty or malformed.
        """
        parsed, error = self._parse_date(value, field_name)
        if error:
            raise InvalidInputError([error])
        return parsed

    def validate_plan_fields(
        self,
        name: Any,
        start_date: Any,
        end_date: Any = None,
        use_end_date: bool = False,
        goal: Any = None
    ) -> Tuple[str, date, Optional[date], Decimal]:
        """
        Validates the planning inputs of a new or edited plan.

        Args:
            name: Plan name, must not be blank.
            start_date: Required start date.
            end_date: End date, required when use_end_date is True.
            use_end_date: Whether the plan has a fixed end date.
            goal: Savings goal, blank means no goal.

        Returns:
            Tuple of (name, start date, end date or None, goal).

        Raises:
            InvalidInputError: With every problem found.
        """
        errors: List[ValidationError] = []

        clean_name = str(name).strip() if name is not None else ""
        if not clean_name:
            errors.append(ValidationError(
                field_name="Name",
                value="" if name is None else str(name),
                message="Plan name cannot be empty"
            ))

        start, start_error = self._parse_date(start_date, "Start Date")
        if start_error:
            errors.append(start_error)

        end: Optional[date] = None
        if use_end_date:
            end, end_error = self._parse_date(end_date, "End Date")
            if end_error:
                errors.append(end_error)
            elif start is not None and end < start:
                errors.append(ValidationError(
                    field_name="End Date",
                    value=str(end_date),
                    message="End date cannot be before the start date"
                ))

        parsed_goal = ZERO
        if goal is not None and str(goal).strip():
            parsed_goal, goal_error = self._parse_decimal(goal, "Goal")
            if goal_error:
                errors.append(goal_error)

        if errors:
            raise InvalidInputError(errors)

        return clean_name, start, end, parsed_goal

    def validate_exclusion(self, start: Any, end: Any) -> Tuple[date, date]:
        """
        Validates an inclusive exclusion range.

        Args:
            start: First excluded date.
            end: Last excluded date.

        Returns:
            Tuple of (start, end) dates.

        Raises:
            InvalidInputError: If a date is missing/malformed or start > end.
        """
        errors: List[ValidationError] = []

        start_date, start_error = self._parse_date(start, "Exclusion Start")
        if start_error:
            errors.append(start_error)
        end_date, end_error = self._parse_date(end, "Exclusion End")
        if end_error:
            errors.append(end_error)

        if not errors and start_date > end_date:
            errors.append(ValidationError(
                field_name="Exclusion End",
                value=str(end),
                message="Exclusion end cannot be before its start"
            ))

        if errors:
            raise InvalidInputError(errors)

        return start_date, end_date

    def validate_product(self, name: Any, price: Any) -> Tuple[str, Decimal]:
        """
        Validates a catalog product.

        Raises:
            InvalidInputError: If the name is blank or the price invalid.
        """
        errors: List[ValidationError] = []

        clean_name = str(name).strip() if name is not None else ""
        if not clean_name:
            errors.append(ValidationError(
                field_name="Product Name",
                value="" if name is None else str(name),
                message="Product name cannot be empty"
            ))

        parsed_price, price_error = self._parse_decimal(price, "Price")
        if price_error:
            errors.append(price_error)

        if errors:
            raise InvalidInputError(errors)

        return clean_name, parsed_price

    def _parse_date(
        self,
        value: Any,
        field_name: str
    ) -> Tuple[Optional[date], Optional[ValidationError]]:
        """
        Parses a date value.

        Returns:
            Tuple of (date or None, ValidationError or None).
        """
        if isinstance(value, datetime):
            return value.date(), None
        if isinstance(value, date):
            return value, None

        text = "" if value is None else str(value).strip()
        if not text:
            return None, ValidationError(
                field_name=field_name,
                value="",
                message=f"{field_name} is required"
            )

        try:
            return date.fromisoformat(text), None
        except ValueError:
            return None, ValidationError(
                field_name=field_name,
                value=text,
                message=f"{field_name} must be a date in YYYY-MM-DD format "
                        f"(received: '{text}')"
            )

    def _parse_decimal(
        self,
        value: Any,
        field_name: str,
        allow_zero: bool = True
    ) -> Tuple[Optional[Decimal], Optional[ValidationError]]:
        """
        Parses a value to a non-negative Decimal with validation.

        Handles these formats:
        - 100 or Decimal("100") (plain numbers)
        - "1,000" (with thousands separator)
        - "₱ 1,000.50" (with currency symbol)

        Returns:
            Tuple of (Decimal value or None, ValidationError or None).
        """
        if isinstance(value, bool):
            value = ""
        original_value = "" if value is None else str(value)
        text = original_value.strip()

        if not text:
            return None, ValidationError(
                field_name=field_name,
                value=original_value,
                message=f"{field_name} cannot be empty"
            )

        cleaned = self.CURRENCY_CLEAN_PATTERN.sub("", text)
        decimal_value = None
        if self.NUMBER_PATTERN.match(cleaned):
            decimal_value = self._to_decimal(cleaned)

        if decimal_value is None:
            return None, ValidationError(
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a valid number "
                        f"(received: '{original_value}')"
            )

        decimal_value = decimal_value.quantize(
            Decimal("0.01"),
            rounding=ROUND_HALF_EVEN
        )

        if decimal_value < ZERO or (not allow_zero and decimal_value == ZERO):
            qualifier = "a non-negative" if allow_zero else "a positive"
            return None, ValidationError(
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be {qualifier} number "
                        f"(received: '{original_value}')"
            )

        return decimal_value, None

    def _to_decimal(self, text: str) -> Optional[Decimal]:
        """Converts text to a finite Decimal, or None."""
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
        if not result.is_finite():
            return None
        return result

    def format_php(self, amount: Decimal) -> str:
        """
        Formats a Decimal amount as a peso currency string.

        Args:
            amount: Decimal amount to format.

        Returns:
            Formatted string like "₱12,345.67".
        """
        return f"₱{amount:,.2f}"
