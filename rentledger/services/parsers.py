"""Parsing and normalization utilities for money amounts and billing months.

Example:
    >>> parse_bill_month("2024-01")
    '2024-01'

    >>> to_money("70000")
    Decimal('70000.00')

    >>> parse_payment_amount("1500.50")
    Decimal('1500.50')
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rentledger.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

BILL_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def to_money(value) -> Decimal:
    """
    Convert a number to a Decimal quantized to cents (ROUND_HALF_UP).

    Floats go through str() so 0.1 stays 0.10 rather than its binary expansion.

    Raises:
        ValidationError: If value is not a finite number
    """
    try:
        amount = Decimal(str(value))
    except (ValueError, InvalidOperation) as e:
        raise ValidationError(f"Cannot parse amount '{value}'") from e
    if not amount.is_finite():
        raise ValidationError(f"Amount must be finite, got '{value}'")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_payment_amount(value) -> Decimal:
    """
    Parse an amount to be allocated.

    Unlike to_money this does not round: an amount with sub-cent precision is
    rejected so that allocation conserves the exact input.

    Raises:
        ValidationError: If value is negative, not a number or has more than two decimals
    """
    try:
        amount = Decimal(str(value))
    except (ValueError, InvalidOperation) as e:
        raise ValidationError(f"Cannot parse payment amount '{value}'") from e

    if not amount.is_finite():
        raise ValidationError(f"Payment amount must be finite, got '{value}'")
    if amount < 0:
        raise ValidationError(f"Payment amount must not be negative, got {amount}")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"Payment amount has more than two decimal places: {amount}")

    return amount.quantize(CENT)


def parse_bill_month(value: str) -> str:
    """
    Validate a billing month in YYYY-MM form.

    Lexicographic order of valid values equals chronological order.

    Raises:
        ValidationError: If value is not YYYY-MM with a month between 01 and 12
    """
    if not isinstance(value, str) or not BILL_MONTH_PATTERN.match(value):
        raise ValidationError(f"billMonth must be in YYYY-MM format, got {value!r}")
    return value
