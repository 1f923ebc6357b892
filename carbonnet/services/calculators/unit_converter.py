"""
Numeric helpers for emissions calculations.

Stateless utilities for normalizing inputs to Decimal and rounding results.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from carbonnet.utils.constants import EMISSION_DECIMAL_PLACES


class UnitConverter:
    """
    Unit conversion and rounding service.

    All emission arithmetic is done in Decimal so that category totals add
    up exactly to the report total.
    """

    EMISSION_QUANTUM = Decimal(1).scaleb(-EMISSION_DECIMAL_PLACES)

    @staticmethod
    def normalize_number(value: str | int | float | Decimal | None) -> Decimal:
        """
        Normalize a number value to Decimal.

        Handles string inputs with commas, floats, ints and existing Decimals.
        None becomes zero.

        Raises:
            ValueError: If the value is not a finite number

        Example:
            >>> UnitConverter.normalize_number("1,234.56")
            Decimal('1234.56')
        """
        if value is None:
            return Decimal("0")

        if isinstance(value, bool):
            raise ValueError(f"Not a number: {value!r}")

        if isinstance(value, Decimal):
            number = value
        else:
            if isinstance(value, str):
                value = value.replace(",", "").strip()
            try:
                number = Decimal(str(value))
            except InvalidOperation as e:
                raise ValueError(f"Not a number: {value!r}") from e

        if not number.is_finite():
            raise ValueError(f"Not a finite number: {value!r}")
        return number

    @staticmethod
    def round_emission(value: Decimal) -> Decimal:
        """
        Round an emission figure to gram precision (3 decimals, half up).

        Example:
            >>> UnitConverter.round_emission(Decimal("2.75548"))
            Decimal('2.755')
        """
        return value.quantize(UnitConverter.EMISSION_QUANTUM, rounding=ROUND_HALF_UP)

    @staticmethod
    def round_percentage(value: Decimal) -> Decimal:
        """Round a percentage to 2 decimals, half up."""
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @staticmethod
    def format_number(value: Decimal | int | float) -> str:
        """
        Format a number without trailing zeros or exponent.

        Example:
            >>> UnitConverter.format_number(Decimal("82.000"))
            '82'
        """
        number = UnitConverter.normalize_number(value)
        if number == 0:
            return "0"
        normalized = number.normalize()
        return format(normalized, "f")
