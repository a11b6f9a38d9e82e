from decimal import Decimal

ZERO_QUANTITY = Decimal("0")


def to_quantity(value: Decimal | int | float | str | None) -> Decimal:
    """Coalesce a stored stock quantity to a Decimal.

    Missing values count as zero. Everything else is kept as recorded:
    no rounding and no clamping, so negative stock stays negative.
    """
    if value is None:
        return ZERO_QUANTITY
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
