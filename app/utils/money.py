from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, *, field: str = "amount") -> Decimal:
    """Coerce ``value`` to a two-decimal currency amount.

    Floats are refused outright: they would reintroduce the rounding drift the
    ledger is meant to avoid.
    """
    if isinstance(value, float) or isinstance(value, bool):
        raise ValidationError(f"{field} must be a decimal amount, not {type(value).__name__}")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} is not a valid amount: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} has more than two decimal places: {value}")
    return amount.quantize(CENT)


def positive_money(value, *, field: str = "amount") -> Decimal:
    amount = to_money(value, field=field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
