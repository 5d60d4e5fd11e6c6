"""Installment Arithmetic — cents rounding and remainder policy for installment plans.

Invariants:
    - n is an int (not bool) within [3, 12]
    - installment_amount = round_half_up(total / n) to cents
    - The first n-1 installments equal installment_amount; the last absorbs the remainder
    - sum(installments) == total exactly
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from tramites.core.domain_types import CENT, MIN_INSTALLMENTS, MAX_INSTALLMENTS
from tramites.core.errors import ValidationError


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to cents with round-half-up. Floats go through str() first.

    Raises InvalidOperation for NaN and infinities.
    """
    if isinstance(value, float):
        value = str(value)
    amount = Decimal(value)
    if not amount.is_finite():
        raise InvalidOperation(f"{value!r} is not a finite amount")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def check_installment_count(number_of_installments: int) -> None:
    if (
        not isinstance(number_of_installments, int)
        or isinstance(number_of_installments, bool)
        or not MIN_INSTALLMENTS <= number_of_installments <= MAX_INSTALLMENTS
    ):
        raise ValidationError(
            f"Installment plans must have a whole number between {MIN_INSTALLMENTS} and "
            f"{MAX_INSTALLMENTS} installments (got {number_of_installments})",
            field="number_of_installments",
            code="INVALID_INSTALLMENT_COUNT",
        )


def split_installments(total: Decimal, number_of_installments: int) -> list[Decimal]:
    """Split total into n installments; the last one carries the rounding remainder.

    >>> split_installments(Decimal("100.00"), 3)
    [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
    """
    check_installment_count(number_of_installments)
    total = to_money(total)
    regular = to_money(total / number_of_installments)
    head = [regular] * (number_of_installments - 1)
    last = total - regular * (number_of_installments - 1)
    return head + [last]
