from collections.abc import Callable
from decimal import Decimal

from discounts.services.discount_amounts import (
    buy_one_get_one,
    fixed_amount,
    free_delivery,
    percentage,
)
from discounts.services.discount_definition import DiscountDefinition, DiscountType

# (definition, subtotal_cents, delivery_fee_cents) -> amount_cents
CalculatorFn = Callable[[DiscountDefinition, Decimal, Decimal | None], Decimal]

_CALCULATORS: dict[DiscountType, CalculatorFn] = {
    DiscountType.PERCENTAGE: percentage.calculate,
    DiscountType.FIXED: fixed_amount.calculate,
    DiscountType.FREE_DELIVERY: free_delivery.calculate,
    DiscountType.BUY_ONE_GET_ONE: buy_one_get_one.calculate,
}


def get_amount_calculator(discount_type: DiscountType) -> CalculatorFn | None:
    return _CALCULATORS.get(discount_type)


def calculate_amount(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    delivery_fee_cents: Decimal | None = None,
) -> Decimal:
    """Compute the discount a definition is worth against the given subtotal.

    Pure: every recompute calls this again from scratch instead of adjusting
    a previous amount.
    """
    calculator = get_amount_calculator(definition.discount_type)
    if calculator is None:
        return Decimal("0")
    return calculator(definition, Decimal(subtotal_cents), delivery_fee_cents)
