from decimal import Decimal

from discounts.services.discount_definition import DiscountDefinition


def calculate(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    delivery_fee_cents: Decimal | None = None,
) -> Decimal:
    # The free item is priced by the cart, which the engine never sees.
    return Decimal("0")
