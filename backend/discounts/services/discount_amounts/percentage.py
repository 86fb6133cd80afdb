from decimal import Decimal

from discounts.services.discount_definition import DiscountDefinition


def calculate(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    delivery_fee_cents: Decimal | None = None,
) -> Decimal:
    rate = definition.percentage_rate or Decimal("0")
    amount = subtotal_cents * rate / Decimal(100)

    # A cap of 0 means uncapped
    if definition.max_discount_cents and amount > definition.max_discount_cents:
        amount = definition.max_discount_cents

    return max(amount, Decimal("0"))
