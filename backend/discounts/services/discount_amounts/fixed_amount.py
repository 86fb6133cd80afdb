from decimal import Decimal

from discounts.core.config import settings
from discounts.services.discount_definition import DiscountDefinition


def calculate(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    delivery_fee_cents: Decimal | None = None,
) -> Decimal:
    amount = definition.amount_cents or Decimal("0")

    if settings.CLAMP_FIXED_DISCOUNTS_TO_SUBTOTAL:
        amount = min(amount, max(subtotal_cents, Decimal("0")))

    return max(amount, Decimal("0"))
