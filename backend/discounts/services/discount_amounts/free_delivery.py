from decimal import Decimal

from discounts.core.config import settings
from discounts.services.discount_definition import DiscountDefinition


def calculate(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    delivery_fee_cents: Decimal | None = None,
) -> Decimal:
    """Credit the delivery fee; independent of the subtotal."""
    if delivery_fee_cents is None:
        return Decimal(settings.STANDARD_DELIVERY_FEE_CENTS)
    return max(Decimal(delivery_fee_cents), Decimal("0"))
