"""Eligibility evaluation for coupons and promotions.

Every validity rule lives here so that manual codes, the automatic scan and
the ledger's recompute all agree on what "valid" means. Checks run in a fixed
order and the first failure is reported.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from discounts.core.config import settings
from discounts.core.money import format_amount
from discounts.models.shared import ensure_utc
from discounts.services.discount_definition import DiscountDefinition, DiscountKind


class DiscountErrorReason(str, Enum):
    """Why a discount could not be applied or was evicted."""

    INACTIVE = "inactive"
    WRONG_RESTAURANT = "wrong_restaurant"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    BELOW_MINIMUM = "below_minimum"
    ALREADY_APPLIED = "already_applied"
    CODE_NOT_FOUND = "code_not_found"
    EMPTY_CODE = "empty_code"
    CATALOG_UNAVAILABLE = "catalog_unavailable"


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of an eligibility check."""

    eligible: bool
    reason: DiscountErrorReason | None = None
    message: str | None = None


ELIGIBLE = EligibilityResult(eligible=True)


def _noun(definition: DiscountDefinition) -> str:
    return "coupon" if definition.kind == DiscountKind.COUPON else "promotion"


def _fail(reason: DiscountErrorReason, message: str) -> EligibilityResult:
    return EligibilityResult(eligible=False, reason=reason, message=message)


def evaluate_eligibility(
    definition: DiscountDefinition,
    subtotal_cents: Decimal,
    now: datetime,
    restaurant_id: UUID | None = None,
) -> EligibilityResult:
    """Check whether a discount may be applied right now.

    Args:
        definition: The coupon or promotion to check.
        subtotal_cents: The current cart subtotal in minor units.
        now: The evaluation time (timezone aware; naive values are UTC).
        restaurant_id: The restaurant the cart belongs to.

    Returns:
        ELIGIBLE, or the first failing check as a reason plus a message
        suitable for showing to the customer.
    """
    noun = _noun(definition)
    now = ensure_utc(now)  # type: ignore[assignment]

    if not definition.is_active:
        return _fail(DiscountErrorReason.INACTIVE, f"This {noun} is no longer active")

    if definition.restaurant_id is not None and definition.restaurant_id != restaurant_id:
        return _fail(
            DiscountErrorReason.WRONG_RESTAURANT,
            f"This {noun} is not valid for this restaurant",
        )

    valid_from = ensure_utc(definition.valid_from)
    valid_until = ensure_utc(definition.valid_until)
    if definition.kind == DiscountKind.PROMOTION and (valid_from is None or valid_until is None):
        # Promotions without a window are malformed, never open ended
        return _fail(DiscountErrorReason.EXPIRED, f"This {noun} has expired")
    if valid_from is not None and now < valid_from:
        return _fail(DiscountErrorReason.NOT_YET_VALID, f"This {noun} is not yet valid")
    if valid_until is not None and now > valid_until:
        return _fail(DiscountErrorReason.EXPIRED, f"This {noun} has expired")

    if definition.usage_limit is not None and definition.usage_count >= definition.usage_limit:
        return _fail(
            DiscountErrorReason.USAGE_LIMIT_REACHED,
            f"This {noun} has reached its usage limit",
        )

    minimum = definition.minimum_order_cents
    if minimum is not None and minimum > 0 and Decimal(subtotal_cents) < minimum:
        return _fail(
            DiscountErrorReason.BELOW_MINIMUM,
            f"Minimum order of {format_amount(minimum, settings.CURRENCY)} required",
        )

    return ELIGIBLE
