"""Automatic promotion scanning and unlock progress."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from discounts.services.discount_amounts.factory import calculate_amount
from discounts.services.discount_definition import DiscountDefinition
from discounts.services.discount_ledger import AppliedDiscount, DiscountLedger
from discounts.services.eligibility import DiscountErrorReason, evaluate_eligibility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockedPromotion:
    """A threshold promotion the cart has not reached yet."""

    definition: DiscountDefinition
    remaining_cents: Decimal


@dataclass
class UnlockProgress:
    """Which threshold promotions are unlocked and which one is next."""

    unlocked: list[DiscountDefinition] = field(default_factory=list)
    next: LockedPromotion | None = None


class AutoApplyScanner:
    """Applies every codeless promotion the cart currently qualifies for.

    All qualifying promotions stack; there is no best-offer selection.
    A promotion the customer removed is re-applied on the next qualifying
    scan, since the scanner keeps no memory of removals.
    """

    def scan(
        self,
        ledger: DiscountLedger,
        promotions: Iterable[DiscountDefinition],
        subtotal_cents: Decimal,
        now: datetime,
        restaurant_id: UUID | None = None,
        delivery_fee_cents: Decimal | None = None,
    ) -> list[AppliedDiscount]:
        """Apply qualifying automatic promotions that are not applied yet.

        Safe to call repeatedly: promotions already in the ledger are skipped.

        Returns:
            The entries added by this scan.
        """
        added: list[AppliedDiscount] = []

        for promotion in promotions:
            if not promotion.is_automatic:
                continue
            if ledger.is_applied(promotion.source_id, promotion.kind):
                continue

            result = evaluate_eligibility(promotion, subtotal_cents, now, restaurant_id)
            if not result.eligible:
                logger.debug(
                    "Promotion %s not auto-applied: %s",
                    promotion.source_id,
                    result.reason.value if result.reason else "ineligible",
                )
                continue

            amount = calculate_amount(promotion, subtotal_cents, delivery_fee_cents)
            if ledger.apply(promotion, amount):
                added.append(ledger.get(promotion.source_id, promotion.kind))  # type: ignore[arg-type]

        return added


def unlock_progress(
    promotions: Iterable[DiscountDefinition],
    subtotal_cents: Decimal,
    now: datetime,
    restaurant_id: UUID | None = None,
) -> UnlockProgress:
    """Report threshold promotions reached so far and the closest locked one.

    Only automatic threshold promotions (minimum order condition) with a
    positive minimum that pass every other check are considered, ordered by
    their minimum order.
    """
    candidates: list[DiscountDefinition] = []
    for promotion in promotions:
        if not promotion.is_automatic or not promotion.is_threshold:
            continue
        if not promotion.minimum_order_cents or promotion.minimum_order_cents <= 0:
            continue
        result = evaluate_eligibility(promotion, subtotal_cents, now, restaurant_id)
        if result.eligible or result.reason == DiscountErrorReason.BELOW_MINIMUM:
            candidates.append(promotion)

    candidates.sort(key=lambda p: p.minimum_order_cents)  # type: ignore[arg-type, return-value]

    progress = UnlockProgress()
    for promotion in candidates:
        minimum = promotion.minimum_order_cents
        if subtotal_cents >= minimum:  # type: ignore[operator]
            progress.unlocked.append(promotion)
        elif progress.next is None:
            progress.next = LockedPromotion(
                definition=promotion,
                remaining_cents=minimum - subtotal_cents,  # type: ignore[operator]
            )

    return progress
