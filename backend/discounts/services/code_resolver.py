"""Resolution and application of customer-entered discount codes."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from discounts.core.config import settings
from discounts.core.exceptions import CatalogUnavailableError
from discounts.core.money import format_amount
from discounts.services.catalog_loader import CatalogLoader
from discounts.services.discount_amounts.factory import calculate_amount
from discounts.services.discount_definition import DiscountDefinition, DiscountKind
from discounts.services.discount_ledger import AppliedDiscount, DiscountLedger
from discounts.services.eligibility import DiscountErrorReason, evaluate_eligibility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyCodeResult:
    """Outcome of applying a code; failures carry a reason instead of raising."""

    success: bool
    amount_saved_cents: Decimal | None = None
    error_reason: DiscountErrorReason | None = None
    message: str | None = None
    applied: AppliedDiscount | None = None

    @classmethod
    def failure(cls, reason: DiscountErrorReason, message: str) -> "ApplyCodeResult":
        return cls(success=False, error_reason=reason, message=message)


@dataclass(frozen=True)
class CodeLookup:
    """Result of looking a code up in the catalog."""

    code: str
    definition: DiscountDefinition | None = None
    error: ApplyCodeResult | None = None


def normalize_code(raw_code: str | None) -> str:
    return (raw_code or "").strip().upper()


class ManualCodeResolver:
    """Looks up entered codes and applies them to a ledger.

    Lookup is asynchronous and happens first; ``commit`` then validates the
    match against whatever the cart looks like at that moment.
    """

    def __init__(self, catalog: CatalogLoader):
        self.catalog = catalog

    async def lookup(self, raw_code: str | None, restaurant_id: UUID | None) -> CodeLookup:
        """Find the coupon or promotion a code refers to.

        Global coupon codes are tried first, then the restaurant's active
        promotion codes. The first match wins.
        """
        code = normalize_code(raw_code)
        if not code:
            return CodeLookup(
                code=code,
                error=ApplyCodeResult.failure(DiscountErrorReason.EMPTY_CODE, "Please enter a code"),
            )

        try:
            coupons = await self.catalog.find_coupons_by_code(code)
            if coupons:
                return CodeLookup(code=code, definition=coupons[0])

            if restaurant_id is not None:
                promotions = await self.catalog.find_promotions_by_code(restaurant_id, code)
                if promotions:
                    return CodeLookup(code=code, definition=promotions[0])
        except CatalogUnavailableError as exc:
            logger.warning("Failed to validate code %s: %s", code, exc)
            return CodeLookup(
                code=code,
                error=ApplyCodeResult.failure(
                    DiscountErrorReason.CATALOG_UNAVAILABLE, "Failed to validate code"
                ),
            )

        return CodeLookup(
            code=code,
            error=ApplyCodeResult.failure(DiscountErrorReason.CODE_NOT_FOUND, "Invalid code"),
        )

    def commit(
        self,
        lookup: CodeLookup,
        ledger: DiscountLedger,
        subtotal_cents: Decimal,
        now: datetime,
        restaurant_id: UUID | None = None,
        delivery_fee_cents: Decimal | None = None,
    ) -> ApplyCodeResult:
        """Validate a looked-up discount against the current cart and apply it."""
        if lookup.error is not None:
            return lookup.error

        definition = lookup.definition
        if definition is None:
            return ApplyCodeResult.failure(DiscountErrorReason.CODE_NOT_FOUND, "Invalid code")

        if ledger.is_applied(definition.source_id, definition.kind):
            return ApplyCodeResult.failure(
                DiscountErrorReason.ALREADY_APPLIED, "This code has already been applied"
            )

        result = evaluate_eligibility(definition, subtotal_cents, now, restaurant_id)
        if not result.eligible:
            logger.info("Code %s rejected: %s", lookup.code, result.reason.value)  # type: ignore[union-attr]
            return ApplyCodeResult.failure(result.reason, result.message or "")  # type: ignore[arg-type]

        amount = calculate_amount(definition, subtotal_cents, delivery_fee_cents)
        ledger.apply(definition, amount)

        if definition.kind == DiscountKind.COUPON:
            message = f"Coupon applied! You saved {format_amount(amount, settings.CURRENCY)}"
        else:
            message = f'Promotion "{definition.label}" applied!'

        return ApplyCodeResult(
            success=True,
            amount_saved_cents=amount,
            message=message,
            applied=ledger.get(definition.source_id, definition.kind),
        )
