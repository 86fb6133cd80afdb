"""Engine-side view of coupons and promotions.

The eligibility evaluator and the amount calculators never touch ORM rows or
remote payloads: loaders normalise both catalogs into ``DiscountDefinition``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from discounts.models.coupon import Coupon, CouponDiscountType
from discounts.models.promotion import Promotion, PromotionConditionType, PromotionType
from discounts.models.shared import ensure_utc


class DiscountKind(str, Enum):
    COUPON = "coupon"
    PROMOTION = "promotion"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_DELIVERY = "free_delivery"
    BUY_ONE_GET_ONE = "buy_one_get_one"


_COUPON_TYPES: dict[str, DiscountType] = {
    CouponDiscountType.PERCENTAGE.value: DiscountType.PERCENTAGE,
    CouponDiscountType.FIXED.value: DiscountType.FIXED,
}

_PROMOTION_TYPES: dict[str, DiscountType] = {
    PromotionType.PERCENTAGE_OFF.value: DiscountType.PERCENTAGE,
    PromotionType.FIXED_AMOUNT_OFF.value: DiscountType.FIXED,
    PromotionType.FREE_DELIVERY.value: DiscountType.FREE_DELIVERY,
    PromotionType.BUY_ONE_GET_ONE.value: DiscountType.BUY_ONE_GET_ONE,
}


def _decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def coupon_discount_type(value: str) -> DiscountType:
    try:
        return _COUPON_TYPES[value]
    except KeyError:
        raise ValueError(f"Unsupported coupon discount type '{value}'") from None


def promotion_discount_type(value: str) -> DiscountType:
    try:
        return _PROMOTION_TYPES[value]
    except KeyError:
        raise ValueError(f"Unsupported promotion type '{value}'") from None


@dataclass(frozen=True)
class DiscountDefinition:
    """A coupon or promotion, reduced to what the engine evaluates."""

    source_id: UUID
    kind: DiscountKind
    label: str
    discount_type: DiscountType
    percentage_rate: Decimal | None = None
    amount_cents: Decimal | None = None
    max_discount_cents: Decimal | None = None
    minimum_order_cents: Decimal | None = None
    restaurant_id: UUID | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True
    code: str | None = None
    description: str | None = None
    is_threshold: bool = False

    @property
    def key(self) -> tuple[UUID, DiscountKind]:
        return (self.source_id, self.kind)

    @property
    def is_automatic(self) -> bool:
        """Codeless promotions are discovered by scanning, everything else is entered."""
        return self.kind == DiscountKind.PROMOTION and not self.code

    @classmethod
    def from_coupon(cls, coupon: Coupon) -> "DiscountDefinition":
        code = str(coupon.code).strip().upper()
        return cls(
            source_id=coupon.id,  # type: ignore[arg-type]
            kind=DiscountKind.COUPON,
            label=code,
            discount_type=coupon_discount_type(str(coupon.discount_type)),
            percentage_rate=_decimal(coupon.percentage_rate),
            amount_cents=_decimal(coupon.amount_cents),
            max_discount_cents=_decimal(coupon.max_discount_cents),
            minimum_order_cents=_decimal(coupon.minimum_order_cents),
            restaurant_id=coupon.restaurant_id,  # type: ignore[arg-type]
            usage_limit=coupon.usage_limit,  # type: ignore[arg-type]
            usage_count=coupon.usage_count or 0,  # type: ignore[arg-type]
            valid_from=ensure_utc(coupon.valid_from),  # type: ignore[arg-type]
            valid_until=ensure_utc(coupon.valid_until),  # type: ignore[arg-type]
            is_active=bool(coupon.is_active),
            code=code,
            description=coupon.description,  # type: ignore[arg-type]
        )

    @classmethod
    def from_promotion(cls, promotion: Promotion) -> "DiscountDefinition":
        code = promotion.promotion_code
        return cls(
            source_id=promotion.id,  # type: ignore[arg-type]
            kind=DiscountKind.PROMOTION,
            label=str(promotion.name),
            discount_type=promotion_discount_type(str(promotion.promotion_type)),
            percentage_rate=_decimal(promotion.percentage_rate),
            amount_cents=_decimal(promotion.amount_cents),
            minimum_order_cents=_decimal(promotion.minimum_order_cents),
            restaurant_id=promotion.restaurant_id,  # type: ignore[arg-type]
            usage_limit=promotion.usage_limit,  # type: ignore[arg-type]
            usage_count=promotion.usage_count or 0,  # type: ignore[arg-type]
            valid_from=ensure_utc(promotion.start_date),  # type: ignore[arg-type]
            valid_until=ensure_utc(promotion.end_date),  # type: ignore[arg-type]
            is_active=bool(promotion.is_active),
            code=str(code).strip().upper() if code else None,
            description=promotion.description,  # type: ignore[arg-type]
            is_threshold=promotion.condition_type == PromotionConditionType.MINIMUM_ORDER.value,
        )
