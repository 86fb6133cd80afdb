from discounts.models.coupon import Coupon, CouponDiscountType
from discounts.models.promotion import Promotion, PromotionConditionType, PromotionType

__all__ = [
    "Coupon",
    "CouponDiscountType",
    "Promotion",
    "PromotionConditionType",
    "PromotionType",
]
