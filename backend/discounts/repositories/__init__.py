from discounts.repositories.coupon_repository import CouponRepository
from discounts.repositories.promotion_repository import PromotionRepository

__all__ = [
    "CouponRepository",
    "PromotionRepository",
]
