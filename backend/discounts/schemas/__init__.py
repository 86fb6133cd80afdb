from discounts.schemas.catalog import (
    CouponCreate,
    PromotionCreate,
)
from discounts.schemas.checkout_session import (
    AppliedDiscountResponse,
    ApplyCodeRequest,
    ApplyCodeResponse,
    CheckoutSessionCreate,
    CheckoutSessionResponse,
    SubtotalUpdate,
    UnlockProgressResponse,
)

__all__ = [
    "AppliedDiscountResponse",
    "ApplyCodeRequest",
    "ApplyCodeResponse",
    "CheckoutSessionCreate",
    "CheckoutSessionResponse",
    "CouponCreate",
    "PromotionCreate",
    "SubtotalUpdate",
    "UnlockProgressResponse",
]
