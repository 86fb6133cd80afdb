"""Coupon model for manually entered discount codes."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, func

from discounts.core.database import Base
from discounts.models.shared import UUIDType, generate_uuid


class CouponDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    """Coupon model for manually entered discount codes.

    Coupons without a restaurant_id are valid platform wide.
    """

    __tablename__ = "coupons"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    restaurant_id = Column(UUIDType, nullable=True, index=True)
    code = Column(String(64), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String(20), nullable=False)
    amount_cents = Column(Numeric(12, 4), nullable=True)
    percentage_rate = Column(Numeric(5, 2), nullable=True)
    max_discount_cents = Column(Numeric(12, 4), nullable=True)
    minimum_order_cents = Column(Numeric(12, 4), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
