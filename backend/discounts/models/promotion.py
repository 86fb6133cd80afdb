"""Promotion model for restaurant-scoped discounts."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, func

from discounts.core.database import Base
from discounts.models.shared import UUIDType, generate_uuid


class PromotionType(str, Enum):
    PERCENTAGE_OFF = "percentage_off"
    FIXED_AMOUNT_OFF = "fixed_amount_off"
    FREE_DELIVERY = "free_delivery"
    BUY_ONE_GET_ONE = "buy_one_get_one"


class PromotionConditionType(str, Enum):
    NONE = "none"
    MINIMUM_ORDER = "minimum_order"


class Promotion(Base):
    """Promotion model for restaurant-scoped discounts.

    A promotion without a promotion_code is applied automatically once the
    cart qualifies; one with a code must be entered by the customer.
    """

    __tablename__ = "promotions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    restaurant_id = Column(UUIDType, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    promotion_code = Column(String(64), nullable=True, index=True)

    promotion_type = Column(String(30), nullable=False)
    amount_cents = Column(Numeric(12, 4), nullable=True)
    percentage_rate = Column(Numeric(5, 2), nullable=True)
    condition_type = Column(String(30), nullable=False, default=PromotionConditionType.NONE.value)
    minimum_order_cents = Column(Numeric(12, 4), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
