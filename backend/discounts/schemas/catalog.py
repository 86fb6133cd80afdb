"""Coupon and Promotion catalog schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from discounts.models.coupon import CouponDiscountType
from discounts.models.promotion import PromotionConditionType, PromotionType


def normalize_code(value: str) -> str:
    return value.strip().upper()


class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    description: str | None = None
    restaurant_id: UUID | None = None
    discount_type: CouponDiscountType
    amount_cents: Decimal | None = Field(default=None, ge=0)
    percentage_rate: Decimal | None = Field(default=None, ge=0, le=100)
    max_discount_cents: Decimal | None = Field(default=None, ge=0)
    minimum_order_cents: Decimal | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=0)
    usage_count: int = Field(default=0, ge=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return normalize_code(v)


class PromotionCreate(BaseModel):
    restaurant_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    promotion_code: str | None = Field(default=None, max_length=64)
    promotion_type: PromotionType
    amount_cents: Decimal | None = Field(default=None, ge=0)
    percentage_rate: Decimal | None = Field(default=None, ge=0, le=100)
    condition_type: PromotionConditionType = PromotionConditionType.NONE
    minimum_order_cents: Decimal | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=0)
    usage_count: int = Field(default=0, ge=0)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("promotion_code")
    @classmethod
    def _normalize_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_code(v) or None

    @model_validator(mode="after")
    def _check_window(self) -> "PromotionCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

