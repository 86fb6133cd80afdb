"""Coupon repository for catalog reads."""

from uuid import UUID

from sqlalchemy.orm import Session

from discounts.models.coupon import Coupon
from discounts.schemas.catalog import CouponCreate


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by its normalized code."""
        return self.db.query(Coupon).filter(Coupon.code == code).first()

    def find_by_code(self, code: str) -> list[Coupon]:
        """Get every coupon matching a normalized code, regardless of status."""
        return self.db.query(Coupon).filter(Coupon.code == code).order_by(Coupon.created_at).all()

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=data.code,
            description=data.description,
            restaurant_id=data.restaurant_id,
            discount_type=data.discount_type.value,
            amount_cents=data.amount_cents,
            percentage_rate=data.percentage_rate,
            max_discount_cents=data.max_discount_cents,
            minimum_order_cents=data.minimum_order_cents,
            usage_limit=data.usage_limit,
            usage_count=data.usage_count,
            valid_from=data.valid_from,
            valid_until=data.valid_until,
            is_active=data.is_active,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon
