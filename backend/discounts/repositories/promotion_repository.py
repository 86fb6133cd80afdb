"""Promotion repository for catalog reads."""

from uuid import UUID

from sqlalchemy.orm import Session

from discounts.models.promotion import Promotion
from discounts.schemas.catalog import PromotionCreate


class PromotionRepository:
    """Repository for Promotion model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, promotion_id: UUID) -> Promotion | None:
        """Get a promotion by ID."""
        return self.db.query(Promotion).filter(Promotion.id == promotion_id).first()

    def get_active_by_restaurant(self, restaurant_id: UUID) -> list[Promotion]:
        """Get all active promotions of a restaurant, with or without a code."""
        return (
            self.db.query(Promotion)
            .filter(
                Promotion.restaurant_id == restaurant_id,
                Promotion.is_active.is_(True),
            )
            .order_by(Promotion.created_at, Promotion.name)
            .all()
        )

    def find_active_by_code(self, restaurant_id: UUID, code: str) -> list[Promotion]:
        """Get active promotions of a restaurant matching a normalized code."""
        return (
            self.db.query(Promotion)
            .filter(
                Promotion.restaurant_id == restaurant_id,
                Promotion.promotion_code == code,
                Promotion.is_active.is_(True),
            )
            .order_by(Promotion.created_at)
            .all()
        )

    def create(self, data: PromotionCreate) -> Promotion:
        """Create a new promotion."""
        promotion = Promotion(
            restaurant_id=data.restaurant_id,
            name=data.name,
            description=data.description,
            promotion_code=data.promotion_code,
            promotion_type=data.promotion_type.value,
            amount_cents=data.amount_cents,
            percentage_rate=data.percentage_rate,
            condition_type=data.condition_type.value,
            minimum_order_cents=data.minimum_order_cents,
            usage_limit=data.usage_limit,
            usage_count=data.usage_count,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=data.is_active,
        )
        self.db.add(promotion)
        self.db.commit()
        self.db.refresh(promotion)
        return promotion
