"""Checkout session request and response schemas."""

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from discounts.core.money import to_display
from discounts.services.discount_definition import DiscountKind

if TYPE_CHECKING:
    from discounts.services.auto_apply import UnlockProgress
    from discounts.services.checkout_session import SessionSnapshot
    from discounts.services.code_resolver import ApplyCodeResult
    from discounts.services.discount_definition import DiscountDefinition
    from discounts.services.discount_ledger import AppliedDiscount


class CheckoutSessionCreate(BaseModel):
    restaurant_id: UUID
    subtotal_cents: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_fee_cents: Decimal | None = Field(default=None, ge=0)


class SubtotalUpdate(BaseModel):
    subtotal_cents: Decimal = Field(ge=0)
    delivery_fee_cents: Decimal | None = Field(default=None, ge=0)


class ApplyCodeRequest(BaseModel):
    code: str = Field(max_length=64)


class AppliedDiscountResponse(BaseModel):
    source_id: UUID
    kind: DiscountKind
    label: str
    code: str | None = None
    automatic: bool
    amount: Decimal

    @field_serializer("amount")
    def _display_amount(self, value: Decimal) -> Decimal:
        return to_display(value)

    @classmethod
    def from_applied(cls, applied: "AppliedDiscount") -> "AppliedDiscountResponse":
        return cls(
            source_id=applied.source_id,
            kind=applied.kind,
            label=applied.label,
            code=applied.code,
            automatic=applied.automatic,
            amount=applied.amount_cents,
        )


class LockedPromotionResponse(BaseModel):
    source_id: UUID
    label: str
    minimum_order: Decimal
    remaining: Decimal

    @field_serializer("minimum_order", "remaining")
    def _display_amount(self, value: Decimal) -> Decimal:
        return to_display(value)


class UnlockedPromotionResponse(BaseModel):
    source_id: UUID
    label: str

    @classmethod
    def from_definition(cls, definition: "DiscountDefinition") -> "UnlockedPromotionResponse":
        return cls(source_id=definition.source_id, label=definition.label)


class UnlockProgressResponse(BaseModel):
    unlocked: list[UnlockedPromotionResponse] = []
    next: LockedPromotionResponse | None = None

    @classmethod
    def from_progress(cls, progress: "UnlockProgress") -> "UnlockProgressResponse":
        locked = None
        if progress.next is not None:
            locked = LockedPromotionResponse(
                source_id=progress.next.definition.source_id,
                label=progress.next.definition.label,
                minimum_order=progress.next.definition.minimum_order_cents,  # type: ignore[arg-type]
                remaining=progress.next.remaining_cents,
            )
        return cls(
            unlocked=[UnlockedPromotionResponse.from_definition(d) for d in progress.unlocked],
            next=locked,
        )


class CheckoutSessionResponse(BaseModel):
    id: UUID
    restaurant_id: UUID
    subtotal: Decimal
    delivery_fee: Decimal | None = None
    applied_discounts: list[AppliedDiscountResponse]
    total_discount: Decimal
    unlock_progress: UnlockProgressResponse

    @field_serializer("subtotal", "total_discount")
    def _display_amount(self, value: Decimal) -> Decimal:
        return to_display(value)

    @field_serializer("delivery_fee")
    def _display_optional(self, value: Decimal | None) -> Decimal | None:
        return to_display(value) if value is not None else None

    @classmethod
    def from_snapshot(cls, snapshot: "SessionSnapshot") -> "CheckoutSessionResponse":
        return cls(
            id=snapshot.session_id,
            restaurant_id=snapshot.restaurant_id,
            subtotal=snapshot.subtotal_cents,
            delivery_fee=snapshot.delivery_fee_cents,
            applied_discounts=[
                AppliedDiscountResponse.from_applied(a) for a in snapshot.applied_discounts
            ],
            total_discount=snapshot.total_discount_cents,
            unlock_progress=UnlockProgressResponse.from_progress(snapshot.unlock_progress),
        )


class ApplyCodeResponse(BaseModel):
    success: bool
    amount_saved: Decimal | None = None
    error_reason: str | None = None
    message: str | None = None
    session: CheckoutSessionResponse

    @field_serializer("amount_saved")
    def _display_optional(self, value: Decimal | None) -> Decimal | None:
        return to_display(value) if value is not None else None

    @classmethod
    def from_result(
        cls, result: "ApplyCodeResult", snapshot: "SessionSnapshot"
    ) -> "ApplyCodeResponse":
        return cls(
            success=result.success,
            amount_saved=result.amount_saved_cents,
            error_reason=result.error_reason.value if result.error_reason else None,
            message=result.message,
            session=CheckoutSessionResponse.from_snapshot(snapshot),
        )
