"""Checkout session API endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException

from discounts.core.exceptions import CheckoutSessionNotFound
from discounts.schemas.checkout_session import (
    ApplyCodeRequest,
    ApplyCodeResponse,
    CheckoutSessionCreate,
    CheckoutSessionResponse,
    SubtotalUpdate,
)
from discounts.services.checkout_session import (
    CheckoutDiscountSession,
    RefreshOutcome,
    session_registry,
)
from discounts.services.discount_definition import DiscountKind
from discounts.services.eligibility import DiscountErrorReason

router = APIRouter()


def _get_session(session_id: UUID) -> CheckoutDiscountSession:
    try:
        return session_registry.get(session_id)
    except CheckoutSessionNotFound:
        raise HTTPException(status_code=404, detail="Checkout session not found") from None


@router.post(
    "/",
    response_model=CheckoutSessionResponse,
    status_code=201,
    summary="Open checkout session",
    responses={422: {"description": "Validation error"}},
)
async def open_checkout_session(data: CheckoutSessionCreate) -> CheckoutSessionResponse:
    """Open a session, load the restaurant's promotions and auto-apply what qualifies."""
    session = await session_registry.open(
        restaurant_id=data.restaurant_id,
        subtotal_cents=data.subtotal_cents,
        delivery_fee_cents=data.delivery_fee_cents,
    )
    return CheckoutSessionResponse.from_snapshot(session.snapshot())


@router.get(
    "/{session_id}",
    response_model=CheckoutSessionResponse,
    summary="Get checkout session",
    responses={404: {"description": "Checkout session not found"}},
)
async def get_checkout_session(session_id: UUID) -> CheckoutSessionResponse:
    """Get applied discounts, totals and unlock progress."""
    session = _get_session(session_id)
    return CheckoutSessionResponse.from_snapshot(session.snapshot())


@router.put(
    "/{session_id}/subtotal",
    response_model=CheckoutSessionResponse,
    summary="Update cart subtotal",
    responses={
        404: {"description": "Checkout session not found"},
        422: {"description": "Validation error"},
    },
)
async def update_subtotal(session_id: UUID, data: SubtotalUpdate) -> CheckoutSessionResponse:
    """Update the subtotal (and optionally the delivery fee) and recompute discounts."""
    session = _get_session(session_id)
    await session.update_cart(
        data.subtotal_cents,
        data.delivery_fee_cents,
        update_delivery_fee="delivery_fee_cents" in data.model_fields_set,
    )
    return CheckoutSessionResponse.from_snapshot(session.snapshot())


@router.post(
    "/{session_id}/refresh",
    response_model=CheckoutSessionResponse,
    summary="Refresh promotions",
    responses={
        404: {"description": "Checkout session not found"},
        503: {"description": "Catalog unavailable"},
    },
)
async def refresh_promotions(session_id: UUID) -> CheckoutSessionResponse:
    """Reload the restaurant's promotions and rescan.

    A refresh overtaken by a newer one still returns the current state.
    """
    session = _get_session(session_id)
    if await session.refresh_catalog() == RefreshOutcome.UNAVAILABLE:
        raise HTTPException(status_code=503, detail="Failed to refresh promotions")
    return CheckoutSessionResponse.from_snapshot(session.snapshot())


@router.post(
    "/{session_id}/codes",
    response_model=ApplyCodeResponse,
    summary="Apply discount code",
    responses={
        400: {"description": "Code cannot be applied"},
        404: {"description": "Checkout session or code not found"},
        409: {"description": "Code already applied"},
        503: {"description": "Catalog unavailable"},
    },
)
async def apply_code(session_id: UUID, data: ApplyCodeRequest) -> ApplyCodeResponse:
    """Apply a coupon or promotion code to the session."""
    session = _get_session(session_id)
    result = await session.apply_code(data.code)
    if not result.success:
        status_code = {
            DiscountErrorReason.CODE_NOT_FOUND: 404,
            DiscountErrorReason.ALREADY_APPLIED: 409,
            DiscountErrorReason.CATALOG_UNAVAILABLE: 503,
        }.get(result.error_reason, 400)  # type: ignore[arg-type]
        raise HTTPException(
            status_code=status_code,
            detail={
                "error_reason": result.error_reason.value if result.error_reason else None,
                "message": result.message,
            },
        )
    return ApplyCodeResponse.from_result(result, session.snapshot())


@router.delete(
    "/{session_id}/discounts/{kind}/{source_id}",
    status_code=204,
    summary="Remove applied discount",
    responses={404: {"description": "Checkout session or discount not found"}},
)
async def remove_discount(session_id: UUID, kind: DiscountKind, source_id: UUID) -> None:
    """Remove an applied coupon or promotion."""
    session = _get_session(session_id)
    if not session.ledger.is_applied(source_id, kind):
        raise HTTPException(status_code=404, detail="Discount not applied")
    await session.remove_discount(source_id, kind)


@router.delete(
    "/{session_id}",
    status_code=204,
    summary="Close checkout session",
    responses={404: {"description": "Checkout session not found"}},
)
async def close_checkout_session(session_id: UUID) -> None:
    """Discard a checkout session."""
    try:
        session_registry.close(session_id)
    except CheckoutSessionNotFound:
        raise HTTPException(status_code=404, detail="Checkout session not found") from None
