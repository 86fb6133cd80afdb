"""Checkout discount session: the reactive store behind a live checkout.

Every trigger (cart edit, catalog refresh, code entry, removal) goes through
one asyncio lock and ends in ``_recompute``, the single place where the
ledger is re-validated, re-priced and scanned for automatic promotions.
Catalog calls run outside the lock; whatever they return is checked against
the session state current when the lock is re-acquired, never the state from
when the call started.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from discounts.core.exceptions import CatalogUnavailableError, CheckoutSessionNotFound
from discounts.models.shared import generate_uuid, utc_now
from discounts.services.auto_apply import AutoApplyScanner, UnlockProgress, unlock_progress
from discounts.services.catalog_loader import CatalogLoader, get_catalog_loader
from discounts.services.code_resolver import ApplyCodeResult, ManualCodeResolver
from discounts.services.discount_definition import DiscountDefinition, DiscountKind
from discounts.services.discount_ledger import (
    AppliedDiscount,
    DiscountLedger,
    DiscountsChangedListener,
)

logger = logging.getLogger(__name__)


class RefreshOutcome(str, Enum):
    """How a catalog refresh ended."""

    COMMITTED = "committed"
    SUPERSEDED = "superseded"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of a session for checkout to render."""

    session_id: UUID
    restaurant_id: UUID
    subtotal_cents: Decimal
    delivery_fee_cents: Decimal | None
    applied_discounts: list[AppliedDiscount]
    total_discount_cents: Decimal
    unlock_progress: UnlockProgress


class CheckoutDiscountSession:
    """Discount state of one checkout, kept consistent with the live cart."""

    def __init__(
        self,
        restaurant_id: UUID,
        catalog: CatalogLoader,
        subtotal_cents: Decimal = Decimal("0"),
        delivery_fee_cents: Decimal | None = None,
        clock: Callable[[], datetime] = utc_now,
        session_id: UUID | None = None,
    ) -> None:
        self.id = session_id or generate_uuid()
        self.restaurant_id = restaurant_id
        self.catalog = catalog
        self.ledger = DiscountLedger()
        self.scanner = AutoApplyScanner()
        self.resolver = ManualCodeResolver(catalog)
        self._clock = clock
        self._subtotal_cents = Decimal(subtotal_cents)
        self._delivery_fee_cents = (
            Decimal(delivery_fee_cents) if delivery_fee_cents is not None else None
        )
        self._promotions: list[DiscountDefinition] = []
        self._lock = asyncio.Lock()
        self._refresh_requested = 0
        self._refresh_committed = 0

    @property
    def subtotal_cents(self) -> Decimal:
        return self._subtotal_cents

    @property
    def delivery_fee_cents(self) -> Decimal | None:
        return self._delivery_fee_cents

    @property
    def promotions(self) -> list[DiscountDefinition]:
        return list(self._promotions)

    def subscribe(self, listener: DiscountsChangedListener) -> Callable[[], None]:
        """Register an ``on_discounts_changed(applied, total_cents)`` listener."""
        return self.ledger.subscribe(listener)

    def total_discount(self) -> Decimal:
        return self.ledger.total_discount()

    async def set_subtotal(self, subtotal_cents: Decimal) -> None:
        """Record a cart edit and bring the applied discounts up to date."""
        async with self._lock:
            self._subtotal_cents = Decimal(subtotal_cents)
            self._recompute()

    async def set_delivery_fee(self, delivery_fee_cents: Decimal | None) -> None:
        """Record the delivery fee (None when unknown, 0 for collection)."""
        async with self._lock:
            self._delivery_fee_cents = (
                Decimal(delivery_fee_cents) if delivery_fee_cents is not None else None
            )
            self._recompute()

    async def update_cart(
        self,
        subtotal_cents: Decimal,
        delivery_fee_cents: Decimal | None = None,
        update_delivery_fee: bool = False,
    ) -> None:
        """Record a cart edit, and optionally a new delivery fee, as one trigger."""
        async with self._lock:
            self._subtotal_cents = Decimal(subtotal_cents)
            if update_delivery_fee:
                self._delivery_fee_cents = (
                    Decimal(delivery_fee_cents) if delivery_fee_cents is not None else None
                )
            self._recompute()

    async def refresh_catalog(self) -> RefreshOutcome:
        """Reload the restaurant's active promotions and the applied coupons, then rescan.

        A response that arrives after a newer refresh has already been
        committed is discarded. Catalog failures keep the previous catalog.
        """
        self._refresh_requested += 1
        sequence = self._refresh_requested
        coupon_codes = {
            entry.code
            for entry in self.ledger.entries
            if entry.kind == DiscountKind.COUPON and entry.code
        }

        try:
            promotions = await self.catalog.list_active_promotions(self.restaurant_id)
            coupons: list[DiscountDefinition] = []
            for code in sorted(coupon_codes):
                coupons.extend(await self.catalog.find_coupons_by_code(code))
        except CatalogUnavailableError as exc:
            logger.warning(
                "Catalog refresh failed for session %s, keeping previous catalog: %s",
                self.id,
                exc,
            )
            return RefreshOutcome.UNAVAILABLE

        async with self._lock:
            if sequence < self._refresh_committed:
                logger.warning(
                    "Discarding stale catalog refresh %d for session %s (already at %d)",
                    sequence,
                    self.id,
                    self._refresh_committed,
                )
                return RefreshOutcome.SUPERSEDED

            self._refresh_committed = sequence
            self._promotions = list(promotions)
            with self.ledger.batch():
                self._sync_applied_promotions()
                self._sync_applied_coupons(coupon_codes, coupons)
                self._recompute()
            return RefreshOutcome.COMMITTED

    async def apply_code(self, raw_code: str | None) -> ApplyCodeResult:
        """Apply a customer-entered coupon or promotion code."""
        lookup = await self.resolver.lookup(raw_code, self.restaurant_id)

        async with self._lock:
            with self.ledger.batch():
                # Validated against the subtotal as it is now, not at lookup time
                result = self.resolver.commit(
                    lookup,
                    self.ledger,
                    self._subtotal_cents,
                    self._clock(),
                    self.restaurant_id,
                    self._delivery_fee_cents,
                )
                if result.success:
                    self._recompute()
            return result

    async def remove_discount(self, source_id: UUID, kind: DiscountKind) -> None:
        """Remove an applied discount.

        Automatic promotions removed here come back on the next subtotal
        change or catalog refresh if the cart still qualifies.
        """
        async with self._lock:
            with self.ledger.batch():
                self.ledger.remove(source_id, kind)
                self._recompute(scan=False)

    def unlock_progress(self) -> UnlockProgress:
        return unlock_progress(
            self._promotions, self._subtotal_cents, self._clock(), self.restaurant_id
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.id,
            restaurant_id=self.restaurant_id,
            subtotal_cents=self._subtotal_cents,
            delivery_fee_cents=self._delivery_fee_cents,
            applied_discounts=self.ledger.entries,
            total_discount_cents=self.ledger.total_discount(),
            unlock_progress=self.unlock_progress(),
        )

    def _sync_applied_promotions(self) -> None:
        """Swap applied promotions for their refreshed definitions.

        Applied promotions missing from the refreshed active list have been
        deactivated or deleted and are removed.
        """
        fresh = {promotion.key: promotion for promotion in self._promotions}
        for entry in self.ledger.entries:
            if entry.kind != DiscountKind.PROMOTION:
                continue
            definition = fresh.get(entry.definition.key)
            if definition is None:
                self.ledger.remove(entry.source_id, entry.kind)
            else:
                entry.definition = definition

    def _sync_applied_coupons(
        self, checked_codes: set[str], coupons: list[DiscountDefinition]
    ) -> None:
        """Swap applied coupons for their refreshed definitions.

        Only coupons whose code was re-fetched are touched; those no longer in
        the catalog are removed. Deactivated or used-up coupons are evicted by
        the recompute that follows.
        """
        fresh = {coupon.key: coupon for coupon in coupons}
        for entry in self.ledger.entries:
            if entry.kind != DiscountKind.COUPON or entry.code not in checked_codes:
                continue
            definition = fresh.get(entry.definition.key)
            if definition is None:
                self.ledger.remove(entry.source_id, entry.kind)
            else:
                entry.definition = definition

    def _recompute(self, scan: bool = True) -> None:
        """Re-validate and re-price the ledger, then scan for automatic promotions."""
        now = self._clock()
        with self.ledger.batch():
            self.ledger.recompute_all(
                self._subtotal_cents, now, self.restaurant_id, self._delivery_fee_cents
            )
            if scan:
                self.scanner.scan(
                    self.ledger,
                    self._promotions,
                    self._subtotal_cents,
                    now,
                    self.restaurant_id,
                    self._delivery_fee_cents,
                )


class CheckoutSessionRegistry:
    """In-memory registry of open checkout sessions."""

    def __init__(self) -> None:
        self._sessions: dict[UUID, CheckoutDiscountSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(
        self,
        restaurant_id: UUID,
        subtotal_cents: Decimal = Decimal("0"),
        delivery_fee_cents: Decimal | None = None,
        catalog: CatalogLoader | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> CheckoutDiscountSession:
        """Create a session, load its catalog and apply what already qualifies."""
        session = CheckoutDiscountSession(
            restaurant_id=restaurant_id,
            catalog=catalog or get_catalog_loader(),
            subtotal_cents=subtotal_cents,
            delivery_fee_cents=delivery_fee_cents,
            clock=clock,
        )
        self._sessions[session.id] = session
        await session.refresh_catalog()
        logger.info("Opened checkout session %s for restaurant %s", session.id, restaurant_id)
        return session

    def get(self, session_id: UUID) -> CheckoutDiscountSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise CheckoutSessionNotFound(f"Checkout session {session_id} not found")
        return session

    def close(self, session_id: UUID) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise CheckoutSessionNotFound(f"Checkout session {session_id} not found")
        logger.info("Closed checkout session %s", session_id)

    def clear(self) -> None:
        self._sessions.clear()


session_registry = CheckoutSessionRegistry()
