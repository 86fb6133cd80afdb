"""In-memory ledger of the discounts applied to one checkout."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from discounts.services.discount_amounts.factory import calculate_amount
from discounts.services.discount_definition import DiscountDefinition, DiscountKind
from discounts.services.eligibility import DiscountErrorReason, evaluate_eligibility

logger = logging.getLogger(__name__)


@dataclass
class AppliedDiscount:
    """A discount currently applied, with its amount as of the last recompute."""

    definition: DiscountDefinition
    amount_cents: Decimal

    @property
    def source_id(self) -> UUID:
        return self.definition.source_id

    @property
    def kind(self) -> DiscountKind:
        return self.definition.kind

    @property
    def label(self) -> str:
        return self.definition.label

    @property
    def code(self) -> str | None:
        return self.definition.code

    @property
    def automatic(self) -> bool:
        return self.definition.is_automatic


@dataclass(frozen=True)
class EvictedDiscount:
    """A discount removed by a recompute, and why."""

    applied: AppliedDiscount
    reason: DiscountErrorReason


DiscountsChangedListener = Callable[[list[AppliedDiscount], Decimal], None]


class DiscountLedger:
    """Authoritative set of applied discounts for a checkout session.

    Entries keep insertion order and are unique per (source_id, kind).
    Coupons and promotions stack freely. Listeners are told about every
    change; inside ``batch()`` they are told once, when the batch ends.
    """

    def __init__(self) -> None:
        self._entries: list[AppliedDiscount] = []
        self._listeners: list[DiscountsChangedListener] = []
        self._batch_depth = 0
        self._pending_change = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return any(entry.definition.key == key for entry in self._entries)

    @property
    def entries(self) -> list[AppliedDiscount]:
        return list(self._entries)

    def get(self, source_id: UUID, kind: DiscountKind) -> AppliedDiscount | None:
        for entry in self._entries:
            if entry.source_id == source_id and entry.kind == kind:
                return entry
        return None

    def is_applied(self, source_id: UUID, kind: DiscountKind) -> bool:
        return self.get(source_id, kind) is not None

    def apply(self, definition: DiscountDefinition, amount_cents: Decimal) -> bool:
        """Append a discount unless the same source is already applied.

        Returns:
            True if the ledger changed.
        """
        if self.is_applied(definition.source_id, definition.kind):
            return False

        self._entries.append(AppliedDiscount(definition=definition, amount_cents=amount_cents))
        logger.info(
            "Applied %s %s (%s) for %s",
            definition.kind.value,
            definition.source_id,
            definition.label,
            amount_cents,
        )
        self._changed()
        return True

    def remove(self, source_id: UUID, kind: DiscountKind) -> bool:
        """Remove a discount. Returns True if an entry was removed."""
        entry = self.get(source_id, kind)
        if entry is None:
            return False

        self._entries.remove(entry)
        logger.info("Removed %s %s (%s)", kind.value, source_id, entry.label)
        self._changed()
        return True

    def clear(self) -> None:
        if not self._entries:
            return
        self._entries.clear()
        self._changed()

    def recompute_all(
        self,
        subtotal_cents: Decimal,
        now: datetime,
        restaurant_id: UUID | None = None,
        delivery_fee_cents: Decimal | None = None,
    ) -> list[EvictedDiscount]:
        """Re-validate and re-price every entry against the current subtotal.

        Entries failing eligibility are evicted; the rest get a freshly
        computed amount.

        Returns:
            The evicted entries with the reason each one failed.
        """
        evicted: list[EvictedDiscount] = []
        kept: list[AppliedDiscount] = []
        changed = False

        for entry in self._entries:
            result = evaluate_eligibility(entry.definition, subtotal_cents, now, restaurant_id)
            if not result.eligible:
                evicted.append(EvictedDiscount(applied=entry, reason=result.reason))  # type: ignore[arg-type]
                logger.info(
                    "Evicted %s %s (%s): %s",
                    entry.kind.value,
                    entry.source_id,
                    entry.label,
                    result.reason.value if result.reason else "ineligible",
                )
                changed = True
                continue

            amount = calculate_amount(entry.definition, subtotal_cents, delivery_fee_cents)
            if amount != entry.amount_cents:
                entry.amount_cents = amount
                changed = True
            kept.append(entry)

        self._entries = kept
        if changed:
            self._changed()
        return evicted

    def total_discount(self) -> Decimal:
        """Sum of the current amounts, in minor units."""
        return sum((entry.amount_cents for entry in self._entries), Decimal("0"))

    def subscribe(self, listener: DiscountsChangedListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator["DiscountLedger"]:
        """Group several mutations into a single change notification."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending_change:
                self._pending_change = False
                self._notify()

    def _changed(self) -> None:
        if self._batch_depth:
            self._pending_change = True
            return
        self._notify()

    def _notify(self) -> None:
        applied = self.entries
        total = self.total_discount()
        for listener in list(self._listeners):
            try:
                listener(applied, total)
            except Exception:
                logger.exception("Discount change listener %r failed", listener)
