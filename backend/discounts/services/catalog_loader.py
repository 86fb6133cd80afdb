"""Catalog loaders: where coupons and promotions come from.

The engine only reads the catalog. Two loaders are provided: one over the
local SQL tables and one over a remote catalog service speaking the
storefront's JSON shape (major-unit amounts, ``discount_value`` fields).
Both raise ``CatalogUnavailableError`` when the catalog cannot be read.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

import httpx
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from discounts.core import database
from discounts.core.config import settings
from discounts.core.exceptions import CatalogUnavailableError
from discounts.core.money import to_cents
from discounts.models.promotion import PromotionConditionType
from discounts.repositories.coupon_repository import CouponRepository
from discounts.repositories.promotion_repository import PromotionRepository
from discounts.services.discount_definition import (
    DiscountDefinition,
    DiscountKind,
    DiscountType,
    coupon_discount_type,
    promotion_discount_type,
)

logger = logging.getLogger(__name__)


class CatalogLoader(Protocol):
    """Read access to the coupon and promotion catalog."""

    async def list_active_promotions(self, restaurant_id: UUID) -> list[DiscountDefinition]: ...

    async def find_coupons_by_code(self, code: str) -> list[DiscountDefinition]: ...

    async def find_promotions_by_code(
        self, restaurant_id: UUID, code: str
    ) -> list[DiscountDefinition]: ...


class SqlCatalogLoader:
    """Catalog loader over the local ``coupons`` and ``promotions`` tables."""

    def _session(self) -> Session:
        # Looked up per call so a patched SessionLocal is honoured
        return database.SessionLocal()

    async def list_active_promotions(self, restaurant_id: UUID) -> list[DiscountDefinition]:
        db = self._session()
        try:
            promotions = PromotionRepository(db).get_active_by_restaurant(restaurant_id)
            return _definitions(DiscountDefinition.from_promotion, promotions)
        except SQLAlchemyError as exc:
            raise CatalogUnavailableError(f"Failed to load promotions: {exc}") from exc
        finally:
            db.close()

    async def find_coupons_by_code(self, code: str) -> list[DiscountDefinition]:
        db = self._session()
        try:
            coupons = CouponRepository(db).find_by_code(code)
            return _definitions(DiscountDefinition.from_coupon, coupons)
        except SQLAlchemyError as exc:
            raise CatalogUnavailableError(f"Failed to look up coupon code: {exc}") from exc
        finally:
            db.close()

    async def find_promotions_by_code(
        self, restaurant_id: UUID, code: str
    ) -> list[DiscountDefinition]:
        db = self._session()
        try:
            promotions = PromotionRepository(db).find_active_by_code(restaurant_id, code)
            return _definitions(DiscountDefinition.from_promotion, promotions)
        except SQLAlchemyError as exc:
            raise CatalogUnavailableError(f"Failed to look up promotion code: {exc}") from exc
        finally:
            db.close()


def _definitions(convert: Any, rows: list[Any]) -> list[DiscountDefinition]:
    definitions: list[DiscountDefinition] = []
    for row in rows:
        try:
            definitions.append(convert(row))
        except ValueError as exc:
            logger.warning("Skipping catalog entry %s: %s", row.id, exc)
    return definitions


class RemoteCoupon(BaseModel):
    """Coupon as served by the remote catalog."""

    id: UUID
    code: str
    description: str | None = None
    restaurant_id: UUID | None = None
    discount_type: str
    discount_value: Decimal = Decimal("0")
    max_discount: Decimal | None = None
    minimum_order: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int | None = 0
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True

    def to_definition(self) -> DiscountDefinition:
        discount_type = coupon_discount_type(self.discount_type)
        code = self.code.strip().upper()
        percentage = discount_type == DiscountType.PERCENTAGE
        return DiscountDefinition(
            source_id=self.id,
            kind=DiscountKind.COUPON,
            label=code,
            discount_type=discount_type,
            percentage_rate=self.discount_value if percentage else None,
            amount_cents=None if percentage else to_cents(self.discount_value),
            max_discount_cents=to_cents(self.max_discount) if self.max_discount else None,
            minimum_order_cents=to_cents(self.minimum_order),
            restaurant_id=self.restaurant_id,
            usage_limit=self.usage_limit,
            usage_count=self.usage_count or 0,
            valid_from=self.valid_from,
            valid_until=self.valid_until,
            is_active=self.is_active,
            code=code,
            description=self.description,
        )


class RemotePromotion(BaseModel):
    """Promotion as served by the remote catalog."""

    id: UUID
    restaurant_id: UUID
    name: str
    description: str | None = None
    promotion_code: str | None = None
    promotion_type: str
    discount_value: Decimal = Decimal("0")
    condition_type: str | None = None
    minimum_order: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int | None = 0
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    def to_definition(self) -> DiscountDefinition:
        discount_type = promotion_discount_type(self.promotion_type)
        percentage = discount_type == DiscountType.PERCENTAGE
        code = self.promotion_code.strip().upper() if self.promotion_code else None
        return DiscountDefinition(
            source_id=self.id,
            kind=DiscountKind.PROMOTION,
            label=self.name,
            discount_type=discount_type,
            percentage_rate=self.discount_value if percentage else None,
            amount_cents=None if percentage else to_cents(self.discount_value),
            minimum_order_cents=to_cents(self.minimum_order),
            restaurant_id=self.restaurant_id,
            usage_limit=self.usage_limit,
            usage_count=self.usage_count or 0,
            valid_from=self.start_date,
            valid_until=self.end_date,
            is_active=self.is_active,
            code=code or None,
            description=self.description,
            is_threshold=self.condition_type == PromotionConditionType.MINIMUM_ORDER.value,
        )


class HttpCatalogLoader:
    """Catalog loader backed by the remote catalog service."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.CATALOG_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.CATALOG_API_KEY
        self.timeout = timeout if timeout is not None else settings.CATALOG_TIMEOUT_SECONDS
        self.transport = transport

    async def list_active_promotions(self, restaurant_id: UUID) -> list[DiscountDefinition]:
        items = await self._get(
            "/promotions",
            {"restaurant_id": str(restaurant_id), "is_active": "true"},
            "promotions",
        )
        return self._parse(RemotePromotion, items)

    async def find_coupons_by_code(self, code: str) -> list[DiscountDefinition]:
        items = await self._get("/coupons", {"code": code}, "coupons")
        return self._parse(RemoteCoupon, items)

    async def find_promotions_by_code(
        self, restaurant_id: UUID, code: str
    ) -> list[DiscountDefinition]:
        items = await self._get(
            "/promotions",
            {"restaurant_id": str(restaurant_id), "promotion_code": code, "is_active": "true"},
            "promotions",
        )
        return self._parse(RemotePromotion, items)

    async def _get(self, path: str, params: dict[str, str], key: str) -> list[Any]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.get(path, params=params, headers=headers)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Catalog request %s failed: %s", path, exc)
            raise CatalogUnavailableError(f"Catalog request {path} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogUnavailableError(f"Catalog returned invalid JSON for {path}") from exc

        if isinstance(payload, dict):
            payload = payload.get(key)
        if not isinstance(payload, list):
            raise CatalogUnavailableError(f"Unexpected catalog payload for {path}")
        return payload

    def _parse(
        self,
        model: type[RemoteCoupon] | type[RemotePromotion],
        items: list[Any],
    ) -> list[DiscountDefinition]:
        definitions: list[DiscountDefinition] = []
        for item in items:
            try:
                definitions.append(model.model_validate(item).to_definition())
            except (ValidationError, ValueError) as exc:
                logger.warning("Skipping malformed catalog entry: %s", exc)
        return definitions


def get_catalog_loader() -> CatalogLoader:
    """Return the remote loader when a catalog URL is configured, else the SQL one."""
    if settings.remote_catalog_enabled:
        return HttpCatalogLoader()
    return SqlCatalogLoader()
