from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from discounts.core.config import settings
from discounts.core.database import init_db
from discounts.core.logging import configure_logging
from discounts.routers import checkout_sessions

OPENAPI_TAGS = [
    {
        "name": "Checkout Sessions",
        "description": "Apply coupons and promotions to a live checkout and track discounts.",
    },
]

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Discount and promotion resolution for restaurant checkout. "
        "Validates coupons and promotions, auto-applies qualifying promotions "
        "and keeps applied discounts in step with the cart subtotal."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    checkout_sessions.router,
    prefix="/v1/checkout_sessions",
    tags=["Checkout Sessions"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
