"""Storefront Ordering FastAPI application.

Serves carts, pricing, orders, quotations, promo codes and the tax
setting. Commands are processed synchronously; each request runs inside the
ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config environment; with no overlay the in-memory
# providers are used.
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.catalogue import get_catalogue
from ordering.catalogue.fake_adapter import InMemoryCatalogue, seed_demo_catalogue
from ordering.domain import ordering

ordering.init()

if os.getenv("ORDERING_SEED_CATALOGUE", "").lower() in ("1", "true", "yes"):
    catalogue = get_catalogue()
    if isinstance(catalogue, InMemoryCatalogue):
        seed_demo_catalogue(catalogue)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Ordering API",
    description="Cart pricing, promo codes and order snapshots",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

_DOMAIN_PREFIXES = ("/carts", "/orders", "/quotations", "/promo-codes", "/settings")


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with ordering.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api.routes import (  # noqa: E402
    cart_router,
    order_router,
    promo_router,
    quotation_router,
    settings_router,
)

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(quotation_router)
app.include_router(promo_router)
app.include_router(settings_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"ordering": {"name": ordering.name}},
        }
    )
