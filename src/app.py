"""Biologics FastAPI application.

Web server that records therapy order status changes on the ledger and
serves order reads, history and paginated listings.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from biologics.domain import biologics
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

biologics.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Biologics Order Ledger API",
    description="Therapy order lifecycle recorded on a versioned ledger",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the biologics domain context for order and ledger routes."""
    if request.url.path.startswith(("/orders", "/ledger")):
        with biologics.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from biologics.api import ledger_router, order_router, register_ledger_exception_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(ledger_router)
register_exception_handlers(app)
register_ledger_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "biologics": {"name": biologics.name},
            },
        }
    )
