"""Shipping label issuance FastAPI application.

Issues carrier labels synchronously over HTTP. Each request is wrapped in
the shipping domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from shipping.domain import shipping
from shipping.utils.logging import add_context, clear_context, configure_logging

configure_logging()
shipping.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Shipping Label API",
    description="Shipping label issuance — ClickPost & Yamato Compact",
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the shipping domain context and request log context."""
    add_context(path=request.url.path)
    try:
        with shipping.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from shipping.api import carrier_router, label_router  # noqa: E402

app.include_router(label_router)
app.include_router(carrier_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"shipping": {"name": shipping.name}},
        }
    )
