"""Teahouse FastAPI application.

Multi-domain web server that processes commands synchronously via HTTP.
Each request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from identity.domain import identity
from shared.auth import set_user_loader
from shared.config import get_settings
from shared.envelope import register_error_handlers
from shared.logging import add_context, clear_context, get_logger
from storefront.domain import storefront

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
identity.init()
storefront.init()

logger = get_logger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/api/auth": identity,
    "/api/users": identity,
    "/api/products": storefront,
    "/api/cart": storefront,
    "/api/orders": storefront,
    "/api/maintenance": storefront,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Teahouse API",
    description="Tea and grocery storefront: catalog, cart, orders and user administration",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Bind a request id to the log context and log each completed request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    clear_context()
    add_context(request_id=request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info("Request completed", status_code=response.status_code)
        return response
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from identity.api import auth_router, users_router  # noqa: E402
from identity.user.queries import load_auth_user  # noqa: E402
from storefront.api import cart_router, maintenance_router, order_router, product_router  # noqa: E402

# Authenticated requests resolve the live account, not just the token claims
set_user_loader(load_auth_user)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(maintenance_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "domains": {
            "identity": {"name": identity.name},
            "storefront": {"name": storefront.name},
        },
    }
