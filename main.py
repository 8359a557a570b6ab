"""
Storefront - Application Entry Point
=======================================
FastAPI app factory: logging, error handlers, middleware, static files
and router registration.
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.database import Base, engine
from common.exceptions import StorefrontError

# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.catalog.models import Category, Product  # noqa: F401
from modules.cart.models import Cart, CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401
from modules.payment.models import Checkout, CheckoutItem  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router
from modules.catalog.routes import router as product_router
from modules.catalog.admin_routes import router as catalog_admin_router
from modules.cart.routes import router as cart_router
from modules.order.routes import router as order_router
from modules.order.admin_routes import router as order_admin_router
from modules.payment.routes import router as payment_router
from modules.admin.routes import router as admin_router

logger = logging.getLogger("storefront")
access_logger = logging.getLogger("storefront.access")

ROUTERS = (
    auth_router,
    product_router,
    catalog_admin_router,
    cart_router,
    order_router,
    order_admin_router,
    payment_router,
    admin_router,
)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info("Storefront started")
    yield
    logger.info("Storefront stopped")


# ==========================================
# Exception handlers: one response shape for every error
# ==========================================

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _error(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error(exc.status_code, message)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request bodies/params that fail their schema are a 400, not FastAPI's default 422."""
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request")
    first = errors[0]
    msg = str(first.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    else:
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        if field:
            msg = f"{field}: {msg}"
    return _error(400, msg)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error(500, "Internal server error")


# ==========================================
# Middleware: Request Log
# ==========================================

_SKIP_PATHS = ("/public/", "/health", "/favicon.ico")


async def request_logger(request: Request, call_next):
    """Log method, path, status and latency of every request."""
    path = request.url.path
    if any(path.startswith(p) for p in _SKIP_PATHS):
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    elapsed_ms = int((time.time() - start) * 1000)
    access_logger.info(f"{request.method} {path} {response.status_code} {elapsed_ms}ms")
    return response


# ==========================================
# Create App
# ==========================================

def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Storefront",
        description="Multi-role e-commerce API",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Static files (uploaded product images)
    os.makedirs(settings.STATIC_DIR, exist_ok=True)
    app.mount(settings.STATIC_URL_PREFIX, StaticFiles(directory=settings.STATIC_DIR), name="public")

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.middleware("http")(request_logger)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "1.0.0"}

    return app


app = create_app()
