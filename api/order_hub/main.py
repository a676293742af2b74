# order_hub/main.py
# Order Hub - clients, articles and orders for the print-supplies catalog
from __future__ import annotations
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from order_hub import __version__
from order_hub.settings import settings
from order_hub.database import init_db, close_db, check_db_health
from order_hub.errors import (
    OrderHubError, NotFoundError, ValidationError, InsufficientStockError,
    DuplicateKeyError, StateConflictError,
)
from order_hub.logging_setup import setup_logging, teardown_logging
from order_hub.routers.articles import router as articles_router
from order_hub.routers.clients import router as clients_router
from order_hub.routers.orders import router as orders_router

logger = logging.getLogger("order_hub")

# ---------------------------------------------------------
# Lifespan: logging + database init/cleanup
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    log_path = setup_logging(settings)
    await init_db()
    logger.info("Order Hub %s started, logging to %s", __version__, log_path)
    yield
    await close_db()
    logger.info("Order Hub stopped")
    teardown_logging(log_path)

# ---------------------------------------------------------
# FastAPI app + CORS
# ---------------------------------------------------------
app = FastAPI(
    title="Order Hub API",
    version=__version__,
    description="Clients, articles and multi-line orders with stock reservation",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(articles_router)
app.include_router(clients_router)
app.include_router(orders_router)

# ---------------------------------------------------------
# Error mapping
# ---------------------------------------------------------
# Checked in order; the first matching base class wins
ERROR_STATUS_CODES = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (InsufficientStockError, 400),
    (DuplicateKeyError, 409),
    (StateConflictError, 409),
)


def status_for(exc: OrderHubError) -> int:
    for exc_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


@app.exception_handler(OrderHubError)
async def order_hub_error_handler(request: Request, exc: OrderHubError) -> JSONResponse:
    """Map OrderHubError subclasses to HTTP responses."""
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_for(exc), content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400 naming the offending fields."""
    errors = exc.errors()
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in errors]
    return JSONResponse(
        status_code=400,
        content={
            "detail": "; ".join(f"{f}: {e.get('msg')}" for f, e in zip(fields, errors)),
            "error_type": "ValidationError",
            "fields": fields,
        },
    )


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Persistence failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Storage error, please retry later", "error_type": "PersistenceFailure"},
    )

# ---------------------------------------------------------
# Endpoints
# ---------------------------------------------------------
@app.get("/health")
async def health():
    """Health check endpoint with database status."""
    db_health = await check_db_health()
    return {
        "status": "ok" if db_health.get("status") == "healthy" else "degraded",
        "version": __version__,
        "database": db_health,
    }
