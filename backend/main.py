"""
LoadShop: FastAPI Application

Catalog, checkout and order listing behind a JWT-gated API, built as a
load-testing target. The checkout path is the only part with real
concurrency hazards; see services/checkout_service.py.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.responses import error_response
from routes import health, orders, products

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────


async def _seed_catalog_from_file(path: str) -> None:
    from deps import memory_stores, using_memory_backend
    from services.catalog_seed import load_seed_file, seed_catalog

    items = load_seed_file(path)
    if using_memory_backend():
        await seed_catalog(memory_stores()[0], items)
        return

    from database import async_session
    from services.catalog_store import SqlCatalogStore

    async with async_session() as session:
        await seed_catalog(SqlCatalogStore(session), items)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create DB tables, seed catalog. Shutdown: stop executor."""
    settings.validate_production_settings()

    if settings.storage_backend == "sql":
        if settings.database_url.startswith("sqlite:///./data/"):
            # Ensure data/ directory exists for the default SQLite file
            os.makedirs("data", exist_ok=True)
        from database import init_db
        await init_db()
        logger.info("Database initialized")
    else:
        logger.info("Using in-memory catalog and order ledger")

    if settings.catalog_seed_file:
        await _seed_catalog_from_file(settings.catalog_seed_file)

    yield  # app runs here

    from services.async_executor import shutdown_executor
    shutdown_executor()

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="LoadShop API",
    description="Minimal commerce backend (catalog, checkout, orders) for load testing",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(products.router)
app.include_router(orders.router)


# ── Exception Handlers ──────────────────────────────────────────────


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never return raw exception details to clients; the full traceback is
    logged server-side.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", "internal_server_error"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses.

    Keeps the original HTTP status code, but wraps the payload.
    """
    # DomainError subclasses carry a stable code and structured details
    if hasattr(exc, "message") and hasattr(exc, "details"):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, exc.code, exc.details),
            headers=getattr(exc, "headers", None),
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message,
            "http_error",
            {"detail": detail} if not isinstance(detail, str) else None,
        ),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Malformed bodies and query parameters are a 400 invalid_request, not FastAPI's 422."""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    first = errors[0] if errors else {"loc": [], "msg": "Invalid request"}
    where = ".".join(first["loc"][1:]) or "request"
    return JSONResponse(
        status_code=400,
        content=error_response(f"Invalid {where}: {first['msg']}", "invalid_request", {"errors": errors}),
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
