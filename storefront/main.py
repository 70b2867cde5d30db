"""
Moonlight Scent Storefront Backend.

ARCHITECTURE:
- Dashboard (browser): calls this API for every screen
- FastAPI Backend: validation, cart and sale sessions, invoices, reminders
- SQL database via SQLAlchemy: source of truth for all state
- Local media directory: product images, served under /media

SALE COMMIT:
- Sale header, line items and stock decrements are written in sequence
- Each step commits on its own; a mid-way failure is reported, not undone
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.api.routes import analytics, backup, categories, customers, products, sales
from storefront.core.cache import QueryCache
from storefront.core.config import settings
from storefront.core.exceptions import SaleCommitError, StorefrontError
from storefront.db.init_db import init_db
from storefront.services.sale_session import SaleSessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Configure logging
    2. Initialize database tables and media/invoice directories
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("[*] Initializing database...")
    init_db()
    print("[OK] Database initialized")

    yield

    print(f"[*] Shutting down with {len(app.state.sale_sessions)} open sale sessions")


app = FastAPI(
    title=f"{settings.BUSINESS_NAME} Storefront API",
    description="Inventory, point of sale, customer credit and invoices for a single shop.",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.sale_sessions = SaleSessionStore()
app.state.query_cache = QueryCache()

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    body = {"detail": exc.message}
    if isinstance(exc, SaleCommitError):
        body["step"] = exc.step
        body["sale_id"] = exc.sale_id
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=body)


Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT), name="media")

app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
app.include_router(backup.router, prefix="/backup", tags=["backup"])


@app.get("/health")
def health():
    return {"status": "ok", "business": settings.BUSINESS_NAME}
