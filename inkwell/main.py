"""
FastAPI Application - Inkwell blogging API
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from pathlib import Path

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.staticfiles import StaticFiles
from fastapi_users import exceptions as user_exceptions
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import inkwell.db_events  # noqa: F401 - registers post save hooks
from inkwell.config import DEFAULT_CATEGORIES, settings
from inkwell.database import Base, SessionLocal, engine, get_db
from inkwell.models.category import Category
from inkwell.models.subscriber import Subscriber  # noqa: F401 - needed for metadata
from inkwell.models.user import User  # noqa: F401 - needed for metadata
from inkwell.observability.logging import configure_logging
from inkwell.observability.metrics import MetricsMiddleware, metrics_response
from inkwell.routers.auth import router as auth_router
from inkwell.routers.blogs import router as blogs_router
from inkwell.routers.categories import router as categories_router
from inkwell.routers.newsletter import router as newsletter_router
from inkwell.routers.stats import router as stats_router
from inkwell.routers.upload import router as upload_router
from inkwell.security import SecurityHeadersMiddleware, limiter
from inkwell.utils.responses import envelope, error_response

logger = logging.getLogger(__name__)


# ==========================================
# Database Initialization & Seeding
# ==========================================
def init_database() -> None:
    Base.metadata.create_all(bind=engine)


def seed_default_categories(db: Session) -> int:
    """Insert the default categories when the table is empty."""
    if db.query(func.count(Category.id)).scalar():
        return 0
    for entry in DEFAULT_CATEGORIES:
        db.add(Category(name=entry["name"], description=entry["description"]))
    db.commit()
    return len(DEFAULT_CATEGORIES)


async def create_admin_user_on_startup() -> None:
    """Create the admin account from settings if it does not exist yet."""
    from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase

    from inkwell.auth import UserManager
    from inkwell.database_async import AsyncSessionLocal
    from inkwell.schemas.user import UserCreate

    async with AsyncSessionLocal() as session:
        user_manager = UserManager(SQLAlchemyUserDatabase(session, User))

        try:
            await user_manager.get_by_email(settings.admin_email)
            logger.info("Admin user %s exists", settings.admin_email)
            return
        except user_exceptions.UserNotExists:
            pass

        try:
            user = await user_manager.create(
                UserCreate(
                    name=settings.admin_name,
                    email=settings.admin_email,
                    password=settings.admin_password,
                    is_superuser=True,
                    is_verified=True,
                )
            )
        except (
            user_exceptions.UserAlreadyExists,
            user_exceptions.InvalidPasswordException,
        ) as exc:
            logger.warning("Could not create admin user: %r", exc)
            return
        logger.info("Created admin user %s", user.email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"environment": settings.environment})
    init_database()
    with SessionLocal() as db:
        added = seed_default_categories(db)
        if added:
            logger.info("Seeded %d default categories", added)

    await create_admin_user_on_startup()

    logger.info("Application ready")
    yield
    logger.info("Shutting down application")


configure_logging(settings.log_level.upper())
IS_PROD = settings.is_production


# ==========================================
# Exception handlers (define BEFORE registration)
# ==========================================
DEFAULT_ERROR_MESSAGES = {
    401: "Not authorized, token missing or invalid",
    403: "Access denied. Admin privileges required.",
}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the response envelope."""
    if exc.status_code == 404 and request.scope.get("endpoint") is None:
        return error_response(404, "Route not found")

    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code in DEFAULT_ERROR_MESSAGES and message in (
        "Unauthorized",
        "Forbidden",
    ):
        message = DEFAULT_ERROR_MESSAGES[exc.status_code]
    return error_response(
        exc.status_code, message, headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(
                str(part) for part in err["loc"] if part not in ("body", "query", "path")
            ),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Validation failed", {"errors": errors}
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded for %s", request.url.path)
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests from this IP, please try again later.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Internal server error" if IS_PROD else str(exc) or "Internal server error"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


# ==========================================
# FastAPI Application
# ==========================================
app = FastAPI(
    title="Inkwell",
    description="Personal blogging platform API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if IS_PROD else "/docs",
    redoc_url=None if IS_PROD else "/redoc",
    openapi_url=None if IS_PROD else "/openapi.json",
)
# Order: compression → rate-limit/metrics → security → correlation id
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
# CORS: strict allowlist
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
# Locally stored images
if settings.storage_backend == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=Path(settings.upload_dir), check_dir=False),
        name="uploads",
    )


# ==========================================
# Health & readiness (minimal in prod)
# ==========================================
@app.get("/api/health", tags=["system"], summary="API health")
async def api_health() -> dict:
    return envelope(
        "Server is running",
        {"environment": settings.environment, "version": app.version},
    )


@app.get("/healthz", tags=["system"], summary="Health check", response_model=dict)
async def health_check(db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="unhealthy"
        )
    if IS_PROD:
        return {"status": "healthy"}
    return {"status": "healthy", "database": "connected", "version": app.version}


@app.get("/readyz", tags=["system"], summary="Readiness check", response_model=dict)
async def readiness_check(db: Session = Depends(get_db)) -> dict:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        )
    if IS_PROD:
        return {"status": "ready"}
    return {
        "status": "ready",
        "database": "connected",
        "storage": settings.storage_backend,
    }


# ==========================================
# Metrics (Protected with HTTP Basic Auth)
# ==========================================
security = HTTPBasic()


def verify_metrics_auth(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """Verify HTTP Basic Auth credentials for metrics endpoint."""
    if not settings.metrics_password:
        return credentials.username

    correct_username = secrets.compare_digest(
        credentials.username, settings.metrics_username
    )
    correct_password = secrets.compare_digest(
        credentials.password, settings.metrics_password
    )

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@app.get("/metrics", include_in_schema=False)
def metrics(_: str = Depends(verify_metrics_auth)):
    """
    Prometheus metrics endpoint (protected with HTTP Basic Auth).

    Set METRICS_USERNAME and METRICS_PASSWORD environment variables.
    """
    return metrics_response()


# ==========================================
# Routers
# ==========================================
app.include_router(auth_router)
app.include_router(blogs_router)
app.include_router(categories_router)
app.include_router(newsletter_router)
app.include_router(stats_router)
app.include_router(upload_router)
