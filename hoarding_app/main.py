"""
FastAPI application main module.
Middleware, error handling, and observability for the hoarding management API.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import os
from contextlib import asynccontextmanager
from sqlalchemy import text
from hoarding_app import database
from hoarding_app.api.v1 import api_router
from hoarding_app.config import AUTH_SETTINGS, RATE_LIMIT_SETTINGS
from hoarding_app.database import Base
from hoarding_app.security import decode_token, InvalidTokenError
from hoarding_app.services.availability import sync_all_hoardings
from hoarding_app.services.placement_allocator import PlacementError, StoreUnavailable
from hoarding_app.utils import setup_logging, get_logger
from hoarding_app.utils.observability import ensure_request_id, client_address, REQUEST_ID_HEADER
from hoarding_app.utils.ratelimiter import rate_limiter

# Setup logging before creating the app
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE", "logs/hoarding_app.log"),
    enable_console=True
)

logger = get_logger(__name__)

SERVICE_NAME = "hoarding-management-backend"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates tables and brings the availability cache in line with placements.
    """
    logger.info("Application startup initiated")
    try:
        logger.info("Creating database tables")
        Base.metadata.create_all(bind=database.engine)
        logger.info("Database tables created successfully")

        db = database.SessionLocal()
        try:
            summary = sync_all_hoardings(db)
        finally:
            db.close()
        logger.info("Startup availability sync completed", **summary)
        logger.info("Application startup completed successfully")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown completed")

app = FastAPI(
    title="Hoarding Management API",
    description="""
    Billboard (hoarding) inventory, booking and citizen reporting service.

    ## Roles
    * **Owners** list hoardings
    * **Advertisers** create advertisements and book hoardings for date ranges
    * **Citizens** report billboard issues, optionally by QR token (no account needed)
    * **Administrators** approve advertisements and triage reports

    ## Authentication
    `POST /api/v1/auth/login` sets an httpOnly `token` cookie. API clients log in
    with `"bearer": true` to receive the JWT in the body and send it as
    `Authorization: Bearer <token>`.

    ## Bookings
    A placement occupies the half-open interval `[start_date, end_date)`; a
    booking ending on the day another starts does not conflict. Failures are
    typed: `INVALID_RANGE` (400), `ADVERTISEMENT_NOT_ELIGIBLE` (404 unknown, 403 not yours, 409 unapproved),
    `HOARDING_NOT_FOUND` (404), `SLOT_CONFLICT` (409), `STORE_UNAVAILABLE` (503).

    ## Rate Limiting
    Standard headers: `X-RateLimit-Limit`, `X-RateLimit-Remaining`, `X-RateLimit-Reset`.
    """,
    version=SERVICE_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

# Cookie auth needs explicit origins when credentials are allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


def _rate_limit_category(path: str, method: str) -> str:
    if method == "POST" and path.rstrip("/") == "/api/v1/advertiser/placements":
        return "booking"
    if method == "POST" and path.rstrip("/") == "/api/v1/reports":
        return "report_intake"
    if method == "POST" and path in ("/api/v1/auth/login", "/api/v1/auth/register"):
        return "auth"
    return "default"


def _rate_limit_key(request: Request, category: str) -> str:
    """Signed-in callers are keyed by user id; anonymous ones (and citizen reports) by address."""
    if category not in ("report_intake", "auth"):
        token = request.cookies.get(str(AUTH_SETTINGS["cookie_name"]))
        auth_header = request.headers.get("Authorization", "")
        if not token and auth_header.startswith("Bearer "):
            token = auth_header[7:]
        if token:
            try:
                return f"user:{decode_token(token)['sub']}"
            except InvalidTokenError:
                pass
    return f"addr:{client_address(request)}"


# Rate limiting middleware (must run after request context logging to reuse request_id)
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Apply fixed-window rate limits with endpoint categorization.

    Categories mapping:
      POST /api/v1/advertiser/placements -> booking
      POST /api/v1/reports -> report_intake (keyed by client address)
      POST /api/v1/auth/(login|register) -> auth
    Fallback: default
    """
    category = _rate_limit_category(request.url.path, request.method.upper())
    settings = RATE_LIMIT_SETTINGS.get(category, RATE_LIMIT_SETTINGS["default"])
    limit = int(settings.get("limit", 1000))
    window_seconds = int(settings.get("window_seconds", 3600))
    key = _rate_limit_key(request, category)

    allowed, meta = await rate_limiter.check_and_increment(key, category, limit, window_seconds)

    if not allowed:
        logger.warning("Rate limit exceeded", category=category, key=key, path=request.url.path)
        resp = JSONResponse(
            status_code=429,
            content={
                "success": False,
                "message": f"Rate limit exceeded for category '{category}'",
                "category": category,
            },
        )
        resp.headers["X-RateLimit-Limit"] = str(meta["limit"])
        resp.headers["X-RateLimit-Remaining"] = "0"
        resp.headers["X-RateLimit-Reset"] = str(meta["reset_epoch"])
        resp.headers["Retry-After"] = str(max(0, meta["reset_epoch"] - int(time.time())))
        return resp

    response = await call_next(request)
    response.headers["X-RateLimit-Limit"] = str(meta["limit"])
    response.headers["X-RateLimit-Remaining"] = str(meta["remaining"])
    response.headers["X-RateLimit-Reset"] = str(meta["reset_epoch"])
    return response

# Request ID and comprehensive logging middleware
@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID, timing, and request/response logging.
    """
    request_id = ensure_request_id(request.headers)
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("User-Agent"),
        remote_addr=client_address(request),
        request_id=request_id
    )

    response = await call_next(request)

    process_time = time.time() - request.state.start_time

    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
        request_id=request_id
    )

    return response

# Custom exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
            "request_id": request_id
        }
    )

@app.exception_handler(PlacementError)
async def placement_exception_handler(request: Request, exc: PlacementError):
    """Typed booking failures carry a machine code and structured details."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Placement request rejected",
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
    )

    headers = {"Retry-After": "1"} if isinstance(exc, StoreUnavailable) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            **exc.to_dict(),
            "request_id": request_id
        },
        headers=headers,
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "request_id": request_id
        },
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        url=str(request.url),
        method=request.method,
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "request_id": request_id
        }
    )

# Health check endpoints
@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check():
    """Basic health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": time.time(),
    }

@app.get("/health/detailed", tags=["health"], summary="Detailed health check")
async def detailed_health_check():
    """Detailed health check with database status."""
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": time.time(),
        "checks": {}
    }

    db = None
    try:
        db = database.SessionLocal()
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"
    finally:
        if db is not None:
            db.close()

    return health_status

# API Documentation root
@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Hoarding Management API",
        "version": SERVICE_VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }

# Include API router with version prefix
app.include_router(api_router, prefix="/api/v1")

# Development server configuration
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "hoarding_app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["hoarding_app"],
        log_level="info",
        access_log=True
    )
