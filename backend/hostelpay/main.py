from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from hostelpay.core.config import settings
from hostelpay.core.exceptions import HostelError, error_response
from hostelpay.core.logging_config import logger
from hostelpay.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from hostelpay.core.rate_limiter import limiter, rate_limit_exceeded_handler
from hostelpay.api.router import api_router
from hostelpay.services.container import build_services
from slowapi.errors import RateLimitExceeded

PLACEHOLDER_SECRETS = {"", "CHANGE_ME", "change-me", "your-secret-key"}


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if settings.JWT_SECRET_KEY in PLACEHOLDER_SECRETS:
        errors.append("JWT_SECRET_KEY is not set or using default value")

    try:
        settings.remote_backend()
    except ValueError as e:
        errors.append(str(e))

    if not settings.remote_configured:
        warnings.append("REMOTE_STORE_URL not set - running on the local cache only")

    if settings.DEFAULT_ADMIN_PASSWORD == "admin123" and settings.ENVIRONMENT == "production":
        warnings.append("Default admin password is still admin123 - change it after first login")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    await validate_critical_config()

    services = build_services(settings)
    app.state.services = services
    await services.start()
    logger.info(
        f"Services started - remote: {settings.remote_backend() or 'none'}, "
        f"local cache: {settings.LOCAL_CACHE_PATH}, "
        f"monthly reset: {'on' if settings.MONTHLY_RESET_ENABLED else 'off'}"
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await services.stop()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Hostel fee collection and expense tracking",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(HostelError)
async def hostel_exception_handler(request: Request, exc: HostelError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc), headers=headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": f"{settings.API_PREFIX}/health"
    }


# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


def run():
    """Console entry point: hostelpay-server"""
    import uvicorn
    uvicorn.run(
        "hostelpay.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
