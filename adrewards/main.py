"""
FastAPI application main module.
Wires the ad watch service, the session reaper, request logging and error handling.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
import os
from contextlib import asynccontextmanager
from adrewards.api.v1 import api_router
from adrewards.utils import setup_logging, get_logger
from adrewards.config import SESSION_SETTINGS
from adrewards.database import Base, engine
from adrewards.errors import AdRewardsError
from adrewards.jobs.session_reaper import SessionReaper
from adrewards.models.schemas.base import ErrorResponse
from adrewards.repositories import RetryingLedgerRepository, SqlLedgerRepository
from adrewards.services.session_store import RedisSessionStore, create_session_store
from adrewards.services.watch_service import AdWatchService
import adrewards.models.db  # noqa: F401  (registers tables on Base.metadata)

# Setup logging before creating the app
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE", "logs/adrewards.log"),
    enable_console=True
)

logger = get_logger(__name__)


def build_watch_service() -> AdWatchService:
    """Production wiring: SQL ledger behind retries, configured session store."""
    repository = RetryingLedgerRepository(SqlLedgerRepository())
    return AdWatchService(repository, store=create_session_store())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Application startup initiated")
    reaper: SessionReaper | None = None
    try:
        logger.info("Creating database tables")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        service = build_watch_service()
        app.state.watch_service = service  # type: ignore[attr-defined]
        reaper = SessionReaper(service)
        reaper.start()
        app.state.session_reaper = reaper  # type: ignore[attr-defined]
        logger.info("Application startup completed successfully")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown initiated")
        if reaper:
            reaper.stop()
        logger.info("Application shutdown completed")


app = FastAPI(
    title="Ad Rewards Engine",
    description="""
    Pays users a small coin reward for watching ads.

    ## Flow
    * `GET /api/v1/ads` - watchable ads plus today's usage
    * `POST /api/v1/watch/start` - open a watch session
    * `POST /api/v1/watch/complete` - report the watch and receive the reward

    ## Identity
    The upstream authentication layer sets `X-User-ID` (and optionally `X-User-Email`).
    Operator endpoints under `/api/v1/admin` require `X-Admin-Key`.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Request ID and request/response logging middleware
@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """
    Add request ID, timing, and request/response logging.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("User-Agent"),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time = time.time() - request.state.start_time

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
        request_id=request_id
    )

    return response


@app.exception_handler(AdRewardsError)
async def ad_rewards_exception_handler(request: Request, exc: AdRewardsError):
    """Render domain errors with their stable code and HTTP status."""
    request_id = getattr(request.state, "request_id", "unknown")
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "Domain error",
        error=exc.code,
        status_code=exc.http_status,
        request_id=request_id,
        url=str(request.url),
        method=request.method,
        **{k: v for k, v in exc.context.items() if k not in {"error", "status_code", "request_id", "url", "method", "message", "level", "exc_info"}}
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=ErrorResponse(error=exc.code, message=exc.message, request_id=request_id).model_dump()
    )


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
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
            "request_id": request_id
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry exception instances that JSONResponse cannot encode.
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


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
            "error": "http_error",
            "message": exc.detail,
            "request_id": request_id
        }
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
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id
        }
    )


@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check(request: Request):
    """Basic health check endpoint for load balancers."""
    service = getattr(request.app.state, "watch_service", None)
    store = service.sessions.store if service is not None else None
    session_backend = "redis" if isinstance(store, RedisSessionStore) else "memory"
    body = {
        "status": "healthy",
        "service": "ad-rewards-engine",
        "version": "1.0.0",
        "timestamp": time.time(),
        "session_backend": session_backend,
    }
    if SESSION_SETTINGS.get("use_redis", False):
        body["redis_status"] = "healthy" if isinstance(store, RedisSessionStore) and store.health_check() else "unavailable"
    if service is not None:
        body["active_sessions"] = service.sessions.active_sessions()
    return body


@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Ad Rewards Engine API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }


app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "adrewards.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["adrewards"],
        log_level="info",
        access_log=True
    )
