"""
AgendoAI API application

Run locally with ``uvicorn app.main:app --reload``.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.config import settings
from app.database import init_db, close_db
from app.utils.redis_client import cache_redis_client
from app.api.router import api_router
from app.core.middleware import LoggingMiddleware, ErrorHandlingMiddleware
from app.core.exceptions import AgendoException

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _log_banner():
    base_url = f"http://{settings.HOST}:{settings.PORT}"
    origins = settings.cors_origins_list
    rows = [
        ("📋 App", f"{settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})"),
        ("🌐 Server", base_url),
        ("📚 Docs", f"{base_url}/docs"),
        ("🕒 Timezone", settings.TIMEZONE),
        ("🗄️  Slot cache", "redis" if cache_redis_client.is_connected else "disabled"),
        ("💸 Platform fee", f"R$ {settings.SERVICE_FEE_CENTS / 100:.2f} per booking"),
        ("🔒 CORS", "all origins (*)" if origins == ["*"] else ", ".join(origins)),
    ]

    logger.info("=" * 80)
    logger.info("🚀 " + "AGENDOAI API READY".center(76) + " 🚀")
    logger.info("=" * 80)
    for label, value in rows:
        logger.info(f"{label:<16} {value}")
    logger.info("=" * 80)


async def _connect_cache():
    if not settings.REDIS_ENABLED:
        logger.info("Slot cache disabled by configuration")
        return
    try:
        await cache_redis_client.connect()
    except Exception as redis_error:
        logger.warning(f"Redis unavailable, slots will be computed on every request: {redis_error}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and connect the slot cache on startup; release both on shutdown"""
    logger.info("Starting AgendoAI API...")
    try:
        await init_db()
        await _connect_cache()
    except Exception as e:
        logger.error(f"Startup error: {e}")
        raise

    _log_banner()
    yield

    logger.info("Shutting down AgendoAI API...")
    try:
        await cache_redis_client.disconnect()
    except Exception as redis_error:
        logger.warning(f"Redis disconnect warning: {redis_error}")
    await close_db()
    logger.info("Application shut down successfully")


def _error_body(request: Request, message: str, status_code: int, **extra) -> dict:
    return {"error": message, "status_code": status_code, "path": str(request.url.path), **extra}


def register_exception_handlers(app: FastAPI):
    """Uniform JSON errors for anything not already turned into an HTTPException"""

    @app.exception_handler(AgendoException)
    async def agendo_exception_handler(request: Request, exc: AgendoException):
        extra = {"code": exc.code} if getattr(exc, "code", None) else {}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.status_code, **extra),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(request, "Validation error", 422, details=details),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
        message = str(exc) if settings.DEBUG else "An unexpected error occurred"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, "Internal server error", 500, message=message),
        )


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Service booking marketplace: catalog, provider schedules, "
        "appointments, reviews and provider payouts",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time"],
    )
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(ErrorHandlingMiddleware)

    register_exception_handlers(application)
    application.include_router(api_router)

    @application.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache": "redis" if cache_redis_client.is_connected else "disabled",
        }

    @application.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
