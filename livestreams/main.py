import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from livestreams.api.pages import pages_router
from livestreams.api.router import routes
from livestreams.core.config import settings
from livestreams.core.exceptions import (
    AppException,
    app_exception_handler,
    request_validation_exception_handler,
    unhandled_exception_handler,
)
from livestreams.core.redis import ping_redis, token_blocklist
from livestreams.db.base import async_engine

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Suppress noisy libraries
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique ID for OpenAPI documentation"""
    if route.tags:
        first_tag: str = str(route.tags[0])
        return f"{first_tag}-{route.name}"
    return str(route.name)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if await ping_redis():
        logger.info("Connected to Redis for token revocation")

    yield

    try:
        await token_blocklist.aclose()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning(f"Error closing Redis: {e}")
    await async_engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Publish and discover live streams",
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan,
    generate_unique_id_function=custom_generate_unique_id,
)


# Security middlewares (added before CORS)
if settings.ENVIRONMENT == "production":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS,
    )
    logger.info("TrustedHost middleware added")


if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    logger.info(f"CORS configured for: {settings.all_cors_origins}")
else:
    logger.warning("CORS not configured - no origins allowed")


app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(
    RequestValidationError, request_validation_exception_handler  # type: ignore[arg-type]
)
app.add_exception_handler(Exception, unhandled_exception_handler)


app.include_router(routes)
app.include_router(pages_router)


@app.get("/health", tags=["health"])
async def health_check() -> Dict[str, str]:
    """Basic health check endpoint"""
    return {"status": "healthy", "service": settings.APP_NAME}


@app.get("/health/ready", tags=["health"])
async def readiness_check() -> JSONResponse:
    """Readiness check - 503 until Redis answers"""
    if await ping_redis():
        return JSONResponse({"status": "ready"})
    return JSONResponse({"status": "not_ready"}, status_code=503)


@app.get("/", tags=["root"])
async def root() -> Dict[str, str]:
    """Root endpoint - API information"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "0.1.0",
        "docs": f"{settings.API_V1_STR}/docs",
        "explore": "/streams",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "livestreams.main:app",
        reload=settings.ENVIRONMENT != "production",
        log_level=settings.LOG_LEVEL.lower(),
    )
