"""
GetCito AI Monitor - Citation & Brand Mention Analytics
Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from getcito import __version__
from getcito.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging():
    """Root logging from LOG_LEVEL"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    from getcito.utils import init_db, close_db, close_redis
    await init_db()
    yield
    await close_db()
    await close_redis()


def create_app(with_lifespan: bool = True) -> FastAPI:
    """Factory function to create FastAPI app"""
    settings = get_settings()
    configure_logging()

    application = FastAPI(
        title="GetCito AI Monitor API",
        description="""
        Track how AI answer engines mention and cite your brand.

        ## Features
        - ChatGPT Search, Google AI Overview and Perplexity results
        - Brand and competitor mention counting
        - Citation extraction and domain citation tracking
        - Latest-session and lifetime analytics
        - Share of voice against tracked competitors
        - Citation CSV export
        """,
        version=__version__,
        lifespan=lifespan if with_lifespan else None,
        docs_url="/docs",
        redoc_url="/redoc" if settings.is_development else None,
    )

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if get_settings().DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    "detail": str(exc),
                    "type": type(exc).__name__,
                },
            )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    from getcito.api.routes import api_router
    application.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    @application.get("/health")
    async def health_check():
        current = get_settings()
        return {
            "status": "healthy",
            "version": __version__,
            "environment": current.APP_ENV,
            "analytics_cache": current.ANALYTICS_CACHE_ENABLED,
        }

    return application


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "getcito.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
