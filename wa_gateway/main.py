"""
wa_gateway/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (control API)
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from collections import Counter
from contextlib import asynccontextmanager
from typing import Optional
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from wa_gateway.core.config import settings, validate_settings
from wa_gateway.core.errors import add_exception_handlers
from wa_gateway.core.logging import setup_logging, get_logger
from wa_gateway.api import sessions
from wa_gateway.services.gateway import Gateway

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("🚀 Starting WhatsApp session gateway...")

    try:
        validate_settings()
        logger.info("✅ Configuration validated")

        if getattr(app.state, "gateway", None) is None:
            app.state.gateway = Gateway.from_settings()
        logger.info(f"✅ Sessions root: {app.state.gateway.cleanup.sessions_dir}")
        logger.info(f"✅ Backend callbacks: {app.state.gateway.notifier.base_url}")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("🛑 Shutting down session gateway...")
    try:
        await app.state.gateway.aclose()
        logger.info("👋 Session gateway shut down")
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


def create_app(gateway: Optional[Gateway] = None) -> FastAPI:
    """
    Builds the FastAPI app. Tests pass a pre-built Gateway.
    """
    app = FastAPI(
        title="WhatsApp Session Gateway",
        description="Per-user WhatsApp Web sessions relayed to the backend",
        version=VERSION,
        lifespan=lifespan,
        debug=settings.DEBUG,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Sync runs walk every chat; anything slower is worth a look
        if process_time > 30.0:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time}
            )

        return response

    add_exception_handlers(app)
    app.include_router(sessions.router, tags=["Sessions"])

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": "WhatsApp Session Gateway",
            "version": VERSION,
            "status": "running",
            "environment": settings.ENVIRONMENT
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Session counts by connector state.
        """
        gateway: Gateway = request.app.state.gateway
        states = gateway.registry.snapshot()
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": VERSION,
            "sessions": {
                "total": len(states),
                "by_state": dict(Counter(states.values())),
            },
        }

    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """
        Liveness probe - indicates if app is alive.
        """
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wa_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
