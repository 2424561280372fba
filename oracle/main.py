"""
Oracle Interviewer - Main FastAPI Application

This is the entry point for the interview system API.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from oracle import __version__
from oracle.core.config import get_settings
from oracle.core.database import mongodb_client
from oracle.api import health, interviews, sessions
from oracle.services.workflow_runner import get_workflow_runner

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting Oracle Interviewer...")

    if settings.uses_mongodb:
        await mongodb_client.connect()
        logger.info("MongoDB connection established")
    else:
        logger.info("Using in-memory storage")

    yield

    # Shutdown
    logger.info("Shutting down Oracle Interviewer...")
    await get_workflow_runner().shutdown()
    if settings.uses_mongodb:
        await mongodb_client.disconnect()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Structured and adaptive interview system with analysis and recommendations",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["Sessions"])
    app.include_router(interviews.router, prefix="/api/v1/interviews", tags=["Interviews"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "oracle.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
