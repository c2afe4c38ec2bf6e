from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from api import customers, events
from config.store_config import get_settings
from constants import ServerConfig
from database import dispose_engine
from dependencies import reset_repositories
from init_db import init_database
from schemas import HealthResponse
from utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown"""
    settings = get_settings()
    log_file = configure_logging(settings.data_dir / "logs", settings.log_level)
    logger.info(f"Logging initialized: {log_file}")

    if settings.backend == 'sql':
        init_database()
        logger.info(f"Using relational backing store at {settings.database_url}")
    else:
        logger.info("Using in-memory backing store; data will not survive a restart")

    yield

    # Shutdown
    reset_repositories()
    if settings.backend == 'sql':
        dispose_engine()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ticketing Entity Store API",
        description="CRUD access to customers and events",
        version="1.0.0",
        lifespan=lifespan
    )

    # Include API routers
    app.include_router(customers.router, prefix="/api", tags=["customers"])
    app.include_router(events.router, prefix="/api", tags=["events"])

    @app.get("/api/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint"""
        return HealthResponse()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Ticketing Entity Store on http://{ServerConfig.HOST}:{ServerConfig.PORT}...")
    uvicorn.run(app, host=ServerConfig.HOST, port=ServerConfig.PORT)
