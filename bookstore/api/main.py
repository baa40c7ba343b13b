"""
Bookstore Inventory API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request
from sqlalchemy import text

from bookstore import __version__
from bookstore.exceptions import UsernameTakenError
from bookstore.security import get_password_hash

from .dependencies import ServiceContainer, Settings, check_jwt_secret, get_settings
from .middleware import (
    LoggingConfig,
    get_cors_config,
    setup_cors,
    setup_exception_handlers,
    setup_logging,
)
from .routes import auth_router, books_router, dashboard_router
from .schemas import HealthResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def ensure_admin_user(services: ServiceContainer) -> None:
    """Create the configured admin account if it does not exist yet."""
    settings = services.settings
    if not (settings.admin_username and settings.admin_password):
        return

    users = services.user_repository
    if users.get_by_username(settings.admin_username) is not None:
        return

    try:
        users.create(settings.admin_username, get_password_hash(settings.admin_password))
        logger.info(f"Created admin user '{settings.admin_username}'")
    except UsernameTakenError:
        # Another worker created it first
        pass


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup seeds the admin account; shutdown releases DB connections.
    """
    services: ServiceContainer = app.state.services
    logger.info(f"Starting Bookstore Inventory in {services.settings.environment} mode")

    try:
        ensure_admin_user(services)
        logger.info("Bookstore Inventory started successfully")

        yield

    finally:
        logger.info("Shutting down Bookstore Inventory...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()
    check_jwt_secret(settings)

    app = FastAPI(
        title="Bookstore Inventory API",
        description="Inventory management for a small bookstore.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Explicit startup configuration: one container per application
    services = ServiceContainer(settings)
    services.database.create_tables()
    app.state.services = services
    app.state.settings = settings

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_exception_handlers(app)

    setup_cors(app, config=get_cors_config(settings.environment))

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(books_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "message": "Bookstore Inventory API",
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        services: ServiceContainer = request.app.state.services
        components = {}
        overall_healthy = True

        try:
            with services.database.get_session() as session:
                session.execute(text("SELECT 1"))
            components["database"] = "healthy"
        except Exception as e:
            components["database"] = f"unhealthy: {type(e).__name__}"
            overall_healthy = False

        return HealthResponse(
            status="healthy" if overall_healthy else "degraded",
            version=__version__,
            components=components,
        )

    return app


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookstore.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
