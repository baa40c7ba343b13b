"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Service instances (repositories, access gate, inventory service)
- Bearer credential extraction
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_JWT_SECRET = "change-me-in-production"


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./bookstore.db"
    database_echo: bool = False

    # Tokens
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Accounts
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    allow_registration: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", cls.jwt_secret_key),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            admin_username=os.getenv("ADMIN_USERNAME") or None,
            admin_password=os.getenv("ADMIN_PASSWORD") or None,
            allow_registration=os.getenv("ALLOW_REGISTRATION", "true").lower() == "true",
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            environment=os.getenv("BOOKSTORE_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


def check_jwt_secret(settings: Settings) -> None:
    """
    Refuse the built-in signing key in production and warn about it elsewhere.

    Raises:
        RuntimeError: production environment still uses DEFAULT_JWT_SECRET
    """
    if settings.jwt_secret_key != DEFAULT_JWT_SECRET or settings.environment == "development":
        return
    if settings.environment == "production":
        raise RuntimeError("JWT_SECRET_KEY must be set in production")
    logger.warning(
        f"Using the default JWT secret in {settings.environment}; set JWT_SECRET_KEY"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Container
# =============================================================================

class ServiceContainer:
    """
    Container for the service instances of one application.

    Built from explicit settings at startup and attached to ``app.state``;
    services are created on first access.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._database = None
        self._book_repository = None
        self._user_repository = None
        self._access_gate = None
        self._inventory_service = None

    @property
    def database(self):
        """Get database instance."""
        if self._database is None:
            from ..storage.database import Database
            self._database = Database(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
            self._database.create_tables()
        return self._database

    @property
    def book_repository(self):
        """Get book repository instance."""
        if self._book_repository is None:
            from ..storage.book_repository import BookRepository
            self._book_repository = BookRepository(self.database)
        return self._book_repository

    @property
    def user_repository(self):
        """Get user repository instance."""
        if self._user_repository is None:
            from ..storage.user_repository import UserRepository
            self._user_repository = UserRepository(self.database)
        return self._user_repository

    @property
    def access_gate(self):
        """Get access gate instance."""
        if self._access_gate is None:
            from ..security import JWTAccessGate
            self._access_gate = JWTAccessGate(
                secret_key=self.settings.jwt_secret_key,
                algorithm=self.settings.jwt_algorithm,
                user_lookup=self.user_repository.is_active,
            )
        return self._access_gate

    @property
    def inventory_service(self):
        """Get inventory service instance."""
        if self._inventory_service is None:
            from ..inventory.service import InventoryService
            self._inventory_service = InventoryService(
                repository=self.book_repository,
                access_gate=self.access_gate,
            )
        return self._inventory_service

    def close(self) -> None:
        """Release database connections."""
        if self._database is not None:
            self._database.dispose()


def get_service_container(request: Request) -> ServiceContainer:
    """Get the service container of the running application."""
    return request.app.state.services


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_inventory_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for inventory service."""
    return container.inventory_service


def get_user_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for user repository."""
    return container.user_repository


def get_access_gate(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for access gate."""
    return container.access_gate


def get_app_settings(
    container: ServiceContainer = Depends(get_service_container),
) -> Settings:
    """Dependency for the settings the application was built with."""
    return container.settings


# =============================================================================
# Authentication Dependencies
# =============================================================================

bearer_scheme = HTTPBearer(auto_error=False)


async def get_credential(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Extract the bearer credential from the Authorization header.

    Returns None if no credential was sent; the access gate decides.
    """
    if credentials is None:
        return None
    return credentials.credentials
