"""FastAPI dependency injection for database sessions, settings and services."""

from collections.abc import AsyncGenerator, Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from simple_bundler.config import load_settings
from simple_bundler.database.engine import get_session_factory
from simple_bundler.models.pydantic_models import AppSettings
from simple_bundler.services.bundle_service import BundleService
from simple_bundler.services.webhook_service import WebhookService
from simple_bundler.shopify.admin_client import AdminClient
from simple_bundler.shopify.catalog import BundleCatalog, ShopifyCatalog

SHOP_DOMAIN_HEADER = "X-Shopify-Shop-Domain"


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session.

    Yields:
        Database session that is automatically closed after use.
    """
    session_factory = get_session_factory()
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@lru_cache
def get_settings() -> AppSettings:
    """Dependency that provides the application settings (loaded once)."""
    return load_settings()


async def get_catalog(
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> AsyncGenerator[BundleCatalog, None]:
    """Dependency that provides a platform catalog for the request.

    Yields:
        ShopifyCatalog whose HTTP client is closed after the request.
    """
    async with AdminClient(settings) as client:
        yield ShopifyCatalog(client)


def get_shop(
    settings: Annotated[AppSettings, Depends(get_settings)],
    x_shopify_shop_domain: Annotated[str | None, Header()] = None,
) -> str:
    """Dependency that resolves the shop a request acts for.

    The shop domain header wins; the configured shop is the fallback.
    """
    return (x_shopify_shop_domain or "").strip().lower() or settings.shop_domain


def get_bundle_service(
    session: Annotated[Session, Depends(get_db)],
    catalog: Annotated[BundleCatalog, Depends(get_catalog)],
) -> BundleService:
    """Dependency that provides a BundleService instance.

    Args:
        session: Database session from get_db dependency.
        catalog: Platform catalog from get_catalog dependency.

    Returns:
        BundleService instance.
    """
    return BundleService(session, catalog)


def get_webhook_service(
    session: Annotated[Session, Depends(get_db)],
) -> WebhookService:
    """Dependency that provides a WebhookService instance."""
    return WebhookService(session)


# Type aliases for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[AppSettings, Depends(get_settings)]
ShopDep = Annotated[str, Depends(get_shop)]
CatalogDep = Annotated[BundleCatalog, Depends(get_catalog)]
BundleServiceDep = Annotated[BundleService, Depends(get_bundle_service)]
WebhookServiceDep = Annotated[WebhookService, Depends(get_webhook_service)]
