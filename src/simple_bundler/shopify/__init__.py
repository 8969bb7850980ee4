"""Shopify Admin API access."""

from simple_bundler.shopify.admin_client import AdminClient, PlatformError, PlatformUserError
from simple_bundler.shopify.catalog import BundleCatalog, ProductCatalog, ShopifyCatalog

__all__ = [
    "AdminClient",
    "BundleCatalog",
    "PlatformError",
    "PlatformUserError",
    "ProductCatalog",
    "ShopifyCatalog",
]
