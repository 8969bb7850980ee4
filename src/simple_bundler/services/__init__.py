"""Service layer for simple-bundler business logic."""

from simple_bundler.services.bundle_service import BundleService
from simple_bundler.services.mapping_service import MappingService
from simple_bundler.services.webhook_service import WebhookService

__all__ = [
    "BundleService",
    "MappingService",
    "WebhookService",
]
