"""API request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from simple_bundler.models.pydantic_models import BundleRead, ComponentMapping, Product


class BundleListResponse(BaseModel):
    """Bundles of a shop, newest first."""

    bundles: list[BundleRead]
    count: int = Field(description="Number of bundles in this response")


class SyncResponse(BaseModel):
    """Result of a mapping sync."""

    bundle_id: str
    bundle_product_id: str
    mapped_count: int = Field(description="Bundle variants that received a mapping")
    mappings: list[ComponentMapping]
    synced_at: datetime


class WebhookResponse(BaseModel):
    """Acknowledgement of a processed webhook."""

    topic: str
    affected: int = Field(description="Number of bundles changed by the webhook")


class ProductListResponse(BaseModel):
    """Products available as bundle components."""

    products: list[Product]
    count: int
