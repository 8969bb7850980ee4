"""Data models for simple-bundler."""

from simple_bundler.models.pydantic_models import (
    AppSettings,
    BundleCreate,
    BundleRead,
    BundleUpdate,
    CartTransformInput,
    CartTransformResult,
    ComponentMapping,
    Variant,
)

__all__ = [
    "AppSettings",
    "BundleCreate",
    "BundleRead",
    "BundleUpdate",
    "CartTransformInput",
    "CartTransformResult",
    "ComponentMapping",
    "Variant",
]
