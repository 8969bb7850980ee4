"""Typed product catalog operations on top of the Admin API."""

import logging
from typing import Any, Protocol

from pydantic import BaseModel, Field

from simple_bundler.models.pydantic_models import (
    MetafieldInput,
    MetafieldUserError,
    Product,
    ProductOption,
    ProductStatus,
    Variant,
)
from simple_bundler.shopify import queries
from simple_bundler.shopify.admin_client import AdminClient, PlatformUserError

logger = logging.getLogger(__name__)

VARIANTS_PAGE_SIZE = 100

# metafieldsSet accepts at most this many metafields per call
METAFIELDS_SET_LIMIT = 25


class ProductCatalog(Protocol):
    """Read/write operations the mapping sync needs from the platform."""

    async def fetch_variants(self, product_id: str) -> list[Variant]: ...

    async def set_metafields(
        self, metafields: list[MetafieldInput]
    ) -> list[MetafieldUserError]: ...


class BundleCatalog(ProductCatalog, Protocol):
    """Everything the bundle lifecycle needs from the platform."""

    async def fetch_products(self, product_ids: list[str]) -> dict[str, Product]: ...

    async def fetch_mapping_presence(self, product_id: str) -> dict[str, bool]: ...

    async def create_product(self, title: str, handle: str) -> Product: ...

    async def create_product_option(
        self, product_id: str, option_name: str, values: list[str]
    ) -> None: ...

    async def delete_product_options(self, product_id: str) -> None: ...

    async def rename_product(self, product_id: str, title: str) -> Product: ...

    async def delete_product(self, product_id: str) -> None: ...

    async def list_products(self, first: int = 50) -> list[Product]: ...


# Response shapes, validated at the client boundary


class _OptionValueNode(BaseModel):
    name: str


class _OptionNode(BaseModel):
    name: str
    option_values: list[_OptionValueNode] = Field(default_factory=list, alias="optionValues")


class _ProductNode(BaseModel):
    id: str
    title: str = ""
    handle: str = ""
    status: str | None = None
    options: list[_OptionNode] = Field(default_factory=list)

    def to_product(self) -> Product:
        return Product(
            id=self.id,
            title=self.title,
            handle=self.handle,
            status=ProductStatus.parse(self.status),
            options=[
                ProductOption(name=o.name, values=[v.name for v in o.option_values])
                for o in self.options
            ],
        )


class _MetafieldRef(BaseModel):
    id: str


class _VariantMappingNode(BaseModel):
    id: str
    metafield: _MetafieldRef | None = None


def _user_error_messages(errors: list[dict[str, Any]]) -> list[str]:
    return [str(e.get("message", "")) for e in errors]


class ShopifyCatalog:
    """Product catalog backed by the Admin GraphQL API."""

    def __init__(self, client: AdminClient) -> None:
        """Initialize with an Admin API client.

        Args:
            client: Client bound to the merchant's shop.
        """
        self._client = client

    # ========== READ ==========

    async def fetch_variants(self, product_id: str) -> list[Variant]:
        """Get a product's variants with their selected options.

        Returns:
            Variants in platform order; empty if the product does not exist.
        """
        data = await self._client.query(queries.GET_PRODUCT_VARIANTS, {"id": product_id})
        product = data.get("product") or {}
        nodes = (product.get("variants") or {}).get("nodes") or []
        variants = [Variant.model_validate(node) for node in nodes]
        if len(variants) >= VARIANTS_PAGE_SIZE:
            logger.warning(
                "Product %s has %d+ variants; only the first page is used",
                product_id,
                VARIANTS_PAGE_SIZE,
            )
        return variants

    async def fetch_products(self, product_ids: list[str]) -> dict[str, Product]:
        """Get product summaries keyed by id. Missing products are left out."""
        if not product_ids:
            return {}
        data = await self._client.query(queries.PRODUCTS_BY_ID, {"ids": product_ids})
        products: dict[str, Product] = {}
        for node in data.get("nodes") or []:
            if node and node.get("id"):
                product = _ProductNode.model_validate(node).to_product()
                products[product.id] = product
        return products

    async def list_products(self, first: int = 50) -> list[Product]:
        """Get products a merchant can pick as bundle components."""
        data = await self._client.query(queries.PRODUCTS_FOR_BUNDLE, {"first": first})
        edges = (data.get("products") or {}).get("edges") or []
        return [_ProductNode.model_validate(edge["node"]).to_product() for edge in edges]

    async def fetch_mapping_presence(self, product_id: str) -> dict[str, bool]:
        """Check which variants of a product carry a component mapping.

        Returns:
            Dict of variant id -> whether the mapping metafield exists.
        """
        data = await self._client.query(queries.PRODUCT_WITH_MAPPING_CHECK, {"id": product_id})
        product = data.get("product") or {}
        nodes = (product.get("variants") or {}).get("nodes") or []
        presence: dict[str, bool] = {}
        for node in nodes:
            variant = _VariantMappingNode.model_validate(node)
            presence[variant.id] = variant.metafield is not None
        return presence

    # ========== WRITE ==========

    async def create_product(self, title: str, handle: str) -> Product:
        """Create the bundle's parent product as a draft.

        Raises:
            PlatformUserError: If the platform rejects the product.
        """
        data = await self._client.mutate(
            queries.CREATE_PRODUCT,
            {"input": {"title": title, "handle": handle, "status": "DRAFT"}},
        )
        payload = data.get("productCreate") or {}
        user_errors = payload.get("userErrors") or []
        if user_errors or not payload.get("product"):
            messages = _user_error_messages(user_errors) or ["Product creation failed."]
            raise PlatformUserError(messages)
        return _ProductNode.model_validate(payload["product"]).to_product()

    async def create_product_option(
        self, product_id: str, option_name: str, values: list[str]
    ) -> None:
        """Add an option to a product, creating one variant per value.

        Raises:
            PlatformUserError: If the platform rejects the option.
        """
        data = await self._client.mutate(
            queries.CREATE_PRODUCT_OPTION,
            {
                "productId": product_id,
                "options": [{"name": option_name, "values": [{"name": v} for v in values]}],
            },
        )
        user_errors = (data.get("productOptionsCreate") or {}).get("userErrors") or []
        if user_errors:
            raise PlatformUserError(_user_error_messages(user_errors))

    async def delete_product_options(self, product_id: str) -> None:
        """Remove every option of a product, leaving its single default variant.

        Raises:
            PlatformUserError: If the platform rejects the deletion.
        """
        data = await self._client.query(queries.PRODUCT_OPTION_IDS, {"id": product_id})
        options = (data.get("product") or {}).get("options") or []
        option_ids = [o["id"] for o in options if o.get("id")]
        if not option_ids:
            return

        data = await self._client.mutate(
            queries.DELETE_PRODUCT_OPTIONS,
            {"productId": product_id, "options": option_ids},
        )
        user_errors = (data.get("productOptionsDelete") or {}).get("userErrors") or []
        if user_errors:
            raise PlatformUserError(_user_error_messages(user_errors))

    async def rename_product(self, product_id: str, title: str) -> Product:
        """Change a product's title.

        Raises:
            PlatformUserError: If the platform rejects the update.
        """
        data = await self._client.mutate(
            queries.UPDATE_PRODUCT,
            {"input": {"id": product_id, "title": title}},
        )
        payload = data.get("productUpdate") or {}
        user_errors = payload.get("userErrors") or []
        if user_errors or not payload.get("product"):
            raise PlatformUserError(_user_error_messages(user_errors) or ["Product update failed."])
        return _ProductNode.model_validate(payload["product"]).to_product()

    async def delete_product(self, product_id: str) -> None:
        """Delete a product.

        Raises:
            PlatformUserError: If the platform reports user errors.
        """
        data = await self._client.mutate(queries.DELETE_PRODUCT, {"input": {"id": product_id}})
        user_errors = (data.get("productDelete") or {}).get("userErrors") or []
        if user_errors:
            raise PlatformUserError(_user_error_messages(user_errors))

    async def set_metafields(self, metafields: list[MetafieldInput]) -> list[MetafieldUserError]:
        """Write metafields in batches of at most METAFIELDS_SET_LIMIT.

        Batches are sent in order; the first batch with user errors stops
        the write.

        Returns:
            User errors reported by the platform, empty on success.
        """
        for start in range(0, len(metafields), METAFIELDS_SET_LIMIT):
            batch = metafields[start : start + METAFIELDS_SET_LIMIT]
            data = await self._client.mutate(
                queries.SET_COMPONENTS_METAFIELDS,
                {"metafields": [m.model_dump(by_alias=True) for m in batch]},
            )
            user_errors = (data.get("metafieldsSet") or {}).get("userErrors") or []
            if user_errors:
                return [MetafieldUserError.model_validate(e) for e in user_errors]
        return []
