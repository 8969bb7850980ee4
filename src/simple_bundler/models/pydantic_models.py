"""Pydantic models for data validation."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Canonical metafield holding a bundle variant's component mapping
MAPPING_NAMESPACE = "simple_bundler"
MAPPING_KEY = "components"

GID_PREFIX = "gid://shopify/"
PRODUCT_GID_PREFIX = "gid://shopify/Product/"
VARIANT_GID_PREFIX = "gid://shopify/ProductVariant/"

DEFAULT_VARIANT_TITLE = "Default Title"


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class ProductStatus(str, Enum):
    """Lifecycle status of a platform product."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "ProductStatus":
        """Parse a platform status string (any case), defaulting to UNKNOWN."""
        try:
            return cls(str(value or "").lower())
        except ValueError:
            return cls.UNKNOWN


class BundleHealth(str, Enum):
    """Mapping health of a bundle."""

    OK = "ok"
    NEEDS_ATTENTION = "needs_attention"


# ========== Catalog ==========


class SelectedOption(BaseModel):
    """A single (option name, option value) pair of a variant."""

    name: str
    value: str

    model_config = ConfigDict(frozen=True)


class Variant(BaseModel):
    """A purchasable configuration of a product."""

    id: str
    title: str | None = None
    selected_options: list[SelectedOption] = Field(default_factory=list, alias="selectedOptions")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def option_values(self) -> list[str]:
        """Option values in option order."""
        return [option.value for option in self.selected_options]

    @property
    def is_default(self) -> bool:
        """Whether this is the platform's placeholder variant of an option-less product."""
        if self.title == DEFAULT_VARIANT_TITLE:
            return True
        return all(v == DEFAULT_VARIANT_TITLE for v in self.option_values)


class ProductOption(BaseModel):
    """A product option with its ordered values."""

    name: str
    values: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Product(BaseModel):
    """Platform product summary."""

    id: str
    title: str = ""
    handle: str = ""
    status: ProductStatus = ProductStatus.UNKNOWN
    options: list[ProductOption] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# ========== Mapping ==========


class ComponentMapping(BaseModel):
    """Component variants substituted when a bundle variant is purchased."""

    bundle_variant_id: str
    component_variant_ids: tuple[str, str]

    model_config = ConfigDict(frozen=True)


class MetafieldInput(BaseModel):
    """One entry of a batched metafield write."""

    owner_id: str = Field(..., alias="ownerId")
    namespace: str = MAPPING_NAMESPACE
    key: str = MAPPING_KEY
    type: str = "json"
    value: str

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MetafieldUserError(BaseModel):
    """Field error reported by the platform for a metafield write."""

    field: list[str] | None = None
    message: str


class SyncResult(BaseModel):
    """Outcome of a successful mapping sync."""

    bundle_product_id: str
    mappings: list[ComponentMapping] = Field(default_factory=list)
    synced_at: datetime = Field(default_factory=utc_now)

    @property
    def mapped_count(self) -> int:
        """Number of bundle variants that received a mapping."""
        return len(self.mappings)


# ========== Cart transform ==========


class CartMetafield(BaseModel):
    """Metafield value attached to a cart line's merchandise."""

    value: str | None = None


class Merchandise(BaseModel):
    """Merchandise reference of a cart line, tagged by kind."""

    typename: str | None = Field(None, alias="__typename")
    id: str | None = None
    metafield: CartMetafield | None = None

    model_config = ConfigDict(populate_by_name=True)


class CartLine(BaseModel):
    """A line of the cart snapshot."""

    id: str
    quantity: int = 1
    merchandise: Merchandise


class Cart(BaseModel):
    """Ordered cart lines."""

    lines: list[CartLine] = Field(default_factory=list)


class CartTransformInput(BaseModel):
    """Input of the cart transform function."""

    cart: Cart = Field(default_factory=Cart)


class CartAttribute(BaseModel):
    """Key/value attribute attached to an expanded cart item."""

    key: str
    value: str

    model_config = ConfigDict(frozen=True)


class ExpandedCartItem(BaseModel):
    """Replacement line produced by a line expansion."""

    merchandise_id: str = Field(..., alias="merchandiseId")
    quantity: int
    attributes: tuple[CartAttribute, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class LineExpand(BaseModel):
    """Replace one cart line with its component lines."""

    cart_line_id: str = Field(..., alias="cartLineId")
    expanded_cart_items: tuple[ExpandedCartItem, ...] = Field(..., alias="expandedCartItems")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CartOperation(BaseModel):
    """A single cart transform operation."""

    line_expand: LineExpand = Field(..., alias="lineExpand")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CartTransformResult(BaseModel):
    """Operations returned to the platform."""

    operations: tuple[CartOperation, ...] = ()

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict:
        """Serialize using the platform's field names."""
        return self.model_dump(mode="json", by_alias=True)


# ========== Bundles ==========


class BundleCreate(BaseModel):
    """Data submitted by the merchant to create a bundle."""

    title: str = ""
    handle: str = ""
    component_product_ids: list[str] = Field(default_factory=list)


class BundleUpdate(BaseModel):
    """Editable fields of an existing bundle."""

    title: str | None = None
    component_product_ids: list[str] | None = None


class BundleComponentRead(BaseModel):
    """A component product of a bundle."""

    position: int
    product_id: str
    title: str = ""
    handle: str = ""
    status: ProductStatus = ProductStatus.UNKNOWN


class BundleRead(BaseModel):
    """Bundle as presented to the merchant."""

    id: str
    shop: str
    parent_product_id: str
    title: str
    handle: str
    status: ProductStatus = ProductStatus.UNKNOWN
    health: BundleHealth = BundleHealth.OK
    issues_count: int = 0
    last_validated_at: datetime | None = None
    created_at: datetime | None = None
    components: list[BundleComponentRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def product_handle_path(self) -> str:
        """Storefront path of the bundle product."""
        handle = self.handle.removeprefix("/products/")
        return f"/products/{handle}" if handle else "/products/unknown"


# ========== Settings ==========


class AppSettings(BaseModel):
    """Connection settings for the shop's Admin API and webhooks."""

    shop_domain: str = Field("", description="myshopify.com domain of the shop")
    api_version: str = Field("2025-01", description="Admin API version")
    access_token: str = Field("", description="Admin API access token")
    webhook_secret: str = Field("", description="Shared secret for webhook HMAC checks")
    request_timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")

    model_config = ConfigDict(frozen=True)

    @property
    def graphql_url(self) -> str:
        """Admin GraphQL endpoint of the shop."""
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"
