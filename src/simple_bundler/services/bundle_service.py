"""Service layer for bundle lifecycle operations."""

import asyncio
import logging

from sqlalchemy.orm import Session

from simple_bundler.database.repository import BundleRepository
from simple_bundler.matching.variant_mapper import (
    MappingError,
    UnmappedVariantsError,
    shared_option_values,
)
from simple_bundler.models.db_models import Bundle
from simple_bundler.models.pydantic_models import (
    DEFAULT_VARIANT_TITLE,
    BundleComponentRead,
    BundleCreate,
    BundleHealth,
    BundleRead,
    BundleUpdate,
    Product,
    ProductOption,
    ProductStatus,
    SyncResult,
)
from simple_bundler.services.mapping_service import MappingService
from simple_bundler.shopify.admin_client import PlatformError
from simple_bundler.shopify.catalog import BundleCatalog

logger = logging.getLogger(__name__)

COMPONENT_COUNT = 2


class BundleNotFoundError(Exception):
    """Raised when a bundle does not exist for the shop."""

    pass


class BundleValidationError(Exception):
    """Raised when merchant input cannot form a valid bundle."""

    pass


class BundleCreationError(Exception):
    """Raised when the parent product was created but could not be mapped."""

    pass


def _clean_component_ids(product_ids: list[str]) -> list[str]:
    ids = [p.strip() for p in product_ids if p and p.strip()]
    if len(ids) != COMPONENT_COUNT:
        raise BundleValidationError("Please choose 2 component products.")
    if ids[0] == ids[1]:
        raise BundleValidationError("Please choose two different products.")
    return ids


def _is_missing_product_error(error: PlatformError) -> bool:
    message = str(error).lower()
    return "not exist" in message or "not found" in message


class BundleService:
    """Service for bundle operations.

    Combines the bundle record store with the platform catalog and returns
    Pydantic models instead of ORM objects.
    """

    def __init__(self, session: Session, catalog: BundleCatalog) -> None:
        """Initialize with database session and platform catalog.

        Args:
            session: SQLAlchemy session instance.
            catalog: Platform catalog for the session's shop.
        """
        self._session = session
        self._catalog = catalog
        self._repo = BundleRepository(session)
        self._mapping = MappingService(catalog)

    # ========== CREATE ==========

    async def create_bundle(self, shop: str, data: BundleCreate) -> BundleRead:
        """Create the parent product, map its variants, then store the bundle.

        Args:
            shop: Owning shop domain.
            data: Title, handle and the two component product ids.

        Returns:
            The stored bundle.

        Raises:
            BundleValidationError: If the input is incomplete or invalid.
            BundleCreationError: If mapping failed; the product is removed again.
            PlatformError: If the parent product could not be created.
        """
        title = data.title.strip()
        handle = data.handle.strip().removeprefix("/products/")
        if not title or not handle:
            raise BundleValidationError(
                "Please enter a bundle name + handle and choose 2 products."
            )
        component_ids = _clean_component_ids(data.component_product_ids)

        components = await self._catalog.fetch_products(component_ids)
        missing = [pid for pid in component_ids if pid not in components]
        if missing:
            raise BundleValidationError(f"Component products not found: {', '.join(missing)}")

        product = await self._catalog.create_product(title, handle)
        logger.info("Created bundle product %s for %s", product.id, shop)

        try:
            shared = shared_option_values(
                components[component_ids[0]], components[component_ids[1]]
            )
            await self._prepare_parent_variants(product, shared)
            await self._mapping.sync_components_metafields(
                product.id, (component_ids[0], component_ids[1])
            )
        except (MappingError, PlatformError) as e:
            await self._discard_product(product.id)
            raise BundleCreationError(f"Bundle created but mapping failed: {e}") from e

        bundle = self._repo.create_bundle(
            shop=shop,
            parent_product_id=product.id,
            title=product.title or title,
            handle=product.handle or handle,
            component_product_ids=component_ids,
            status=(
                product.status if product.status != ProductStatus.UNKNOWN else ProductStatus.DRAFT
            ),
        )
        return self._to_bundle_read(bundle)

    async def _prepare_parent_variants(
        self, parent: Product, shared: tuple[str, list[str]] | None
    ) -> None:
        # Parent has one variant per shared option value, or only its default variant
        wanted = [ProductOption(name=shared[0], values=shared[1])] if shared else []
        current = [o for o in parent.options if o.values != [DEFAULT_VARIANT_TITLE]]
        if current == wanted:
            return
        if current:
            await self._catalog.delete_product_options(parent.id)
        if shared is not None:
            option_name, values = shared
            await self._catalog.create_product_option(parent.id, option_name, values)

    async def _discard_product(self, product_id: str) -> None:
        try:
            await self._catalog.delete_product(product_id)
        except PlatformError:
            logger.exception("Could not delete orphaned bundle product %s", product_id)

    # ========== READ ==========

    async def list_bundles(self, shop: str) -> list[BundleRead]:
        """Get a shop's bundles enriched with live product data and health.

        Health is ``ok`` only when every variant of the parent product carries
        a component mapping; a failed check counts as ``needs_attention``.
        """
        bundles = self._repo.get_bundles(shop)
        if not bundles:
            return []

        parent_ids = [b.parent_product_id for b in bundles]
        products = await self._fetch_products_safely(parent_ids)
        health_checks = await asyncio.gather(
            *(self._mapping_health(pid) for pid in parent_ids)
        )

        results = []
        for bundle, health in zip(bundles, health_checks):
            read = self._to_bundle_read(bundle, products.get(bundle.parent_product_id))
            results.append(read.model_copy(update={"health": health}))
        return results

    async def get_bundle(self, shop: str, bundle_id: str) -> BundleRead:
        """Get one bundle with component products enriched from the platform.

        Raises:
            BundleNotFoundError: If the bundle doesn't exist for the shop.
        """
        bundle = self._get_or_raise(shop, bundle_id)
        products = await self._fetch_products_safely(
            [bundle.parent_product_id, *bundle.component_product_ids]
        )
        return self._to_bundle_read(bundle, products.get(bundle.parent_product_id), products)

    async def _fetch_products_safely(self, product_ids: list[str]) -> dict[str, Product]:
        try:
            return await self._catalog.fetch_products(product_ids)
        except PlatformError:
            logger.exception("Could not load products for display")
            return {}

    async def _mapping_health(self, product_id: str) -> BundleHealth:
        try:
            presence = await self._catalog.fetch_mapping_presence(product_id)
        except PlatformError:
            logger.exception("Mapping check failed for %s", product_id)
            return BundleHealth.NEEDS_ATTENTION
        if presence and all(presence.values()):
            return BundleHealth.OK
        return BundleHealth.NEEDS_ATTENTION

    # ========== UPDATE ==========

    async def sync_bundle(self, shop: str, bundle_id: str) -> SyncResult:
        """Recompute and rewrite the component mapping of a bundle.

        Raises:
            BundleNotFoundError: If the bundle doesn't exist for the shop.
            BundleValidationError: If the bundle doesn't have 2 components.
            MappingError: If the mapping fails; the bundle is flagged.
        """
        bundle = self._get_or_raise(shop, bundle_id)
        component_ids = bundle.component_product_ids
        if len(component_ids) < COMPONENT_COUNT:
            raise BundleValidationError("Bundle must have 2 component products to sync.")

        try:
            result = await self._mapping.sync_components_metafields(
                bundle.parent_product_id, (component_ids[0], component_ids[1])
            )
        except MappingError as e:
            issues = len(e.unmapped) if isinstance(e, UnmappedVariantsError) else 1
            self._repo.mark_needs_attention(bundle, issues)
            raise

        self._repo.mark_validated(bundle)
        return result

    async def update_bundle(self, shop: str, bundle_id: str, data: BundleUpdate) -> BundleRead:
        """Edit a bundle's title and/or components, then re-sync its mapping.

        New components are checked before anything is stored; the parent
        product's variants are then rebuilt from the option values they share.

        Raises:
            BundleNotFoundError: If the bundle doesn't exist for the shop.
            BundleValidationError: If the new values are invalid.
            MappingPreconditionError: If the new components share no option value.
            MappingError: If the re-sync fails; the edit itself is kept.
        """
        bundle = self._get_or_raise(shop, bundle_id)

        title = data.title.strip() if data.title is not None else None
        if title is not None and not title:
            raise BundleValidationError("Bundle title cannot be empty.")
        component_ids = (
            _clean_component_ids(data.component_product_ids)
            if data.component_product_ids is not None
            else None
        )

        if component_ids == bundle.component_product_ids:
            component_ids = None

        parent: Product | None = None
        shared: tuple[str, list[str]] | None = None
        if component_ids is not None:
            parent_id = bundle.parent_product_id
            products = await self._catalog.fetch_products([parent_id, *component_ids])
            missing = [pid for pid in component_ids if pid not in products]
            if missing:
                raise BundleValidationError(
                    f"Component products not found: {', '.join(missing)}"
                )
            if parent_id not in products:
                raise BundleValidationError(f"Bundle product {parent_id} no longer exists.")
            shared = shared_option_values(products[component_ids[0]], products[component_ids[1]])
            parent = products[parent_id]

        if title is not None and title != bundle.title:
            await self._catalog.rename_product(bundle.parent_product_id, title)

        if parent is not None:
            await self._prepare_parent_variants(parent, shared)
            logger.info("Rebuilt variants of %s for %s", parent.id, component_ids)

        self._repo.update_bundle(bundle, title=title, component_product_ids=component_ids)
        await self.sync_bundle(shop, bundle_id)
        return await self.get_bundle(shop, bundle_id)

    # ========== DELETE ==========

    async def delete_bundle(self, shop: str, bundle_id: str) -> None:
        """Delete the bundle and its parent product.

        A parent product that no longer exists does not block the delete.

        Raises:
            BundleNotFoundError: If the bundle doesn't exist for the shop.
            PlatformError: If the platform refuses to delete the product.
        """
        bundle = self._get_or_raise(shop, bundle_id)
        try:
            await self._catalog.delete_product(bundle.parent_product_id)
        except PlatformError as e:
            if not _is_missing_product_error(e):
                raise
            logger.info("Parent product %s already gone", bundle.parent_product_id)

        self._repo.delete_bundle(bundle)

    # ========== HELPERS ==========

    def _get_or_raise(self, shop: str, bundle_id: str) -> Bundle:
        bundle = self._repo.get_bundle(shop, bundle_id)
        if bundle is None:
            raise BundleNotFoundError(f"Bundle {bundle_id} not found")
        return bundle

    def _to_bundle_read(
        self,
        bundle: Bundle,
        parent: Product | None = None,
        products: dict[str, Product] | None = None,
    ) -> BundleRead:
        """Convert ORM Bundle to BundleRead, preferring live product data."""
        products = products or {}
        components = []
        for component in bundle.components:
            product = products.get(component.product_id)
            components.append(
                BundleComponentRead(
                    position=component.position,
                    product_id=component.product_id,
                    title=product.title if product else component.product_id,
                    handle=product.handle if product else "",
                    status=product.status if product else ProductStatus.UNKNOWN,
                )
            )

        return BundleRead(
            id=bundle.id,
            shop=bundle.shop,
            parent_product_id=bundle.parent_product_id,
            title=(parent.title if parent else "") or bundle.title or "Untitled bundle",
            handle=(parent.handle if parent else "") or bundle.handle,
            status=parent.status if parent else ProductStatus.parse(bundle.status),
            health=BundleHealth(bundle.health),
            issues_count=bundle.issues_count,
            last_validated_at=bundle.last_validated_at,
            created_at=bundle.created_at,
            components=components,
        )
