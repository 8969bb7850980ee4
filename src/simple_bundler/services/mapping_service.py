"""Service writing component mappings onto bundle variants."""

import asyncio
import logging

from simple_bundler.matching.variant_mapper import (
    MetafieldWriteError,
    build_metafield_inputs,
    map_variants,
)
from simple_bundler.models.pydantic_models import SyncResult
from simple_bundler.shopify.catalog import ProductCatalog

logger = logging.getLogger(__name__)


class MappingService:
    """Computes and stores the component mapping of a bundle product.

    The catalog is injected so the same service runs against the Admin API
    or an in-memory fake.
    """

    def __init__(self, catalog: ProductCatalog) -> None:
        """Initialize with a product catalog.

        Args:
            catalog: Source of variants and sink for metafield writes.
        """
        self._catalog = catalog

    async def sync_components_metafields(
        self,
        bundle_product_id: str,
        component_product_ids: tuple[str, str],
    ) -> SyncResult:
        """Map every bundle variant and write all mappings in one call.

        The three variant reads run concurrently. Nothing is written unless
        every bundle variant maps.

        Args:
            bundle_product_id: Id of the bundle (parent) product.
            component_product_ids: Component product ids at positions 1 and 2.

        Returns:
            SyncResult listing the written mappings.

        Raises:
            MappingPreconditionError: If a product has no variants.
            UnmappedVariantsError: If some bundle variants cannot be mapped.
            MetafieldWriteError: If the platform rejects the write.
        """
        product_a_id, product_b_id = component_product_ids
        bundle_variants, a_variants, b_variants = await asyncio.gather(
            self._catalog.fetch_variants(bundle_product_id),
            self._catalog.fetch_variants(product_a_id),
            self._catalog.fetch_variants(product_b_id),
        )

        mappings = map_variants(bundle_variants, a_variants, b_variants)

        user_errors = await self._catalog.set_metafields(build_metafield_inputs(mappings))
        if user_errors:
            messages = [e.message for e in user_errors]
            logger.warning("Metafield write for %s rejected: %s", bundle_product_id, messages)
            raise MetafieldWriteError(messages)

        logger.info("Synced %d variant mappings for %s", len(mappings), bundle_product_id)
        return SyncResult(bundle_product_id=bundle_product_id, mappings=mappings)
