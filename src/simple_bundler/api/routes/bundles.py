"""Bundle API endpoints."""

from fastapi import APIRouter, HTTPException

from simple_bundler.api.dependencies import BundleServiceDep, ShopDep
from simple_bundler.api.schemas import BundleListResponse, SyncResponse
from simple_bundler.matching.variant_mapper import MappingError
from simple_bundler.models.pydantic_models import BundleCreate, BundleRead, BundleUpdate
from simple_bundler.services.bundle_service import (
    BundleCreationError,
    BundleNotFoundError,
    BundleValidationError,
)
from simple_bundler.shopify.admin_client import PlatformError, PlatformUserError

router = APIRouter()


def _http_error(error: Exception) -> HTTPException:
    """Translate a service exception into an HTTP error."""
    if isinstance(error, BundleNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(
        error, (BundleValidationError, BundleCreationError, MappingError, PlatformUserError)
    ):
        return HTTPException(status_code=422, detail=str(error))
    return HTTPException(status_code=502, detail=f"Platform request failed: {error}")


_HANDLED = (
    BundleNotFoundError,
    BundleValidationError,
    BundleCreationError,
    MappingError,
    PlatformError,
)


@router.get("", response_model=BundleListResponse)
async def list_bundles(shop: ShopDep, service: BundleServiceDep) -> BundleListResponse:
    """List the shop's bundles with live product data and mapping health."""
    bundles = await service.list_bundles(shop)
    return BundleListResponse(bundles=bundles, count=len(bundles))


@router.post("", response_model=BundleRead, status_code=201)
async def create_bundle(
    request: BundleCreate,
    shop: ShopDep,
    service: BundleServiceDep,
) -> BundleRead:
    """Create a bundle product from two component products.

    Raises:
        HTTPException: 422 if the input is invalid or mapping failed,
            502 if the platform could not be reached.
    """
    try:
        return await service.create_bundle(shop, request)
    except _HANDLED as e:
        raise _http_error(e) from None


@router.get("/{bundle_id}", response_model=BundleRead)
async def get_bundle(bundle_id: str, shop: ShopDep, service: BundleServiceDep) -> BundleRead:
    """Get a single bundle.

    Raises:
        HTTPException: 404 if bundle not found.
    """
    try:
        return await service.get_bundle(shop, bundle_id)
    except BundleNotFoundError:
        raise HTTPException(status_code=404, detail=f"Bundle {bundle_id} not found") from None


@router.patch("/{bundle_id}", response_model=BundleRead)
async def update_bundle(
    bundle_id: str,
    request: BundleUpdate,
    shop: ShopDep,
    service: BundleServiceDep,
) -> BundleRead:
    """Change a bundle's title or components and re-sync its mapping."""
    try:
        return await service.update_bundle(shop, bundle_id, request)
    except _HANDLED as e:
        raise _http_error(e) from None


@router.post("/{bundle_id}/sync", response_model=SyncResponse)
async def sync_bundle(bundle_id: str, shop: ShopDep, service: BundleServiceDep) -> SyncResponse:
    """Recompute the component mapping of a bundle and write it.

    Raises:
        HTTPException: 404 if bundle not found, 422 if variants could not
            be mapped (nothing is written), 502 on platform failure.
    """
    try:
        result = await service.sync_bundle(shop, bundle_id)
    except _HANDLED as e:
        raise _http_error(e) from None

    return SyncResponse(
        bundle_id=bundle_id,
        bundle_product_id=result.bundle_product_id,
        mapped_count=result.mapped_count,
        mappings=result.mappings,
        synced_at=result.synced_at,
    )


@router.delete("/{bundle_id}", status_code=204)
async def delete_bundle(bundle_id: str, shop: ShopDep, service: BundleServiceDep) -> None:
    """Delete a bundle and its parent product.

    Raises:
        HTTPException: 404 if bundle not found, 502 if the platform refused.
    """
    try:
        await service.delete_bundle(shop, bundle_id)
    except _HANDLED as e:
        raise _http_error(e) from None
