"""Product picker endpoint."""

from fastapi import APIRouter, HTTPException, Query

from simple_bundler.api.dependencies import CatalogDep
from simple_bundler.api.schemas import ProductListResponse
from simple_bundler.shopify.admin_client import PlatformError

router = APIRouter()


@router.get("", response_model=ProductListResponse)
async def list_products(
    catalog: CatalogDep,
    first: int = Query(50, ge=1, le=250, description="Maximum number of products"),
) -> ProductListResponse:
    """List products a merchant can choose as bundle components.

    Raises:
        HTTPException: 502 if the platform could not be reached.
    """
    try:
        products = await catalog.list_products(first=first)
    except PlatformError as e:
        raise HTTPException(status_code=502, detail=f"Platform request failed: {e}") from None
    return ProductListResponse(products=products, count=len(products))
