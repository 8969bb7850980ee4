"""Cart transform endpoint."""

from typing import Any

from fastapi import APIRouter, Body

from simple_bundler.matching.cart_transform import run_cart_transform_payload

router = APIRouter()


@router.post("/run")
async def run_cart_transform(payload: Any = Body(...)) -> dict[str, Any]:
    """Expand bundle lines of a cart into their component variants.

    Accepts the cart transform input document and answers with the
    operations document. Malformed carts produce no operations.
    """
    return run_cart_transform_payload(payload).to_payload()
