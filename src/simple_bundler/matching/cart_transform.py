"""Cart transform expanding bundle lines into their component lines."""

import json
from typing import Any

from pydantic import ValidationError

from simple_bundler.models.pydantic_models import (
    VARIANT_GID_PREFIX,
    Cart,
    CartAttribute,
    CartLine,
    CartOperation,
    CartTransformInput,
    CartTransformResult,
    ExpandedCartItem,
    LineExpand,
)

MERCHANDISE_VARIANT = "ProductVariant"
MIN_COMPONENTS = 2

BUNDLE_COMPONENT_ATTRIBUTE = "_bundle_component"
BUNDLE_PARENT_ATTRIBUTE = "_bundle_parent_variant"

# Shared "no changes" result, returned by reference
NO_CHANGES = CartTransformResult(operations=())


def parse_variant_id_list(raw: str | None) -> list[str]:
    """Parse a mapping metafield value into component variant ids.

    Anything that is not a JSON array yields an empty list. Non-string
    elements and strings without the variant id prefix are dropped.

    Examples:
        >>> parse_variant_id_list('["gid://shopify/ProductVariant/1", 5]')
        ['gid://shopify/ProductVariant/1']
        >>> parse_variant_id_list("not json")
        []
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (ValueError, TypeError):
        return []
    if not isinstance(parsed, list):
        return []
    return [v for v in parsed if isinstance(v, str) and v.startswith(VARIANT_GID_PREFIX)]


def expand_line(line: CartLine) -> CartOperation | None:
    """Build the expansion for one cart line, or None if it is not a bundle line."""
    merchandise = line.merchandise
    if merchandise.typename != MERCHANDISE_VARIANT or merchandise.metafield is None:
        return None

    component_ids = parse_variant_id_list(merchandise.metafield.value)
    if len(component_ids) < MIN_COMPONENTS:
        return None

    attributes = (
        CartAttribute(key=BUNDLE_COMPONENT_ATTRIBUTE, value="true"),
        CartAttribute(key=BUNDLE_PARENT_ATTRIBUTE, value=merchandise.id or ""),
    )

    # No price on expanded items: the bundle line's own price is charged
    items = tuple(
        ExpandedCartItem(merchandise_id=component_id, quantity=line.quantity, attributes=attributes)
        for component_id in component_ids
    )
    return CartOperation(line_expand=LineExpand(cart_line_id=line.id, expanded_cart_items=items))


def cart_transform_run(cart_input: CartTransformInput) -> CartTransformResult:
    """Expand every bundle line of a cart snapshot.

    Pure function: no I/O, one pass over the lines in input order. Lines that
    are not bundle lines, or whose mapping payload is malformed, are skipped.

    Args:
        cart_input: The cart snapshot.

    Returns:
        The expansion operations in line order, or NO_CHANGES when no line
        needs expansion.
    """
    operations = []
    for line in cart_input.cart.lines:
        operation = expand_line(line)
        if operation is not None:
            operations.append(operation)

    if not operations:
        return NO_CHANGES
    return CartTransformResult(operations=tuple(operations))


def run_cart_transform_payload(payload: Any) -> CartTransformResult:
    """Run the transform on the raw JSON input of the platform function.

    Lines that fail validation are skipped like any other non-bundle line,
    so a malformed payload never fails checkout.
    """
    if not isinstance(payload, dict):
        return NO_CHANGES
    cart = payload.get("cart")
    raw_lines = cart.get("lines") if isinstance(cart, dict) else None
    if not isinstance(raw_lines, list):
        return NO_CHANGES

    lines: list[CartLine] = []
    for raw_line in raw_lines:
        try:
            lines.append(CartLine.model_validate(raw_line))
        except ValidationError:
            continue

    return cart_transform_run(CartTransformInput(cart=Cart(lines=lines)))
