"""Variant mapping between a bundle product and its two component products."""

import json
from collections.abc import Sequence

from simple_bundler.matching.normalizer import normalize_text
from simple_bundler.models.pydantic_models import (
    DEFAULT_VARIANT_TITLE,
    ComponentMapping,
    MetafieldInput,
    Product,
    Variant,
)


class MappingError(Exception):
    """Base class for errors that abort a mapping sync."""

    pass


class MappingPreconditionError(MappingError):
    """Raised when the products cannot be mapped at all (e.g. no variants)."""

    pass


class UnmappedVariantsError(MappingError):
    """Raised when one or more bundle variants match no component variant."""

    def __init__(self, unmapped: list[str]) -> None:
        self.unmapped = list(unmapped)
        super().__init__(
            "Could not map these bundle variant values to component variants: "
            + ", ".join(self.unmapped)
        )


class MetafieldWriteError(MappingError):
    """Raised when the platform rejects the metafield write."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


def value_blob(variant: Variant) -> str:
    """Normalized concatenation of a variant's option values.

    A variant with Color "Obsidian Black" and Size "XL" has the blob
    "obsidian black xl".
    """
    return normalize_text(" ".join(variant.option_values))


def matches_by_values(bundle_variant: Variant, component_variant: Variant) -> bool:
    """Check whether a component variant fits a bundle variant.

    Matching uses option VALUES only, so renamed option labels do not matter.
    Every normalized value of the component variant must be contained in the
    bundle variant's value blob: "obsidian black" contains "black". A value
    that normalizes to nothing matches nothing, except on a default variant.
    """
    blob = value_blob(bundle_variant)
    for value in component_variant.option_values:
        normalized = normalize_text(value)
        if not normalized and not component_variant.is_default:
            return False
        if normalized not in blob:
            return False
    return True


def _first_match(bundle_variant: Variant, candidates: Sequence[Variant]) -> Variant | None:
    # First match in input order wins, no specificity tie-break
    for candidate in candidates:
        if matches_by_values(bundle_variant, candidate):
            return candidate
    return None


def _is_single_default(variants: Sequence[Variant]) -> bool:
    return len(variants) == 1 and variants[0].is_default


def map_variants(
    bundle_variants: Sequence[Variant],
    component_a_variants: Sequence[Variant],
    component_b_variants: Sequence[Variant],
) -> list[ComponentMapping]:
    """Map every bundle variant to one variant of each component product.

    Algorithm:
    1. Check that every product has at least one variant
    2. If the bundle has a single variant and both components are
       single-default-variant products, map it straight to them
    3. Otherwise, for each bundle variant pick the first matching variant of
       component A and of component B
    4. Collect the value blob (or id) of every bundle variant lacking a match
    5. Fail as a whole if anything is unmapped

    Args:
        bundle_variants: Variants of the bundle (parent) product.
        component_a_variants: Variants of the component at position 1.
        component_b_variants: Variants of the component at position 2.

    Returns:
        One ComponentMapping per bundle variant, in bundle variant order.

    Raises:
        MappingPreconditionError: If any variant list is empty.
        UnmappedVariantsError: If any bundle variant could not be mapped.
    """
    if not bundle_variants:
        raise MappingPreconditionError("Bundle product has no variants.")
    if not component_a_variants or not component_b_variants:
        raise MappingPreconditionError("One of the component products has no variants.")

    if (
        len(bundle_variants) == 1
        and _is_single_default(component_a_variants)
        and _is_single_default(component_b_variants)
    ):
        return [
            ComponentMapping(
                bundle_variant_id=bundle_variants[0].id,
                component_variant_ids=(component_a_variants[0].id, component_b_variants[0].id),
            )
        ]

    mappings: list[ComponentMapping] = []
    unmapped: list[str] = []

    for bundle_variant in bundle_variants:
        match_a = _first_match(bundle_variant, component_a_variants)
        match_b = _first_match(bundle_variant, component_b_variants)

        # Never write a wrong mapping
        if match_a is None or match_b is None:
            unmapped.append(value_blob(bundle_variant) or bundle_variant.id)
            continue

        mappings.append(
            ComponentMapping(
                bundle_variant_id=bundle_variant.id,
                component_variant_ids=(match_a.id, match_b.id),
            )
        )

    if unmapped:
        raise UnmappedVariantsError(unmapped)

    return mappings


def shared_option_values(product_a: Product, product_b: Product) -> tuple[str, list[str]] | None:
    """Find the option values both component products offer.

    Only the first option of each product is compared. Values keep component
    A's spelling and order.

    Returns:
        (option name, shared values), or None when neither product has
        real options.

    Raises:
        MappingPreconditionError: If the products have options but share no value.
    """
    option_a = product_a.options[0] if product_a.options else None
    option_b = product_b.options[0] if product_b.options else None
    has_real_a = option_a is not None and option_a.values != [DEFAULT_VARIANT_TITLE]
    has_real_b = option_b is not None and option_b.values != [DEFAULT_VARIANT_TITLE]
    if not has_real_a and not has_real_b:
        return None

    if option_a is None or option_b is None or not (has_real_a and has_real_b):
        raise MappingPreconditionError("No shared variant option found.")

    b_values = {normalize_text(v) for v in option_b.values}
    shared = [v for v in option_a.values if normalize_text(v) in b_values]
    if not shared:
        raise MappingPreconditionError("No shared variant option found.")
    return option_a.name, shared


def build_metafield_inputs(mappings: Sequence[ComponentMapping]) -> list[MetafieldInput]:
    """Build the batched metafield write for a set of mappings.

    The metafield lives on the BUNDLE variant and holds a JSON array of the
    component variant ids.
    """
    return [
        MetafieldInput(
            owner_id=mapping.bundle_variant_id,
            value=json.dumps(list(mapping.component_variant_ids)),
        )
        for mapping in mappings
    ]
