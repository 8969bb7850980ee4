"""Variant mapping and cart expansion modules."""

from simple_bundler.matching.cart_transform import NO_CHANGES, cart_transform_run
from simple_bundler.matching.normalizer import normalize_text
from simple_bundler.matching.variant_mapper import map_variants, matches_by_values, value_blob

__all__ = [
    "NO_CHANGES",
    "cart_transform_run",
    "map_variants",
    "matches_by_values",
    "normalize_text",
    "value_blob",
]
