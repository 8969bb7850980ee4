"""Unit tests for the variant mapper."""

import json

import pytest

from simple_bundler.matching.variant_mapper import (
    MappingError,
    MappingPreconditionError,
    UnmappedVariantsError,
    build_metafield_inputs,
    map_variants,
    matches_by_values,
    shared_option_values,
    value_blob,
)
from simple_bundler.models.pydantic_models import (
    MAPPING_KEY,
    MAPPING_NAMESPACE,
    ComponentMapping,
    Product,
    ProductOption,
    SelectedOption,
    Variant,
)


def make_variant(variant_id: str, *values: str, title: str | None = None) -> Variant:
    """Build a variant with one selected option per value."""
    return Variant(
        id=f"gid://shopify/ProductVariant/{variant_id}",
        title=title if title is not None else " / ".join(values),
        selected_options=[
            SelectedOption(name=f"Option{i}", value=value) for i, value in enumerate(values, 1)
        ],
    )


def make_default_variant(variant_id: str) -> Variant:
    """Build the placeholder variant of an option-less product."""
    return make_variant(variant_id, "Default Title", title="Default Title")


class TestValueBlob:
    """Tests for value_blob()."""

    def test_joins_and_normalizes_values(self) -> None:
        variant = make_variant("1", "Obsidian Black", "XL")
        assert value_blob(variant) == "obsidian black xl"

    def test_empty_for_option_less_variant(self) -> None:
        assert value_blob(Variant(id="gid://shopify/ProductVariant/1")) == ""


class TestMatchesByValues:
    """Tests for containment matching."""

    def test_containment_match_succeeds(self) -> None:
        """'black' is contained in 'obsidian black'."""
        bundle = make_variant("1", "Obsidian Black")
        assert matches_by_values(bundle, make_variant("2", "Black"))

    def test_containment_match_fails(self) -> None:
        """'blue' is not contained in 'obsidian black'."""
        bundle = make_variant("1", "Obsidian Black")
        assert not matches_by_values(bundle, make_variant("2", "Blue"))

    def test_all_component_values_must_match(self) -> None:
        bundle = make_variant("1", "Black", "M")
        assert matches_by_values(bundle, make_variant("2", "Black", "M"))
        assert not matches_by_values(bundle, make_variant("3", "Black", "L"))

    def test_option_names_are_ignored(self) -> None:
        """Only values count, so renamed option labels still match."""
        bundle = Variant(
            id="gid://shopify/ProductVariant/1",
            selected_options=[SelectedOption(name="Colour", value="Red")],
        )
        component = Variant(
            id="gid://shopify/ProductVariant/2",
            selected_options=[SelectedOption(name="Color", value="Red")],
        )
        assert matches_by_values(bundle, component)

    def test_normalization_applies_to_both_sides(self) -> None:
        bundle = make_variant("1", "Crème / Navy")
        assert matches_by_values(bundle, make_variant("2", "CREME"))

    def test_value_normalizing_to_nothing_never_matches(self) -> None:
        bundle = make_variant("1", "Red")
        assert not matches_by_values(bundle, make_variant("2", "!!!"))

    def test_component_without_values_matches_vacuously(self) -> None:
        bundle = make_variant("1", "Red")
        assert matches_by_values(bundle, Variant(id="gid://shopify/ProductVariant/2"))


class TestMapVariants:
    """Tests for map_variants()."""

    def test_maps_each_bundle_variant_in_order(self) -> None:
        bundle = [make_variant("10", "Black"), make_variant("11", "White")]
        shirts = [make_variant("20", "White"), make_variant("21", "Black")]
        caps = [make_variant("30", "Black"), make_variant("31", "White")]

        mappings = map_variants(bundle, shirts, caps)

        assert mappings == [
            ComponentMapping(
                bundle_variant_id="gid://shopify/ProductVariant/10",
                component_variant_ids=(
                    "gid://shopify/ProductVariant/21",
                    "gid://shopify/ProductVariant/30",
                ),
            ),
            ComponentMapping(
                bundle_variant_id="gid://shopify/ProductVariant/11",
                component_variant_ids=(
                    "gid://shopify/ProductVariant/20",
                    "gid://shopify/ProductVariant/31",
                ),
            ),
        ]

    def test_first_match_in_input_order_wins(self) -> None:
        """Both 'black' and 'obsidian black' fit; the earlier candidate is used."""
        bundle = [make_variant("10", "Obsidian Black")]
        component_a = [make_variant("20", "Black"), make_variant("21", "Obsidian Black")]
        component_b = [make_variant("30", "Obsidian Black")]

        mappings = map_variants(bundle, component_a, component_b)

        assert mappings[0].component_variant_ids[0] == "gid://shopify/ProductVariant/20"

    def test_single_default_components_map_regardless_of_text(self) -> None:
        bundle = [make_variant("10", "Something Else Entirely")]
        component_a = [make_default_variant("20")]
        component_b = [make_default_variant("30")]

        mappings = map_variants(bundle, component_a, component_b)

        assert len(mappings) == 1
        assert mappings[0].bundle_variant_id == "gid://shopify/ProductVariant/10"
        assert mappings[0].component_variant_ids == (
            "gid://shopify/ProductVariant/20",
            "gid://shopify/ProductVariant/30",
        )

    def test_single_default_components_with_several_bundle_variants_fail(self) -> None:
        """Extra bundle variants are never left behind with stale mappings."""
        bundle = [make_variant("10", "Red"), make_variant("11", "Blue")]

        with pytest.raises(UnmappedVariantsError) as exc_info:
            map_variants(bundle, [make_default_variant("20")], [make_default_variant("30")])

        assert exc_info.value.unmapped == ["red", "blue"]

    def test_non_latin_values_map_to_their_own_variants(self) -> None:
        bundle = [make_variant("10", "黒"), make_variant("11", "白")]
        component_a = [make_variant("20", "黒"), make_variant("21", "白")]
        component_b = [make_variant("30", "黒"), make_variant("31", "白")]

        mappings = map_variants(bundle, component_a, component_b)

        assert [m.component_variant_ids for m in mappings] == [
            ("gid://shopify/ProductVariant/20", "gid://shopify/ProductVariant/30"),
            ("gid://shopify/ProductVariant/21", "gid://shopify/ProductVariant/31"),
        ]

    def test_unmatched_non_latin_value_is_reported(self) -> None:
        bundle = [make_variant("10", "白")]
        component = [make_variant("20", "黒")]

        with pytest.raises(UnmappedVariantsError) as exc_info:
            map_variants(bundle, component, component)

        assert exc_info.value.unmapped == ["白"]

    def test_unmapped_value_is_reported(self) -> None:
        bundle = [make_variant("10", "Obsidian Black")]
        component_a = [make_variant("20", "Blue")]
        component_b = [make_variant("30", "Black")]

        with pytest.raises(UnmappedVariantsError) as exc_info:
            map_variants(bundle, component_a, component_b)

        assert exc_info.value.unmapped == ["obsidian black"]
        assert "obsidian black" in str(exc_info.value)

    def test_all_unmapped_values_are_listed_in_order(self) -> None:
        bundle = [
            make_variant("10", "Red"),
            make_variant("11", "Black"),
            make_variant("12", "Green"),
        ]
        component = [make_variant("20", "Black")]

        with pytest.raises(UnmappedVariantsError) as exc_info:
            map_variants(bundle, component, component)

        assert exc_info.value.unmapped == ["red", "green"]

    def test_unmapped_variant_without_values_reports_id(self) -> None:
        bundle = [Variant(id="gid://shopify/ProductVariant/10")]
        component_a = [make_variant("20", "Red"), make_variant("21", "Blue")]
        component_b = [make_variant("30", "Red")]

        with pytest.raises(UnmappedVariantsError) as exc_info:
            map_variants(bundle, component_a, component_b)

        assert exc_info.value.unmapped == ["gid://shopify/ProductVariant/10"]

    def test_bundle_without_variants(self) -> None:
        with pytest.raises(MappingPreconditionError, match="Bundle product has no variants"):
            map_variants([], [make_variant("20", "Red")], [make_variant("30", "Red")])

    @pytest.mark.parametrize("empty_side", ["a", "b"])
    def test_component_without_variants(self, empty_side: str) -> None:
        variants = [make_variant("20", "Red")]
        component_a = [] if empty_side == "a" else variants
        component_b = [] if empty_side == "b" else variants

        with pytest.raises(MappingPreconditionError, match="component products has no variants"):
            map_variants([make_variant("10", "Red")], component_a, component_b)

    def test_errors_share_base_class(self) -> None:
        assert issubclass(MappingPreconditionError, MappingError)
        assert issubclass(UnmappedVariantsError, MappingError)


class TestSharedOptionValues:
    """Tests for shared_option_values()."""

    def test_returns_shared_values_in_component_a_order(self) -> None:
        product_a = Product(
            id="gid://shopify/Product/1",
            options=[ProductOption(name="Color", values=["Black", "White", "Red"])],
        )
        product_b = Product(
            id="gid://shopify/Product/2",
            options=[ProductOption(name="Colour", values=["red", "BLACK"])],
        )

        assert shared_option_values(product_a, product_b) == ("Color", ["Black", "Red"])

    def test_none_when_neither_product_has_options(self) -> None:
        default = [ProductOption(name="Title", values=["Default Title"])]
        product_a = Product(id="gid://shopify/Product/1", options=default)
        product_b = Product(id="gid://shopify/Product/2")

        assert shared_option_values(product_a, product_b) is None

    def test_raises_when_nothing_is_shared(self) -> None:
        product_a = Product(
            id="gid://shopify/Product/1",
            options=[ProductOption(name="Color", values=["Black"])],
        )
        product_b = Product(
            id="gid://shopify/Product/2",
            options=[ProductOption(name="Color", values=["Blue"])],
        )

        with pytest.raises(MappingPreconditionError, match="No shared variant option"):
            shared_option_values(product_a, product_b)

    def test_raises_when_only_one_product_has_options(self) -> None:
        product_a = Product(
            id="gid://shopify/Product/1",
            options=[ProductOption(name="Size", values=["S", "M"])],
        )
        product_b = Product(id="gid://shopify/Product/2")

        with pytest.raises(MappingPreconditionError):
            shared_option_values(product_a, product_b)


class TestBuildMetafieldInputs:
    """Tests for build_metafield_inputs()."""

    def test_one_json_metafield_per_mapping(self) -> None:
        mapping = ComponentMapping(
            bundle_variant_id="gid://shopify/ProductVariant/10",
            component_variant_ids=(
                "gid://shopify/ProductVariant/20",
                "gid://shopify/ProductVariant/30",
            ),
        )

        (metafield,) = build_metafield_inputs([mapping])

        assert metafield.owner_id == "gid://shopify/ProductVariant/10"
        assert metafield.namespace == MAPPING_NAMESPACE
        assert metafield.key == MAPPING_KEY
        assert metafield.type == "json"
        assert json.loads(metafield.value) == [
            "gid://shopify/ProductVariant/20",
            "gid://shopify/ProductVariant/30",
        ]

    def test_serializes_with_platform_field_names(self) -> None:
        mapping = ComponentMapping(
            bundle_variant_id="gid://shopify/ProductVariant/10",
            component_variant_ids=(
                "gid://shopify/ProductVariant/20",
                "gid://shopify/ProductVariant/30",
            ),
        )
        dumped = build_metafield_inputs([mapping])[0].model_dump(by_alias=True)
        assert dumped["ownerId"] == "gid://shopify/ProductVariant/10"
