"""Unit tests for the cart expansion transform."""

import json
from typing import Any

import pytest

from simple_bundler.matching.cart_transform import (
    BUNDLE_COMPONENT_ATTRIBUTE,
    BUNDLE_PARENT_ATTRIBUTE,
    NO_CHANGES,
    cart_transform_run,
    expand_line,
    parse_variant_id_list,
    run_cart_transform_payload,
)
from simple_bundler.models.pydantic_models import CartLine, CartTransformInput

V1 = "gid://shopify/ProductVariant/1"
V2 = "gid://shopify/ProductVariant/2"
V3 = "gid://shopify/ProductVariant/3"
BUNDLE_VARIANT = "gid://shopify/ProductVariant/100"


def make_line(
    line_id: str,
    quantity: int = 1,
    mapping: str | None = None,
    typename: str = "ProductVariant",
    merchandise_id: str = BUNDLE_VARIANT,
) -> dict[str, Any]:
    """Build a raw cart line as the platform sends it."""
    return {
        "id": line_id,
        "quantity": quantity,
        "merchandise": {
            "__typename": typename,
            "id": merchandise_id,
            "metafield": None if mapping is None else {"value": mapping},
        },
    }


def make_input(*lines: dict[str, Any]) -> CartTransformInput:
    return CartTransformInput.model_validate({"cart": {"lines": list(lines)}})


class TestParseVariantIdList:
    """Tests for mapping payload parsing."""

    def test_valid_list(self) -> None:
        assert parse_variant_id_list(json.dumps([V1, V2])) == [V1, V2]

    @pytest.mark.parametrize(
        "raw",
        [None, "", "not json", "{}", '"gid://shopify/ProductVariant/1"', "42", "null"],
    )
    def test_non_list_payloads_yield_nothing(self, raw: str | None) -> None:
        assert parse_variant_id_list(raw) == []

    def test_drops_non_strings_and_foreign_ids(self) -> None:
        raw = json.dumps([V1, 7, None, "gid://shopify/Product/5", "1234", V2])
        assert parse_variant_id_list(raw) == [V1, V2]


class TestCartTransformRun:
    """Tests for cart_transform_run()."""

    def test_plain_and_bundle_lines(self) -> None:
        """Only the bundle line expands; quantities mirror the bundle line."""
        cart = make_input(
            make_line("gid://shopify/CartLine/1", quantity=3, merchandise_id=V3),
            make_line("gid://shopify/CartLine/2", quantity=2, mapping=json.dumps([V1, V2])),
        )

        result = cart_transform_run(cart)

        assert result.to_payload() == {
            "operations": [
                {
                    "lineExpand": {
                        "cartLineId": "gid://shopify/CartLine/2",
                        "expandedCartItems": [
                            {
                                "merchandiseId": V1,
                                "quantity": 2,
                                "attributes": [
                                    {"key": BUNDLE_COMPONENT_ATTRIBUTE, "value": "true"},
                                    {"key": BUNDLE_PARENT_ATTRIBUTE, "value": BUNDLE_VARIANT},
                                ],
                            },
                            {
                                "merchandiseId": V2,
                                "quantity": 2,
                                "attributes": [
                                    {"key": BUNDLE_COMPONENT_ATTRIBUTE, "value": "true"},
                                    {"key": BUNDLE_PARENT_ATTRIBUTE, "value": BUNDLE_VARIANT},
                                ],
                            },
                        ],
                    }
                }
            ]
        }

    def test_not_json_only_line_returns_no_changes(self) -> None:
        result = cart_transform_run(make_input(make_line("line-1", mapping="not json")))
        assert result is NO_CHANGES

    def test_no_changes_is_the_same_object_every_time(self) -> None:
        empty = make_input()
        plain = make_input(make_line("line-1", quantity=4))

        assert cart_transform_run(empty) is NO_CHANGES
        assert cart_transform_run(plain) is NO_CHANGES
        assert cart_transform_run(empty) is cart_transform_run(plain)
        assert NO_CHANGES.operations == ()

    @pytest.mark.parametrize("quantity", [1, 2, 7, 99])
    def test_quantity_mirrors_bundle_line(self, quantity: int) -> None:
        cart = make_input(make_line("line-1", quantity=quantity, mapping=json.dumps([V1, V2])))

        (operation,) = cart_transform_run(cart).operations
        items = operation.line_expand.expanded_cart_items

        assert len(items) == 2
        assert all(item.quantity == quantity for item in items)
        for item in items:
            assert {a.key: a.value for a in item.attributes}[BUNDLE_PARENT_ATTRIBUTE] == (
                BUNDLE_VARIANT
            )

    @pytest.mark.parametrize(
        "mapping",
        [
            "not json",
            '{"a": 1}',
            "[1, 2]",
            json.dumps(["gid://shopify/Product/1", "gid://shopify/Product/2"]),
            json.dumps([V1]),
            json.dumps([V1, "nope"]),
            "[]",
        ],
    )
    def test_malformed_payloads_are_skipped(self, mapping: str) -> None:
        cart = make_input(make_line("line-1", mapping=mapping))
        assert cart_transform_run(cart) is NO_CHANGES

    def test_non_variant_merchandise_is_skipped(self) -> None:
        cart = make_input(
            make_line("line-1", mapping=json.dumps([V1, V2]), typename="CustomProduct")
        )
        assert cart_transform_run(cart) is NO_CHANGES

    def test_more_than_two_components_all_expand(self) -> None:
        cart = make_input(make_line("line-1", mapping=json.dumps([V1, V2, V3])))
        (operation,) = cart_transform_run(cart).operations
        assert [i.merchandise_id for i in operation.line_expand.expanded_cart_items] == [
            V1,
            V2,
            V3,
        ]

    def test_operations_follow_line_order(self) -> None:
        cart = make_input(
            make_line("line-b", mapping=json.dumps([V1, V2])),
            make_line("line-plain"),
            make_line("line-a", mapping=json.dumps([V2, V3])),
        )
        result = cart_transform_run(cart)
        assert [op.line_expand.cart_line_id for op in result.operations] == ["line-b", "line-a"]

    def test_no_price_on_expanded_items(self) -> None:
        cart = make_input(make_line("line-1", mapping=json.dumps([V1, V2])))
        payload = cart_transform_run(cart).to_payload()
        for item in payload["operations"][0]["lineExpand"]["expandedCartItems"]:
            assert set(item) == {"merchandiseId", "quantity", "attributes"}

    def test_idempotent(self) -> None:
        cart = make_input(
            make_line("line-1", quantity=2, mapping=json.dumps([V1, V2])),
            make_line("line-2", mapping="garbage"),
        )
        assert cart_transform_run(cart) == cart_transform_run(cart)
        assert cart_transform_run(cart).to_payload() == cart_transform_run(cart).to_payload()


class TestRunCartTransformPayload:
    """Tests for the raw JSON entry point."""

    @pytest.mark.parametrize(
        "payload",
        [None, [], "cart", {}, {"cart": None}, {"cart": {"lines": "x"}}, {"cart": {}}],
    )
    def test_invalid_documents_return_no_changes(self, payload: Any) -> None:
        assert run_cart_transform_payload(payload) is NO_CHANGES

    def test_invalid_lines_are_skipped(self) -> None:
        payload = {
            "cart": {
                "lines": [
                    {"id": "broken"},
                    "not a line",
                    make_line("line-1", quantity=2, mapping=json.dumps([V1, V2])),
                ]
            }
        }

        result = run_cart_transform_payload(payload)

        assert [op.line_expand.cart_line_id for op in result.operations] == ["line-1"]


class TestExpandLine:
    """Tests for expanding a single cart line."""

    def test_bundle_line(self) -> None:
        raw = make_line("line-1", quantity=3, mapping=json.dumps([V1, V2]))
        line = CartLine.model_validate(raw)

        operation = expand_line(line)

        assert operation is not None
        assert operation.line_expand.cart_line_id == "line-1"
        items = operation.line_expand.expanded_cart_items
        assert [item.merchandise_id for item in items] == [V1, V2]
        assert all(item.quantity == 3 for item in items)
        assert {a.key: a.value for a in items[0].attributes} == {
            BUNDLE_COMPONENT_ATTRIBUTE: "true",
            BUNDLE_PARENT_ATTRIBUTE: BUNDLE_VARIANT,
        }

    def test_line_without_mapping(self) -> None:
        assert expand_line(CartLine.model_validate(make_line("line-1"))) is None

    def test_non_variant_merchandise(self) -> None:
        line = CartLine.model_validate(
            make_line("line-1", mapping=json.dumps([V1, V2]), typename="CustomProduct")
        )
        assert expand_line(line) is None
