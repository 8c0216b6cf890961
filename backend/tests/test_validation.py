"""
Input validation helpers.

Covers payload coercion, query parsing and phone normalization that the
route layer relies on.
"""

import pytest
from werkzeug.datastructures import MultiDict

from sinari.models import Product
from sinari.services.products_service import PRODUCT_CREATE_POLICY
from sinari.validation import (
    ValidationError,
    build_paging,
    normalize_phone_number,
    parse_paging,
    parse_service_items,
    parse_sort,
    parse_stock_adjustment,
    validate_payload,
)


class TestValidatePayload:

    def _validate(self, payload, partial=True):
        return validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=partial)

    def test_whole_floats_become_ints(self, app):
        assert self._validate({"price": 10000.0})["price"] == 10000

    def test_numeric_strings_accepted(self, app):
        assert self._validate({"stock": " 7 "})["stock"] == 7

    @pytest.mark.parametrize("value", ["1e3", "10.5", "", True, [1]])
    def test_bad_integers(self, app, value):
        with pytest.raises(ValidationError):
            self._validate({"price": value})

    def test_strings_trimmed_and_choices_uppercased(self, app):
        patch = self._validate({"name": "  LCD A52 ", "brand": "samsung"})
        assert patch == {"name": "LCD A52", "brand": "SAMSUNG"}

    def test_blank_required_string(self, app):
        with pytest.raises(ValidationError, match="name cannot be blank"):
            self._validate({"name": "   "})

    def test_max_length(self, app):
        with pytest.raises(ValidationError, match="exceeds max length 100"):
            self._validate({"name": "x" * 101})

    def test_non_nullable_null(self, app):
        with pytest.raises(ValidationError, match="price cannot be null"):
            self._validate({"price": None})

    def test_payload_must_be_object(self, app):
        with pytest.raises(ValidationError, match="Invalid JSON payload"):
            self._validate(["name"])


class TestStockAdjustmentPayload:

    def test_action_normalized(self):
        assert parse_stock_adjustment({"stock": 4, "stock_action": " restock "}) == (4, "RESTOCK")

    @pytest.mark.parametrize("payload,message", [
        ({"stock_action": "RESTOCK"}, "stock is required"),
        ({"stock": "4", "stock_action": "RESTOCK"}, "stock must be an integer"),
        ({"stock": 4.5, "stock_action": "RESTOCK"}, "not a decimal"),
        ({"stock": -1, "stock_action": "RESTOCK"}, "stock must be >= 0"),
        ({"stock": 4}, "stock_action is required"),
        (None, "Invalid JSON payload"),
    ])
    def test_rejected(self, payload, message):
        with pytest.raises(ValidationError, match=message):
            parse_stock_adjustment(payload)


class TestServiceItems:

    def test_normalized(self):
        items = parse_service_items([{"name": " LCD ", "price": 1500.0}])
        assert items == [{"name": "LCD", "price": 1500}]

    @pytest.mark.parametrize("raw", [
        [],
        None,
        [{"name": "", "price": 1000}],
        [{"name": "LCD", "price": 0}],
        [{"name": "LCD", "price": "1000"}],
        ["LCD"],
    ])
    def test_rejected(self, raw):
        with pytest.raises(ValidationError):
            parse_service_items(raw)


class TestPhoneNumbers:

    @pytest.mark.parametrize("raw,expected", [
        ("0812-3456-7890", "6281234567890"),
        ("+62 812 3456 7890", "6281234567890"),
        ("6281234567890", "6281234567890"),
        ("81234567890", "6281234567890"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_phone_number(raw) == expected

    def test_no_digits(self):
        with pytest.raises(ValidationError):
            normalize_phone_number("call me")

    def test_length_checked_after_prefix(self):
        # 19 digits fit the column as typed but not once "62" is prepended
        with pytest.raises(ValidationError, match="phone_number exceeds max length 20"):
            normalize_phone_number("8123456789012345678")
        assert normalize_phone_number("0812345678901234567") == "62812345678901234567"

    def test_overlong_phone_rejected_on_create(self, client, db_session, admin_headers, service_payload):
        payload = dict(service_payload, phone_number="81234567890123456789")

        resp = client.post("/api/services", json=payload, headers=admin_headers)

        assert resp.status_code == 400
        assert "phone_number" in resp.json["errors"]


class TestQueryParsing:

    def test_paging_defaults(self):
        assert parse_paging(MultiDict()) == (1, 10)

    def test_sort_defaults(self):
        assert parse_sort(MultiDict(), ("name", "created_at"), "created_at") == ("created_at", "desc")

    def test_sort_order_validated(self):
        with pytest.raises(ValidationError):
            parse_sort(MultiDict({"sort_order": "sideways"}), ("name",), "name")

    @pytest.mark.parametrize("total,expected", [(0, 0), (1, 1), (10, 1), (11, 2)])
    def test_total_pages(self, total, expected):
        assert build_paging(1, 10, total)["total_page"] == expected
