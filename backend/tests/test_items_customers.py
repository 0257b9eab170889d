# Overview: Pytest coverage for the item and customer stores and their payload validation.

import pytest
from stockbook.models import InventoryItem, Customer
from stockbook.services import items_service, customer_service
from stockbook.validation import (
    ValidationError,
    NotFoundError,
    validate_payload,
    enforce_rules_item,
    flatten_customer_payload,
    enforce_rules_customer,
)
from stockbook.routes.items import ITEM_POLICY
from stockbook.routes.customers import CUSTOMER_POLICY

from conftest import line_for


class TestItemValidation:

    def test_create_requires_fields(self):
        with pytest.raises(ValidationError, match="Missing required fields: price_cents, quantity"):
            validate_payload(model=InventoryItem, payload={"name": "Tea"}, policy=ITEM_POLICY, partial=False)

    def test_negative_quantity_rejected(self):
        patch = validate_payload(
            model=InventoryItem,
            payload={"name": "Tea", "quantity": -1, "price_cents": 100},
            policy=ITEM_POLICY,
            partial=False,
        )
        with pytest.raises(ValidationError, match="quantity must be >= 0"):
            enforce_rules_item(patch)

    def test_decimal_price_rejected(self):
        with pytest.raises(ValidationError, match="price_cents"):
            validate_payload(
                model=InventoryItem,
                payload={"name": "Tea", "quantity": 1, "price_cents": 9.99},
                policy=ITEM_POLICY,
                partial=False,
            )

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            validate_payload(model=InventoryItem, payload={"id": 5}, policy=ITEM_POLICY, partial=True)

    def test_partial_patch_only_validates_given_fields(self):
        patch = validate_payload(model=InventoryItem, payload={"quantity": "12"}, policy=ITEM_POLICY, partial=True)
        assert patch == {"quantity": 12}

    @pytest.mark.parametrize("value", [10 ** 20, str(2 ** 31), -(2 ** 31) - 1])
    def test_out_of_range_quantity_rejected(self, value):
        with pytest.raises(ValidationError, match="quantity is out of range"):
            validate_payload(model=InventoryItem, payload={"quantity": value}, policy=ITEM_POLICY, partial=True)


class TestItemStore:

    def test_crud(self, db_session):
        item_id = items_service.create_item({"name": "Tea", "quantity": 5, "price_cents": 375}).id
        assert items_service.get_item(item_id).name == "Tea"

        items_service.update_item(item_id, {"quantity": 9})
        assert items_service.get_item(item_id).quantity == 9

        items_service.delete_item(item_id)
        with pytest.raises(NotFoundError):
            items_service.get_item(item_id)

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            items_service.update_item(404, {"quantity": 1})

    def test_list_ordered_by_name(self, db_session, make_item):
        make_item(name="Sugar")
        make_item(name="Atta")
        assert [i.name for i in items_service.list_items()] == ["Atta", "Sugar"]

    def test_search_name_and_description_case_insensitive(self, db_session, make_item):
        make_item(name="Black Tea", description="Assam leaf")
        make_item(name="Green Tea", description=None)
        make_item(name="Rice", description="long grain, like tea gardens")
        make_item(name="Salt")

        assert [i.name for i in items_service.search_items("TEA")] == ["Black Tea", "Green Tea", "Rice"]
        assert [i.name for i in items_service.search_items("assam")] == ["Black Tea"]

    def test_search_wildcards_are_literal(self, db_session, make_item):
        make_item(name="100% Cotton")
        make_item(name="Cotton")
        assert [i.name for i in items_service.search_items("%")] == ["100% Cotton"]
        assert items_service.search_items("_") == []

    def test_empty_search_lists_all(self, db_session, make_item):
        make_item(name="One")
        make_item(name="Two")
        assert len(items_service.search_items("")) == 2


class TestCustomerValidation:

    def test_flatten_address(self):
        flat = flatten_customer_payload({
            "name": "Cafe",
            "mobile_number": "9876543210",
            "address": {"street": "1 Main", "city": "Pune", "state": None, "postal_code": "411001"},
        })
        assert flat == {
            "name": "Cafe",
            "mobile_number": "9876543210",
            "street": "1 Main",
            "city": "Pune",
            "state": "",
            "postal_code": "411001",
        }

    def test_unknown_address_key_rejected(self):
        with pytest.raises(ValidationError, match="Unknown address field: country"):
            flatten_customer_payload({"address": {"country": "IN"}})

    @pytest.mark.parametrize("mobile", ["12345", "98765432101", "98765abcde", ""])
    def test_mobile_must_be_ten_digits(self, mobile):
        with pytest.raises(ValidationError, match="exactly 10 digits"):
            enforce_rules_customer({"mobile_number": mobile})

    def test_create_requires_name_and_mobile(self):
        with pytest.raises(ValidationError, match="Missing required fields: mobile_number"):
            validate_payload(model=Customer, payload={"name": "Cafe"}, policy=CUSTOMER_POLICY, partial=False)


class TestCustomerStore:

    def test_crud(self, db_session):
        customer = customer_service.create_customer({"name": "Cafe", "mobile_number": "9876543210"})
        assert customer.to_dict()["address"] == {"street": "", "city": "", "state": "", "postal_code": ""}

        customer_service.update_customer(customer.id, {"city": "Nagpur"})
        assert customer_service.get_customer(customer.id).city == "Nagpur"

        customer_id = customer.id
        customer_service.delete_customer(customer_id)
        assert customer_service.find_customer(customer_id) is None

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError, match="Customer not found"):
            customer_service.delete_customer(1)

    def test_delete_keeps_sales_snapshot(self, db_session, make_item, make_customer, make_sale):
        item = make_item()
        customer = make_customer(name="Gone Soon")
        sale = make_sale([line_for(item, 1)], customer_id=customer.id)

        customer_service.delete_customer(customer.id)

        assert sale.customer_name == "Gone Soon"
