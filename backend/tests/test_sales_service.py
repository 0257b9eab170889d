# Overview: Pytest coverage for the sale engine (create, update, delete) and its stock bookkeeping.

"""
Sale Engine Tests

Every test checks both the returned/raised value and the item quantities
left behind, since a sale that fails must leave stock exactly as it was.
"""

from datetime import datetime

import pytest
from stockbook.models import Sale, CASH_SALE_NAME
from stockbook.services import sales_service
from stockbook.services.sales_service import (
    SaleInput,
    SaleLineInput,
    SaleError,
    InsufficientStockError,
    PriceMismatchError,
    TotalMismatchError,
    ReferenceNotFoundError,
    parse_sale_payload,
)
from stockbook.validation import ValidationError, NotFoundError

from conftest import line_for, quantity_of


def _input(lines, customer_id=None, payment_type="cash", date=None):
    return SaleInput(
        lines=list(lines),
        customer_id=customer_id,
        payment_type=payment_type,
        date=date or datetime(2026, 3, 1, 12, 0, 0),
    )


class TestParseSalePayload:
    """Request body validation shared by create and update."""

    def _payload(self, **overrides):
        payload = {
            "items": [{"item_id": 1, "name": "Widget", "quantity": 2, "price_cents": 500, "total_cents": 1000}],
            "date": "2026-03-01T12:00:00Z",
            "payment_type": "cash",
        }
        payload.update(overrides)
        return payload

    def test_valid_payload(self):
        data = parse_sale_payload(self._payload(customer_id="7"))
        assert data.customer_id == 7
        assert data.payment_type == "cash"
        assert data.date == datetime(2026, 3, 1, 12, 0, 0)
        assert data.lines[0].total_cents == 1000

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="At least one item is required"):
            parse_sale_payload(self._payload(items=[]))

    def test_missing_date_rejected(self):
        with pytest.raises(ValidationError, match="Date is required"):
            parse_sale_payload(self._payload(date=None))

    def test_line_missing_field_rejected(self):
        bad = {"item_id": 1, "name": "Widget", "quantity": 2, "price_cents": 500}
        with pytest.raises(ValidationError, match="Each item must have"):
            parse_sale_payload(self._payload(items=[bad]))

    def test_zero_quantity_rejected(self):
        bad = {"item_id": 1, "name": "Widget", "quantity": 0, "price_cents": 500, "total_cents": 0}
        with pytest.raises(ValidationError, match="quantity must be >= 1"):
            parse_sale_payload(self._payload(items=[bad]))

    def test_unknown_payment_type_rejected(self):
        with pytest.raises(ValidationError, match="payment_type"):
            parse_sale_payload(self._payload(payment_type="cheque"))

    def test_absent_payment_type_is_none(self):
        payload = self._payload()
        del payload["payment_type"]
        assert parse_sale_payload(payload).payment_type is None

    @pytest.mark.parametrize("field", ["item_id", "quantity"])
    def test_out_of_range_integer_rejected(self, field):
        line = {"item_id": 1, "name": "Widget", "quantity": 2, "price_cents": 500, "total_cents": 1000}
        line[field] = 10 ** 20
        with pytest.raises(ValidationError, match=f"{field} is out of range"):
            parse_sale_payload(self._payload(items=[line]))


class TestCreateSale:

    def test_sale_decrements_stock_and_totals(self, db_session, make_item):
        """qty 10 @ 5.00, sell 3 -> qty 7, total 15.00."""
        item = make_item(quantity=10, price_cents=500)

        sale = sales_service.create_sale(_input([line_for(item, 3)]))

        assert sale.id is not None
        assert sale.total_cents == 1500
        assert quantity_of(item.id) == 7

    def test_insufficient_stock_leaves_quantity(self, db_session, make_item):
        """Second sale of 8 against 7 on hand fails and leaves 7."""
        item = make_item(quantity=10, price_cents=500)
        sales_service.create_sale(_input([line_for(item, 3)]))

        with pytest.raises(InsufficientStockError, match="Insufficient stock"):
            sales_service.create_sale(_input([line_for(item, 8)]))

        assert quantity_of(item.id) == 7
        assert db_session.query(Sale).count() == 1

    def test_failure_on_later_line_mutates_nothing(self, db_session, make_item):
        first = make_item(name="First", quantity=10)
        second = make_item(name="Second", quantity=1)

        with pytest.raises(InsufficientStockError):
            sales_service.create_sale(_input([line_for(first, 4), line_for(second, 2)]))

        assert quantity_of(first.id) == 10
        assert quantity_of(second.id) == 1
        assert db_session.query(Sale).count() == 0

    def test_lines_for_same_item_are_checked_together(self, db_session, make_item):
        item = make_item(quantity=5)

        with pytest.raises(InsufficientStockError):
            sales_service.create_sale(_input([line_for(item, 3), line_for(item, 3)]))

        assert quantity_of(item.id) == 5

    def test_price_mismatch(self, db_session, make_item):
        item = make_item(quantity=10, price_cents=500)

        with pytest.raises(PriceMismatchError) as exc:
            sales_service.create_sale(_input([line_for(item, 1, price_cents=450)]))

        assert exc.value.details["expected_price_cents"] == 500
        assert quantity_of(item.id) == 10

    def test_total_mismatch(self, db_session, make_item):
        item = make_item(quantity=10, price_cents=500)

        with pytest.raises(TotalMismatchError):
            sales_service.create_sale(_input([line_for(item, 2, total_cents=999)]))

        assert quantity_of(item.id) == 10

    def test_unknown_item(self, db_session, make_item):
        item = make_item()
        ghost = SaleLineInput(item_id=item.id + 1000, name="Ghost", quantity=1, price_cents=500, total_cents=500)

        with pytest.raises(ReferenceNotFoundError, match="Item not found"):
            sales_service.create_sale(_input([ghost]))

    def test_lines_checked_in_order(self, db_session, make_item):
        short = make_item(name="Short", quantity=1)
        ghost = SaleLineInput(item_id=short.id + 1000, name="Ghost", quantity=1, price_cents=500, total_cents=500)

        with pytest.raises(InsufficientStockError, match="Insufficient stock for Short"):
            sales_service.create_sale(_input([line_for(short, 2), ghost]))

        assert quantity_of(short.id) == 1

    def test_unknown_customer(self, db_session, make_item):
        item = make_item(quantity=10)

        with pytest.raises(ReferenceNotFoundError, match="Customer not found"):
            sales_service.create_sale(_input([line_for(item, 1)], customer_id=4242))

        assert quantity_of(item.id) == 10

    def test_reference_errors_are_sale_and_not_found_errors(self):
        assert issubclass(ReferenceNotFoundError, SaleError)
        assert issubclass(ReferenceNotFoundError, NotFoundError)

    def test_cash_sale_name(self, db_session, make_item):
        item = make_item()
        sale = sales_service.create_sale(_input([line_for(item, 1)]))
        assert sale.customer_id is None
        assert sale.customer_name == CASH_SALE_NAME
        assert sale.is_cash_sale

    def test_customer_name_snapshot(self, db_session, make_item, make_customer):
        item = make_item()
        customer = make_customer(name="Lakeview Cafe")

        sale = sales_service.create_sale(_input([line_for(item, 1)], customer_id=customer.id))
        customer.name = "Renamed Cafe"
        db_session.commit()

        assert sales_service.get_sale(sale.id).customer_name == "Lakeview Cafe"

    def test_line_name_snapshot_taken_from_item(self, db_session, make_item):
        item = make_item(name="Tea 250g")

        sale = sales_service.create_sale(_input([line_for(item, 1, name="typed by client")]))

        assert sale.lines[0].name == "Tea 250g"


class TestUpdateSale:

    def test_update_applies_net_change(self, db_session, make_item):
        item = make_item(quantity=10)
        sale = make_sale_via_service(item, 3)

        updated = sales_service.update_sale(sale.id, _input([line_for(item, 5)]))

        assert updated.total_cents == 5 * item.price_cents
        assert quantity_of(item.id) == 5

    def test_update_can_use_units_freed_by_revert(self, db_session, make_item):
        item = make_item(quantity=4)
        sale = make_sale_via_service(item, 4)
        assert quantity_of(item.id) == 0

        sales_service.update_sale(sale.id, _input([line_for(item, 4)]))

        assert quantity_of(item.id) == 0

    def test_update_moves_stock_between_items(self, db_session, make_item):
        old = make_item(name="Old", quantity=10)
        new = make_item(name="New", quantity=10)
        sale = make_sale_via_service(old, 2)

        sales_service.update_sale(sale.id, _input([line_for(new, 3)]))

        assert quantity_of(old.id) == 10
        assert quantity_of(new.id) == 7
        assert [line.item_id for line in sales_service.get_sale(sale.id).lines] == [new.id]

    def test_failed_update_is_atomic(self, db_session, make_item):
        """Revert and re-apply share one transaction."""
        item = make_item(quantity=10)
        sale = make_sale_via_service(item, 3)

        with pytest.raises(InsufficientStockError):
            sales_service.update_sale(sale.id, _input([line_for(item, 11)]))

        assert quantity_of(item.id) == 7
        reloaded = sales_service.get_sale(sale.id)
        assert reloaded.lines[0].quantity == 3
        assert reloaded.total_cents == 3 * item.price_cents

    def test_update_refreshes_customer_snapshot(self, db_session, make_item, make_customer):
        item = make_item()
        customer = make_customer(name="Asha Traders")
        sale = make_sale_via_service(item, 1)

        updated = sales_service.update_sale(sale.id, _input([line_for(item, 1)], customer_id=customer.id))

        assert updated.customer_id == customer.id
        assert updated.customer_name == "Asha Traders"

    def test_update_unknown_sale(self, db_session, make_item):
        item = make_item()
        with pytest.raises(NotFoundError, match="Sale not found"):
            sales_service.update_sale(999, _input([line_for(item, 1)]))
        assert quantity_of(item.id) == 10

    def test_update_skips_deleted_items_on_revert(self, db_session, make_item):
        gone = make_item(name="Gone", quantity=10)
        kept = make_item(name="Kept", quantity=10)
        sale = make_sale_via_service(gone, 2)
        db_session.delete(gone)
        db_session.commit()

        sales_service.update_sale(sale.id, _input([line_for(kept, 1)]))

        assert quantity_of(kept.id) == 9

    def test_update_bumps_version(self, db_session, make_item):
        item = make_item()
        sale = make_sale_via_service(item, 1)
        before = sale.version_id

        updated = sales_service.update_sale(sale.id, _input([line_for(item, 2)]))

        assert updated.version_id == before + 1


class TestDeleteSale:

    def test_delete_does_not_restore_stock(self, db_session, make_item):
        """Deleting a sale leaves item quantities untouched by default."""
        item = make_item(quantity=10)
        sale = make_sale_via_service(item, 3)
        sale_id = sale.id

        sales_service.delete_sale(sale_id)

        assert quantity_of(item.id) == 7
        assert sale_id not in [s.id for s in sales_service.list_sales()]

    def test_delete_with_restock(self, db_session, make_item):
        item = make_item(quantity=10)
        sale = make_sale_via_service(item, 3)

        sales_service.delete_sale(sale.id, restore_stock=True)

        assert quantity_of(item.id) == 10

    def test_delete_unknown_sale(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.delete_sale(12345)


class TestQueries:

    def test_list_sales_newest_first(self, db_session, make_item):
        item = make_item(quantity=10)
        older = sales_service.create_sale(_input([line_for(item, 1)], date=datetime(2026, 1, 5)))
        newer = sales_service.create_sale(_input([line_for(item, 1)], date=datetime(2026, 2, 5)))

        assert [s.id for s in sales_service.list_sales()] == [newer.id, older.id]

    def test_get_sale_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.get_sale(1)


def make_sale_via_service(item, quantity):
    return sales_service.create_sale(_input([line_for(item, quantity)]))
