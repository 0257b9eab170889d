"""
Sale Ledger Engine - sale transactions that move inventory in lockstep

WHY: A sale touches several item rows plus the sale row. Every public
operation here is one database transaction (run_with_retry boundary):
validate everything first, then mutate stock with conditional UPDATEs, then
write the sale. A failure anywhere rolls the whole unit back, so callers
never observe partially applied stock.

STOCK GUARD: the read-side checks give precise error messages, but the
authoritative guard is the conditional decrement
    UPDATE items SET quantity = quantity - n WHERE id = ? AND quantity >= n
which cannot oversell even when two requests passed the read-side check on
the same stale quantity.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update

from ..extensions import db
from ..models import Sale, SaleLine, InventoryItem, CASH_SALE_NAME, PAYMENT_TYPES
from ..validation import NotFoundError, ValidationError, coerce_int, coerce_datetime
from stockbook.time_utils import to_utc_naive
from .concurrency import begin_write, lock_for_update, run_with_retry
from .customer_service import find_customer

_items = InventoryItem.__table__

LINE_FIELDS_MESSAGE = "Each item must have item_id, quantity, price_cents, name, and total_cents"


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientStockError(SaleError):
    """A line asks for more units than the item has on hand."""


class PriceMismatchError(SaleError):
    """A line's unit price differs from the item's current price."""


class TotalMismatchError(SaleError):
    """A line's total is not quantity x price."""


class ReferenceNotFoundError(SaleError, NotFoundError):
    """An item or customer referenced by the sale payload does not exist."""


@dataclass(frozen=True)
class SaleLineInput:
    item_id: int
    name: str
    quantity: int
    price_cents: int
    total_cents: int


@dataclass(frozen=True)
class SaleInput:
    lines: list[SaleLineInput]
    customer_id: int | None
    payment_type: str | None
    date: datetime


def _parse_line(raw: Any) -> SaleLineInput:
    if not isinstance(raw, dict):
        raise ValidationError(LINE_FIELDS_MESSAGE)

    required = ("item_id", "quantity", "price_cents", "name", "total_cents")
    if any(raw.get(k) is None for k in required):
        raise ValidationError(LINE_FIELDS_MESSAGE)

    name = raw["name"]
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(LINE_FIELDS_MESSAGE)

    line = SaleLineInput(
        item_id=coerce_int("item_id", raw["item_id"]),
        name=name.strip(),
        quantity=coerce_int("quantity", raw["quantity"]),
        price_cents=coerce_int("price_cents", raw["price_cents"]),
        total_cents=coerce_int("total_cents", raw["total_cents"]),
    )
    if line.quantity < 1:
        raise ValidationError("quantity must be >= 1")
    if line.price_cents < 0:
        raise ValidationError("price_cents must be >= 0")
    return line


def parse_sale_payload(payload: dict | None) -> SaleInput:
    """Validate the request body shared by create and update."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")

    raw_date = payload.get("date")
    if raw_date in (None, ""):
        raise ValidationError("Date is required")

    lines = [_parse_line(raw) for raw in raw_items]

    customer_id = payload.get("customer_id")
    if customer_id in (None, ""):
        customer_id = None
    else:
        customer_id = coerce_int("customer_id", customer_id)

    payment_type = payload.get("payment_type")
    if payment_type in (None, ""):
        payment_type = None
    elif payment_type not in PAYMENT_TYPES:
        raise ValidationError(f"payment_type must be one of: {', '.join(PAYMENT_TYPES)}")

    return SaleInput(
        lines=lines,
        customer_id=customer_id,
        payment_type=payment_type,
        date=to_utc_naive(coerce_datetime("date", raw_date)),
    )


def _quantities_by_item(lines) -> dict[int, int]:
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.item_id] = totals.get(line.item_id, 0) + line.quantity
    return totals


def _load_items(lines: list[SaleLineInput]) -> dict[int, InventoryItem]:
    """Lock the items the lines reference. Missing ids are left out."""
    ids = {line.item_id for line in lines}
    query = db.session.query(InventoryItem).filter(InventoryItem.id.in_(ids)).populate_existing()
    return {item.id: item for item in lock_for_update(query).all()}


def _item_for(line: SaleLineInput, items: dict[int, InventoryItem]) -> InventoryItem:
    item = items.get(line.item_id)
    if item is None:
        raise ReferenceNotFoundError(
            f"Item not found: {line.item_id}",
            details={"item_id": line.item_id},
        )
    return item


def _on_hand(item_ids) -> dict[int, int]:
    rows = db.session.execute(
        select(_items.c.id, _items.c.quantity).where(_items.c.id.in_(set(item_ids)))
    ).all()
    return {row.id: row.quantity for row in rows}


def _ensure_available(item_id: int, name: str, requested: int, on_hand: int) -> None:
    if on_hand < requested:
        raise InsufficientStockError(
            f"Insufficient stock for {name}",
            details={"item_id": item_id, "requested_quantity": requested, "on_hand": on_hand},
        )


def _check_pricing(line: SaleLineInput, item: InventoryItem) -> None:
    if item.price_cents != line.price_cents:
        raise PriceMismatchError(
            f"Price mismatch for {line.name}",
            details={"item_id": item.id, "expected_price_cents": item.price_cents, "price_cents": line.price_cents},
        )
    if line.total_cents != line.quantity * line.price_cents:
        raise TotalMismatchError(
            f"Total mismatch for {line.name}",
            details={"item_id": item.id, "expected_total_cents": line.quantity * line.price_cents, "total_cents": line.total_cents},
        )


def _check_aggregate_stock(lines: list[SaleLineInput], on_hand: dict[int, int], names: dict[int, str]) -> None:
    # Several lines may draw on the same item
    for item_id, requested in _quantities_by_item(lines).items():
        _ensure_available(item_id, names[item_id], requested, on_hand.get(item_id, 0))


def _resolve_customer_name(customer_id: int | None) -> str:
    if customer_id is None:
        return CASH_SALE_NAME
    customer = find_customer(customer_id)
    if customer is None:
        raise ReferenceNotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer.name


def _decrement_stock(item_id: int, quantity: int, name: str) -> None:
    result = db.session.execute(
        update(_items)
        .where(_items.c.id == item_id, _items.c.quantity >= quantity)
        .values(quantity=_items.c.quantity - quantity, updated_at=func.now())
    )
    if result.rowcount != 1:
        raise InsufficientStockError(
            f"Insufficient stock for {name}",
            details={"item_id": item_id, "requested_quantity": quantity},
        )


def _restore_stock(item_id: int, quantity: int) -> bool:
    """Add units back; returns False when the item no longer exists."""
    result = db.session.execute(
        update(_items)
        .where(_items.c.id == item_id)
        .values(quantity=_items.c.quantity + quantity, updated_at=func.now())
    )
    return result.rowcount == 1


def _apply_decrements(lines: list[SaleLineInput], names: dict[int, str]) -> None:
    for item_id, quantity in _quantities_by_item(lines).items():
        _decrement_stock(item_id, quantity, names[item_id])


def _build_lines(lines: list[SaleLineInput], items: dict[int, InventoryItem]) -> list[SaleLine]:
    return [
        SaleLine(
            position=i,
            item_id=line.item_id,
            # Snapshot from the item record; never resynced afterwards
            name=items[line.item_id].name,
            quantity=line.quantity,
            price_cents=line.price_cents,
            total_cents=line.total_cents,
        )
        for i, line in enumerate(lines)
    ]


def create_sale(data: SaleInput) -> Sale:
    """
    Validate every line against live inventory, then decrement stock and
    persist the sale, all in one transaction.
    """
    def _op():
        begin_write()
        items = _load_items(data.lines)

        # Lines are checked in order; the first failing line decides the error
        for line in data.lines:
            item = _item_for(line, items)
            _ensure_available(item.id, line.name, line.quantity, item.quantity)
            _check_pricing(line, item)

        names = {item_id: item.name for item_id, item in items.items()}
        _check_aggregate_stock(data.lines, {i: it.quantity for i, it in items.items()}, names)

        customer_name = _resolve_customer_name(data.customer_id)

        # Nothing is written before this point
        _apply_decrements(data.lines, names)

        sale = Sale(
            customer_id=data.customer_id,
            customer_name=customer_name,
            total_cents=sum(line.total_cents for line in data.lines),
            payment_type=data.payment_type,
            date=data.date,
        )
        sale.lines = _build_lines(data.lines, items)
        db.session.add(sale)
        db.session.commit()
        return sale

    return run_with_retry(_op, context="Failed to create sale")


def update_sale(sale_id: int, data: SaleInput) -> Sale:
    """
    Replace a sale's lines: revert the original stock impact, re-check the new
    lines against the restored quantities, apply them.

    The revert and the re-apply share one transaction; if anything fails
    after the revert, the revert is rolled back with it.
    """
    def _op():
        begin_write()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).populate_existing().first()
        if not sale:
            raise NotFoundError("Sale not found")

        items = _load_items(data.lines)
        for line in data.lines:
            _check_pricing(line, _item_for(line, items))

        customer_name = _resolve_customer_name(data.customer_id)

        for old in sale.lines:
            _restore_stock(old.item_id, old.quantity)

        on_hand = _on_hand(items.keys())
        names = {item_id: item.name for item_id, item in items.items()}
        for line in data.lines:
            _ensure_available(line.item_id, line.name, line.quantity, on_hand.get(line.item_id, 0))
        _check_aggregate_stock(data.lines, on_hand, names)

        _apply_decrements(data.lines, names)

        sale.lines = _build_lines(data.lines, items)
        sale.customer_id = data.customer_id
        sale.customer_name = customer_name
        sale.total_cents = sum(line.total_cents for line in data.lines)
        sale.payment_type = data.payment_type
        sale.date = data.date

        db.session.commit()
        return sale

    return run_with_retry(_op, context="Failed to update sale")


def delete_sale(sale_id: int, *, restore_stock: bool = False) -> None:
    """
    Delete a sale record.

    By default inventory is left untouched (a deleted sale does not put units
    back on the shelf). restore_stock=True adds each line's quantity back to
    items that still exist, in the same transaction.
    """
    def _op():
        begin_write()
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).populate_existing().first()
        if not sale:
            raise NotFoundError("Sale not found")

        if restore_stock:
            for line in sale.lines:
                _restore_stock(line.item_id, line.quantity)

        db.session.delete(sale)
        db.session.commit()

    run_with_retry(_op, context="Failed to delete sale")


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.date.desc(), Sale.id.desc()).all()


def list_customer_sales(customer_id: int) -> list[Sale]:
    """A customer's sales in chronological order (ties by id)."""
    return (
        db.session.query(Sale)
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.date.asc(), Sale.id.asc())
        .all()
    )
