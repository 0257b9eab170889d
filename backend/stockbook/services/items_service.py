# Overview: Service-layer operations for inventory items; encapsulates business logic and database work.

# backend/stockbook/services/items_service.py
"""
Item Store

Single-collection CRUD over InventoryItem plus text search. Stock levels
are also moved by sales_service, which never goes through update_item.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import InventoryItem
from ..validation import NotFoundError
from .concurrency import StoreError, commit_or_raise

ITEM_MUTABLE_FIELDS = {"name", "description", "quantity", "price_cents"}


def apply_item_patch(item: InventoryItem, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ITEM_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError(f"Item not found: {item_id}")
    return item


def list_items() -> list[InventoryItem]:
    try:
        return db.session.query(InventoryItem).order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to fetch items: {exc}") from exc


def create_item(patch: dict) -> InventoryItem:
    """Create an item from an already validated patch (see enforce_rules_item)."""
    item = InventoryItem()
    apply_item_patch(item, patch)
    db.session.add(item)
    commit_or_raise("Failed to create item")
    return item


def update_item(item_id: int, patch: dict) -> InventoryItem:
    item = get_item(item_id)
    apply_item_patch(item, patch)
    commit_or_raise("Failed to update item")
    return item


def delete_item(item_id: int) -> None:
    """
    Delete unconditionally.

    Sales that reference the item keep their name/price snapshot.
    """
    item = get_item(item_id)
    db.session.delete(item)
    commit_or_raise("Failed to delete item")


def search_items(query: str | None) -> list[InventoryItem]:
    """Case-insensitive substring match over name and description."""
    q = (query or "").strip()
    base = db.session.query(InventoryItem)
    if q:
        base = base.filter(
            or_(
                InventoryItem.name.icontains(q, autoescape=True),
                InventoryItem.description.icontains(q, autoescape=True),
            )
        )
    try:
        return base.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to search items: {exc}") from exc
