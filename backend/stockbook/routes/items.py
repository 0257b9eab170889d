# Overview: Flask API routes for inventory items; parses input and returns JSON responses.

# backend/stockbook/routes/items.py
"""
Inventory item routes.

SECURITY: All routes require authentication.
Stock levels can be edited here directly; sales move them through
sales_service instead.
"""
from flask import Blueprint, request, current_app

from ..models import InventoryItem
from ..responses import ok, fail
from ..services import items_service
from ..services.concurrency import StoreError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "quantity", "price_cents"},
    required_on_create={"name", "quantity", "price_cents"},
)

items_bp = Blueprint("items", __name__, url_prefix="/item")


@items_bp.get("/getItems")
@require_auth
def list_items_route():
    try:
        items = items_service.list_items()
    except StoreError:
        current_app.logger.exception("Failed to fetch items")
        return fail("Internal server error", 500)
    return ok([item.to_dict() for item in items])


@items_bp.get("/search")
@require_auth
def search_items_route():
    """Case-insensitive match on name or description; empty query lists everything."""
    query = request.args.get("query", "")
    try:
        items = items_service.search_items(query)
    except StoreError:
        current_app.logger.exception("Failed to search items")
        return fail("Internal server error", 500)
    return ok([item.to_dict() for item in items])


@items_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    try:
        item = items_service.get_item(item_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(item.to_dict())


@items_bp.post("/addItem")
@require_auth
def create_item_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=False)
        enforce_rules_item(patch)
    except ValidationError as e:
        return fail(str(e), 400)

    try:
        item = items_service.create_item(patch)
    except StoreError:
        current_app.logger.exception("Failed to create item")
        return fail("Internal server error", 500)

    current_app.logger.info("Created item %s (%s) qty=%s", item.id, item.name, item.quantity)
    return ok(item.to_dict(), 201)


@items_bp.put("/update/<int:item_id>")
@require_auth
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_POLICY, partial=True)
        enforce_rules_item(patch)
    except ValidationError as e:
        return fail(str(e), 400)

    try:
        item = items_service.update_item(item_id, patch)
    except NotFoundError as e:
        return fail(str(e), 404)
    except StoreError:
        current_app.logger.exception("Failed to update item")
        return fail("Internal server error", 500)

    return ok(item.to_dict())


@items_bp.delete("/delete/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    try:
        items_service.delete_item(item_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except StoreError:
        current_app.logger.exception("Failed to delete item")
        return fail("Internal server error", 500)

    current_app.logger.info("Deleted item %s", item_id)
    return ok({"id": item_id})
