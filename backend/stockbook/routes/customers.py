# Overview: Flask API routes for customers; parses input and returns JSON responses.

# backend/stockbook/routes/customers.py
"""
Customer routes.

Payloads carry the address as a nested object; it is flattened onto the
customer columns before validation.
"""
from flask import Blueprint, request, current_app

from ..models import Customer
from ..responses import ok, fail
from ..services import customer_service
from ..services.concurrency import StoreError
from ..validation import (
    ADDRESS_FIELDS,
    ModelValidationPolicy,
    validate_payload,
    flatten_customer_payload,
    enforce_rules_customer,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "mobile_number", *ADDRESS_FIELDS},
    required_on_create={"name", "mobile_number"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/customer")


def _validated_patch(partial: bool) -> dict:
    payload = flatten_customer_payload(request.get_json(silent=True) or {})
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)
    enforce_rules_customer(patch)
    return patch


@customers_bp.get("/getCustomers")
@require_auth
def list_customers_route():
    try:
        customers = customer_service.list_customers()
    except StoreError:
        current_app.logger.exception("Failed to fetch customers")
        return fail("Internal server error", 500)
    return ok([c.to_dict() for c in customers])


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(customer.to_dict())


@customers_bp.post("/create")
@require_auth
def create_customer_route():
    try:
        patch = _validated_patch(partial=False)
    except ValidationError as e:
        return fail(str(e), 400)

    try:
        customer = customer_service.create_customer(patch)
    except StoreError:
        current_app.logger.exception("Failed to create customer")
        return fail("Internal server error", 500)

    return ok(customer.to_dict(), 201)


@customers_bp.put("/update/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    try:
        patch = _validated_patch(partial=True)
    except ValidationError as e:
        return fail(str(e), 400)

    try:
        customer = customer_service.update_customer(customer_id, patch)
    except NotFoundError as e:
        return fail(str(e), 404)
    except StoreError:
        current_app.logger.exception("Failed to update customer")
        return fail("Internal server error", 500)

    return ok(customer.to_dict())


@customers_bp.delete("/delete/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    except StoreError:
        current_app.logger.exception("Failed to delete customer")
        return fail("Internal server error", 500)

    return ok({"id": customer_id})
