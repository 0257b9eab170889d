# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Customer
from ..validation import NotFoundError, ADDRESS_FIELDS
from .concurrency import StoreError, commit_or_raise

CUSTOMER_MUTABLE_FIELDS = {"name", "mobile_number", *ADDRESS_FIELDS}


def apply_customer_patch(customer: Customer, patch: dict) -> None:
    for k, v in patch.items():
        if k not in CUSTOMER_MUTABLE_FIELDS:
            continue
        setattr(customer, k, v)


def find_customer(customer_id: int | None) -> Customer | None:
    if customer_id is None:
        return None
    return db.session.get(Customer, customer_id)


def get_customer(customer_id: int) -> Customer:
    customer = find_customer(customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


def list_customers() -> list[Customer]:
    try:
        return db.session.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to fetch customers: {exc}") from exc


def create_customer(patch: dict) -> Customer:
    customer = Customer(street="", city="", state="", postal_code="")
    apply_customer_patch(customer, patch)
    db.session.add(customer)
    commit_or_raise("Failed to create customer")
    return customer


def update_customer(customer_id: int, patch: dict) -> Customer:
    customer = get_customer(customer_id)
    apply_customer_patch(customer, patch)
    commit_or_raise("Failed to update customer")
    return customer


def delete_customer(customer_id: int) -> None:
    """Delete without touching sales; their customer_name snapshot survives."""
    customer = get_customer(customer_id)
    db.session.delete(customer)
    commit_or_raise("Failed to delete customer")
