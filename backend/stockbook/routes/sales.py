# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/stockbook/routes/sales.py
"""
Sales API routes.

Every write goes through sales_service, which validates and moves stock in
one transaction. SaleError subclasses (stock, price, total, unknown
reference) map to 400 with their details.
"""

from flask import Blueprint, request, current_app

from ..responses import ok, fail
from ..services import sales_service
from ..services.sales_service import SaleError
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/sales")


def _sale_error(e: SaleError, action: str):
    current_app.logger.warning("Rejected sale %s: %s", action, e)
    return fail(str(e), 400, details=e.details)


@sales_bp.post("/create")
@require_auth
def create_sale_route():
    try:
        data = sales_service.parse_sale_payload(request.get_json(silent=True))
        sale = sales_service.create_sale(data)
    except ValidationError as e:
        return fail(str(e), 400)
    except SaleError as e:
        return _sale_error(e, "create")
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return fail("Internal server error", 500)

    current_app.logger.info(
        "Created sale %s total_cents=%s lines=%s", sale.id, sale.total_cents, len(sale.lines)
    )
    return ok(sale.to_dict(), 201)


@sales_bp.put("/update/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    try:
        data = sales_service.parse_sale_payload(request.get_json(silent=True))
        sale = sales_service.update_sale(sale_id, data)
    except ValidationError as e:
        return fail(str(e), 400)
    except SaleError as e:
        return _sale_error(e, f"update {sale_id}")
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return fail("Internal server error", 500)

    current_app.logger.info(
        "Updated sale %s total_cents=%s lines=%s", sale.id, sale.total_cents, len(sale.lines)
    )
    return ok(sale.to_dict())


@sales_bp.get("/getSales")
@require_auth
def list_sales_route():
    try:
        sales = sales_service.list_sales()
    except Exception:
        current_app.logger.exception("Failed to fetch sales")
        return fail("Internal server error", 500)
    return ok([s.to_dict() for s in sales])


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return fail(str(e), 404)
    return ok(sale.to_dict())


@sales_bp.delete("/delete/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    """
    Delete a sale.

    Query params:
    - restock: "true" to put the sale's units back on the shelf (default: no)
    """
    restock = request.args.get("restock", "false").strip().lower() in {"1", "true", "yes"}

    try:
        sales_service.delete_sale(sale_id, restore_stock=restock)
    except NotFoundError as e:
        return fail(str(e), 404)
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return fail("Internal server error", 500)

    current_app.logger.info("Deleted sale %s restock=%s", sale_id, restock)
    return ok({"id": sale_id, "restocked": restock})
