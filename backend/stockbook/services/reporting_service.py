# Overview: Service-layer operations for reporting; read-only aggregation over items and sales.

from __future__ import annotations

from datetime import date, datetime

from flask import current_app

from stockbook.extensions import db
from stockbook.models import InventoryItem, Sale
from stockbook.time_utils import end_of_day, is_date_only, parse_iso_datetime, trailing_months, utcnow, to_utc_z

DEFAULT_LOW_STOCK_THRESHOLD = 10
TOP_SELLERS_LIMIT = 5
MONTHS_IN_OVERVIEW = 6


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
        if end_dt and is_date_only(end):
            end_dt = end_of_day(end_dt)
    except ValueError:
        raise ReportError("startDate and endDate must be ISO-8601 dates")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("startDate must not be after endDate")
    return start_dt, end_dt


def _low_stock_threshold() -> int:
    return int(current_app.config.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD))


def monthly_sales(*, today: date | None = None, months: int = MONTHS_IN_OVERVIEW) -> list[dict]:
    """
    Sales totals per calendar month over the trailing window (current month
    included). Months without sales are present with a zero total.
    """
    today = today or utcnow().date()
    windows = trailing_months(today, months)
    buckets = {key: 0 for key in windows}

    first_year, first_month = windows[0]
    window_start = datetime(first_year, first_month, 1)
    sales = db.session.query(Sale.date, Sale.total_cents).filter(Sale.date >= window_start).all()

    for sale_date, total_cents in sales:
        key = (sale_date.year, sale_date.month)
        if key in buckets:
            buckets[key] += total_cents

    return [
        {
            "month": date(year, month, 1).strftime("%b"),
            "year": year,
            "total_cents": buckets[(year, month)],
        }
        for year, month in windows
    ]


def sales_overview(*, today: date | None = None) -> dict:
    months = monthly_sales(today=today)
    total = sum(m["total_cents"] for m in months)
    best = months[0]
    for m in months[1:]:
        if m["total_cents"] > best["total_cents"]:
            best = m
    return {
        "monthly_sales": months,
        "total_cents": total,
        "average_per_month_cents": total // (len(months) or 1),
        "best_month": best,
        "top_selling_items": top_selling_items(),
    }


def top_selling_items(*, limit: int = TOP_SELLERS_LIMIT) -> list[dict]:
    """
    Aggregate line totals by item across all sales, highest first.

    Ties keep encounter order (sales by id, lines by position).
    """
    aggregates: dict[int, dict] = {}
    for sale in db.session.query(Sale).order_by(Sale.id.asc()).all():
        for line in sale.lines:
            entry = aggregates.get(line.item_id)
            if entry is None:
                entry = aggregates[line.item_id] = {
                    "item_id": line.item_id,
                    "name": line.name,
                    "quantity": 0,
                    "total_cents": 0,
                }
            entry["quantity"] += line.quantity
            entry["total_cents"] += line.total_cents

    ranked = sorted(aggregates.values(), key=lambda e: e["total_cents"], reverse=True)
    return ranked[:limit]


def inventory_valuation() -> dict:
    threshold = _low_stock_threshold()
    items = db.session.query(InventoryItem).order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()

    rows = []
    total_value_cents = 0
    total_units = 0
    low_stock = 0
    for item in items:
        value = item.quantity * item.price_cents
        total_value_cents += value
        total_units += item.quantity
        if item.quantity < threshold:
            low_stock += 1
        rows.append({
            "item_id": item.id,
            "name": item.name,
            "quantity": item.quantity,
            "price_cents": item.price_cents,
            "value_cents": value,
        })

    return {
        "items": rows,
        "total_value_cents": total_value_cents,
        "total_units": total_units,
        "low_stock_threshold": threshold,
        "low_stock_count": low_stock,
    }


def low_stock_items() -> list[InventoryItem]:
    threshold = _low_stock_threshold()
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.quantity < threshold)
        .order_by(InventoryItem.quantity.asc(), InventoryItem.name.asc())
        .all()
    )


def sales_report(*, start: str | None, end: str | None) -> dict:
    """Sales whose transaction date lies in the inclusive [start, end] range."""
    start_dt, end_dt = _parse_range(start, end)

    query = db.session.query(Sale)
    if start_dt:
        query = query.filter(Sale.date >= start_dt)
    if end_dt:
        query = query.filter(Sale.date <= end_dt)

    sales = query.order_by(Sale.date.asc(), Sale.id.asc()).all()
    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "count": len(sales),
        "total_cents": sum(s.total_cents for s in sales),
        "sales": [s.to_dict() for s in sales],
    }
