# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Sale, InventoryItem
from ..time_utils import date_range
from .sales_service import apply_day_window

TOP_ITEMS_LIMIT = 5


class ReportError(Exception):
    """Raised when report parameters are unusable."""
    pass


def _parse_range(date_from, date_to):
    try:
        start_day, end_day = date_range(date_from, date_to)
    except ValueError:
        raise ReportError("date_from/date_to must be YYYY-MM-DD")
    if start_day and end_day and start_day > end_day:
        raise ReportError("date_from must be on or before date_to")
    return start_day, end_day


def get_sales_summary(date_from=None, date_to=None) -> dict:
    """
    Revenue, sale count and best sellers over an inclusive calendar range.

    date_from / date_to are dates or "YYYY-MM-DD" strings; either may be
    omitted. date_to covers its whole day. Best sellers are ranked by
    summed total, then item name, then item id.
    """
    start_day, end_day = _parse_range(date_from, date_to)

    totals_query = apply_day_window(
        db.session.query(
            func.coalesce(func.sum(Sale.total_cents), 0).label("revenue"),
            func.count(Sale.id).label("transactions"),
        ),
        start_day,
        end_day,
    )
    revenue, transactions = totals_query.one()

    item_total = func.sum(Sale.total_cents).label("total_cents")
    top_query = apply_day_window(
        db.session.query(
            InventoryItem.id,
            InventoryItem.name,
            InventoryItem.sku,
            func.sum(Sale.quantity).label("quantity"),
            item_total,
        ).join(InventoryItem, InventoryItem.id == Sale.inventory_item_id),
        start_day,
        end_day,
    )
    top_rows = (
        top_query.group_by(InventoryItem.id, InventoryItem.name, InventoryItem.sku)
        .order_by(item_total.desc(), InventoryItem.name.asc(), InventoryItem.id.asc())
        .limit(TOP_ITEMS_LIMIT)
        .all()
    )

    return {
        "date_from": start_day.isoformat() if start_day else None,
        "date_to": end_day.isoformat() if end_day else None,
        "total_revenue_cents": int(revenue or 0),
        "total_transactions": int(transactions or 0),
        "top_items": [
            {
                "inventory_item_id": row.id,
                "name": row.name,
                "sku": row.sku,
                "quantity": int(row.quantity or 0),
                "total_cents": int(row.total_cents or 0),
            }
            for row in top_rows
        ],
    }
