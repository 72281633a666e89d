"""
Sales summary tests.
"""

from datetime import datetime

import pytest
from sqlalchemy import text

from padelhub.models import InventoryItem, Sale
from padelhub.services import reporting_service, sales_service


def _backdate(db_session, sale, when):
    sale.created_at = when
    db_session.commit()


class TestSalesSummary:

    def test_empty(self, db_session):
        summary = reporting_service.get_sales_summary()
        assert summary["total_revenue_cents"] == 0
        assert summary["total_transactions"] == 0
        assert summary["top_items"] == []

    def test_totals_and_top_items(self, db_session, booking, items):
        sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=2)   # 400
        sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=1)   # 200
        sales_service.add_sale(booking_id=booking.id, item_id=items["balls"].id, quantity=1)   # 1200
        sales_service.add_sale(booking_id=booking.id, item_id=items["racket"].id, quantity=1)  # 500

        summary = reporting_service.get_sales_summary()

        assert summary["total_revenue_cents"] == 2300
        assert summary["total_transactions"] == 4
        assert [(t["sku"], t["quantity"], t["total_cents"]) for t in summary["top_items"]] == [
            ("BALLS-3", 1, 1200),
            ("WATER-500", 3, 600),
            ("RACKET-RENT", 1, 500),
        ]

    def test_date_to_covers_whole_day(self, db_session, booking, items):
        early = sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=1)
        late = sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=2)
        outside = sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=3)

        _backdate(db_session, early, datetime(2026, 5, 1, 0, 0, 0))
        _backdate(db_session, late, datetime(2026, 5, 3, 23, 59, 30))
        _backdate(db_session, outside, datetime(2026, 5, 4, 0, 0, 1))

        summary = reporting_service.get_sales_summary(date_from="2026-05-01", date_to="2026-05-03")
        assert summary["total_transactions"] == 2
        assert summary["total_revenue_cents"] == 600
        assert summary["date_from"] == "2026-05-01"
        assert summary["date_to"] == "2026-05-03"

        only_last_day = reporting_service.get_sales_summary(date_from="2026-05-04")
        assert only_last_day["total_transactions"] == 1

    def test_sale_stamped_at_midnight_counts_for_its_day(self, db_session, booking, items):
        sale = sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=1)
        db_session.execute(
            text("UPDATE sales SET created_at = :ts WHERE id = :id"),
            {"ts": "2026-03-14 00:00:00", "id": sale.id},
        )
        db_session.commit()

        summary = reporting_service.get_sales_summary(date_from="2026-03-14", date_to="2026-03-14")
        assert summary["total_transactions"] == 1
        assert summary["total_revenue_cents"] == 200

        day_before = reporting_service.get_sales_summary(date_from="2026-03-13", date_to="2026-03-13")
        assert day_before["total_transactions"] == 0

    def test_top_items_capped_and_tie_broken_by_name(self, db_session, booking, categories):
        created = []
        for idx, name in enumerate(["Zeta", "Alpha", "Mango", "Kiwi", "Beta", "Omega"]):
            item = InventoryItem(
                category_id=categories["drinks"].id,
                sku=f"SKU-{idx}",
                name=name,
                quantity=5,
                cost_price_cents=100,
                sell_price_cents=300,
            )
            db_session.add(item)
            created.append(item)
        db_session.commit()

        for item in created:
            sales_service.add_sale(booking_id=booking.id, item_id=item.id, quantity=1)

        top = reporting_service.get_sales_summary()["top_items"]
        assert len(top) == reporting_service.TOP_ITEMS_LIMIT
        assert [t["name"] for t in top] == ["Alpha", "Beta", "Kiwi", "Mango", "Omega"]

    def test_removed_sales_drop_out(self, db_session, booking, items):
        sale = sales_service.add_sale(booking_id=booking.id, item_id=items["water"].id, quantity=1)
        sales_service.remove_sale(sale_id=sale.id)

        summary = reporting_service.get_sales_summary()
        assert summary["total_transactions"] == 0
        assert db_session.query(Sale).count() == 0

    def test_bad_range(self, db_session):
        with pytest.raises(reporting_service.ReportError):
            reporting_service.get_sales_summary(date_from="2026-05-05", date_to="2026-05-01")
        with pytest.raises(reporting_service.ReportError):
            reporting_service.get_sales_summary(date_from="not-a-date")
