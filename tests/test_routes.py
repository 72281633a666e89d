"""
Route tests: request validation and status-code mapping.
"""

from padelhub.models import InventoryItem


class TestSystemAndAuth:

    def test_health(self, client, admin_user):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["users"] == 1

    def test_health_degraded_without_admin(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"

    def test_login_bad_credentials(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": staff_user.email, "password": "nope-nope"})
        assert resp.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400


class TestAdminUsers:

    def test_create_user_requires_password(self, client, admin_headers):
        resp = client.post(
            "/api/admin/users",
            json={"email": "coach@padelhub.test", "name": "Coach"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_create_user_validates_email(self, client, admin_headers):
        resp = client.post(
            "/api/admin/users",
            json={"email": "not-an-email", "name": "Coach", "password": "secret1"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_duplicate_email(self, client, admin_headers, admin_user):
        resp = client.post(
            "/api/admin/users",
            json={"email": admin_user.email, "name": "Again", "password": "secret1"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_cannot_delete_self(self, client, admin_headers, admin_user):
        resp = client.delete(f"/api/admin/users/{admin_user.id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_unknown_user(self, client, admin_headers):
        assert client.get("/api/admin/users/999", headers=admin_headers).status_code == 404


class TestInventoryRoutes:

    def test_create_item(self, client, admin_headers, categories):
        resp = client.post(
            "/api/inventory/items",
            json={
                "name": "Grip tape",
                "sku": "GRIP-01",
                "category_id": categories["shop"].id,
                "quantity": 12,
                "cost_price_cents": 150,
                "sell_price_cents": "400",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["quantity"] == 12
        assert resp.json["sell_price_cents"] == 400
        assert resp.json["category"]["name"] == "Pro Shop"

    def test_create_item_rejects_decimal_price(self, client, admin_headers, categories):
        resp = client.post(
            "/api/inventory/items",
            json={
                "name": "Grip tape",
                "sku": "GRIP-01",
                "category_id": categories["shop"].id,
                "cost_price_cents": 1.5,
                "sell_price_cents": 400,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_update_rejects_quantity(self, client, admin_headers, items):
        resp = client.put(
            f"/api/inventory/items/{items['water'].id}",
            json={"quantity": 50},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_adjust_out_below_zero(self, client, admin_headers, items):
        resp = client.post(
            f"/api/inventory/items/{items['balls'].id}/adjust",
            json={"type": "OUT", "quantity": 3},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "Cannot reduce stock below 0"

    def test_adjust_zero_quantity_in(self, client, admin_headers, items):
        resp = client.post(
            f"/api/inventory/items/{items['water'].id}/adjust",
            json={"type": "IN", "quantity": 0},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_adjust_then_history(self, client, admin_headers, items):
        resp = client.post(
            f"/api/inventory/items/{items['water'].id}/adjust",
            json={"type": "ADJUSTMENT", "quantity": 0, "notes": "Stock count"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["item"]["quantity"] == 0

        history = client.get(f"/api/inventory/items/{items['water'].id}/transactions", headers=admin_headers)
        assert history.json["count"] == 1
        assert history.json["items"][0]["notes"] == "Stock count"

    def test_delete_category_with_items(self, client, admin_headers, items, categories):
        resp = client.delete(f"/api/inventory/categories/{categories['drinks'].id}", headers=admin_headers)
        assert resp.status_code == 409

    def test_low_stock(self, client, admin_headers, items):
        resp = client.get("/api/inventory/low-stock", headers=admin_headers)
        assert resp.status_code == 200
        assert [i["sku"] for i in resp.json["items"]] == ["BALLS-3"]


class TestBookingRoutes:

    def test_create_booking(self, client, staff_headers, courts):
        resp = client.post(
            "/api/bookings",
            json={
                "court_number": 1,
                "customer_name": "Luis",
                "date": "2026-06-01",
                "start_time": "19:00",
                "end_time": "20:30",
            },
            headers=staff_headers,
        )
        assert resp.status_code == 201
        booking = resp.json["booking"]
        assert booking["base_price_cents"] == 5000
        assert booking["totals"]["total_cents"] == 5000
        assert booking["status"] == "ACTIVE"

    def test_create_booking_validation(self, client, staff_headers, courts):
        resp = client.post(
            "/api/bookings",
            json={
                "court_number": 1,
                "customer_name": "L",
                "date": "2026-06-01",
                "start_time": "19:00",
                "end_time": "20:30",
            },
            headers=staff_headers,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/api/bookings",
            json={
                "court_number": 1,
                "customer_name": "Luis",
                "date": "2026-06-01",
                "start_time": "7pm",
                "end_time": "20:30",
            },
            headers=staff_headers,
        )
        assert resp.status_code == 400

    def test_create_booking_inactive_court(self, client, staff_headers, courts):
        resp = client.post(
            "/api/bookings",
            json={
                "court_number": 2,
                "customer_name": "Luis",
                "date": "2026-06-01",
                "start_time": "19:00",
                "end_time": "20:30",
            },
            headers=staff_headers,
        )
        assert resp.status_code == 409

    def test_full_flow(self, client, staff_headers, booking, items):
        extra = client.post(
            f"/api/bookings/{booking.id}/extra-hours",
            json={"hours": 1.5, "price_per_hour_cents": 3000},
            headers=staff_headers,
        )
        assert extra.status_code == 200

        sale = client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["balls"].id, "quantity": 1},
            headers=staff_headers,
        )
        assert sale.status_code == 201

        detail = client.get(f"/api/bookings/{booking.id}", headers=staff_headers)
        assert detail.status_code == 200
        assert detail.json["booking"]["totals"]["total_cents"] == 10700
        assert len(detail.json["booking"]["sales"]) == 1

        done = client.post(f"/api/bookings/{booking.id}/status", json={"status": "COMPLETED"}, headers=staff_headers)
        assert done.status_code == 200

        reopen = client.post(f"/api/bookings/{booking.id}/status", json={"status": "ACTIVE"}, headers=staff_headers)
        assert reopen.status_code == 409

        late_sale = client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["water"].id, "quantity": 1},
            headers=staff_headers,
        )
        assert late_sale.status_code == 409

    def test_extra_hours_validation(self, client, staff_headers, booking):
        resp = client.post(f"/api/bookings/{booking.id}/extra-hours", json={"hours": 0}, headers=staff_headers)
        assert resp.status_code == 400
        resp = client.post("/api/bookings/999/extra-hours", json={"hours": 1}, headers=staff_headers)
        assert resp.status_code == 404

    def test_insufficient_stock(self, client, staff_headers, booking, items):
        resp = client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["balls"].id, "quantity": 5},
            headers=staff_headers,
        )
        assert resp.status_code == 409
        assert resp.json["details"]["on_hand"] == 2

    def test_sale_quantity_must_be_positive(self, client, staff_headers, booking, items):
        resp = client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["water"].id, "quantity": 0},
            headers=staff_headers,
        )
        assert resp.status_code == 400

    def test_remove_sale_restores_stock(self, client, staff_headers, booking, items, db_session):
        sale = client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["water"].id, "quantity": 4},
            headers=staff_headers,
        )
        sale_id = sale.json["sale"]["id"]

        resp = client.delete(f"/api/bookings/{booking.id}/sales/{sale_id}", headers=staff_headers)
        assert resp.status_code == 200
        assert db_session.get(InventoryItem, items["water"].id).quantity == 10

        again = client.delete(f"/api/bookings/{booking.id}/sales/{sale_id}", headers=staff_headers)
        assert again.status_code == 404

    def test_list_rejects_bad_status(self, client, staff_headers):
        assert client.get("/api/bookings?status=PAID", headers=staff_headers).status_code == 400


class TestSalesAndReports:

    def test_history_and_summary(self, client, staff_headers, booking, items):
        client.post(
            f"/api/bookings/{booking.id}/sales",
            json={"inventory_item_id": items["water"].id, "quantity": 2},
            headers=staff_headers,
        )

        history = client.get("/api/sales", headers=staff_headers)
        assert history.status_code == 200
        assert history.json["count"] == 1
        assert history.json["sales"][0]["customer_name"] == "Ana Lopez"

        summary = client.get("/api/reports/sales-summary", headers=staff_headers)
        assert summary.status_code == 200
        assert summary.json["total_revenue_cents"] == 400
        assert summary.json["top_items"][0]["sku"] == "WATER-500"

    def test_summary_bad_dates(self, client, staff_headers):
        resp = client.get("/api/reports/sales-summary?date_from=2026-13-01", headers=staff_headers)
        assert resp.status_code == 400
