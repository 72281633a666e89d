"""
Pytest fixtures for PadelHub backend tests.

Provides test database setup, users with auth headers, and a small venue:
two courts, a few inventory categories and items, and a booking.
"""

from datetime import date

import pytest
from padelhub import create_app
from padelhub.extensions import db
from padelhub.models import Booking, Court, InventoryCategory, InventoryItem
from padelhub.services.auth_service import create_user


ADMIN_PASSWORD = "admin-pass"
STAFF_PASSWORD = "staff-pass"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(email="admin@padelhub.test", name="Admin", password=ADMIN_PASSWORD, role="ADMIN")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return create_user(email="staff@padelhub.test", name="Front Desk", password=STAFF_PASSWORD, role="STAFF")


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email, ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user.email, STAFF_PASSWORD))


@pytest.fixture(scope='function')
def courts(db_session):
    """Court 1 (active, 50.00) and court 2 (inactive, 40.00)."""
    court_1 = Court(name="Center Court", court_number=1, base_price_cents=5000, is_active=True)
    court_2 = Court(name="Court Two", court_number=2, base_price_cents=4000, is_active=False)
    db_session.add_all([court_1, court_2])
    db_session.commit()
    return {"active": court_1, "inactive": court_2}


@pytest.fixture(scope='function')
def categories(db_session):
    drinks = InventoryCategory(name="Drinks", type="BEVERAGE_SNACK")
    rentals = InventoryCategory(name="Rentals", type="EQUIPMENT_RENTAL")
    shop = InventoryCategory(name="Pro Shop", type="PRO_SHOP")
    db_session.add_all([drinks, rentals, shop])
    db_session.commit()
    return {"drinks": drinks, "rentals": rentals, "shop": shop}


@pytest.fixture(scope='function')
def items(db_session, categories):
    """
    water: 10 on hand at 2.00
    racket: rental, 3 on hand at 5.00
    balls: 2 on hand at 12.00 (at its minimum of 5, so low stock)
    """
    water = InventoryItem(
        category_id=categories["drinks"].id,
        sku="WATER-500",
        name="Water 500ml",
        quantity=10,
        cost_price_cents=50,
        sell_price_cents=200,
        min_stock=5,
        is_rental=False,
    )
    racket = InventoryItem(
        category_id=categories["rentals"].id,
        sku="RACKET-RENT",
        name="Racket rental",
        quantity=3,
        cost_price_cents=0,
        sell_price_cents=500,
        min_stock=0,
        is_rental=True,
    )
    balls = InventoryItem(
        category_id=categories["shop"].id,
        sku="BALLS-3",
        name="Balls (3 pack)",
        quantity=2,
        cost_price_cents=600,
        sell_price_cents=1200,
        min_stock=5,
        is_rental=False,
    )
    db_session.add_all([water, racket, balls])
    db_session.commit()
    return {"water": water, "racket": racket, "balls": balls}


@pytest.fixture(scope='function')
def booking(db_session, courts, admin_user):
    """ACTIVE booking on court 1 at 50.00."""
    b = Booking(
        court_number=courts["active"].court_number,
        customer_name="Ana Lopez",
        customer_phone="555-0100",
        date=date(2026, 3, 14),
        start_time="18:00",
        end_time="19:30",
        base_price_cents=5000,
        extra_hours=0,
        extra_hour_price_cents=0,
        status="ACTIVE",
        created_by_user_id=admin_user.id,
    )
    db_session.add(b)
    db_session.commit()
    return b
