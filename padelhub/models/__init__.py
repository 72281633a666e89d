from .auth import User, SessionToken, USER_ROLES
from .courts import Court
from .inventory import (
    InventoryCategory,
    InventoryItem,
    StockTransaction,
    CATEGORY_TYPES,
    STOCK_TRANSACTION_TYPES,
)
from .bookings import Booking, BOOKING_STATUSES, TERMINAL_BOOKING_STATUSES
from .sales import Sale

__all__ = [
    'User', 'SessionToken', 'USER_ROLES',
    'Court',
    'InventoryCategory', 'InventoryItem', 'StockTransaction',
    'CATEGORY_TYPES', 'STOCK_TRANSACTION_TYPES',
    'Booking', 'BOOKING_STATUSES', 'TERMINAL_BOOKING_STATUSES',
    'Sale',
]
