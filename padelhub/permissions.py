"""
Permission System Constants and Definitions

Roles are a flat ADMIN/STAFF flag on User; this module maps each role to
the permission codes that the route decorators check.

- ADMIN has every permission.
- STAFF runs the front desk: bookings, sales, stock movements and
  reports, but no user, court or category administration and no item
  deletion.
"""

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for organization."""
    BOOKINGS = "BOOKINGS"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    COURTS = "COURTS"
    USERS = "USERS"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    # BOOKING PERMISSIONS
    (
        "VIEW_BOOKINGS",
        "View Bookings",
        "List bookings and see their charges",
        PermissionCategory.BOOKINGS
    ),
    (
        "MANAGE_BOOKINGS",
        "Manage Bookings",
        "Create, edit, complete, cancel and delete bookings; add extra hours",
        PermissionCategory.BOOKINGS
    ),

    # INVENTORY PERMISSIONS
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View items, categories, quantities and stock transactions",
        PermissionCategory.INVENTORY
    ),
    (
        "MANAGE_ITEMS",
        "Manage Items",
        "Create and edit inventory items",
        PermissionCategory.INVENTORY
    ),
    (
        "DELETE_ITEMS",
        "Delete Items",
        "Delete inventory items",
        PermissionCategory.INVENTORY
    ),
    (
        "MANAGE_CATEGORIES",
        "Manage Categories",
        "Create, edit and delete inventory categories",
        PermissionCategory.INVENTORY
    ),
    (
        "ADJUST_STOCK",
        "Adjust Stock",
        "Record IN, OUT and ADJUSTMENT stock transactions",
        PermissionCategory.INVENTORY
    ),

    # SALES PERMISSIONS
    (
        "CREATE_SALE",
        "Create Sale",
        "Charge items to a booking and remove charged items",
        PermissionCategory.SALES
    ),
    (
        "VIEW_SALES_REPORTS",
        "View Sales Reports",
        "Access sales history and the sales summary",
        PermissionCategory.SALES
    ),

    # COURT PERMISSIONS
    (
        "VIEW_COURTS",
        "View Courts",
        "List courts",
        PermissionCategory.COURTS
    ),
    (
        "MANAGE_COURTS",
        "Manage Courts",
        "Create, edit, activate, deactivate and delete courts",
        PermissionCategory.COURTS
    ),

    # USER MANAGEMENT PERMISSIONS
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and delete user accounts",
        PermissionCategory.USERS
    ),
]


# =============================================================================
# DEFAULT ROLE PERMISSION MAPPINGS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    "ADMIN": [perm[0] for perm in PERMISSION_DEFINITIONS],

    "STAFF": [
        "VIEW_BOOKINGS",
        "MANAGE_BOOKINGS",
        "VIEW_INVENTORY",
        "MANAGE_ITEMS",
        "ADJUST_STOCK",
        "CREATE_SALE",
        "VIEW_SALES_REPORTS",
        "VIEW_COURTS",
    ],
}


# =============================================================================
# PERMISSION HELPERS
# =============================================================================

def get_all_permission_codes():
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_role_permissions(role):
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def role_has_permission(role, code):
    return code in get_role_permissions(role)


def validate_permission_code(code):
    return code in get_all_permission_codes()
