# Overview: Role definitions and the per-operation role sets.
# Each operation is defined as: (code, allowed_roles)
#
# There is no role hierarchy. OWNER is not implicitly ADMIN; every operation
# lists exactly the roles that may perform it.


ROLE_OWNER = "OWNER"
ROLE_ADMIN = "ADMIN"
ROLE_TECHNICIAN = "TECHNICIAN"
ROLE_CUSTOMER = "CUSTOMER"

ALL_ROLES = (ROLE_OWNER, ROLE_ADMIN, ROLE_TECHNICIAN, ROLE_CUSTOMER)

STAFF = frozenset({ROLE_ADMIN, ROLE_OWNER})
OWNER_ONLY = frozenset({ROLE_OWNER})


# -- INVENTORY --

INVENTORY_OPERATIONS = [
    ("MANAGE_PRODUCTS", STAFF),
    ("VIEW_PRODUCT_DETAILS", STAFF),
    ("ADJUST_STOCK", STAFF),
    ("VIEW_PRODUCT_LOGS", OWNER_ONLY),
    ("VOID_PRODUCT_LOG", OWNER_ONLY),
]


# -- SERVICES --

SERVICE_OPERATIONS = [
    ("CREATE_SERVICE", STAFF),
    ("VIEW_SERVICES", STAFF),
    ("UPDATE_SERVICE", STAFF),
    ("DELETE_SERVICE", STAFF),
    ("VIEW_SERVICE_LOGS", OWNER_ONLY),
    ("MANAGE_TECHNICIANS", STAFF),
]


# -- USERS --

USER_OPERATIONS = [
    ("VIEW_USERS", STAFF),
    ("DELETE_USER", STAFF),
    ("RESTORE_USER", OWNER_ONLY),
    ("CHANGE_USER_ROLE", OWNER_ONLY),
]


# -- SYSTEM --

SYSTEM_OPERATIONS = [
    ("VIEW_STORE_SETTING", STAFF),
    ("UPDATE_STORE_SETTING", OWNER_ONLY),
    ("VIEW_DASHBOARD", STAFF),
]


OPERATION_ROLES = dict(
    INVENTORY_OPERATIONS
    + SERVICE_OPERATIONS
    + USER_OPERATIONS
    + SYSTEM_OPERATIONS
)
