"""
Domain constants for cash custody, notifications, roles and manager prices.

Values mirror the CHECK constraints and seed data in cashdesk/migrations/*.sql.
"""

# --- Table names ---

TABLES = {
    'CASH_CUSTODY': 'cash_custody',
    'CUSTODY': 'custody',
    'NOTIFICATIONS': 'notifications',
    'PROFILES': 'profiles',
    'ROLES': 'roles',
    'WALLETS': 'wallets',
    'MANAGER_PRICES': 'manager_prices',
    'CURRENCY_TYPES': 'currency_types',
    'MIGRATIONS': 'migrations',
}

# Live view over profiles + roles, used by RLS policies instead of
# querying the protected tables from inside their own policies
MANAGER_IDS_VIEW = 'manager_ids'

# Name, email and role of every profile holding a role, readable by all
# authenticated users (profiles itself only shows the caller's own row)
STAFF_PROFILES_VIEW = 'staff_profiles'


# --- cash_custody.status ---

CUSTODY_STATUS = {
    'PENDING': 'pending',
    'APPROVED': 'approved',
    'REJECTED': 'rejected',
    'RETURNED': 'returned',
}

# Statuses a record may be moved to after creation
CUSTODY_STATUS_UPDATES = (
    CUSTODY_STATUS['APPROVED'],
    CUSTODY_STATUS['REJECTED'],
    CUSTODY_STATUS['RETURNED'],
)


# --- notifications.type ---

NOTIFICATION_TYPES = {
    'CUSTODY_REQUEST': 'custody_request',
    'CUSTODY_APPROVAL': 'custody_approval',
    'CUSTODY_REJECTION': 'custody_rejection',
    'CUSTODY_RETURN': 'custody_return',
}

NOTIFICATION_ACTIONS = ('approve', 'reject')


# --- roles.name ---

ROLE_NAMES = {
    'MANAGER': 'manager',
    'TREASURER': 'treasurer',
    'CASHIER': 'cashier',
    'DEALINGS_EXECUTIONER': 'dealings_executioner',
}

DEFAULT_ROLES = [
    {'name': 'manager', 'description': 'Has access to all system features and functionalities'},
    {'name': 'treasurer', 'description': 'Manages cash custody and treasury operations'},
    {'name': 'cashier', 'description': 'Handles currency exchange transactions and cash custody'},
    {'name': 'dealings_executioner', 'description': 'Executes currency dealings and operations'},
]


# --- manager_prices singleton ---

MANAGER_PRICES_ID = 1

# Mixed-case legacy column -> lowercase column
MANAGER_PRICE_FIELD_RENAMES = {
    'sellOld': 'sellold',
    'sellNew': 'sellnew',
    'buyOld': 'buyold',
    'buyNew': 'buynew',
}

DEFAULT_MANAGER_PRICES = {
    'sellold': 5.0,
    'sellnew': 5.2,
    'buyold': 4.8,
    'buynew': 5.0,
}


# --- test data seeding ---

SEED_AMOUNT_MIN = 100
SEED_AMOUNT_MAX = 10000  # exclusive
