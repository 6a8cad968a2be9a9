"""
Core — Constants

Shared constants for audit actions, pagination, and stock defaults.

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
AUDIT_ACTION_STOCK_CHANGE = 'STOCK_CHANGE'

AUDIT_MODULE_INVENTORY = 'Inventory'
AUDIT_MODULE_DISPENSATION = 'Dispensation'
AUDIT_MODULE_REDISTRIBUTION = 'Redistribution'

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Lots created by a redistribution (or received without one) start at this level.
DEFAULT_REORDER_LEVEL = 10

REDISTRIBUTED_LOCATION = 'Redistributed Stock'
REDISTRIBUTED_SUPPLIER = 'Redistributed'

# Lots expiring within this many days raise an expiry alert.
EXPIRY_ALERT_HORIZON_DAYS = 90
