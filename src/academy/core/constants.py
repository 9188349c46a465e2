"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Identity
MOBILE_NUMBER_LENGTH = 10
MOBILE_NUMBER_PATTERN = r"^\d{10}$"

# String field lengths
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_ADDRESS_LENGTH = 500
MAX_RECEIPT_NO_LENGTH = 20

# Access codes
MIN_ACCESS_CODE_LENGTH = 4
MAX_ACCESS_CODE_LENGTH = 32

# Student quotas
FREE_STUDENT_LIMIT = 6
UNLIMITED_STUDENT_LIMIT = 99_999

# Requested term sentinel meaning "lifetime"
LIFETIME_TERM = 0
MAX_TERM_MONTHS = 120

# Session persistence
SESSION_KEY = "super_mgmt_user_session"
ADMIN_SESSION_ID = "admin"

# Teacher deep link
JOIN_ACTION = "join"
LINK_PARAM_ACTION = "action"
LINK_PARAM_OWNER = "om"
LINK_PARAM_NAME = "in"
LINK_PARAM_CODE = "tc"

# Remote authority
DEFAULT_REMOTE_TIMEOUT_SECONDS = 8.0
AIRTABLE_REQUEST_MARKER = "Subscription Request Send"
SHEETS_REQUEST_MARKER = "send request"

# Legacy demo data removed on startup
DEMO_ACCOUNT_ID = "9999999999"
DEMO_ACCOUNT_NAME = "Demo Academy"

# Receipts
RECEIPT_PREFIX = "REC"
RECEIPT_SUFFIX_DIGITS = 6
