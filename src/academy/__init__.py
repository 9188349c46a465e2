"""Super Management - academy accounts, subscriptions and teacher access."""

__version__ = "1.0.0"
