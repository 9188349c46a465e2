"""Admin module - approval decisions, account oversight and deletion."""
