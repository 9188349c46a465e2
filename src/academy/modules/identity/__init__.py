"""Identity module - login, logout and session restore."""
