"""Entitlements module - subscription state machine and plan operations."""
