"""Accounts module - tenant accounts, approval requests and profiles."""
