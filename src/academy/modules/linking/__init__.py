"""Linking module - access codes and teacher onboarding."""
