"""Tally — division-scoped contact management API."""
