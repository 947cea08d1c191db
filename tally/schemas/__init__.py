"""Pydantic schemas package.

Folder intent:
  common.py    — CamelModel base, shared field types, HealthResponse
  user.py      — Auth, users and division memberships
  division.py  — Divisions and branding
  catalog.py   — Contact categories and custom field definitions
  upload.py    — Uploads, mapping submission and preview
  contact.py   — Contacts and statistics
  audit.py     — Audit log entries
"""
