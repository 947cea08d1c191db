"""Routers package — HTTP endpoint definitions, all mounted under /api.

Files:
  deps.py           — session cookie -> AccessScope, role guards, request metadata
  auth.py           — /api/auth/* (login, logout, current user, profile, password)
  users.py          — /api/users[/:id[/divisions]]
  divisions.py      — /api/divisions[/:id]
  branding.py       — /api/branding[/effective]
  categories.py     — /api/contact-categories
  custom_fields.py  — /api/custom-fields
  uploads.py        — /api/uploads (intake, preview, mapping submit, delete)
  contacts.py       — /api/contacts (+ /stats, /bulk-delete)
  reports.py        — /api/company-stats
  audit_logs.py     — /api/audit-logs

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to tally/services/.
"""
