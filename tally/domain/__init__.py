"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  user.py          — Users and server-side sessions
  division.py      — Divisions and user memberships (the only source of division access)
  branding.py      — Single global branding row
  category.py      — Contact categories (division-scoped or global)
  custom_field.py  — Admin-defined extra contact fields
  upload.py        — Uploaded files and their import lifecycle
  contact.py       — Imported / manually entered contacts (soft-deleted)
  audit.py         — Immutable audit log (never updated or deleted)
  mixins.py        — Shared TimestampMixin, DivisionMixin
"""

from tally.domain.audit import AuditLog
from tally.domain.branding import BrandingSettings
from tally.domain.category import ContactCategory
from tally.domain.contact import Contact
from tally.domain.custom_field import CustomFieldDefinition
from tally.domain.division import Division, UserDivision
from tally.domain.upload import Upload
from tally.domain.user import User, UserSession

__all__ = [
    "AuditLog",
    "BrandingSettings",
    "Contact",
    "ContactCategory",
    "CustomFieldDefinition",
    "Division",
    "Upload",
    "User",
    "UserDivision",
    "UserSession",
]
