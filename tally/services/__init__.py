"""Services package — all business logic lives here, never in routers.

Files:
  access.py         — AccessScope: role checks and server-side division scoping
  auth.py           — login, sessions, profile, bootstrap admin
  users.py / divisions.py / branding.py / categories.py / custom_fields.py
  uploads.py        — upload intake, preview, mapping draft/submit, delete
  field_mapping.py  — canonical fields, header auto-mapping, mapping validation
  spreadsheet.py    — CSV / .xlsx reading
  importer.py       — background contact import
  contacts.py       — contact CRUD and soft delete
  reports.py        — contact and company statistics
  audit.py          — audit trail

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
