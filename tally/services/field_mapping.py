"""Canonical contact fields, header auto-mapping and mapping validation.

Pure functions only; nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from typing import NamedTuple


class CanonicalField(NamedTuple):
    key: str
    label: str
    required: bool
    column: str  # Contact attribute the value is written to


CANONICAL_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField("firstName", "First Name", False, "first_name"),
    CanonicalField("lastName", "Last Name", False, "last_name"),
    CanonicalField("email", "Email Address", True, "email"),
    CanonicalField("phone", "Phone Number", False, "phone"),
    CanonicalField("company", "Company", False, "company"),
    CanonicalField("jobTitle", "Job Title", False, "job_title"),
    CanonicalField("address", "Address", False, "address"),
    CanonicalField("city", "City", False, "city"),
    CanonicalField("state", "State / Province", False, "state"),
    CanonicalField("zipCode", "Postal Code", False, "zip_code"),
    CanonicalField("country", "Country", False, "country"),
    CanonicalField("notes", "Notes", False, "notes"),
)

FIELDS_BY_KEY: dict[str, CanonicalField] = {f.key: f for f in CANONICAL_FIELDS}

# Checked in this order; first field whose pattern is contained in the header wins.
FIELD_PATTERNS: dict[str, tuple[str, ...]] = {
    "firstName": ("first name", "firstname", "first_name", "fname", "given name"),
    "lastName": ("last name", "lastname", "last_name", "surname", "family name", "lname"),
    "email": ("email", "email address", "email_address", "e-mail", "mail"),
    "phone": ("phone", "phone number", "telephone", "mobile", "cell", "contact number"),
    "company": ("company", "organization", "organisation", "business", "company name"),
    "jobTitle": ("job title", "position", "title", "role", "job_title", "designation"),
    "address": ("address", "street address", "address line 1", "addr"),
    "city": ("city", "town"),
    "state": ("province", "state", "region"),
    "zipCode": ("postal code", "zip code", "zipcode", "zip", "postcode", "postal_code"),
    "country": ("country", "nation"),
    "notes": ("notes", "comments", "remarks", "description", "memo"),
}

CUSTOM_PREFIX = "custom:"
SKIP_TARGETS = frozenset({"", "none"})

DIVISION_REQUIRED = "Please select a division to import contacts into."
EMAIL_REQUIRED = "At least one required field (Email Address) must be mapped."
DUPLICATE_TARGETS = "Multiple CSV fields cannot be mapped to the same database field."


def is_skipped(target: str | None) -> bool:
    return target is None or target.strip().lower() in SKIP_TARGETS


def custom_field_name(target: str) -> str | None:
    """Return `name` for a "custom:<name>" target, else None."""
    if target.startswith(CUSTOM_PREFIX):
        return target[len(CUSTOM_PREFIX):]
    return None


def auto_map(headers: Iterable[str]) -> dict[str, str]:
    """Suggest a canonical field for each header.

    Greedy: a field already claimed by an earlier header is passed over and the
    header keeps looking further down the table. Unmatched headers are omitted.
    """
    mapping: dict[str, str] = {}
    claimed: set[str] = set()
    for header in headers:
        text = (header or "").strip().lower()
        if not text:
            continue
        for key, patterns in FIELD_PATTERNS.items():
            if key in claimed:
                continue
            if any(pattern in text for pattern in patterns):
                mapping[header] = key
                claimed.add(key)
                break
    return mapping


def validate_field_mapping(
    mapping: Mapping[str, str] | None,
    division_id: str | None,
    custom_field_names: Collection[str] = (),
) -> list[str]:
    """Return every rule the mapping breaks; an empty list means it can be imported."""
    errors: list[str] = []
    mapping = mapping or {}

    if not division_id:
        errors.append(DIVISION_REQUIRED)

    targets = [target for target in mapping.values() if not is_skipped(target)]
    if "email" not in targets:
        errors.append(EMAIL_REQUIRED)
    if len(targets) != len(set(targets)):
        errors.append(DUPLICATE_TARGETS)

    for column, target in mapping.items():
        if is_skipped(target) or target in FIELDS_BY_KEY:
            continue
        name = custom_field_name(target)
        if name and name in custom_field_names:
            continue
        errors.append(f"Unknown target field '{target}' for column '{column}'.")

    return errors
