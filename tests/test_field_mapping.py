from __future__ import annotations

from tally.services.field_mapping import (
    CANONICAL_FIELDS,
    DIVISION_REQUIRED,
    DUPLICATE_TARGETS,
    EMAIL_REQUIRED,
    auto_map,
    validate_field_mapping,
)


def test_canonical_fields_mark_only_email_required() -> None:
    required = [f.key for f in CANONICAL_FIELDS if f.required]
    assert required == ["email"]
    assert [f.key for f in CANONICAL_FIELDS][:3] == ["firstName", "lastName", "email"]


def test_auto_map_common_headers() -> None:
    headers = ["First Name", "Surname", "E-mail", "Mobile", "Organisation", "Job Title", "Postcode"]
    assert auto_map(headers) == {
        "First Name": "firstName",
        "Surname": "lastName",
        "E-mail": "email",
        "Mobile": "phone",
        "Organisation": "company",
        "Job Title": "jobTitle",
        "Postcode": "zipCode",
    }


def test_auto_map_is_case_and_whitespace_insensitive() -> None:
    assert auto_map(["  EMAIL ADDRESS  "]) == {"  EMAIL ADDRESS  ": "email"}


def test_auto_map_email_address_header_does_not_claim_address() -> None:
    mapping = auto_map(["Email Address", "Street Address"])
    assert mapping == {"Email Address": "email", "Street Address": "address"}


def test_auto_map_skips_claimed_field_and_keeps_looking() -> None:
    # "Work Phone Company" contains "phone" and "company"; phone is taken by
    # the first column, so the second header falls through to company.
    mapping = auto_map(["Phone", "Work Phone Company"])
    assert mapping == {"Phone": "phone", "Work Phone Company": "company"}


def test_auto_map_first_column_wins_duplicates() -> None:
    mapping = auto_map(["Email", "Secondary Email"])
    assert mapping == {"Email": "email"}


def test_auto_map_omits_unmatched_and_blank_headers() -> None:
    assert auto_map(["Favourite colour", "", "Shoe size"]) == {}


def test_auto_map_is_idempotent() -> None:
    headers = ["Given Name", "Family Name", "Mail", "Town", "Region", "Nation", "Memo"]
    assert auto_map(headers) == auto_map(headers)
    assert set(auto_map(headers).values()) == {
        "firstName", "lastName", "email", "city", "state", "country", "notes",
    }


def test_validate_accepts_minimal_mapping() -> None:
    assert validate_field_mapping({"Email": "email", "Other": ""}, "div-1") == []


def test_validate_reports_every_problem_at_once() -> None:
    errors = validate_field_mapping({"A": "firstName", "B": "firstName"}, None)
    assert errors == [DIVISION_REQUIRED, EMAIL_REQUIRED, DUPLICATE_TARGETS]


def test_validate_ignores_skipped_columns_for_duplicates() -> None:
    mapping = {"Email": "email", "X": "none", "Y": "none", "Z": ""}
    assert validate_field_mapping(mapping, "div-1") == []


def test_validate_flags_unknown_targets() -> None:
    errors = validate_field_mapping({"Email": "email", "Fax": "fax"}, "div-1")
    assert errors == ["Unknown target field 'fax' for column 'Fax'."]


def test_validate_custom_targets_need_a_known_definition() -> None:
    mapping = {"Email": "email", "Region": "custom:region"}
    assert validate_field_mapping(mapping, "div-1", {"region"}) == []
    assert validate_field_mapping(mapping, "div-1", set()) == [
        "Unknown target field 'custom:region' for column 'Region'."
    ]


def test_validate_empty_mapping() -> None:
    assert validate_field_mapping({}, "div-1") == [EMAIL_REQUIRED]
    assert validate_field_mapping(None, "") == [DIVISION_REQUIRED, EMAIL_REQUIRED]


def test_auto_map_email_address_and_phone() -> None:
    assert auto_map(["Email Address", "Phone"]) == {"Email Address": "email", "Phone": "phone"}


def test_auto_map_reordering_keeps_pairs() -> None:
    headers = ["Email", "Phone", "Company", "City"]
    assert auto_map(headers) == auto_map(list(reversed(headers)))
