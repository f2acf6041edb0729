"""Tests for churchhub.importer.columns header validation and mapping."""

import pytest

from churchhub.errors import HeaderValidationError, MappingValidationError
from churchhub.importer.columns import (
    REQUIRED_HEADERS,
    apply_overrides,
    auto_map_columns,
    extract_row,
    mapping_fields,
    validate_mapping,
    validate_strict_headers,
)


class TestStrictHeaders:
    def test_exact_headers_pass(self):
        headers = REQUIRED_HEADERS["visitors"]
        mapping = validate_strict_headers("visitors", headers)
        assert mapping == {h: h for h in headers}

    def test_missing_header_named(self):
        headers = [h for h in REQUIRED_HEADERS["members"] if h != "Care Group"]
        with pytest.raises(HeaderValidationError) as exc:
            validate_strict_headers("members", headers)
        assert exc.value.missing == ["Care Group"]
        assert str(exc.value) == "Missing required headers: Care Group"

    def test_case_sensitive(self):
        headers = [h.lower() for h in REQUIRED_HEADERS["converts"]]
        with pytest.raises(HeaderValidationError) as exc:
            validate_strict_headers("converts", headers)
        assert exc.value.missing == REQUIRED_HEADERS["converts"]

    def test_extra_columns_ignored(self):
        headers = ["ID", *REQUIRED_HEADERS["converts"], "Shoe Size"]
        mapping = validate_strict_headers("converts", headers)
        assert "ID" not in mapping.values()

    def test_optional_guardian_mapped_when_present(self):
        headers = [*REQUIRED_HEADERS["members"], "Parent/Guardian"]
        mapping = validate_strict_headers("members", headers)
        assert mapping["Parent/Guardian"] == "Parent/Guardian"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            validate_strict_headers("pastors", [])


class TestMappingFields:
    def test_guardian_after_phone(self):
        fields = mapping_fields("members")
        assert fields[fields.index("Phone") + 1] == "Parent/Guardian"

    def test_visitors_equal_required(self):
        assert mapping_fields("visitors") == REQUIRED_HEADERS["visitors"]


class TestAutoMap:
    def test_exact_match_case_insensitive(self):
        mapping = auto_map_columns("converts", ["full name", "PHONE", "email"])
        assert mapping["Full Name"] == "full name"
        assert mapping["Phone"] == "PHONE"
        assert mapping["Email"] == "email"

    def test_exact_beats_substring(self):
        mapping = auto_map_columns("converts", ["Parent Phone", "Phone"])
        assert mapping["Phone"] == "Phone"

    def test_substring_false_positive(self):
        # No exact "Phone" column: first header containing "phone" wins.
        mapping = auto_map_columns("converts", ["Parent Phone", "Mobile phone"])
        assert mapping["Phone"] == "Parent Phone"

    def test_first_word_substring(self):
        mapping = auto_map_columns("visitors", ["Name", "Date of First Visit", "Followup"])
        assert mapping["First Visit Date"] == "Date of First Visit"
        assert "Full Name" not in mapping  # "full" is not in "Name"

    def test_ties_pick_first_header(self):
        mapping = auto_map_columns("members", ["Created", "Created On"])
        assert mapping["Created At"] == "Created"

    def test_unmatched_fields_absent(self):
        mapping = auto_map_columns("members", ["Nickname"])
        assert mapping == {}


class TestMappingValidation:
    def test_missing_required_listed(self):
        mapping = {f: f for f in REQUIRED_HEADERS["converts"] if f not in ("Email", "Service")}
        with pytest.raises(MappingValidationError) as exc:
            validate_mapping("converts", mapping)
        assert exc.value.missing == ["Email", "Service"]
        assert str(exc.value) == "Please map all required fields: Email, Service"

    def test_optional_may_be_unmapped(self):
        mapping = {f: f for f in REQUIRED_HEADERS["members"]}
        assert validate_mapping("members", mapping) is mapping

    def test_empty_override_unmaps(self):
        mapping = apply_overrides({"Phone": "Parent Phone", "Email": "E"}, {"Phone": "", "Email": "Mail"})
        assert mapping == {"Email": "Mail"}


class TestExtractRow:
    def test_reads_mapped_cells(self):
        raw = extract_row(["N", "P"], ["Mary", "555"], {"Full Name": "N", "Phone": "P"})
        assert raw == {"Full Name": "Mary", "Phone": "555"}

    def test_short_row_reads_empty(self):
        raw = extract_row(["N", "P"], ["Mary"], {"Full Name": "N", "Phone": "P"})
        assert raw["Phone"] == ""

    def test_unknown_header_reads_empty(self):
        raw = extract_row(["N"], ["Mary"], {"Full Name": "N", "Phone": "Cell"})
        assert raw["Phone"] == ""

    def test_duplicate_header_uses_first(self):
        raw = extract_row(["N", "N"], ["first", "second"], {"Full Name": "N"})
        assert raw["Full Name"] == "first"
