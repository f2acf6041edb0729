"""Tests for churchhub.importer.materialize."""

from datetime import datetime, timezone

import pytest

from churchhub.errors import GuardianRequiredError
from churchhub.importer.materialize import (
    UNNAMED,
    interests_from_text,
    materialize_row,
    materialize_rows,
)
from churchhub.models import Convert, Member, Visitor

NOW = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)


class TestMember:
    def test_fields_and_canonicalization(self):
        m = materialize_row("members", {
            "Full Name": " Mary Smith ",
            "Gender": "female",
            "Date of Birth": "1990-04-12",
            "Phone": "555-0101",
            "Service Category": "Victory Land",
            "Care Group": "North",
            "Created At": "2025-01-10T09:00:00Z",
            "Updated At": "2025-01-11T09:00:00Z",
        }, NOW)
        assert isinstance(m, Member)
        assert m.full_name == "Mary Smith"
        assert m.service_category == "children"
        assert m.date_of_birth == "--04-12"
        assert m.created_at == "2025-01-10T09:00:00Z"
        assert m.updated_at == "2025-01-11T09:00:00Z"

    def test_blank_name_is_unnamed(self):
        m = materialize_row("members", {"Full Name": "   "}, NOW)
        assert m.full_name == UNNAMED

    def test_missing_timestamps_default_to_now(self):
        m = materialize_row("members", {"Full Name": "A"}, NOW)
        assert m.created_at == NOW.isoformat()
        assert m.updated_at == NOW.isoformat()

    def test_updated_never_before_created(self):
        m = materialize_row("members", {
            "Full Name": "A",
            "Created At": "2025-02-01T00:00:00Z",
            "Updated At": "2025-01-01T00:00:00Z",
        }, NOW)
        assert m.updated_at == m.created_at

    def test_bad_dob_dropped(self):
        m = materialize_row("members", {"Full Name": "A", "Date of Birth": "spring"}, NOW)
        assert m.date_of_birth == ""

    def test_guardian_not_enforced_by_default(self):
        m = materialize_row("members", {"Full Name": "Kid", "Service Category": "kids"}, NOW)
        assert m.service_category == "children"
        assert m.parent_guardian == ""

    def test_guardian_enforced_on_request(self):
        with pytest.raises(GuardianRequiredError):
            materialize_row(
                "members", {"Full Name": "Kid", "Service Category": "teens"}, NOW, require_guardian=True
            )

    def test_guardian_rule_skips_adults(self):
        m = materialize_row(
            "members", {"Full Name": "Grown", "Service Category": "adults"}, NOW, require_guardian=True
        )
        assert m.parent_guardian == ""


class TestVisitor:
    def test_fields(self):
        v = materialize_row("visitors", {
            "Full Name": "Ann Lee",
            "Email": "ann@example.com",
            "Service Attended": "Youth",
            "First Visit Date": "03/02/2025",
            "Areas of Interest": "Choir; ; Ushering;",
            "Follow-up": "Contacted",
        }, NOW)
        assert isinstance(v, Visitor)
        assert v.first_visit_date == "2025-03-02"
        assert v.areas_of_interest == ["Choir", "Ushering"]
        assert v.follow_up_status == "contacted"
        assert v.service_attended == "youth"

    def test_empty_visit_date_is_today(self):
        v = materialize_row("visitors", {"Full Name": "A"}, NOW)
        assert v.first_visit_date == "2025-03-20"
        assert v.follow_up_status == "pending"

    def test_unrecognised_visit_date_kept(self):
        v = materialize_row("visitors", {"Full Name": "A", "First Visit Date": "Easter"}, NOW)
        assert v.first_visit_date == "Easter"


class TestConvert:
    def test_fields(self):
        c = materialize_row("converts", {
            "Full Name": "Carl",
            "Service": "adults",
            "Date of Conversion": "2025-02-20",
            "Follow-up Status": "disicpled",
            "Assigned Leader": "Pastor Kim",
        }, NOW)
        assert isinstance(c, Convert)
        assert c.follow_up_status == "discipled"
        assert c.date_of_conversion == "2025-02-20"
        assert c.assigned_leader == "Pastor Kim"


class TestBatch:
    def test_fresh_ids_every_row(self):
        rows = [{"Full Name": "Same"}, {"Full Name": "Same"}]
        first = materialize_rows("members", rows, NOW)
        second = materialize_rows("members", rows, NOW)
        ids = {r.id for r in first + second}
        assert len(ids) == 4

    def test_shared_now(self):
        records = materialize_rows("converts", [{"Full Name": "A"}, {"Full Name": "B"}])
        assert records[0].created_at == records[1].created_at

    def test_error_names_row(self):
        rows = [{"Full Name": "Ok"}, {"Full Name": "Kid", "Service Category": "children"}]
        with pytest.raises(GuardianRequiredError, match="Row 2"):
            materialize_rows("members", rows, NOW, require_guardian=True)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            materialize_row("pastors", {}, NOW)


def test_interests_from_text():
    assert interests_from_text("") == []
    assert interests_from_text(" a ;b") == ["a", "b"]
