"""Shared test fixtures for churchhub tests."""

import pytest

from churchhub.db import ChurchDB
from churchhub.models import Convert, Member, Visitor


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database with schema initialized."""
    db_path = str(tmp_path / "test.db")
    db = ChurchDB(db_path)
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def sample_members():
    return [
        Member(
            id="m1",
            full_name="Mary Smith",
            service_category="adults",
            gender="female",
            date_of_birth="--04-12",
            phone_number="555-0101",
            care_group="North",
            created_at="2025-01-10T09:00:00+00:00",
        ),
        Member(
            id="m2",
            full_name="John Doe",
            service_category="children",
            phone_number="555-0102",
            parent_guardian="Jane Doe",
            created_at="2025-02-01T09:00:00+00:00",
        ),
        Member(
            id="m3",
            full_name="Tom Teen",
            service_category="teens",
            parent_guardian="Tess Teen",
            created_at="2025-03-15T12:00:00+00:00",
        ),
    ]


@pytest.fixture
def sample_visitors():
    return [
        Visitor(
            id="v1",
            full_name="Ann Lee",
            service_attended="youth",
            first_visit_date="2025-03-02",
            phone_number="555-0201",
            email="ann@example.com",
            how_heard_about_us="Friend",
            areas_of_interest=["Choir", "Ushering"],
            follow_up_status="contacted",
            created_at="2025-03-02T10:00:00+00:00",
        ),
        Visitor(
            id="v2",
            full_name="Bob Stone",
            service_attended="adults",
            first_visit_date="2025-03-09",
            how_heard_about_us="Flyer",
            created_at="2025-03-09T10:00:00+00:00",
        ),
    ]


@pytest.fixture
def sample_converts():
    return [
        Convert(
            id="c1",
            full_name="Carl Vance",
            service_attended="adults",
            date_of_conversion="2025-02-20",
            follow_up_status="discipled",
            phone_number="555-0301",
            assigned_leader="Pastor Kim",
            created_at="2025-02-20T10:00:00+00:00",
        ),
    ]


@pytest.fixture
def loaded_db(tmp_db, sample_members, sample_visitors, sample_converts):
    """Database holding the sample records of every collection."""
    tmp_db.replace_collection("members", sample_members)
    tmp_db.replace_collection("visitors", sample_visitors)
    tmp_db.replace_collection("converts", sample_converts)
    return tmp_db
