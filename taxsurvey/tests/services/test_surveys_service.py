from datetime import date, datetime, timezone

import pytest

from taxsurvey.core.errors import AccessDenied, AlreadyExists, NotFound, ValidationError
from taxsurvey.services.surveys_service import SurveyFilter, SurveyRecordStore
from taxsurvey.tests.factories import ADMIN, ENGINEER, FIELD_EXEC, OTHER_FIELD_EXEC, make_survey


@pytest.fixture
def records():
    return SurveyRecordStore()


def test_create_draft_has_no_approval_status(db):
    s = make_survey(db)

    assert s.survey_status == "draft"
    assert s.approval_status is None
    assert s.surveyed_by == FIELD_EXEC.user_id
    assert s.edit_count == 0


def test_create_as_submitted_opens_gate(db):
    s = make_survey(db, status="submitted")

    assert s.survey_status == "submitted"
    assert s.approval_status == "pending_approval"


def test_duplicate_property_id_is_refused(db):
    # scenario: the same property surveyed twice
    make_survey(db, property_id="P-1")

    with pytest.raises(AlreadyExists) as ei:
        make_survey(db, property_id="P-1", survey_number="SN-OTHER")

    assert "P-1" in ei.value.message


def test_duplicate_survey_number_is_refused(db):
    make_survey(db, property_id="P-1", survey_number="SN-42")

    with pytest.raises(AlreadyExists) as ei:
        make_survey(db, property_id="P-2", survey_number="SN-42")

    assert "SN-42" in ei.value.message


def test_surveys_without_survey_number_do_not_clash(db, records):
    make_survey(db, property_id="P-1", survey_number=None)
    make_survey(db, property_id="P-2", survey_number=None)

    assert records.list(db, ADMIN, SurveyFilter()).total == 2


def test_only_field_executives_create(db, records):
    with pytest.raises(AccessDenied):
        records.create(db, ADMIN, property_id="P-1", fields={})


def test_create_rejects_service_owned_fields(db, records):
    with pytest.raises(ValidationError):
        records.create(db, FIELD_EXEC, property_id="P-1", fields={"approved_by": "me"})


def test_create_rejects_non_initial_status(db, records):
    with pytest.raises(ValidationError):
        records.create(db, FIELD_EXEC, property_id="P-1", fields={}, survey_status="approved")


def test_visibility(db, records):
    make_survey(db)

    assert records.get_visible(db, "P-1", FIELD_EXEC).property_id == "P-1"
    assert records.get_visible(db, "P-1", ENGINEER).property_id == "P-1"
    with pytest.raises(AccessDenied):
        records.get_visible(db, "P-1", OTHER_FIELD_EXEC)
    with pytest.raises(NotFound):
        records.get_visible(db, "P-404", ADMIN)


def test_field_executive_listing_is_scoped_to_own_surveys(db, records):
    make_survey(db, property_id="P-1")
    make_survey(db, property_id="P-2", principal=OTHER_FIELD_EXEC)

    mine = records.list(db, FIELD_EXEC, SurveyFilter(surveyed_by=OTHER_FIELD_EXEC.user_id))
    everyone = records.list(db, ADMIN, SurveyFilter())

    assert [s.property_id for s in mine.items] == ["P-1"]
    assert everyone.total == 2


def test_search_matches_owner_locality_and_ids(db, records):
    make_survey(db, property_id="P-1", owner_name="Anita Deshmukh", locality="Baner")
    make_survey(db, property_id="P-2", owner_name="Vijay Kulkarni", locality="Aundh")

    assert [s.property_id for s in records.list(db, ADMIN, SurveyFilter(search="deshmukh")).items] == ["P-1"]
    assert [s.property_id for s in records.list(db, ADMIN, SurveyFilter(search="aundh")).items] == ["P-2"]
    assert records.list(db, ADMIN, SurveyFilter(search="SN-P-")).total == 2


def test_filters_and_inclusive_date_range(db, records):
    a = make_survey(db, property_id="P-1", zone="A", ward_number=3)
    b = make_survey(db, property_id="P-2", zone="B", ward_number=3)
    a.created_at = datetime(2025, 1, 10, 23, 59, tzinfo=timezone.utc)
    b.created_at = datetime(2025, 1, 11, 0, 1, tzinfo=timezone.utc)
    db.commit()

    by_zone = records.list(db, ADMIN, SurveyFilter(zone="B"))
    by_ward = records.list(db, ADMIN, SurveyFilter(ward_number=3))
    one_day = records.list(db, ADMIN, SurveyFilter(date_from=date(2025, 1, 10), date_to=date(2025, 1, 10)))

    assert [s.property_id for s in by_zone.items] == ["P-2"]
    assert by_ward.total == 2
    assert [s.property_id for s in one_day.items] == ["P-1"]


def test_listing_is_newest_first_and_paginated(db, records):
    for i, day in enumerate((1, 3, 2)):
        s = make_survey(db, property_id=f"P-{i}")
        s.created_at = datetime(2025, 2, day, tzinfo=timezone.utc)
    db.commit()

    first = records.list(db, ADMIN, SurveyFilter(), page=1, limit=2)
    second = records.list(db, ADMIN, SurveyFilter(), page=2, limit=2)

    assert [s.property_id for s in first.items] == ["P-1", "P-2"]
    assert [s.property_id for s in second.items] == ["P-0"]
    assert first.total_pages == 2


def test_status_counts_respect_scope(db, records):
    make_survey(db, property_id="P-1")
    make_survey(db, property_id="P-2", status="submitted")
    make_survey(db, property_id="P-3", status="submitted", principal=OTHER_FIELD_EXEC)

    mine = records.status_counts(db, FIELD_EXEC)
    allc = records.status_counts(db, ADMIN)

    assert mine["draft"] == 1
    assert mine["submitted"] == 1
    assert mine["approved"] == 0
    assert mine["total"] == 2
    assert allc["submitted"] == 2
    assert allc["total"] == 3
