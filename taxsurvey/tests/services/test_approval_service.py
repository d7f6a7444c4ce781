import pytest

from taxsurvey.core.errors import (
    AccessDenied,
    AlreadyDecided,
    InvalidTransition,
    ReasonRequired,
)
from taxsurvey.services.approval_service import ApprovalWorkflow
from taxsurvey.services.surveys_service import SurveyFilter
from taxsurvey.tests.factories import ADMIN, FIELD_EXEC, OTHER_FIELD_EXEC, make_survey


@pytest.fixture
def workflow():
    return ApprovalWorkflow()


def test_approve_pending_survey(db, workflow):
    make_survey(db, status="submitted")

    s = workflow.approve(db, property_id="P-1", principal=ADMIN, notes="  verified on site ")

    assert s.approval_status == "approved"
    assert s.survey_status == "approved"
    assert s.approved_by == ADMIN.user_id
    assert s.approved_at is not None
    assert s.admin_notes == "verified on site"
    assert s.rejection_reason is None


def test_second_decision_is_refused(db, workflow):
    # scenario: approve then reject the same survey
    make_survey(db, status="submitted")
    workflow.approve(db, property_id="P-1", principal=ADMIN)

    with pytest.raises(AlreadyDecided) as ei:
        workflow.reject(db, property_id="P-1", principal=ADMIN, reason="changed my mind")

    assert ei.value.status == "approved"
    db.expire_all()
    s = workflow.records.get(db, "P-1")
    assert s.approval_status == "approved"
    assert s.rejection_reason is None


def test_reject_requires_reason_before_touching_the_row(db, workflow):
    # scenario: blank reason leaves the survey pending
    make_survey(db, status="submitted")

    for reason in (None, "", "   "):
        with pytest.raises(ReasonRequired):
            workflow.reject(db, property_id="P-1", principal=ADMIN, reason=reason)

    s = workflow.records.get(db, "P-1")
    assert s.approval_status == "pending_approval"


def test_reject_records_reason(db, workflow):
    make_survey(db, status="submitted")

    s = workflow.reject(db, property_id="P-1", principal=ADMIN, reason=" Missing signature ")

    assert s.approval_status == "rejected"
    assert s.survey_status == "rejected"
    assert s.rejection_reason == "Missing signature"


def test_draft_cannot_be_decided(db, workflow):
    make_survey(db)

    with pytest.raises(InvalidTransition):
        workflow.approve(db, property_id="P-1", principal=ADMIN)


def test_field_executive_cannot_decide(db, workflow):
    make_survey(db, status="submitted")

    with pytest.raises(AccessDenied):
        workflow.approve(db, property_id="P-1", principal=FIELD_EXEC)


def test_pending_lists_only_pending_surveys(db, workflow):
    make_survey(db, property_id="P-1", status="submitted", zone="A")
    make_survey(db, property_id="P-2", status="submitted", zone="B")
    make_survey(db, property_id="P-3", status="submitted", zone="A", principal=OTHER_FIELD_EXEC)
    make_survey(db, property_id="P-4")
    workflow.approve(db, property_id="P-2", principal=ADMIN)

    page = workflow.pending(db, ADMIN, SurveyFilter(), sort_by="property_id", sort_order="asc")
    assert [s.property_id for s in page.items] == ["P-1", "P-3"]
    assert page.total == 2

    zone_b = workflow.pending(db, ADMIN, SurveyFilter(zone="B"))
    assert zone_b.total == 0


def test_pending_paginates(db, workflow):
    for i in range(5):
        make_survey(db, property_id=f"P-{i}", status="submitted")

    page = workflow.pending(db, ADMIN, SurveyFilter(), page=2, limit=2, sort_by="property_id", sort_order="asc")

    assert [s.property_id for s in page.items] == ["P-2", "P-3"]
    assert page.total == 5
    assert page.total_pages == 3


def test_stats_agree_with_listing(db, workflow):
    make_survey(db, property_id="P-1", status="submitted", zone="A", property_type="residential")
    make_survey(db, property_id="P-2", status="submitted", zone="A", property_type="commercial")
    make_survey(db, property_id="P-3", status="submitted", zone="B", property_type="residential")
    make_survey(db, property_id="P-4", zone="B")
    workflow.approve(db, property_id="P-1", principal=ADMIN)
    workflow.reject(db, property_id="P-2", principal=ADMIN, reason="wrong owner")

    stats = workflow.stats(db, ADMIN, SurveyFilter())
    summary = stats["summary"]

    assert summary["total"] == 4
    assert summary["pending"] == workflow.pending(db, ADMIN, SurveyFilter()).total == 1
    assert summary["approved"] == 1
    assert summary["rejected"] == 1
    assert summary["approval_rate"] == 25.0

    zone_rows = {(r["key"], r["approval_status"]): r["count"] for r in stats["zone_distribution"]}
    assert zone_rows[("A", "approved")] == 1
    assert zone_rows[("A", "rejected")] == 1
    assert zone_rows[("B", "pending_approval")] == 1
    assert zone_rows[("B", None)] == 1


def test_stats_on_empty_filter_has_zero_rate(db, workflow):
    make_survey(db, status="submitted", zone="A")

    stats = workflow.stats(db, ADMIN, SurveyFilter(zone="Z"))

    assert stats["summary"]["total"] == 0
    assert stats["summary"]["approval_rate"] == 0.0
    assert stats["zone_distribution"] == []


def test_pending_does_not_modify_callers_filter(db, workflow):
    make_survey(db, property_id="P-1", status="submitted", zone="A")
    make_survey(db, property_id="P-2", zone="A")
    f = SurveyFilter(zone="A")

    workflow.pending(db, ADMIN, f)
    stats = workflow.stats(db, ADMIN, f)

    assert f.approval_status is None
    assert stats["summary"]["total"] == 2
    assert stats["summary"]["pending"] == 1
