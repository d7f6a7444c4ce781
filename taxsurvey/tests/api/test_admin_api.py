from taxsurvey.tests.factories import ADMIN, ENGINEER, FIELD_EXEC, auth, make_survey

API = "/api/v1/admin"


def test_admin_surface_requires_elevated_role(client):
    r = client.get(f"{API}/pending-approvals", headers=auth(FIELD_EXEC))
    assert r.status_code == 403


def test_approve_flow(client, db):
    make_survey(db, status="submitted")

    r = client.get(f"{API}/pending-approvals", headers=auth(ENGINEER))
    assert r.status_code == 200
    assert [s["property_id"] for s in r.json()["items"]] == ["P-1"]

    r = client.post(f"{API}/approve/P-1", json={"admin_notes": "ok"}, headers=auth(ADMIN))
    assert r.status_code == 200
    assert r.json()["approval_status"] == "approved"
    assert r.json()["admin_notes"] == "ok"

    r = client.post(f"{API}/reject/P-1", json={"rejection_reason": "late"}, headers=auth(ADMIN))
    assert r.status_code == 409
    assert r.json()["error"] == "already_decided"

    r = client.get(f"{API}/pending-approvals", headers=auth(ADMIN))
    assert r.json()["pagination"]["total"] == 0


def test_approve_without_body(client, db):
    make_survey(db, status="submitted")

    r = client.post(f"{API}/approve/P-1", headers=auth(ADMIN))

    assert r.status_code == 200
    assert r.json()["admin_notes"] is None


def test_reject_needs_reason(client, db):
    make_survey(db, status="submitted")

    r = client.post(f"{API}/reject/P-1", json={"rejection_reason": "  "}, headers=auth(ADMIN))
    assert r.status_code == 400
    assert r.json()["error"] == "reason_required"

    r = client.post(f"{API}/reject/P-1", json={"rejection_reason": "No sketch"}, headers=auth(ADMIN))
    assert r.status_code == 200
    assert r.json()["rejection_reason"] == "No sketch"


def test_decide_draft_is_conflict(client, db):
    make_survey(db)

    r = client.post(f"{API}/approve/P-1", headers=auth(ADMIN))

    assert r.status_code == 409
    assert r.json()["error"] == "invalid_transition"


def test_property_details_include_images(client, db):
    make_survey(db, status="submitted")

    r = client.get(f"{API}/property/P-1", headers=auth(ADMIN))
    assert r.status_code == 200
    assert r.json()["property"]["property_id"] == "P-1"
    assert r.json()["images"] == []

    assert client.get(f"{API}/property/NOPE", headers=auth(ADMIN)).status_code == 404


def test_stats_with_filters(client, db):
    make_survey(db, property_id="P-1", status="submitted", zone="A")
    make_survey(db, property_id="P-2", status="submitted", zone="B")
    client.post(f"{API}/approve/P-1", headers=auth(ADMIN))

    r = client.get(f"{API}/approval-stats", headers=auth(ADMIN))
    assert r.status_code == 200
    assert r.json()["summary"] == {
        "total": 2,
        "pending": 1,
        "approved": 1,
        "rejected": 0,
        "approval_rate": 50.0,
    }

    r = client.get(f"{API}/approval-stats", params={"zone": "B"}, headers=auth(ADMIN))
    assert r.json()["summary"]["total"] == 1
    assert r.json()["summary"]["pending"] == 1
