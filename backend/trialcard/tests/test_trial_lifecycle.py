from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from trialcard import models
from trialcard.errors import NotFoundOrClosed, ValidationFailed
from trialcard.schemas import TokenClaims
from trialcard.services import trial_lifecycle
from .conftest import audit_entries, auth_headers, client, db_session, make_trial, make_user

HOD = TokenClaims(user_id=1, username="hod1", department_id=1, role="HOD")


@pytest.mark.parametrize("trial_id, status", [(None, "CLOSED"), ("FY26-A001", None), ("", "")])
def test_update_status_requires_both_fields(db_session, trial_id, status):
    make_trial("FY26-A001")
    with pytest.raises(ValidationFailed):
        trial_lifecycle.update_status(db_session, trial_id, status, HOD)
    assert audit_entries(action="Trial updated") == []
    assert db_session.get(models.Trial, "FY26-A001").status == "OPEN"


def test_update_status_writes_exactly_one_audit_entry(db_session):
    make_trial("FY26-A001")
    trial_lifecycle.update_status(db_session, "FY26-A001", "IN_PROGRESS", HOD)
    db_session.expire_all()
    assert db_session.get(models.Trial, "FY26-A001").status == "IN_PROGRESS"
    entries = audit_entries(action="Trial updated")
    assert len(entries) == 1
    assert entries[0].trial_id == "FY26-A001"
    assert entries[0].user_id == 1
    assert entries[0].department_id == 1
    assert entries[0].remarks == "Trial FY26-A001 updated by hod1 as IN_PROGRESS"


def test_update_status_without_actor_skips_audit(db_session):
    make_trial("FY26-A001")
    trial_lifecycle.update_status(db_session, "FY26-A001", "CLOSED", None)
    assert audit_entries(action="Trial updated") == []


def test_status_change_rolls_back_when_audit_fails(db_session, monkeypatch):
    make_trial("FY26-A001")

    def broken_log(*args, **kwargs):
        raise OperationalError("INSERT INTO audit_log", {}, Exception("disk full"))

    monkeypatch.setattr("trialcard.audit.log_action", broken_log)
    with pytest.raises(OperationalError):
        trial_lifecycle.update_status(db_session, "FY26-A001", "CLOSED", HOD)
    db_session.expire_all()
    assert db_session.get(models.Trial, "FY26-A001").status == "OPEN"


@pytest.mark.parametrize("status", ["OPEN", "IN_PROGRESS", "closed", "ON_HOLD"])
def test_any_status_but_closed_is_open(db_session, status):
    make_trial("FY26-A001", status=status)
    trial = trial_lifecycle.validate_open_for_submission(db_session, "FY26-A001")
    assert trial.trial_id == "FY26-A001"


@pytest.mark.parametrize(
    "trial_id, status, deleted",
    [("FY26-A001", "CLOSED", False), ("FY26-A001", "OPEN", True), ("FY26-Z999", "OPEN", False)],
)
def test_closed_deleted_or_missing_trials_are_rejected(db_session, trial_id, status, deleted):
    make_trial("FY26-A001", status=status, deleted=deleted)
    with pytest.raises(NotFoundOrClosed) as exc:
        trial_lifecycle.validate_open_for_submission(db_session, trial_id)
    assert exc.value.status_code == 404
    assert exc.value.message == "Trial not found or closed"


@pytest.mark.parametrize(
    "sequence, expected",
    [
        (1, "FY26-A001"),
        (999, "FY26-A999"),
        (1000, "FY26-B001"),
        (26 * 999, "FY26-Z999"),
        (26 * 999 + 1, "FY26-TRIAL001"),
    ],
)
def test_format_trial_id(sequence, expected):
    assert trial_lifecycle.format_trial_id(sequence, 2026) == expected


def test_next_trial_id_follows_highest_issued_id(db_session):
    assert trial_lifecycle.next_trial_id(db_session, date(2026, 4, 1)) == "FY26-A001"
    make_trial("FY26-A001")
    make_trial("FY26-A002", deleted=True)
    assert trial_lifecycle.next_trial_id(db_session, date(2026, 4, 1)) == "FY26-A003"


def test_next_trial_id_skips_ids_entered_by_hand(db_session):
    make_trial("FY26-A005")
    make_trial("FY25-A900")
    make_trial("LEGACY-7")
    assert trial_lifecycle.next_trial_id(db_session, date(2026, 4, 1)) == "FY26-A006"
    assert trial_lifecycle.next_trial_id(db_session, date(2025, 4, 1)) == "FY25-A901"


def test_parse_trial_id():
    assert trial_lifecycle.parse_trial_id("FY26-B001") == (26, 1000)
    assert trial_lifecycle.parse_trial_id("FY26-TRIAL001") == (26, 26 * 999 + 1)
    assert trial_lifecycle.parse_trial_id("FY26-a001") is None


def _trial_payload(**overrides):
    payload = {
        "part_name": "Hub",
        "pattern_code": "PC-7",
        "material_grade": "SG 500/7",
        "date_of_sampling": "2026-10-01",
        "no_of_moulds": 4,
        "reason_for_sampling": "New pattern",
    }
    payload.update(overrides)
    return payload


def test_methods_user_creates_trial_and_hods_are_notified(client):
    from trialcard import notify

    make_user("methods1", role="Methods", department_id=1)
    make_user("hod_melt", role="HOD", department_id=3, email="melt@example.com")
    make_user("hod_noemail", role="HOD", department_id=4)
    headers = auth_headers(client, "methods1")

    resp = client.post("/api/trial", json=_trial_payload(), headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "OPEN"
    assert data["trial_id"].startswith("FY")
    assert [entry.action for entry in audit_entries(trial_id=data["trial_id"])] == ["Trial created"]
    assert [m[0] for m in notify.EMAIL_OUTBOX] == ["melt@example.com"]


def test_duplicate_trial_id_rejected(client):
    make_user("methods1", role="Methods", department_id=1)
    make_trial("FY26-A001")
    headers = auth_headers(client, "methods1")
    resp = client.post("/api/trial", json=_trial_payload(trial_id="FY26-A001"), headers=headers)
    assert resp.status_code == 400


def test_trial_creation_gated_to_methods_department(client):
    make_user("sand1", role="HOD", department_id=2)
    resp = client.post("/api/trial", json=_trial_payload(), headers=auth_headers(client, "sand1"))
    assert resp.status_code == 403


def test_read_trial_endpoints(client):
    make_user("viewer", department_id=5)
    make_trial("FY26-A001")
    make_trial("FY26-A002", deleted=True)
    headers = auth_headers(client, "viewer")

    listed = client.get("/api/trial", headers=headers).json()["data"]
    assert [t["trial_id"] for t in listed] == ["FY26-A001"]

    one = client.get("/api/trial/trial_id", params={"trial_id": "FY26-A001"}, headers=headers)
    assert one.status_code == 200
    assert one.json()["data"]["part_name"] == "Brake drum"

    gone = client.get("/api/trial/trial_id", params={"trial_id": "FY26-A002"}, headers=headers)
    assert gone.status_code == 404

    preview = client.get("/api/trial/id", headers=headers)
    assert preview.json()["data"]["trialId"].endswith("A003")


def test_status_endpoint_requires_methods_hod(client):
    make_trial("FY26-A001")
    make_user("methods_hod", role="HOD", department_id=1)
    make_user("methods_user", role="User", department_id=1)
    make_user("melt_hod", role="HOD", department_id=3)
    body = {"trial_id": "FY26-A001", "status": "CLOSED"}

    assert client.put("/api/trial/status", json=body, headers=auth_headers(client, "methods_user")).status_code == 403
    assert client.put("/api/trial/status", json=body, headers=auth_headers(client, "melt_hod")).status_code == 403

    resp = client.put("/api/trial/status", json=body, headers=auth_headers(client, "methods_hod"))
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert len(audit_entries(action="Trial updated", trial_id="FY26-A001")) == 1


def test_status_endpoint_missing_status(client):
    make_user("methods_hod", role="HOD", department_id=1)
    resp = client.put(
        "/api/trial/status",
        json={"trial_id": "FY26-A001"},
        headers=auth_headers(client, "methods_hod"),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Trial ID and status are required"


def test_generated_id_does_not_collide_with_explicit_id(client):
    yy = date.today().year % 100
    make_user("methods1", role="Methods", department_id=1)
    make_trial(f"FY{yy:02d}-A002")
    headers = auth_headers(client, "methods1")

    resp = client.post("/api/trial", json=_trial_payload(), headers=headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["trial_id"] == f"FY{yy:02d}-A003"


def test_concurrent_insert_of_same_id_is_a_validation_error(client, monkeypatch):
    make_user("methods1", role="Methods", department_id=1)
    make_trial("FY26-A001")
    monkeypatch.setattr(trial_lifecycle, "_trial_exists", lambda db, trial_id: False)

    resp = client.post(
        "/api/trial", json=_trial_payload(trial_id="FY26-A001"), headers=auth_headers(client, "methods1")
    )
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Trial FY26-A001 already exists"}
    assert audit_entries(action="Trial created") == []


def test_recycle_bin_delete_list_and_restore(client):
    make_trial("FY26-A001")
    make_user("methods_hod", role="HOD", department_id=1)
    make_user("viewer", department_id=5)
    headers = auth_headers(client, "methods_hod")
    viewer = auth_headers(client, "viewer")

    deleted = client.request("DELETE", "/api/trial", json={"trial_id": "FY26-A001"}, headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"]["deleted_by"] == "methods_hod"
    assert client.get("/api/trial", headers=viewer).json()["data"] == []
    assert client.get("/api/trial/trial_id", params={"trial_id": "FY26-A001"}, headers=viewer).status_code == 404

    binned = client.get("/api/trial/deleted", headers=headers).json()["data"]
    assert [t["trial_id"] for t in binned] == ["FY26-A001"]
    assert binned[0]["deleted_at"] is not None

    again = client.request("DELETE", "/api/trial", json={"trial_id": "FY26-A001"}, headers=headers)
    assert again.status_code == 404

    restored = client.put("/api/trial/restore", json={"trial_id": "FY26-A001"}, headers=headers)
    assert restored.status_code == 200
    assert [t["trial_id"] for t in client.get("/api/trial", headers=viewer).json()["data"]] == ["FY26-A001"]
    assert client.get("/api/trial/deleted", headers=headers).json()["data"] == []
    assert client.put("/api/trial/restore", json={"trial_id": "FY26-A001"}, headers=headers).status_code == 404

    actions = [entry.action for entry in audit_entries(trial_id="FY26-A001")]
    assert actions == ["Trial deleted", "Trial restored"]


def test_deleted_trial_keeps_its_stage_records(client, db_session):
    make_trial("FY26-A001")
    make_user("op1", role="Operator", department_id=1)
    make_user("methods_hod", role="HOD", department_id=1)
    client.post(
        "/api/material-correction",
        json={"trial_id": "FY26-A001", "chemical_composition": {"C": 3.6}},
        headers=auth_headers(client, "op1"),
    )
    client.request("DELETE", "/api/trial", json={"trial_id": "FY26-A001"}, headers=auth_headers(client, "methods_hod"))

    assert db_session.query(models.MaterialCorrectionRecord).count() == 1
    assert db_session.get(models.Trial, "FY26-A001").deleted_at is not None


def test_recycle_bin_requires_methods_hod(client):
    make_trial("FY26-A001")
    make_user("methods_user", role="User", department_id=1)
    make_user("melt_hod", role="HOD", department_id=3)
    body = {"trial_id": "FY26-A001"}

    for username in ("methods_user", "melt_hod"):
        headers = auth_headers(client, username)
        assert client.request("DELETE", "/api/trial", json=body, headers=headers).status_code == 403
        assert client.get("/api/trial/deleted", headers=headers).status_code == 403
        assert client.put("/api/trial/restore", json=body, headers=headers).status_code == 403
