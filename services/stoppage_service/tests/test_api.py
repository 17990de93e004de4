import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app

HEADERS = {"X-Tenant-Id": "tenant-a"}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # Без контекстного менеджера startup (create_all в PostgreSQL) не запускается
    yield TestClient(app)
    app.dependency_overrides.clear()


def _open(client, machine_id, **extra):
    body = {"machine_id": machine_id, "reason": "Jam", **extra}
    return client.post("/api/v1/stoppages", json=body, headers=HEADERS)


def test_health(client) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "stoppage_service"}


def test_open_then_machine_status(client, machine_id) -> None:
    resp = _open(client, machine_id, category="PREVENTIVE_MAINTENANCE", type="NON_OPERATIONAL")

    assert resp.status_code == 200
    data = resp.json()
    assert data["is_open"] is True
    assert data["type"] == "OPERATIONAL"
    assert data["category"] == "PREVENTIVE_MAINTENANCE"

    machine = client.get(f"/api/v1/machines/{machine_id}", headers=HEADERS).json()
    assert machine["status"] == "MAINTENANCE"


def test_conflict_surfaces_policy_message(client, machine_id) -> None:
    first = _open(client, machine_id).json()

    resp = _open(client, machine_id)

    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["kind"] == "CONFLICT"
    assert detail["code"] == "ALREADY_OPEN"
    assert detail["blocking_event_id"] == first["id"]
    assert "anyway" in detail["message"]

    forced = _open(client, machine_id, override=True)
    assert forced.status_code == 200
    assert forced.json()["override_open"] is True


def test_close_and_close_again(client, machine_id) -> None:
    event = _open(client, machine_id, start_time="2026-10-19T08:00:00").json()
    url = f"/api/v1/stoppages/{event['id']}/close"

    resp = client.post(url, json={"end_time": "2026-10-19T08:25:00"}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["intervention_minutes"] == 25
    assert resp.json()["is_open"] is False

    again = client.post(url, headers=HEADERS)
    assert again.status_code == 409
    assert again.json()["detail"]["kind"] == "ALREADY_CLOSED"

    machine = client.get(f"/api/v1/machines/{machine_id}", headers=HEADERS).json()
    assert machine["status"] == "RUNNING"


def test_reopen_conflict_and_override(client, machine_id) -> None:
    old = _open(client, machine_id).json()
    client.post(f"/api/v1/stoppages/{old['id']}/close", headers=HEADERS)
    _open(client, machine_id, category="LUNCH")

    url = f"/api/v1/stoppages/{old['id']}/reopen"
    resp = client.post(url, headers=HEADERS)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "OTHER_OPEN"

    resp = client.post(url, json={"override": True}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["is_open"] is True


def test_patch_applies_only_sent_fields(client, machine_id) -> None:
    event = _open(client, machine_id, team="Shift A", start_time="2026-10-19T08:00:00").json()
    url = f"/api/v1/stoppages/{event['id']}"

    closed = client.patch(url, json={"end_time": "2026-10-19T09:00:00"}, headers=HEADERS).json()
    assert closed["intervention_minutes"] == 60
    assert closed["team"] == "Shift A"

    reopened = client.patch(url, json={"end_time": None, "category": "MEETING"}, headers=HEADERS).json()
    assert reopened["is_open"] is True
    assert reopened["type"] == "NON_OPERATIONAL"

    empty = client.patch(url, json={}, headers=HEADERS)
    assert empty.status_code == 400
    assert empty.json()["detail"]["kind"] == "VALIDATION"


def test_delete_then_not_found(client, machine_id) -> None:
    event = _open(client, machine_id).json()
    url = f"/api/v1/stoppages/{event['id']}"

    assert client.delete(url, headers=HEADERS).status_code == 204
    resp = client.get(url, headers=HEADERS)
    assert resp.status_code == 404
    assert resp.json()["detail"]["kind"] == "NOT_FOUND"

    machine = client.get(f"/api/v1/machines/{machine_id}", headers=HEADERS).json()
    assert machine["status"] == "RUNNING"


def test_validation_errors(client, machine_id) -> None:
    blank = _open(client, machine_id, reason="   ")
    assert blank.status_code == 400
    assert blank.json()["detail"]["kind"] == "VALIDATION"

    no_tenant = client.get("/api/v1/stoppages")
    assert no_tenant.status_code == 400


def test_tenant_isolation(client, foreign_machine_id) -> None:
    resp = _open(client, foreign_machine_id)
    assert resp.status_code == 404

    wildcard = client.post(
        "/api/v1/stoppages",
        json={"machine_id": foreign_machine_id, "reason": "Audit"},
        headers={"X-Tenant-Id": "*"},
    )
    assert wildcard.status_code == 200
    assert wildcard.json()["tenant_id"] == "tenant-b"

    assert client.get("/api/v1/stoppages", headers=HEADERS).json()["count"] == 0


def test_board_history_and_machine_filters(client, machine_id, other_machine_id) -> None:
    done = _open(client, machine_id, start_time="2026-10-19T07:00:00").json()
    client.post(
        f"/api/v1/stoppages/{done['id']}/close",
        json={"end_time": "2026-10-19T07:20:00"},
        headers=HEADERS,
    )
    _open(client, machine_id, category="CLEANING")
    _open(client, other_machine_id, category="TRAINING")

    board = client.get("/api/v1/stoppages/open", headers=HEADERS).json()
    assert board["count"] == 2
    assert {item["machine"]["code"] for item in board["items"]} == {"CNC-01", "CNC-02"}

    history = client.get("/api/v1/stoppages/history", params={"limit": 0}, headers=HEADERS).json()
    assert history["count"] == 1
    assert history["items"][0]["id"] == done["id"]

    open_only = client.get(
        f"/api/v1/machines/{machine_id}/stoppages", params={"state": "OPEN"}, headers=HEADERS
    ).json()
    assert [item["category"] for item in open_only["items"]] == ["CLEANING"]

    machines = client.get("/api/v1/machines", headers=HEADERS).json()
    assert [m["status"] for m in machines] == ["STOPPED", "STOPPED"]


def test_malformed_body_is_tagged_validation(client, machine_id) -> None:
    bad_time = _open(client, machine_id, start_time="not-a-date")
    assert bad_time.status_code == 400
    detail = bad_time.json()["detail"]
    assert detail["kind"] == "VALIDATION"
    assert "start_time" in detail["message"]

    no_reason = client.post("/api/v1/stoppages", json={"machine_id": machine_id}, headers=HEADERS)
    assert no_reason.status_code == 400
    assert no_reason.json()["detail"]["kind"] == "VALIDATION"
    assert "reason" in no_reason.json()["detail"]["message"]

    assert client.get("/api/v1/stoppages", headers=HEADERS).json()["count"] == 0


def test_machine_stoppages_state_is_case_insensitive(client, machine_id) -> None:
    _open(client, machine_id, category="CLEANING")
    url = f"/api/v1/machines/{machine_id}/stoppages"

    lower = client.get(url, params={"state": "open"}, headers=HEADERS)
    assert lower.status_code == 200
    assert lower.json()["count"] == 1

    unknown = client.get(url, params={"state": "sometimes"}, headers=HEADERS)
    assert unknown.status_code == 400
    assert unknown.json()["detail"]["kind"] == "VALIDATION"
