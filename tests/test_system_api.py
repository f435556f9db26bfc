from datetime import date, datetime

from tutorcenter.routes import system_fastapi
from tutorcenter.services import generation_ledger
from tutorcenter.services.payment_scheduler import GenerationCheckState


def test_health_check(client):
    response = client.get("/api/v1/system/payments")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_check_missed_lists_recent_months(client, db):
    today = date.today()
    token = generation_ledger.begin_run(db, today.month, today.year)
    generation_ledger.complete_run(db, today.month, today.year, 5, run_token=token)

    response = client.get("/api/v1/system/payments", params={"check_missed": True})

    assert response.status_code == 200
    statuses = response.json()["payment_generation_status"]
    assert len(statuses) == 3
    assert statuses[0] == {"month": today.month, "year": today.year,
                           "generated": True, "complete": True, "count": 5}
    assert statuses[1]["generated"] is False


class EndOfJanuary(datetime):
    @classmethod
    def now(cls, tz=None):
        return cls(2025, 1, 31, 23, 59, 30)


def test_check_missed_reports_the_date_it_scanned_from(client, monkeypatch):
    monkeypatch.setattr(system_fastapi, "datetime", EndOfJanuary)

    data = client.get("/api/v1/system/payments", params={"check_missed": True}).json()

    assert data["current_date"].startswith("2025-01-31T23:59")
    assert [(s["month"], s["year"]) for s in data["payment_generation_status"]] == [
        (1, 2025), (12, 2024), (11, 2024)
    ]


def test_check_missed_custom_window(client):
    response = client.get("/api/v1/system/payments", params={"check_missed": True, "window": 6})

    assert len(response.json()["payment_generation_status"]) == 6


def test_check_missed_rejects_empty_window(client):
    response = client.get("/api/v1/system/payments", params={"check_missed": True, "window": 0})

    assert response.status_code == 400


def test_period_status(client, db):
    assert client.get("/api/v1/system/payments/status/2025/4").status_code == 404

    generation_ledger.begin_run(db, 4, 2025, generated_by="manager")
    response = client.get("/api/v1/system/payments/status/2025/4")

    assert response.status_code == 200
    assert response.json()["is_complete"] is False
    assert response.json()["generated_by"] == "manager"


def test_period_status_invalid_month(client):
    assert client.get("/api/v1/system/payments/status/2025/13").status_code == 400


def test_history(client, db):
    for month in (2, 3):
        generation_ledger.begin_run(db, month, 2025)

    response = client.get("/api/v1/system/payments/history")

    assert [(s["month"], s["year"]) for s in response.json()] == [(3, 2025), (2, 2025)]


def test_recovery_requires_admin(client, staff_headers):
    response = client.post("/api/v1/system/payments", json={"month": 4, "year": 2025}, headers=staff_headers)

    assert response.status_code == 403


def test_recovery_generates_period(client, seed, admin_headers):
    seed.enrolled_student("S1", "C1")

    response = client.post("/api/v1/system/payments", json={"month": 4, "year": 2025}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Recovery process executed for 4/2025"
    assert data["result"]["new_count"] == 1


def test_check_current_month_rejects_remote_callers(client):
    response = client.post("/api/v1/system/payments/check-current-month")

    assert response.status_code == 401


def test_check_current_month_with_system_header(client, seed):
    seed.enrolled_student("S1", "C1")
    today = date.today()

    first = client.post("/api/v1/system/payments/check-current-month", headers={"x-system-check": "1"})
    second = client.post("/api/v1/system/payments/check-current-month", headers={"x-system-check": "1"})

    assert first.status_code == 200
    assert first.json()["result"]["new_count"] == 1
    assert second.json()["message"] == f"Payments already generated for {today.month}/{today.year}"


def test_requests_trigger_background_check(client, seed, ledger_row):
    seed.enrolled_student("S1", "C1")
    today = date.today()
    client.app.state.generation_check_state = GenerationCheckState(interval_seconds=3600, enabled=True)

    response = client.get("/")

    assert response.status_code == 200
    assert ledger_row(today.month, today.year).is_complete is True


def test_background_check_runs_once_per_interval(client, seed, db, monkeypatch):
    seed.enrolled_student("S1", "C1")
    calls = []
    monkeypatch.setattr("main.run_scheduled_check", lambda factory: calls.append(factory))
    client.app.state.generation_check_state = GenerationCheckState(interval_seconds=3600, enabled=True)

    client.get("/")
    client.get("/")
    client.get("/api/v1/system/payments")

    assert len(calls) == 1
