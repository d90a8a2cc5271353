import pytest
from sqlalchemy.exc import OperationalError

from src.activity.schemas import ActivityType
from src.activity.service import ActivityLogService
from src.models import ActivityLog
from tests.utils import auth_headers


def log_types(client, admin, **params):
    response = client.get("/api/logs", params=params, headers=auth_headers(admin))
    assert response.status_code == 200
    return [entry["type"] for entry in response.json()["data"]]


# ============================================================================
# Recording
# ============================================================================


@pytest.mark.unit
class TestActivityLogService:
    def test_record_and_list_newest_first(self, db, admin):
        ActivityLogService.record(db, ActivityType.INFO, "First", user=admin)
        ActivityLogService.record(db, ActivityType.WARNING, "Second")

        entries = ActivityLogService.list_recent(db)

        assert [e.action for e in entries] == ["Second", "First"]
        assert entries[0].user is None
        assert entries[1].user.email == "admin@kocrou.ci"

    def test_list_filters_by_type(self, db):
        ActivityLogService.record(db, ActivityType.INFO, "Routine")
        ActivityLogService.record(db, ActivityType.SECURITY, "Suspicious")

        entries = ActivityLogService.list_recent(db, ActivityType.SECURITY)

        assert [e.action for e in entries] == ["Suspicious"]

    def test_failed_write_is_logged_not_raised(self, db, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT INTO logs", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", broken_commit)

        assert ActivityLogService.record(db, ActivityType.INFO, "Lost") is None
        monkeypatch.undo()
        assert db.query(ActivityLog).count() == 0

    def test_purge_keeps_a_trace(self, db, admin):
        for action in ("One", "Two", "Three"):
            ActivityLogService.record(db, ActivityType.INFO, action)

        deleted = ActivityLogService.purge(db, admin)

        assert deleted == 3
        remaining = db.query(ActivityLog).all()
        assert len(remaining) == 1
        assert remaining[0].type == "security"
        assert remaining[0].user_id == admin.id


# ============================================================================
# Audited endpoints
# ============================================================================


@pytest.mark.integration
class TestAuditedActions:
    def test_login_is_recorded(self, client, admin, passenger):
        client.post("/api/auth/login", json={"email": passenger.email, "password": "secret123"})

        body = client.get("/api/logs", headers=auth_headers(admin)).json()

        assert body["total"] == 1
        assert body["data"][0]["type"] == "login"
        assert body["data"][0]["user"]["email"] == "awa@example.com"

    def test_failed_login_is_not_recorded(self, client, admin, passenger):
        client.post("/api/auth/login", json={"email": passenger.email, "password": "wrong-one"})

        assert log_types(client, admin) == []

    def test_trip_update_and_retirement_are_recorded(self, client, admin, trip):
        client.put(f"/api/trips/{trip.id}", json={"price": 6000}, headers=auth_headers(admin))
        client.delete(f"/api/trips/{trip.id}", headers=auth_headers(admin))

        assert log_types(client, admin) == ["trajet_delete", "trajet_update"]
        assert log_types(client, admin, type="trajet_update") == ["trajet_update"]

    def test_admin_cancellation_is_recorded(self, client, admin, passenger, allocator, trip):
        reservation = allocator.reserve(trip.id, passenger.id, seat=1)

        client.put(f"/api/reservations/admin/{reservation.id}/cancel", headers=auth_headers(admin))

        body = client.get("/api/logs", headers=auth_headers(admin)).json()
        assert body["data"][0]["type"] == "reservation_cancel"
        assert f"reservation {reservation.id}" in body["data"][0]["details"]

    def test_entries_outlive_the_account(self, client, admin, passenger):
        client.post("/api/auth/login", json={"email": passenger.email, "password": "secret123"})

        assert client.delete(f"/api/users/{passenger.id}", headers=auth_headers(admin)).status_code == 204

        entry = client.get("/api/logs", headers=auth_headers(admin)).json()["data"][0]
        assert entry["type"] == "login"
        assert entry["user"] is None


@pytest.mark.integration
class TestActivityEndpoints:
    def test_logs_are_admin_only(self, client, passenger):
        assert client.get("/api/logs", headers=auth_headers(passenger)).status_code == 403
        assert client.delete("/api/logs", headers=auth_headers(passenger)).status_code == 403

    def test_purge(self, client, admin, passenger):
        client.post("/api/auth/login", json={"email": passenger.email, "password": "secret123"})

        response = client.delete("/api/logs", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["deleted"] == 1
        assert log_types(client, admin) == ["security"]

    def test_unknown_type_filter_is_a_validation_error(self, client, admin):
        response = client.get("/api/logs", params={"type": "nonsense"}, headers=auth_headers(admin))

        assert response.status_code == 422
