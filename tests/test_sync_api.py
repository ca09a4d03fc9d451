"""
HTTP trigger and report endpoint tests.
"""
import pytest
from fastapi.testclient import TestClient

from artisan_sync.api import sync as sync_api
from artisan_sync.api import sync_logs as sync_logs_api
from artisan_sync.exceptions import AuthError
from artisan_sync.main import app
from artisan_sync.services.artisan_reconciler import ArtisanReconciler
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync.services.call_stats_service import CallStatsService
from artisan_sync.services.sync_run_logger import SyncRunLogger


@pytest.fixture
def run_logger(session_factory):
    return SyncRunLogger(session_factory=session_factory)


@pytest.fixture
def client(fake_client, session_factory, run_logger):
    service = ArtisanSyncService(
        client=fake_client,
        reconciler=ArtisanReconciler(session_factory=session_factory, source_name="VISHWAKARMA"),
        run_logger=run_logger,
        max_pages=10,
    )
    stats = CallStatsService(client=fake_client, session_factory=session_factory, source_name="VISHWAKARMA")

    app.dependency_overrides[sync_api.get_artisan_sync_service] = lambda: service
    app.dependency_overrides[sync_api.get_run_logger] = lambda: run_logger
    app.dependency_overrides[sync_logs_api.get_call_stats_service] = lambda: stats
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_reports_partner_client(client):
    body = client.get("/status").json()
    assert body["partner_api"]["name"] == "Fake"
    assert body["scheduler"]["enabled"] is False


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------

def test_background_daily_sync(client, fake_client, run_logger, make_artisan):
    fake_client.pages = [[make_artisan("1")]]

    response = client.post("/api/sync")

    assert response.status_code == 200
    assert response.json()["success"] is True
    run = run_logger.get_recent_history(1)[0]
    assert run["triggered_by"] == "CRON"
    assert run["records_inserted"] == 1


@pytest.mark.parametrize("method", ["get", "post"])
def test_background_yesterday_and_today(client, fake_client, method):
    response = getattr(client, method)("/api/sync-dates")

    assert response.status_code == 200
    assert len(fake_client.fetch_calls) == 2


def test_sync_for_date(client, fake_client, make_artisan):
    fake_client.pages = [[make_artisan("1"), make_artisan("2")]]

    response = client.post("/api/vishwakarma/logs/stats", json={"date": "2024-01-15"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["inserted"] == 2
    assert fake_client.fetch_calls[0] == ("2024-01-15", 1)


def test_sync_for_date_defaults_to_yesterday(client, fake_client):
    response = client.post("/api/vishwakarma/logs/stats")

    assert response.status_code == 200
    assert response.json()["data"]["date"] == fake_client.fetch_calls[0][0]


def test_sync_failure_returns_500(client, fake_client):
    fake_client.auth_error = AuthError("Authentication failed: bad password")

    response = client.post("/api/vishwakarma/logs/stats", json={"date": "2024-01-15"})

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "bad password" in response.json()["error"]


@pytest.mark.parametrize("bad_date", ["2024-13-01", "15-01-2024", "yesterday", "2024-02-30"])
def test_invalid_date_is_400(client, fake_client, bad_date):
    response = client.post("/api/vishwakarma/logs/stats", json={"date": bad_date})

    assert response.status_code == 400
    assert fake_client.auth_calls == 0


def test_push_stats_with_nothing_to_push(client, fake_client):
    response = client.post("/api/vishwakarma/logs/push-stats", json={"date": "2024-01-15"})

    assert response.status_code == 200
    assert response.json()["count"] == 0
    assert fake_client.pushed == []


def test_push_stats_failure_returns_500(client, fake_client):
    fake_client.auth_error = AuthError("Authentication failed: locked")

    response = client.post("/api/vishwakarma/logs/push-stats", json={"date": "2024-01-15"})

    assert response.status_code == 500
    assert response.json()["success"] is False


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def test_reports_after_runs(client, fake_client, make_artisan):
    fake_client.pages = [[make_artisan("1")]]
    client.post("/api/vishwakarma/logs/stats", json={"date": "2024-01-15"})
    client.post("/api/vishwakarma/logs/stats", json={"date": "2024-01-16"})

    report = client.get("/api/vishwakarma/logs/stats").json()["data"]
    assert report["summary"]["total_fetch_operations"] == 2
    assert report["metrics"]["success_rate"] == "100.00%"

    summary = client.get("/api/vishwakarma/logs/summary").json()["data"]
    assert summary["by_trigger"] == {"API_MANUAL": 2}
    assert summary["manual_triggered"] == 0

    recent = client.get("/api/vishwakarma/logs/recent", params={"limit": 1}).json()
    assert recent["count"] == 1
    assert recent["data"][0]["target_date"] == "2024-01-16"

    by_date = client.get("/api/vishwakarma/logs/date/2024-01-15").json()
    assert by_date["count"] == 1
    assert by_date["data"][0]["records_inserted"] == 1


@pytest.mark.parametrize("limit", [0, 101])
def test_recent_limit_bounds(client, limit):
    response = client.get("/api/vishwakarma/logs/recent", params={"limit": limit})
    assert response.status_code == 422


def test_history_for_invalid_date_is_400(client):
    assert client.get("/api/vishwakarma/logs/date/not-a-date").status_code == 400


def test_progress(client):
    body = client.get("/api/vishwakarma/logs/progress").json()
    assert body["active_sessions"] == []
    assert "background" in body
