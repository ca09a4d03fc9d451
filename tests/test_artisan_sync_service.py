"""
Artisan sync run tests: pagination, failure handling and run history.
"""
import asyncio
from datetime import timedelta

import pytest

from artisan_sync.exceptions import AuthError, FetchError
from artisan_sync.models.user import UserAccount
from artisan_sync.services.artisan_reconciler import ArtisanReconciler
from artisan_sync.services.artisan_sync_service import ArtisanSyncService
from artisan_sync.services.sync_run_logger import SyncRunLogger
from artisan_sync.utils.helpers import local_today


def _run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


@pytest.fixture
def run_logger(session_factory):
    return SyncRunLogger(session_factory=session_factory, history_limit=1000)


@pytest.fixture
def service(fake_client, session_factory, run_logger):
    return ArtisanSyncService(
        client=fake_client,
        reconciler=ArtisanReconciler(session_factory=session_factory, source_name="VISHWAKARMA"),
        run_logger=run_logger,
        max_pages=10,
    )


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

def test_two_pages_then_empty_makes_three_fetches(service, fake_client, run_logger, make_artisan):
    fake_client.pages = [
        [make_artisan("1"), make_artisan("2")],
        [make_artisan("3")],
    ]

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert fake_client.fetch_calls == [("2024-01-15", 1), ("2024-01-15", 2), ("2024-01-15", 3)]
    assert fake_client.auth_calls == 1
    assert result["success"] is True
    assert result["date"] == "2024-01-15"
    assert result["inserted"] == 3
    assert result["updated"] == 0
    assert result["pages"] == 2

    history = run_logger.get_history_for_date("2024-01-15")
    assert len(history) == 1
    assert history[0]["status"] == "SUCCESS"
    assert history[0]["pages_fetched"] == 2
    assert history[0]["total_records"] == 3
    assert history[0]["triggered_by"] == "MANUAL"


def test_empty_first_page_is_a_successful_run(service, fake_client, run_logger):
    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is True
    assert result["inserted"] == 0
    assert fake_client.fetch_calls == [("2024-01-15", 1)]
    assert run_logger.get_recent_history(1)[0]["pages_fetched"] == 0


def test_resync_counts_updates(service, fake_client, make_artisan):
    fake_client.pages = [[make_artisan("1"), make_artisan("2")]]
    _run(service.sync_artisans_by_date("2024-01-15"))

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["inserted"] == 0
    assert result["updated"] == 2


def test_page_cap_fails_the_run(fake_client, session_factory, run_logger, make_artisan):
    fake_client.pages = [[make_artisan(str(i))] for i in range(1, 6)]
    service = ArtisanSyncService(
        client=fake_client,
        reconciler=ArtisanReconciler(session_factory=session_factory, source_name="VISHWAKARMA"),
        run_logger=run_logger,
        max_pages=3,
    )

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is False
    assert "3 pages" in result["error"]
    assert len(fake_client.fetch_calls) == 3

    run = run_logger.get_recent_history(1)[0]
    assert run["status"] == "FAILED"
    assert run["records_inserted"] == 3
    assert run["pages_fetched"] == 3


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------

def test_failing_record_is_skipped(service, fake_client, db, make_artisan):
    broken = make_artisan("2")
    broken["artisanId"] = None
    fake_client.pages = [[make_artisan("1"), broken, make_artisan("3")]]

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is True
    assert result["inserted"] == 2
    assert result["failed"] == 1
    assert {a.source_id for a in db.query(UserAccount).all()} == {"1", "3"}


class _FlakyReconciler(ArtisanReconciler):
    """Blows up with a plain runtime error on one artisan"""

    def __init__(self, bad_id, **kwargs):
        super().__init__(**kwargs)
        self.bad_id = bad_id

    def reconcile(self, artisan):
        if artisan.get("artisanId") == self.bad_id:
            raise RuntimeError("boom")
        return super().reconcile(artisan)


def test_unexpected_record_error_does_not_abort_the_run(fake_client, session_factory, run_logger, db, make_artisan):
    fake_client.pages = [[make_artisan("1"), make_artisan("2"), make_artisan("3")]]
    service = ArtisanSyncService(
        client=fake_client,
        reconciler=_FlakyReconciler("2", session_factory=session_factory, source_name="VISHWAKARMA"),
        run_logger=run_logger,
        max_pages=10,
    )

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is True
    assert result["inserted"] == 2
    assert result["failed"] == 1
    assert {a.source_id for a in db.query(UserAccount).all()} == {"1", "3"}
    assert run_logger.get_history_for_date("2024-01-15")[0]["status"] == "SUCCESS"


def test_auth_failure_fails_the_run(service, fake_client, run_logger):
    fake_client.auth_error = AuthError("Authentication failed: bad password")

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is False
    assert result["error"]
    assert fake_client.fetch_calls == []

    run = run_logger.get_history_for_date("2024-01-15")[0]
    assert run["status"] == "FAILED"
    assert "bad password" in run["error"]
    assert "AuthError" in run["error_details"]
    assert run_logger.active_sessions() == []


def test_fetch_failure_fails_the_run(service, fake_client, run_logger):
    fake_client.fetch_error = FetchError("returned 502", status=502)

    result = _run(service.sync_artisans_by_date("2024-01-15"))

    assert result["success"] is False
    assert run_logger.get_summary()["failed_fetches"] == 1


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

def test_sync_daily_targets_yesterday_as_cron(service, fake_client, run_logger):
    result = _run(service.sync_daily())

    yesterday = (local_today("UTC") - timedelta(days=1)).isoformat()
    assert result["date"] == yesterday
    assert run_logger.get_recent_history(1)[0]["triggered_by"] == "CRON"


def test_sync_yesterday_and_today_runs_both_in_order(service, fake_client, run_logger):
    result = _run(service.sync_yesterday_and_today("API_MANUAL"))

    today = local_today("UTC")
    assert result["success"] is True
    assert result["yesterday"]["date"] == (today - timedelta(days=1)).isoformat()
    assert result["today"]["date"] == today.isoformat()
    assert [d for d, _ in fake_client.fetch_calls] == [
        (today - timedelta(days=1)).isoformat(),
        today.isoformat(),
    ]
    assert run_logger.get_summary()["by_trigger"] == {"API_MANUAL": 2}
    assert run_logger.get_summary()["manual_triggered"] == 0
