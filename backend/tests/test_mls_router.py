"""API tests for the MLS sync endpoints."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mls_sync.config import settings  # noqa: E402
from mls_sync.models.sync_log import SyncLog  # noqa: E402
from mls_sync.schemas.sync import SyncResult  # noqa: E402


@pytest.fixture(autouse=True)
def _no_mls_key(monkeypatch):
    """Keep the real feed client in its unconfigured, offline mode."""
    monkeypatch.setattr(settings, "mls_api_key", "")


class TestTriggerSync:
    def test_sync_with_unconfigured_feed(self, client):
        response = client.post("/api/mls/sync", json={})
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "MLS sync completed successfully",
            "recordsProcessed": 0,
            "recordsAdded": 0,
            "recordsUpdated": 0,
            "recordsDeleted": 0,
        }

    def test_sync_without_body(self, client):
        response = client.post("/api/mls/sync")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_options_are_forwarded(self, client):
        mock_sync = AsyncMock(
            return_value=SyncResult(records_processed=4, records_added=3, records_updated=1)
        )
        with patch("mls_sync.routers.mls.sync_service.sync_listings", mock_sync):
            response = client.post("/api/mls/sync", json={"limit": 25, "status": "Sold"})

        assert response.status_code == 200
        body = response.json()
        assert body["recordsProcessed"] == 4
        assert body["recordsAdded"] == 3
        assert body["recordsUpdated"] == 1
        kwargs = mock_sync.await_args.kwargs
        assert kwargs["limit"] == 25
        assert kwargs["status"] == "Sold"

    def test_failure_returns_500(self, client):
        mock_sync = AsyncMock(side_effect=RuntimeError("MLS API returned 502"))
        with patch("mls_sync.routers.mls.sync_service.sync_listings", mock_sync):
            response = client.post("/api/mls/sync", json={})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "MLS API returned 502"}

    @pytest.mark.parametrize("limit", [0, -3, None, "lots"])
    def test_unusable_limit_falls_back_to_default(self, client, limit):
        mock_sync = AsyncMock(return_value=SyncResult())
        with patch("mls_sync.routers.mls.sync_service.sync_listings", mock_sync):
            response = client.post("/api/mls/sync", json={"limit": limit})

        assert response.status_code == 200
        assert mock_sync.await_args.kwargs["limit"] is None

    def test_large_limit_is_accepted(self, client):
        mock_sync = AsyncMock(return_value=SyncResult())
        with patch("mls_sync.routers.mls.sync_service.sync_listings", mock_sync):
            response = client.post("/api/mls/sync", json={"limit": 5000})

        assert response.status_code == 200
        assert mock_sync.await_args.kwargs["limit"] == 5000


class TestSyncStatus:
    def test_logs_newest_first(self, client, db):
        older = SyncLog(
            sync_type="full",
            status="success",
            records_processed=2,
            records_added=2,
            started_at=datetime(2024, 1, 1, 8, 0),
            completed_at=datetime(2024, 1, 1, 8, 5),
        )
        newer = SyncLog(
            sync_type="full",
            status="error",
            error_message="boom",
            started_at=datetime(2024, 1, 2, 8, 0),
        )
        db.add_all([newer, older])
        db.commit()
        first, second = older.id, newer.id

        response = client.get("/api/mls/sync/status")
        assert response.status_code == 200
        logs = response.json()["logs"]
        assert [log["id"] for log in logs] == [second, first]
        assert logs[0]["status"] == "error"
        assert logs[0]["errorMessage"] == "boom"
        assert logs[1]["recordsAdded"] == 2
        assert logs[1]["syncType"] == "full"
        assert "startedAt" in logs[1]
        assert "completedAt" in logs[1]

    def test_limit_param(self, client):
        client.post("/api/mls/sync", json={})
        client.post("/api/mls/sync", json={})
        client.post("/api/mls/sync", json={})

        response = client.get("/api/mls/sync/status", params={"limit": 2})
        assert len(response.json()["logs"]) == 2

    def test_large_limit_is_accepted(self, client):
        response = client.get("/api/mls/sync/status", params={"limit": 200})
        assert response.status_code == 200

    @pytest.mark.parametrize("limit", ["0", "-1", "abc", "2.5"])
    def test_unusable_limit_falls_back_to_ten(self, client, db, limit):
        db.add_all(
            SyncLog(sync_type="full", status="success", started_at=datetime(2024, 1, day))
            for day in range(1, 13)
        )
        db.commit()

        response = client.get("/api/mls/sync/status", params={"limit": limit})
        assert response.status_code == 200
        assert len(response.json()["logs"]) == 10

    def test_empty(self, client):
        response = client.get("/api/mls/sync/status")
        assert response.json() == {"logs": []}


class TestConfigAndHealth:
    def test_config_unconfigured(self, client):
        response = client.get("/api/mls/config")
        assert response.json() == {
            "configured": False,
            "apiUrl": settings.mls_api_url,
            "hasApiKey": False,
        }

    def test_config_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "mls_api_key", "secret")
        body = client.get("/api/mls/config").json()
        assert body["configured"] is True
        assert body["hasApiKey"] is True

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
