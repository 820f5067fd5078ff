"""Integration tests for the Strava connection, sync and dashboard endpoints."""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from fitflex.services.strava_service import StravaAPIError, StravaAuthError


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _activity_payload(activity_id: int, days_ago: int, **overrides) -> dict:
    start = datetime.now().replace(hour=7, minute=0, second=0, microsecond=0) - timedelta(days=days_ago)
    payload = {
        "id": activity_id,
        "name": f"Run {activity_id}",
        "type": "Run",
        "sport_type": "Run",
        "start_date": _iso(start),
        "start_date_local": _iso(start),
        "distance": 8000.0,
        "moving_time": 2640,
        "elapsed_time": 2700,
        "average_speed": 3.03,
        "average_heartrate": 125.0,
    }
    payload.update(overrides)
    return payload


class FakeStravaService:
    """Stands in for the Strava API in the router and the sync service."""

    activities: list[dict] = []
    athlete_error: Exception | None = None

    def __init__(self, settings=None, session=None):
        pass

    def authorize_url(self) -> str:
        return "https://www.strava.com/oauth/authorize?client_id=test-client-id"

    def exchange_code(self, code: str) -> dict:
        if code == "bad":
            raise StravaAPIError("Strava API error: 400", status_code=400)
        return {"access_token": "access-123", "refresh_token": "refresh-456", "athlete": {"id": 777}}

    def refresh_access_token(self, refresh_token: str) -> dict:
        return {"access_token": "access-refreshed", "refresh_token": refresh_token}

    def get_athlete(self, access_token: str) -> dict:
        if self.athlete_error is not None:
            raise self.athlete_error
        return {"id": 777, "firstname": "Alex", "lastname": "Kim"}

    def list_activities(self, access_token: str, page: int = 1, per_page: int = 200) -> list[dict]:
        if self.athlete_error is not None:
            raise self.athlete_error
        return self.activities[:per_page]

    def fetch_all_activities(self, access_token: str) -> list[dict]:
        return self.activities


@pytest.fixture()
def fake_strava(monkeypatch: pytest.MonkeyPatch):
    FakeStravaService.activities = [
        _activity_payload(1, days_ago=1),
        _activity_payload(2, days_ago=3, average_heartrate=None, average_speed=2.0),
        _activity_payload(3, days_ago=5, type="Ride", sport_type="Ride", distance=30000.0),
    ]
    FakeStravaService.athlete_error = None
    monkeypatch.setattr("fitflex.routers.strava.StravaService", FakeStravaService)
    monkeypatch.setattr("fitflex.services.sync_service.StravaService", FakeStravaService)
    return FakeStravaService


def _set_cookie_headers(response) -> str:
    return "; ".join(response.headers.get_list("set-cookie"))


class TestConnection:
    def test_status_without_cookie(self, test_client: TestClient):
        assert test_client.get("/api/strava/status").json() == {"connected": False, "athlete_id": None}

    def test_auth_redirects_to_strava(self, test_client: TestClient):
        response = test_client.get("/api/strava/auth", follow_redirects=False)

        assert response.status_code == 307
        location = response.headers["location"]
        assert location.startswith("https://www.strava.com/oauth/authorize?")
        assert "client_id=test-client-id" in location

    def test_callback_error(self, test_client: TestClient):
        response = test_client.get("/api/strava/callback?error=access_denied", follow_redirects=False)

        assert response.headers["location"] == "http://localhost:8000?error=strava_auth_failed"

    def test_callback_token_failure(self, test_client: TestClient, fake_strava):
        response = test_client.get("/api/strava/callback?code=bad", follow_redirects=False)

        assert response.headers["location"] == "http://localhost:8000?error=strava_token_failed"

    def test_callback_sets_cookies(self, test_client: TestClient, fake_strava):
        response = test_client.get("/api/strava/callback?code=good", follow_redirects=False)

        assert response.headers["location"] == "http://localhost:8000?strava=connected"
        cookies = _set_cookie_headers(response)
        assert "strava_access_token=access-123" in cookies
        assert "strava_refresh_token=refresh-456" in cookies
        assert "strava_athlete_id=777" in cookies
        assert "HttpOnly" in cookies

        status = test_client.get("/api/strava/status").json()
        assert status == {"connected": True, "athlete_id": "777"}

    def test_disconnect(self, test_client: TestClient):
        test_client.cookies.set("strava_access_token", "access-123")

        response = test_client.delete("/api/strava/status")

        assert response.json() == {"success": True, "connected": False}
        assert 'strava_access_token=""' in _set_cookie_headers(response)


class TestSync:
    def test_requires_connection(self, test_client: TestClient):
        response = test_client.post("/api/strava/sync")

        assert response.status_code == 401
        assert response.json()["error"] == "Not connected to Strava"

    def test_full_sync(self, test_client: TestClient, fake_strava):
        test_client.cookies.set("strava_access_token", "access-123")

        response = test_client.post("/api/strava/sync")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["activities_synced"] == 3
        assert data["activities_updated"] == 0
        assert data["athlete_info"] == {"name": "Alex Kim", "total_activities": 3}

        status = test_client.get("/api/strava/sync").json()
        assert status["has_data"] is True
        assert status["total_activities"] == 3
        assert status["last_sync"]["status"] == "completed"

    def test_refresh_token_is_used_when_access_token_missing(self, test_client: TestClient, fake_strava):
        test_client.cookies.set("strava_refresh_token", "refresh-456")

        response = test_client.post("/api/strava/sync")

        assert response.status_code == 200
        assert "strava_access_token=access-refreshed" in _set_cookie_headers(response)

    def test_expired_token_clears_cookies(self, test_client: TestClient, fake_strava):
        fake_strava.athlete_error = StravaAuthError("Strava authentication expired", status_code=401)
        test_client.cookies.set("strava_access_token", "expired")

        response = test_client.post("/api/strava/sync")

        assert response.status_code == 401
        assert response.json()["error"] == "Strava authentication expired"
        assert 'strava_access_token=""' in _set_cookie_headers(response)

    def test_other_failures(self, test_client: TestClient, fake_strava):
        fake_strava.athlete_error = StravaAPIError("Strava API error: 503", status_code=503)
        test_client.cookies.set("strava_access_token", "access-123")

        response = test_client.post("/api/strava/sync")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Sync failed",
            "message": "There was an error syncing your Strava activities",
            "connected": True,
        }

    def test_failure_keeps_refreshed_tokens(self, test_client: TestClient, fake_strava):
        fake_strava.athlete_error = StravaAPIError("Strava API error: 503", status_code=503)
        test_client.cookies.set("strava_refresh_token", "refresh-456")

        response = test_client.post("/api/strava/sync")

        assert response.status_code == 500
        cookies = _set_cookie_headers(response)
        assert "strava_access_token=access-refreshed" in cookies
        assert "strava_refresh_token=refresh-456" in cookies


class TestCachedData:
    def test_dashboard_needs_sync(self, test_client: TestClient):
        response = test_client.get("/api/strava/activities-cached")

        assert response.status_code == 404
        assert response.json()["needs_sync"] is True

    def test_dashboard_after_sync(self, test_client: TestClient, fake_strava):
        test_client.cookies.set("strava_access_token", "access-123")
        test_client.post("/api/strava/sync")

        data = test_client.get("/api/strava/activities-cached").json()

        assert data["is_cached_data"] is True
        assert [row["id"] for row in data["recent_activities"]] == [1, 2]
        assert data["summary"]["total_runs"] == 2
        assert data["summary"]["total_distance"] == 16.0
        assert len(data["weekly_data"]) == 8
        assert sum(bucket["runs"] for bucket in data["performance_data"]) == 2
        assert data["total_activities_in_cache"] == 3

    def test_all_activities(self, test_client: TestClient, fake_strava):
        test_client.cookies.set("strava_access_token", "access-123")
        test_client.post("/api/strava/sync")

        data = test_client.get("/api/strava/all-activities").json()

        assert data["total_activities_returned"] == 2
        assert all(row["type"] == "Run" for row in data["activities"])

    def test_zone2_runs(self, test_client: TestClient, fake_strava):
        test_client.post("/api/preferences", json={"max_hr": 190})
        test_client.cookies.set("strava_access_token", "access-123")
        test_client.post("/api/strava/sync")

        data = test_client.get("/api/strava/zone2-runs").json()

        assert data["calculation_method"] == "maxhr"
        assert data["hr_zones"]["zone2"] == {"min": 114, "max": 133}
        assert [row["id"] for row in data["zone2_runs"]] == [1, 2]
        assert [row["zone2_method"] for row in data["zone2_runs"]] == ["heartrate", "pace"]
        assert data["summary"]["zone2_percentage"] == 100
        assert data["analysis_method"]["total_activities_analyzed"] == 2

    def test_zone2_needs_sync(self, test_client: TestClient):
        response = test_client.get("/api/strava/zone2-runs")

        assert response.status_code == 404
        assert response.json()["zone2_runs"] == []


class TestLiveData:
    def test_requires_connection(self, test_client: TestClient):
        response = test_client.get("/api/strava/activities")

        assert response.status_code == 401
        assert response.json()["connected"] is False

    def test_aggregates_runs_without_a_sync(self, test_client: TestClient, fake_strava):
        test_client.cookies.set("strava_access_token", "access-123")

        response = test_client.get("/api/strava/activities")

        assert response.status_code == 200
        data = response.json()
        assert data["is_cached_data"] is False
        assert [row["id"] for row in data["recent_activities"]] == [1, 2]
        assert data["summary"]["total_runs"] == 2
        assert data["summary"]["total_distance"] == 16.0
        assert len(data["weekly_data"]) == 8
        assert sum(bucket["runs"] for bucket in data["performance_data"]) == 2
        assert test_client.get("/api/strava/sync").json()["has_data"] is False

    def test_no_runs(self, test_client: TestClient, fake_strava):
        fake_strava.activities = [_activity_payload(3, days_ago=5, type="Ride", sport_type="Ride")]
        test_client.cookies.set("strava_access_token", "access-123")

        data = test_client.get("/api/strava/activities").json()

        assert data["recent_activities"] == []
        assert data["summary"]["total_runs"] == 0

    def test_expired_token(self, test_client: TestClient, fake_strava):
        fake_strava.athlete_error = StravaAuthError("Strava authentication expired", status_code=401)
        test_client.cookies.set("strava_access_token", "expired")

        response = test_client.get("/api/strava/activities")

        assert response.status_code == 401
        assert response.json()["connected"] is False
        assert 'strava_access_token=""' in _set_cookie_headers(response)
