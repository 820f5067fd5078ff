"""Service for interacting with the Strava REST API."""
from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlencode

import requests

from fitflex.config import Settings, get_settings


logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"
API_BASE = "https://www.strava.com/api/v3"
SCOPES = "read,activity:read_all"
REQUEST_TIMEOUT = 20


class StravaAPIError(RuntimeError):
    """Strava returned an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StravaAuthError(StravaAPIError):
    """Strava rejected the access token (HTTP 401)."""


class StravaService:
    """Thin wrapper around the Strava OAuth and athlete endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session = session or requests.Session()

    @property
    def redirect_uri(self) -> str:
        return self._settings.strava_redirect_uri

    def authorize_url(self) -> str:
        """Build the Strava consent page URL."""

        query = urlencode(
            {
                "client_id": self._settings.strava_client_id,
                "response_type": "code",
                "redirect_uri": self.redirect_uri,
                "approval_prompt": "force",
                "scope": SCOPES,
            },
            safe=",:/",
        )
        return f"{AUTHORIZE_URL}?{query}"

    def exchange_code(self, code: str) -> dict[str, Any]:
        """
        Exchange an OAuth authorization code for tokens.

        Returns:
            Strava token payload with ``access_token``, ``refresh_token``,
            ``expires_at`` and the ``athlete`` summary.
        """
        logger.info("Exchanging Strava authorization code for tokens")
        return self._post_token(
            {
                "client_id": self._settings.strava_client_id,
                "client_secret": self._settings.strava_client_secret,
                "code": code,
                "grant_type": "authorization_code",
            }
        )

    def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        """Trade a refresh token for a new access token."""

        logger.info("Refreshing Strava access token")
        return self._post_token(
            {
                "client_id": self._settings.strava_client_id,
                "client_secret": self._settings.strava_client_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )

    def _post_token(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._session.post(TOKEN_URL, data=data, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as err:
            raise StravaAPIError(f"Strava token request failed: {err}") from err
        return self._handle(response, "token exchange")

    def _get(self, path: str, access_token: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{API_BASE}{path}"
        try:
            response = self._session.get(
                url,
                headers={"Authorization": f"Bearer {access_token}"},
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as err:
            raise StravaAPIError(f"Strava request to {path} failed: {err}") from err
        return self._handle(response, path)

    @staticmethod
    def _handle(response: requests.Response, context: str) -> Any:
        if response.status_code == 401:
            logger.warning("Strava rejected credentials during %s", context)
            raise StravaAuthError("Strava authentication expired", status_code=401)
        if not response.ok:
            logger.error(
                "Strava API error during %s: %s %s",
                context,
                response.status_code,
                response.text[:500],
            )
            raise StravaAPIError(
                f"Strava API error: {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    def get_athlete(self, access_token: str) -> dict[str, Any]:
        """Fetch the authenticated athlete's profile."""

        return self._get("/athlete", access_token)

    def list_activities(
        self,
        access_token: str,
        page: int = 1,
        per_page: int = 200,
    ) -> list[dict[str, Any]]:
        """Fetch one page of the athlete's activities, newest first."""

        return self._get(
            "/athlete/activities",
            access_token,
            params={"per_page": per_page, "page": page},
        )

    def fetch_all_activities(self, access_token: str) -> list[dict[str, Any]]:
        """
        Page through every activity on the account.

        Pages are fetched one after another until an empty page comes back.
        After a full page the loop sleeps briefly to stay under Strava's rate
        limit. A hard page ceiling stops runaway loops.

        Returns:
            All activity payloads in the order Strava returned them.
        """
        per_page = self._settings.sync_page_size
        max_pages = self._settings.sync_max_pages
        activities: list[dict[str, Any]] = []
        page = 1

        while True:
            logger.info("Fetching page %d of Strava activities", page)
            batch = self.list_activities(access_token, page=page, per_page=per_page)
            if not batch:
                break

            activities.extend(batch)
            page += 1
            if len(batch) == per_page:
                time.sleep(self._settings.sync_page_delay_seconds)

            if page > max_pages:
                logger.warning("Reached maximum page limit (%d), stopping sync", max_pages)
                break

        logger.info("Fetched %d total activities from Strava", len(activities))
        return activities
