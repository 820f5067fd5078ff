"""Strava sync script - imports every activity into the local cache."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fitflex.config import get_settings
from fitflex.database import SessionLocal, run_migrations
from fitflex.logging_config import configure_logging
from fitflex.services.strava_service import StravaAPIError, StravaService
from fitflex.services.sync_service import ActivitySyncService


logger = logging.getLogger("scripts.sync_activities")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Full Strava activity sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync using the refresh token from the environment (STRAVA_REFRESH_TOKEN)
  python scripts/sync_activities.py

  # Sync with an explicit refresh token for a specific user id
  python scripts/sync_activities.py --refresh-token abc123 --user-id my-user
        """
    )
    parser.add_argument(
        "--refresh-token",
        type=str,
        default=os.environ.get("STRAVA_REFRESH_TOKEN"),
        help="Strava refresh token. Defaults to STRAVA_REFRESH_TOKEN."
    )
    parser.add_argument(
        "--user-id",
        type=str,
        help="Local user id to own the activities. Defaults to DEMO_USER_ID."
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    configure_logging()
    # Validate configuration early to surface missing credentials before work begins.
    settings = get_settings()

    if not args.refresh_token:
        logger.error("No refresh token. Pass --refresh-token or set STRAVA_REFRESH_TOKEN")
        sys.exit(1)

    user_id = args.user_id or settings.demo_user_id
    logger.info("Syncing Strava activities for %s", user_id)

    # Ensure database schema is up to date
    run_migrations()

    strava = StravaService(settings)
    try:
        tokens = strava.refresh_access_token(args.refresh_token)
    except StravaAPIError as e:
        logger.error("Token refresh failed: %s", e)
        sys.exit(1)

    db = SessionLocal()
    try:
        result = ActivitySyncService(db, strava=strava, settings=settings).run_full_sync(
            user_id, tokens["access_token"]
        )
        logger.info(
            "%s (%d updated, %d fetched)",
            result.message,
            result.activities_updated,
            result.total_activities,
        )
    except StravaAPIError as e:
        logger.error("Sync failed: %s", e)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
