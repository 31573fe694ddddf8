#!/usr/bin/env python3
"""
Delete expired strikes and resynchronize strike counters.

A lower strike count never lifts a ban; bans end on their own schedule or
through a moderator.

This script can be run:
- Via cron: 0 3 * * * cd /path/to/backend && python -m tasks.cleanup_user_strikes
- Via the built-in scheduler (SCHEDULER_ENABLED=true)
- Manually: python -m tasks.cleanup_user_strikes

Recommended: Run daily
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from loguru import logger  # noqa: E402

from core.correlation import correlation_scope  # noqa: E402
from repositories.database import SessionLocal  # noqa: E402
from services.maintenance_service import MaintenanceService  # noqa: E402

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def cleanup_user_strikes(
    db: "Session | None" = None,
) -> dict[str, int]:
    """
    Run cleanup for expired strikes.

    Args:
        db: Optional database session. If not provided, creates a new session.
            Useful for testing to inject a test database session.

    Returns:
        Dictionary with counts of deleted strikes and updated users
    """
    should_close = db is None
    if db is None:
        db = SessionLocal()

    with correlation_scope("task"):
        try:
            logger.info("Starting expired strike cleanup task")
            start_time = datetime.now(timezone.utc)

            results = MaintenanceService.cleanup_expired_strikes(db)

            elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
            logger.info(
                f"Strike cleanup completed in {elapsed:.2f}s - "
                f"deleted: {results['deleted_strikes']}, "
                f"users updated: {results['users_updated']}"
            )

            return results

        except Exception as e:
            logger.error(f"Strike cleanup failed: {e}")
            raise
        finally:
            if should_close:
                db.close()


if __name__ == "__main__":
    # Configure logging for standalone execution
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
    )

    try:
        result = cleanup_user_strikes()
        print(f"Cleanup completed: {result}")
        sys.exit(0)
    except Exception as e:
        print(f"Cleanup failed: {e}", file=sys.stderr)
        sys.exit(1)
