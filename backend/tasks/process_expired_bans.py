#!/usr/bin/env python3
"""
Lift temporary bans that have run out.

Banned users are also unbanned lazily when they next make a request; this
task makes the stored state catch up for everyone else.

This script can be run:
- Via cron: */30 * * * * cd /path/to/backend && python -m tasks.process_expired_bans
- Via the built-in scheduler (SCHEDULER_ENABLED=true)
- Manually: python -m tasks.process_expired_bans

Recommended: Run every 30 minutes
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


def process_expired_bans(
    db: "Session | None" = None,
) -> dict[str, int]:
    """
    Unban every user whose temporary ban has ended.

    Args:
        db: Optional database session. If not provided, creates a new session.
            Useful for testing to inject a test database session.

    Returns:
        Dictionary with the number of unbanned users
    """
    should_close = db is None
    if db is None:
        db = SessionLocal()

    with correlation_scope("task"):
        try:
            logger.info("Starting expired ban processing task")
            start_time = datetime.now(timezone.utc)

            unbanned_count = MaintenanceService.reconcile_expired_bans(db)

            elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
            logger.info(
                f"Expired ban processing completed in {elapsed:.2f}s - "
                f"unbanned: {unbanned_count}"
            )

            return {"unbanned_count": unbanned_count}

        except Exception as e:
            logger.error(f"Expired ban processing failed: {e}")
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
        result = process_expired_bans()
        print(f"Expired bans processed: {result}")
        sys.exit(0)
    except Exception as e:
        print(f"Expired ban processing failed: {e}", file=sys.stderr)
        sys.exit(1)
