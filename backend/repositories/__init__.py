"""
Repository pattern implementation for data access layer.
"""

from .activity_log_repository import ActivityLogRepository
from .base import BaseRepository
from .report_repository import ReportRepository
from .strike_repository import StrikeRepository
from .tracking_repository import BookRepository, TrackingRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityLogRepository",
    "BaseRepository",
    "BookRepository",
    "ReportRepository",
    "StrikeRepository",
    "TrackingRepository",
    "UserRepository",
]
