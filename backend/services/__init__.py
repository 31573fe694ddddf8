"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .activity_logger import ActivityLogger
from .ban_service import BanService
from .library_service import LibraryService
from .maintenance_service import MaintenanceService
from .reading_progress_service import TrackingPatch, apply_update
from .report_service import ReportService

__all__ = [
    "ActivityLogger",
    "BanService",
    "LibraryService",
    "MaintenanceService",
    "ReportService",
    "TrackingPatch",
    "apply_update",
]
