"""
Derivation rules for updating a library entry.

A client sends only the fields it wants to change. ``apply_update`` works out
everything that follows from them (status, start/finish dates, last read time,
chapter snapping on completion) and returns the resulting change set without
touching the database.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from helpers.time_utils import utc_now, utc_today
from models.config import settings
from repositories.db_models import Book, BookTracking, TrackingStatus


class _Unset:
    """Marker for a patch field the client did not send."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class TrackingPatch:
    """
    Partial update of a library entry.

    Each field is either ``UNSET`` (not sent), ``None`` (sent as null) or a value.
    """

    rating: Any = UNSET
    notes: Any = UNSET
    current_chapter: Any = UNSET
    current_volume: Any = UNSET
    status: Any = UNSET

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def is_empty(self) -> bool:
        return not any(self.is_set(f.name) for f in fields(self))

    @classmethod
    def from_schema(cls, data: BaseModel) -> "TrackingPatch":
        """Build a patch from the fields the client actually sent."""
        sent = data.model_dump(exclude_unset=True)
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in sent.items() if key in known})


def normalize_chapter(
    value: Optional[int], zero_is_unset: Optional[bool] = None
) -> Optional[int]:
    """
    Apply the chapter-zero policy.

    With the policy on (``TRACKING_CHAPTER_ZERO_IS_UNSET``, the default),
    chapter 0 means "no chapter recorded" and is stored as None. With it off,
    chapter 0 is kept as a real position (e.g. a prologue).
    """
    if zero_is_unset is None:
        zero_is_unset = settings.TRACKING_CHAPTER_ZERO_IS_UNSET
    if zero_is_unset and value == 0:
        return None
    return value


def _reached(value: Optional[int], maximum: Optional[int]) -> bool:
    return bool(maximum) and value is not None and value >= maximum


def apply_update(
    record: BookTracking,
    book: Book,
    patch: TrackingPatch,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Compute the fields a patch changes on a tracking record.

    Later steps override earlier ones: a status side effect wins over a
    chapter or volume sent in the same patch.

    Args:
        record: Current tracking row (not modified)
        book: Tracked book, for its chapter and volume counts
        patch: Fields sent by the client
        now: Reference time, defaults to the current time

    Returns:
        Mapping of column name to new value, only for values that differ from
        the record. Empty when the patch changes nothing.
    """
    now = now or utc_now()
    today = utc_today(now)
    changes: dict[str, Any] = {}

    if patch.is_set("notes"):
        changes["notes"] = patch.notes
    if patch.is_set("rating"):
        # 0 is the "clear rating" value
        changes["rating"] = None if patch.rating == 0 else patch.rating

    chapter_sent = patch.is_set("current_chapter")
    volume_sent = patch.is_set("current_volume")

    new_chapter = (
        normalize_chapter(patch.current_chapter)
        if chapter_sent
        else record.current_chapter
    )
    new_volume = patch.current_volume if volume_sent else record.current_volume
    if chapter_sent:
        changes["current_chapter"] = new_chapter
    if volume_sent:
        changes["current_volume"] = new_volume

    progress_updated = (chapter_sent and new_chapter != record.current_chapter) or (
        volume_sent and new_volume != record.current_volume
    )
    has_progress = (new_chapter or 0) > 0 or (new_volume or 0) > 0
    progress_at_max = _reached(new_chapter, book.chapters) or _reached(
        new_volume, book.volumes
    )

    status_sent = patch.is_set("status") and patch.status is not None
    auto_assigned = False
    if status_sent:
        new_status = TrackingStatus(patch.status)
    elif progress_updated and progress_at_max:
        new_status = TrackingStatus.COMPLETED
        auto_assigned = True
    elif progress_updated and has_progress:
        new_status = TrackingStatus.READING
        auto_assigned = True
    else:
        new_status = record.status

    if progress_updated:
        changes["last_read_at"] = now if has_progress else None

    if status_sent or auto_assigned or new_status != record.status:
        changes["status"] = new_status

        if new_status == TrackingStatus.PLAN_TO_READ:
            changes.update(
                start_date=None,
                finish_date=None,
                last_read_at=None,
                current_chapter=None,
                current_volume=None,
            )
        elif new_status == TrackingStatus.READING:
            if record.start_date is None:
                changes["start_date"] = today
            changes["finish_date"] = None
        elif new_status == TrackingStatus.COMPLETED:
            if book.chapters and not chapter_sent:
                changes["current_chapter"] = book.chapters
            if book.volumes and not volume_sent:
                changes["current_volume"] = book.volumes
            if record.start_date is None:
                changes["start_date"] = today
            changes["finish_date"] = today
            if changes.get("last_read_at") is None:
                changes["last_read_at"] = now
        else:
            changes["finish_date"] = None

    return {
        name: value
        for name, value in changes.items()
        if getattr(record, name) != value
    }
