"""
Timeline domain types.

Plain, immutable views of channels and scheduled items as seen by the
playout resolver and the schedule extender. Every instant is timezone-aware
UTC; naive datetimes are taken to be UTC.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from lineartv.storage.references import AssetReference, try_parse_asset_reference

MIN_TIME = datetime.min.replace(tzinfo=timezone.utc)
MAX_TIME = datetime.max.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage_time(value: datetime) -> datetime:
    """Convert an instant to the naive UTC form stored in the database."""
    return ensure_utc(value).replace(tzinfo=None)


@dataclass(frozen=True)
class ChannelInfo:
    """Channel settings relevant to playout."""

    id: int
    name: str
    namespace: str
    live_override: bool = False
    live_source_ref: Optional[str] = None


@dataclass(frozen=True)
class ScheduledItem:
    """
    A timed item on a channel timeline.

    The asset reference is parsed once on construction; ``reference`` is None
    when the stored string cannot be parsed.
    """

    channel_id: int
    start_time: datetime
    duration_seconds: Optional[float]
    asset_ref: Optional[str]
    title: Optional[str] = None
    id: Optional[int] = None
    reference: Optional[AssetReference] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_time", ensure_utc(self.start_time))
        if self.reference is None and self.asset_ref:
            object.__setattr__(self, "reference", try_parse_asset_reference(self.asset_ref))

    @property
    def is_playable(self) -> bool:
        """Check the playable invariant: positive duration and a non-empty asset."""
        if self.duration_seconds is None or not math.isfinite(self.duration_seconds):
            return False
        if self.duration_seconds <= 0:
            return False
        return bool(self.asset_ref and self.asset_ref.strip())

    @property
    def duration(self) -> timedelta:
        """Scheduled duration; zero when unknown, capped at timedelta.max."""
        if self.duration_seconds is None or not math.isfinite(self.duration_seconds):
            return timedelta(0)
        try:
            return timedelta(seconds=self.duration_seconds)
        except OverflowError:
            return timedelta.max if self.duration_seconds > 0 else timedelta.min

    @property
    def end_time(self) -> datetime:
        """Scheduled end (start + duration), clamped to the representable range."""
        try:
            return self.start_time + self.duration
        except OverflowError:
            return MAX_TIME if self.duration_seconds > 0 else MIN_TIME

    def is_active_at(self, now: datetime) -> bool:
        """Check whether this item covers the instant ``now``."""
        return self.start_time <= now < self.end_time

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "channel_id": self.channel_id,
            "title": self.title,
            "asset_ref": self.asset_ref,
            "start_time": self.start_time.isoformat(),
            "duration": self.duration_seconds,
            "end_time": self.end_time.isoformat(),
            "playable": self.is_playable,
        }
