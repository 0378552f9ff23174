"""
Playout state.

A playout decision is the answer to "what plays on this channel right now":
the status, the source to play, the item it came from, and when it has to be
recomputed.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from lineartv.timeline.items import ScheduledItem


class PlayoutStatus(str, Enum):
    """Playout states."""

    NO_CHANNEL = "no_channel"
    LOADING = "loading"
    LIVE = "live"
    PLAYING_SCHEDULED = "playing_scheduled"
    PLAYING_STANDBY = "playing_standby"
    ERROR = "error"


class PlaybackRuntimeError(Exception):
    """The player failed while playing a resolved source."""

    def __init__(self, message: str, source_url: Optional[str] = None):
        super().__init__(message)
        self.source_url = source_url


@dataclass(frozen=True)
class PlayoutDecision:
    """
    Result of one playout evaluation.

    Attributes:
        channel_id: Channel the decision was made for
        namespace: Channel asset namespace (None for unknown channels)
        status: Playout state
        now: Instant the decision was computed for
        source_url: What the player should load (None when nothing plays)
        item: Active scheduled item, kept on standby fallback for its title
        next_item: Earliest item starting after ``now``
        boundary: Next instant at which the decision changes
        fallback: True when standby replaces an item that should be playing
        message: Human-readable status line
        title: Title shown to the viewer
    """

    channel_id: int
    status: PlayoutStatus
    now: datetime
    namespace: Optional[str] = None
    source_url: Optional[str] = None
    item: Optional[ScheduledItem] = None
    next_item: Optional[ScheduledItem] = None
    boundary: Optional[datetime] = None
    fallback: bool = False
    message: Optional[str] = None
    title: Optional[str] = None

    @property
    def is_standby(self) -> bool:
        return self.status == PlayoutStatus.PLAYING_STANDBY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "channel_id": self.channel_id,
            "status": self.status.value,
            "now": self.now.isoformat(),
            "source_url": self.source_url,
            "title": self.title,
            "item": self.item.to_dict() if self.item else None,
            "next": (
                {
                    "id": self.next_item.id,
                    "title": self.next_item.title,
                    "start_time": self.next_item.start_time.isoformat(),
                }
                if self.next_item
                else None
            ),
            "boundary": self.boundary.isoformat() if self.boundary else None,
            "fallback": self.fallback,
            "message": self.message,
        }
