"""
Channel timelines: domain items and the timeline store.
"""

from lineartv.timeline.items import (
    ChannelInfo,
    ScheduledItem,
    ensure_utc,
    to_storage_time,
    utc_now,
)
from lineartv.timeline.store import (
    SQLTimelineStore,
    TimelineStore,
    TimelineStoreError,
    get_timeline_store,
    reset_timeline_store,
)

__all__ = [
    "ChannelInfo",
    "ScheduledItem",
    "ensure_utc",
    "to_storage_time",
    "utc_now",
    "SQLTimelineStore",
    "TimelineStore",
    "TimelineStoreError",
    "get_timeline_store",
    "reset_timeline_store",
]
