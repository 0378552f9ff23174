"""
Playout: what each channel plays right now.
"""

from lineartv.playout.live import is_live, live_source_for
from lineartv.playout.resolver import PlayoutResolver, find_active_item, next_boundary
from lineartv.playout.session import (
    PlayoutSession,
    PlayoutSessionRegistry,
    get_session_registry,
)
from lineartv.playout.state import PlaybackRuntimeError, PlayoutDecision, PlayoutStatus

__all__ = [
    "is_live",
    "live_source_for",
    "PlayoutResolver",
    "find_active_item",
    "next_boundary",
    "PlayoutSession",
    "PlayoutSessionRegistry",
    "get_session_registry",
    "PlaybackRuntimeError",
    "PlayoutDecision",
    "PlayoutStatus",
]
