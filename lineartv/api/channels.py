"""Channel playout and listing endpoints"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import get_config
from ..playout.resolver import PlayoutResolver
from ..playout.state import PlayoutStatus
from ..timeline.items import ChannelInfo, ensure_utc, utc_now
from ..timeline.store import TimelineStore, TimelineStoreError
from .dependencies import get_resolver, get_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/channels", tags=["Channels"])


async def require_channel(channel_id: int, store: TimelineStore) -> ChannelInfo:
    """Get a channel or raise 404 (503 if the store is unavailable)."""
    try:
        channel = await store.get_channel(channel_id)
    except TimelineStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel {channel_id} not found",
        )
    return channel


@router.get("/{channel_id}/now-playing")
async def get_now_playing(
    channel_id: int,
    at: Optional[datetime] = Query(default=None, description="Resolve for this instant"),
    resolver: PlayoutResolver = Depends(get_resolver),
) -> dict[str, Any]:
    """Get what a channel plays right now.

    Args:
        channel_id: Channel ID
        at: Optional instant to resolve for (defaults to now)
        resolver: Playout resolver

    Returns:
        Playout decision
    """
    decision = await resolver.resolve(channel_id, at)

    if decision.status == PlayoutStatus.NO_CHANNEL:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel {channel_id} not found",
        )
    if decision.status == PlayoutStatus.ERROR:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=decision.message,
        )

    return decision.to_dict()


@router.get("/{channel_id}/programs")
async def get_programs(
    channel_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store: TimelineStore = Depends(get_store),
) -> dict[str, Any]:
    """List a channel's programs, optionally limited to a start time window.

    Non-playable programs are included and flagged.
    """
    await require_channel(channel_id, store)

    if start is not None and end is not None and ensure_utc(end) < ensure_utc(start):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end is before start",
        )

    try:
        if start is None and end is None:
            items = await store.list_all(channel_id)
        else:
            items = await store.list_between(
                channel_id,
                start if start is not None else datetime.min,
                end if end is not None else datetime.max,
            )
    except TimelineStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return {
        "channel_id": channel_id,
        "count": len(items),
        "programs": [item.to_dict() for item in items],
    }


@router.get("/{channel_id}/upcoming")
async def get_upcoming(
    channel_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    store: TimelineStore = Depends(get_store),
) -> dict[str, Any]:
    """List the next programs of a channel, for guides."""
    await require_channel(channel_id, store)

    now = utc_now()
    limit = limit or get_config().playout.upcoming_limit
    try:
        items = await store.list_starting_after(channel_id, now, limit=limit)
    except TimelineStoreError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return {
        "channel_id": channel_id,
        "now": now.isoformat(),
        "programs": [item.to_dict() for item in items],
    }
