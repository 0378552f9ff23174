"""
Playout Resolver.

Determines what a channel plays at a given instant:

1. Unknown channel -> NO_CHANNEL
2. Live override -> LIVE, no timeline reads
3. Active item found and resolvable -> PLAYING_SCHEDULED
4. Active item found but its asset cannot be located -> PLAYING_STANDBY
   (item title kept, fallback flagged)
5. Nothing active -> PLAYING_STANDBY, waiting for the next program
6. Timeline store failure or any unexpected error -> ERROR

Each decision also carries the next boundary: the earlier of the active
item's end and the next item's start.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from lineartv.config import LiveConfig, PlayoutConfig, get_config
from lineartv.playout.live import live_source_for
from lineartv.playout.state import PlayoutDecision, PlayoutStatus
from lineartv.storage.locator import AssetLocator
from lineartv.storage.references import ReferenceUnresolvable
from lineartv.timeline.items import ScheduledItem, ensure_utc, utc_now
from lineartv.timeline.store import TimelineStore, TimelineStoreError

logger = logging.getLogger(__name__)


def find_active_item(
    recent: Iterable[ScheduledItem],
    now: datetime,
) -> Optional[ScheduledItem]:
    """
    Find the item playing at ``now``.

    Args:
        recent: Items that started on or before ``now``, most recent first
            (ties on start time already ordered by id descending)
        now: Instant to check

    Returns:
        The first playable item still running at ``now``, or None
    """
    for item in recent:
        if not item.is_playable:
            continue
        if item.is_active_at(now):
            return item
    return None


def next_boundary(
    active: Optional[ScheduledItem],
    next_item: Optional[ScheduledItem],
) -> Optional[datetime]:
    """Get the next instant the decision changes, or None if it never does."""
    candidates = []
    if active is not None:
        candidates.append(active.end_time)
    if next_item is not None:
        candidates.append(next_item.start_time)
    return min(candidates) if candidates else None


class PlayoutResolver:
    """
    Resolves a channel's current playout.

    Usage:
        resolver = PlayoutResolver(store, get_asset_locator())
        decision = await resolver.resolve(channel_id=5)
        print(decision.status, decision.source_url, decision.boundary)
    """

    def __init__(
        self,
        store: TimelineStore,
        locator: AssetLocator,
        playout_config: Optional[PlayoutConfig] = None,
        live_config: Optional[LiveConfig] = None,
    ):
        config = get_config()
        self.store = store
        self.locator = locator
        self.playout_config = playout_config or config.playout
        self.live_config = live_config or config.live

    async def resolve(
        self,
        channel_id: int,
        now: Optional[datetime] = None,
    ) -> PlayoutDecision:
        """
        Compute the playout decision for a channel.

        Never raises: store and unexpected failures become ERROR decisions,
        unlocatable assets become PLAYING_STANDBY.

        Args:
            channel_id: Channel to resolve
            now: Instant to resolve for (defaults to the current time)

        Returns:
            PlayoutDecision
        """
        now = ensure_utc(now) if now is not None else utc_now()

        try:
            return await self._decide(channel_id, now)
        except Exception as e:
            logger.exception(f"Playout for channel {channel_id} failed")
            return PlayoutDecision(
                channel_id=channel_id,
                status=PlayoutStatus.ERROR,
                now=now,
                message=f"Playout failed: {e}",
            )

    async def _decide(self, channel_id: int, now: datetime) -> PlayoutDecision:
        try:
            channel = await self.store.get_channel(channel_id)
            if channel is None:
                logger.debug(f"Channel {channel_id} not found")
                return PlayoutDecision(
                    channel_id=channel_id,
                    status=PlayoutStatus.NO_CHANNEL,
                    now=now,
                    message="Channel not found",
                )

            live_source = live_source_for(channel, self.live_config)
            if live_source:
                return PlayoutDecision(
                    channel_id=channel_id,
                    namespace=channel.namespace,
                    status=PlayoutStatus.LIVE,
                    now=now,
                    source_url=live_source,
                    title=channel.name,
                    message="Live",
                )

            recent = await self.store.list_started_on_or_before(
                channel_id, now, self.playout_config.recent_window
            )
            upcoming = await self.store.list_starting_after(channel_id, now, limit=1)
        except TimelineStoreError as e:
            logger.error(f"Playout for channel {channel_id} failed: {e}")
            return PlayoutDecision(
                channel_id=channel_id,
                status=PlayoutStatus.ERROR,
                now=now,
                message=f"Timeline unavailable: {e}",
            )

        active = find_active_item(recent, now)
        next_item = upcoming[0] if upcoming else None
        boundary = next_boundary(active, next_item)

        if active is None:
            return PlayoutDecision(
                channel_id=channel_id,
                namespace=channel.namespace,
                status=PlayoutStatus.PLAYING_STANDBY,
                now=now,
                source_url=self.locator.standby_url(channel.namespace),
                next_item=next_item,
                boundary=boundary,
                title=self.playout_config.standby_title,
                message=self.playout_config.waiting_message,
            )

        try:
            resolved = self.locator.resolve(
                active.reference if active.reference is not None else (active.asset_ref or ""),
                channel.namespace,
            )
        except ReferenceUnresolvable as e:
            logger.warning(
                f"Asset for program {active.id} on channel {channel_id} "
                f"could not be located: {e}"
            )
            return PlayoutDecision(
                channel_id=channel_id,
                namespace=channel.namespace,
                status=PlayoutStatus.PLAYING_STANDBY,
                now=now,
                source_url=self.locator.standby_url(channel.namespace),
                item=active,
                next_item=next_item,
                boundary=boundary,
                fallback=True,
                title=active.title,
                message="Asset unavailable, playing standby",
            )

        return PlayoutDecision(
            channel_id=channel_id,
            namespace=channel.namespace,
            status=PlayoutStatus.PLAYING_SCHEDULED,
            now=now,
            source_url=resolved.url,
            item=active,
            next_item=next_item,
            boundary=boundary,
            title=active.title,
        )

    def standby_fallback(self, decision: PlayoutDecision) -> PlayoutDecision:
        """
        Switch a scheduled decision to standby after a playback failure.

        Item metadata and the boundary are kept.
        """
        if decision.namespace is None:
            return decision
        return replace(
            decision,
            status=PlayoutStatus.PLAYING_STANDBY,
            source_url=self.locator.standby_url(decision.namespace),
            fallback=True,
            message="Playback failed, playing standby",
        )
