"""
Schedule Extender.

Grows a channel timeline forward by replaying its template:

- Block mode: append N template blocks
- Day mode: append enough blocks to cover D more days
- Roll forward: copy a window of the timeline shifted by a number of days

Every write is a single batch insert made under a per-channel lease, and is
refused up front when it would exceed the configured safety cap.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from lineartv.config import SchedulingConfig, get_config
from lineartv.scheduling.errors import BatchSafetyCapExceeded, InvalidExtensionRequest
from lineartv.scheduling.template import ScheduleTemplate
from lineartv.timeline.items import ScheduledItem, ensure_utc
from lineartv.timeline.store import TimelineStore, get_timeline_store

logger = logging.getLogger(__name__)

MODE_BLOCKS = "blocks"
MODE_DAYS = "days"


@dataclass
class ExtensionResult:
    """Outcome of a block or day extension."""

    channel_id: int
    mode: str
    block_count: int
    template_item_count: int
    template_duration: timedelta
    previous_end: datetime
    new_end: datetime
    inserted: list[ScheduledItem] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "channel_id": self.channel_id,
            "mode": self.mode,
            "block_count": self.block_count,
            "template_item_count": self.template_item_count,
            "template_duration_hours": self.template_duration.total_seconds() / 3600,
            "previous_end": self.previous_end.isoformat(),
            "new_end": self.new_end.isoformat(),
            "inserted": self.inserted_count,
            "first_start": self.inserted[0].start_time.isoformat() if self.inserted else None,
            "last_start": self.inserted[-1].start_time.isoformat() if self.inserted else None,
        }


@dataclass
class ExtensionPreview:
    """What an extension would do, computed without writing."""

    channel_id: int
    item_count: int
    template_item_count: int
    template_start: datetime
    template_end: datetime
    template_duration: timedelta
    current_end: datetime
    max_inserts: int
    mode: Optional[str] = None
    block_count: Optional[int] = None
    estimated_inserts: Optional[int] = None
    projected_end: Optional[datetime] = None

    @property
    def exceeds_cap(self) -> bool:
        return self.estimated_inserts is not None and self.estimated_inserts > self.max_inserts

    @property
    def hours_added(self) -> Optional[float]:
        if self.projected_end is None:
            return None
        return (self.projected_end - self.current_end).total_seconds() / 3600

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "channel_id": self.channel_id,
            "item_count": self.item_count,
            "template_item_count": self.template_item_count,
            "template_start": self.template_start.isoformat(),
            "template_end": self.template_end.isoformat(),
            "template_window_hours": (self.template_end - self.template_start).total_seconds()
            / 3600,
            "template_duration_hours": self.template_duration.total_seconds() / 3600,
            "current_end": self.current_end.isoformat(),
            "mode": self.mode,
            "block_count": self.block_count,
            "estimated_inserts": self.estimated_inserts,
            "projected_end": self.projected_end.isoformat() if self.projected_end else None,
            "hours_added": self.hours_added,
            "max_inserts": self.max_inserts,
            "exceeds_cap": self.exceeds_cap,
        }


@dataclass
class RollForwardResult:
    """Outcome of a roll forward."""

    channel_id: int
    window_start: datetime
    window_end: datetime
    add_days: float
    inserted: list[ScheduledItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "channel_id": self.channel_id,
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "add_days": self.add_days,
            "inserted": len(self.inserted),
            "programs": [item.to_dict() for item in self.inserted],
        }


def _validate_blocks(channel_id: int, blocks: Any) -> int:
    if isinstance(blocks, bool) or not isinstance(blocks, int) or blocks < 1:
        raise InvalidExtensionRequest(
            f"blocks must be a positive integer, got {blocks!r}", channel_id
        )
    return blocks


def _validate_days(channel_id: int, days: Any) -> float:
    if isinstance(days, bool) or not isinstance(days, (int, float)):
        raise InvalidExtensionRequest(f"days must be a number, got {days!r}", channel_id)
    if not math.isfinite(days) or days <= 0:
        raise InvalidExtensionRequest(f"days must be positive, got {days!r}", channel_id)
    return float(days)


class ScheduleExtender:
    """
    Extends channel timelines from their template.

    Usage:
        extender = ScheduleExtender(store)
        result = await extender.extend_blocks(channel_id=5, blocks=2)
        print(f"Inserted {result.inserted_count} programs")
    """

    def __init__(
        self,
        store: TimelineStore,
        scheduling_config: Optional[SchedulingConfig] = None,
    ):
        self.store = store
        self.config = scheduling_config or get_config().scheduling
        self._leases: dict[int, asyncio.Lock] = {}

    def _lease(self, channel_id: int) -> asyncio.Lock:
        """Get the exclusive lease for a channel."""
        if channel_id not in self._leases:
            self._leases[channel_id] = asyncio.Lock()
        return self._leases[channel_id]

    def is_extending(self, channel_id: int) -> bool:
        """Check if an extension of the channel is in progress."""
        lease = self._leases.get(channel_id)
        return lease is not None and lease.locked()

    async def load_template(self, channel_id: int) -> ScheduleTemplate:
        """Load a channel timeline and build its template."""
        items = await self.store.list_all(channel_id)
        return ScheduleTemplate.from_items(
            channel_id, items, window_hours=self.config.template_window_hours
        )

    async def extend_blocks(self, channel_id: int, blocks: int) -> ExtensionResult:
        """
        Append ``blocks`` template blocks to a channel.

        Raises:
            InvalidExtensionRequest: If blocks is not a positive integer, or the
                extended timeline would end past the last representable date
            NoProgramsFound: If the channel has no programs
            InvalidTemplate: If the template has no playable programs
            BatchSafetyCapExceeded: If the insert would exceed the cap
        """
        blocks = _validate_blocks(channel_id, blocks)
        return await self._extend(channel_id, MODE_BLOCKS, blocks=blocks)

    async def extend_days(self, channel_id: int, days: float) -> ExtensionResult:
        """
        Append template blocks until the timeline grows by ``days``.

        Raises the same errors as extend_blocks.
        """
        days = _validate_days(channel_id, days)
        return await self._extend(channel_id, MODE_DAYS, days=days)

    async def _extend(
        self,
        channel_id: int,
        mode: str,
        blocks: Optional[int] = None,
        days: Optional[float] = None,
    ) -> ExtensionResult:
        async with self._lease(channel_id):
            template = await self.load_template(channel_id)

            block_count = blocks if mode == MODE_BLOCKS else template.blocks_for_days(days)
            new_end = template.projected_end(block_count)
            self._check_cap(channel_id, template.estimated_inserts(block_count))

            generated = template.generate(block_count)
            inserted = await self.store.insert_batch(generated)

        logger.info(
            f"Extended channel {channel_id} by {block_count} blocks ({mode}): "
            f"{len(inserted)} programs, timeline now ends {new_end.isoformat()}"
        )
        return ExtensionResult(
            channel_id=channel_id,
            mode=mode,
            block_count=block_count,
            template_item_count=template.entry_count,
            template_duration=template.duration,
            previous_end=template.current_end,
            new_end=new_end,
            inserted=inserted,
        )

    async def preview(
        self,
        channel_id: int,
        blocks: Optional[int] = None,
        days: Optional[float] = None,
    ) -> ExtensionPreview:
        """
        Describe the template and, optionally, a block or day extension.

        Nothing is written. An extension that would exceed the cap is
        reported through ``exceeds_cap`` rather than raised, and one that
        would end past the last representable date has no ``projected_end``.
        """
        if blocks is not None and days is not None:
            raise InvalidExtensionRequest("Give either blocks or days, not both", channel_id)

        template = await self.load_template(channel_id)
        preview = ExtensionPreview(
            channel_id=channel_id,
            item_count=template.item_count,
            template_item_count=template.entry_count,
            template_start=template.start,
            template_end=template.end,
            template_duration=template.duration,
            current_end=template.current_end,
            max_inserts=self.config.max_inserts,
        )

        block_count = None
        if blocks is not None:
            preview.mode = MODE_BLOCKS
            block_count = _validate_blocks(channel_id, blocks)
        elif days is not None:
            preview.mode = MODE_DAYS
            block_count = template.blocks_for_days(_validate_days(channel_id, days))

        if block_count is not None:
            preview.block_count = block_count
            preview.estimated_inserts = template.estimated_inserts(block_count)
            try:
                preview.projected_end = template.projected_end(block_count)
            except InvalidExtensionRequest as e:
                logger.debug(f"Preview of channel {channel_id}: {e}")

        return preview

    async def roll_forward(
        self,
        channel_id: int,
        window_start: datetime,
        window_end: datetime,
        add_days: float,
    ) -> RollForwardResult:
        """
        Copy every program starting within [window_start, window_end],
        shifted by ``add_days`` days.

        Existing programs are left untouched. An empty window inserts
        nothing.

        Raises:
            InvalidExtensionRequest: If the window is reversed, add_days is zero,
                or a copy would start past the last representable date
            BatchSafetyCapExceeded: If the copy would exceed the cap
        """
        window_start = ensure_utc(window_start)
        window_end = ensure_utc(window_end)
        if window_end < window_start:
            raise InvalidExtensionRequest("window_end is before window_start", channel_id)
        if (
            isinstance(add_days, bool)
            or not isinstance(add_days, (int, float))
            or not math.isfinite(add_days)
            or add_days == 0
        ):
            raise InvalidExtensionRequest(
                f"add_days must be a non-zero number, got {add_days!r}", channel_id
            )

        try:
            shift = timedelta(days=add_days)
        except OverflowError:
            raise InvalidExtensionRequest(f"add_days={add_days:g} is out of range", channel_id)

        async with self._lease(channel_id):
            source = await self.store.list_between(channel_id, window_start, window_end)
            self._check_cap(channel_id, len(source))

            try:
                copies = [
                    ScheduledItem(
                        channel_id=channel_id,
                        start_time=item.start_time + shift,
                        duration_seconds=item.duration_seconds,
                        asset_ref=item.asset_ref,
                        title=item.title,
                    )
                    for item in source
                ]
            except OverflowError:
                raise InvalidExtensionRequest(
                    f"Shifting by {add_days:g} days leaves the supported date range",
                    channel_id,
                )
            inserted = await self.store.insert_batch(copies)

        logger.info(
            f"Rolled channel {channel_id} forward by {add_days:g} days: "
            f"{len(inserted)} programs copied"
        )
        return RollForwardResult(
            channel_id=channel_id,
            window_start=window_start,
            window_end=window_end,
            add_days=add_days,
            inserted=inserted,
        )

    def _check_cap(self, channel_id: int, estimated: int) -> None:
        if estimated > self.config.max_inserts:
            logger.warning(
                f"Refusing to insert {estimated} programs on channel {channel_id} "
                f"(cap {self.config.max_inserts})"
            )
            raise BatchSafetyCapExceeded(estimated, self.config.max_inserts, channel_id)


# Global extender instance
_extender_instance: Optional[ScheduleExtender] = None


def get_schedule_extender() -> ScheduleExtender:
    """
    Get the global ScheduleExtender.

    The instance is shared so that its per-channel leases cover every
    request in the process.
    """
    global _extender_instance
    if _extender_instance is None:
        _extender_instance = ScheduleExtender(get_timeline_store())
    return _extender_instance


def reset_schedule_extender() -> None:
    """Drop the global ScheduleExtender (used on shutdown)."""
    global _extender_instance
    _extender_instance = None
