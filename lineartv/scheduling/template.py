"""
Schedule templates.

A template is the first ``window`` of a channel's timeline (24 hours by
default), reduced to its playable items. Each block of an extension replays
the template starting at the current end of the timeline; successive blocks
are ``duration`` apart, where ``duration`` is the sum of the template item
durations.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from lineartv.scheduling.errors import InvalidExtensionRequest, InvalidTemplate, NoProgramsFound
from lineartv.timeline.items import MAX_TIME, ScheduledItem

OUT_OF_RANGE = "Extension would end beyond the supported date range"


@dataclass(frozen=True)
class TemplateEntry:
    """A playable template item and its offset from the template start."""

    offset: timedelta
    item: ScheduledItem


@dataclass(frozen=True)
class ScheduleTemplate:
    """
    Repeating pattern derived from a channel timeline.

    Attributes:
        channel_id: Channel the template belongs to
        item_count: Number of items on the whole timeline
        start: Start of the earliest item
        entries: Playable template items, in timeline order
        duration: Sum of template item durations (one block advance)
        end: Latest end among template items
        current_end: Latest end among all items on the timeline
    """

    channel_id: int
    item_count: int
    start: datetime
    entries: tuple[TemplateEntry, ...]
    duration: timedelta
    end: datetime
    current_end: datetime

    @classmethod
    def from_items(
        cls,
        channel_id: int,
        items: Sequence[ScheduledItem],
        window_hours: float = 24,
    ) -> "ScheduleTemplate":
        """
        Build the template of a timeline.

        Args:
            channel_id: Channel the items belong to
            items: Every item of the channel, earliest first
            window_hours: Length of the template window

        Raises:
            NoProgramsFound: If there are no items
            InvalidTemplate: If the window has no playable item
        """
        if not items:
            raise NoProgramsFound(f"Channel {channel_id} has no programs", channel_id)

        ordered = sorted(items, key=lambda i: (i.start_time, i.id or 0))
        start = ordered[0].start_time
        try:
            window_end = start + timedelta(hours=window_hours)
        except OverflowError:
            window_end = MAX_TIME

        window = [i for i in ordered if start <= i.start_time < window_end]
        if not window:
            window = ordered

        valid = [i for i in window if i.is_playable]
        if not valid:
            raise InvalidTemplate(
                f"Channel {channel_id} has no playable programs in its first "
                f"{window_hours:g} hours",
                channel_id,
            )

        try:
            duration = sum((i.duration for i in valid), timedelta(0))
        except OverflowError:
            raise InvalidTemplate(
                f"Channel {channel_id} template is too long to repeat",
                channel_id,
            )
        if duration <= timedelta(0):
            raise InvalidTemplate(
                f"Channel {channel_id} template has no positive duration",
                channel_id,
            )

        current_end = max([start] + [i.end_time for i in ordered])

        return cls(
            channel_id=channel_id,
            item_count=len(ordered),
            start=start,
            entries=tuple(TemplateEntry(offset=i.start_time - start, item=i) for i in valid),
            duration=duration,
            end=max(i.end_time for i in valid),
            current_end=current_end,
        )

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def span(self) -> timedelta:
        """Time from the template start to the latest template item end."""
        return self.end - self.start

    def blocks_for_days(self, days: float) -> int:
        """
        Number of blocks needed to extend the timeline by ``days``.

        Counts how many template-duration advances from the current end it
        takes to reach ``current_end + days``.

        Raises:
            InvalidExtensionRequest: If days is not positive or out of range
        """
        if days <= 0:
            raise InvalidExtensionRequest("days must be positive", self.channel_id)
        try:
            target = timedelta(days=days)
        except OverflowError:
            raise InvalidExtensionRequest(f"days={days:g} is out of range", self.channel_id)
        return -(-target // self.duration)

    def estimated_inserts(self, block_count: int) -> int:
        return block_count * self.entry_count

    def projected_end(self, block_count: int) -> datetime:
        """
        End of the timeline after ``block_count`` blocks.

        Raises:
            InvalidExtensionRequest: If the end is past the last representable date
        """
        try:
            return self.current_end + block_count * self.duration
        except OverflowError:
            raise InvalidExtensionRequest(OUT_OF_RANGE, self.channel_id)

    def generate(self, block_count: int) -> list[ScheduledItem]:
        """
        Generate the items of ``block_count`` blocks.

        Block ``i`` starts at ``current_end + i * duration``; each entry keeps
        its offset within the block.

        Raises:
            InvalidExtensionRequest: If a start is past the last representable date
        """
        generated: list[ScheduledItem] = []
        try:
            for block in range(block_count):
                base = self.current_end + block * self.duration
                for entry in self.entries:
                    generated.append(
                        ScheduledItem(
                            channel_id=self.channel_id,
                            start_time=base + entry.offset,
                            duration_seconds=entry.item.duration_seconds,
                            asset_ref=entry.item.asset_ref,
                            title=entry.item.title,
                        )
                    )
        except OverflowError:
            raise InvalidExtensionRequest(OUT_OF_RANGE, self.channel_id)
        return generated
