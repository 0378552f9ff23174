"""
Timeline Store.

Durable, queryable log of scheduled items per channel. ``TimelineStore`` is
the interface the playout resolver and the schedule extender depend on;
``SQLTimelineStore`` implements it over the SQLAlchemy async session.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lineartv.database.connection import get_session_factory
from lineartv.database.models import Channel, Program
from lineartv.storage.locator import namespace_for
from lineartv.timeline.items import ChannelInfo, ScheduledItem, ensure_utc, to_storage_time

logger = logging.getLogger(__name__)


class TimelineStoreError(Exception):
    """The timeline store could not be reached or rejected an operation."""

    def __init__(
        self,
        message: str,
        channel_id: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.channel_id = channel_id
        self.original_error = original_error


class TimelineStore(ABC):
    """Read/write access to channel timelines."""

    @abstractmethod
    async def get_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        """Get a channel, or None if it does not exist."""

    @abstractmethod
    async def list_started_on_or_before(
        self,
        channel_id: int,
        now: datetime,
        limit: int,
    ) -> list[ScheduledItem]:
        """Items with start_time <= now, most recent first, at most ``limit``."""

    @abstractmethod
    async def list_starting_after(
        self,
        channel_id: int,
        now: datetime,
        limit: int = 1,
    ) -> list[ScheduledItem]:
        """Items with start_time > now, earliest first, at most ``limit``."""

    @abstractmethod
    async def list_all(self, channel_id: int) -> list[ScheduledItem]:
        """All items of a channel, earliest first."""

    @abstractmethod
    async def list_between(
        self,
        channel_id: int,
        start: datetime,
        end: datetime,
    ) -> list[ScheduledItem]:
        """Items with start <= start_time <= end, earliest first."""

    @abstractmethod
    async def insert_batch(self, items: Sequence[ScheduledItem]) -> list[ScheduledItem]:
        """
        Insert items atomically.

        Either every item is written or none is.

        Returns:
            The inserted items with their ids assigned
        """


class SQLTimelineStore(TimelineStore):
    """
    Timeline store backed by the ``programs`` table.

    Ties on start_time are broken by id so that every query returns a
    stable order.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(
        self,
        action: str,
        channel_id: Optional[int] = None,
    ) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Timeline store {action} failed for channel {channel_id}: {e}")
            raise TimelineStoreError(
                f"Timeline store {action} failed: {e}",
                channel_id=channel_id,
                original_error=e,
            ) from e

    async def get_channel(self, channel_id: int) -> Optional[ChannelInfo]:
        async with self._session("get_channel", channel_id) as session:
            channel = await session.get(Channel, channel_id)
            if channel is None:
                return None
            return ChannelInfo(
                id=channel.id,
                name=channel.name,
                namespace=namespace_for(channel.id, channel.namespace),
                live_override=channel.live_override,
                live_source_ref=channel.live_source_ref,
            )

    async def list_started_on_or_before(
        self,
        channel_id: int,
        now: datetime,
        limit: int,
    ) -> list[ScheduledItem]:
        stmt = (
            select(Program)
            .where(Program.channel_id == channel_id)
            .where(Program.start_time <= to_storage_time(now))
            .order_by(Program.start_time.desc(), Program.id.desc())
            .limit(limit)
        )
        return await self._fetch("list_started_on_or_before", channel_id, stmt)

    async def list_starting_after(
        self,
        channel_id: int,
        now: datetime,
        limit: int = 1,
    ) -> list[ScheduledItem]:
        stmt = (
            select(Program)
            .where(Program.channel_id == channel_id)
            .where(Program.start_time > to_storage_time(now))
            .order_by(Program.start_time.asc(), Program.id.asc())
            .limit(limit)
        )
        return await self._fetch("list_starting_after", channel_id, stmt)

    async def list_all(self, channel_id: int) -> list[ScheduledItem]:
        stmt = (
            select(Program)
            .where(Program.channel_id == channel_id)
            .order_by(Program.start_time.asc(), Program.id.asc())
        )
        return await self._fetch("list_all", channel_id, stmt)

    async def list_between(
        self,
        channel_id: int,
        start: datetime,
        end: datetime,
    ) -> list[ScheduledItem]:
        stmt = (
            select(Program)
            .where(Program.channel_id == channel_id)
            .where(Program.start_time >= to_storage_time(start))
            .where(Program.start_time <= to_storage_time(end))
            .order_by(Program.start_time.asc(), Program.id.asc())
        )
        return await self._fetch("list_between", channel_id, stmt)

    async def insert_batch(self, items: Sequence[ScheduledItem]) -> list[ScheduledItem]:
        if not items:
            return []

        channel_id = items[0].channel_id
        async with self._session("insert_batch", channel_id) as session:
            async with session.begin():
                rows = [
                    Program(
                        channel_id=item.channel_id,
                        start_time=to_storage_time(item.start_time),
                        duration=item.duration_seconds,
                        asset_ref=item.asset_ref,
                        title=item.title,
                    )
                    for item in items
                ]
                session.add_all(rows)
                await session.flush()

        logger.info(f"Inserted {len(rows)} programs for channel {channel_id}")
        return [self._to_item(row) for row in rows]

    async def _fetch(self, action: str, channel_id: int, stmt) -> list[ScheduledItem]:
        async with self._session(action, channel_id) as session:
            result = await session.execute(stmt)
            return [self._to_item(row) for row in result.scalars().all()]

    @staticmethod
    def _to_item(row: Program) -> ScheduledItem:
        return ScheduledItem(
            id=row.id,
            channel_id=row.channel_id,
            start_time=ensure_utc(row.start_time),
            duration_seconds=row.duration,
            asset_ref=row.asset_ref,
            title=row.title,
        )


# Global store instance
_store_instance: Optional[SQLTimelineStore] = None


def get_timeline_store() -> SQLTimelineStore:
    """Get the global timeline store over the application database."""
    global _store_instance
    if _store_instance is None:
        _store_instance = SQLTimelineStore(get_session_factory())
    return _store_instance


def reset_timeline_store() -> None:
    """Drop the global timeline store (used when the database is closed)."""
    global _store_instance
    _store_instance = None
