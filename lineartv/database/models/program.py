"""
Program Database Model

A scheduled item on a channel's timeline. Rows are append-only from the
core's point of view: the playout resolver only reads them and the schedule
extender only inserts.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lineartv.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from lineartv.database.models.channel import Channel


class Program(Base, TimestampMixin):
    """
    Scheduled item in a channel timeline.

    ``start_time`` is stored as naive UTC. ``duration`` and ``asset_ref`` are
    nullable because manually entered rows are not validated; such rows are
    listed but never played or used as templates.
    """

    __tablename__ = "programs"
    __table_args__ = (
        Index("ix_programs_channel_start", "channel_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channels.id"),
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)  # seconds

    asset_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)

    channel: Mapped["Channel"] = relationship(
        "Channel",
        back_populates="programs",
    )

    def __repr__(self) -> str:
        return f"<Program {self.title} at {self.start_time}>"

    @property
    def finish_time(self) -> datetime | None:
        """Get the scheduled end time, if the duration is known."""
        if self.duration is None:
            return None
        return self.start_time + timedelta(seconds=self.duration)
