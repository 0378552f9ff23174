"""
Channel Database Model

Defines the Channel model: asset namespace and live override settings.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lineartv.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from lineartv.database.models.program import Program


class Channel(Base, TimestampMixin):
    """
    Channel model representing a linear channel.

    The namespace scopes asset lookups (and the standby asset key). A channel
    with ``live_override`` set bypasses its timeline entirely and is served
    from ``live_source_ref``.
    """

    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Asset store namespace; None means the configured default (channel{id})
    namespace: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Live override
    live_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    live_source_ref: Mapped[str | None] = mapped_column(Text, nullable=True)

    programs: Mapped[list["Program"]] = relationship(
        "Program",
        back_populates="channel",
        order_by="Program.start_time",
    )

    def __repr__(self) -> str:
        return f"<Channel {self.id}: {self.name}>"
