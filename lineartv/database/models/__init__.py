"""
LinearTV Database Models

SQLAlchemy models for channels and their scheduled programs.
"""

from lineartv.database.models.base import Base, TimestampMixin
from lineartv.database.models.channel import Channel
from lineartv.database.models.program import Program

__all__ = [
    "Base",
    "TimestampMixin",
    "Channel",
    "Program",
]
