"""
LinearTV Database Module

Provides SQLAlchemy models and connection utilities.
"""

from lineartv.database.connection import (
    close_db,
    create_engine_for_url,
    create_session_factory,
    get_session_factory,
    init_db,
)
from lineartv.database.models import Base, Channel, Program

__all__ = [
    # Connection
    "close_db",
    "create_engine_for_url",
    "create_session_factory",
    "get_session_factory",
    "init_db",
    # Models
    "Base",
    "Channel",
    "Program",
]
