"""
Test Fixtures

Shared builders and fakes for timeline, playout and scheduling tests.
"""

from .factories import DAY, PUBLIC_ROOT, FakeClock, InMemoryTimelineStore, at, make_item

__all__ = [
    "DAY",
    "PUBLIC_ROOT",
    "FakeClock",
    "InMemoryTimelineStore",
    "at",
    "make_item",
]
