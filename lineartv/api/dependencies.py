"""FastAPI dependencies for the core services"""

from fastapi import Depends

from ..playout.resolver import PlayoutResolver
from ..playout.session import PlayoutSessionRegistry, get_session_registry
from ..scheduling.extender import ScheduleExtender, get_schedule_extender
from ..storage.locator import AssetLocator, get_asset_locator
from ..timeline.store import TimelineStore, get_timeline_store


def get_store() -> TimelineStore:
    return get_timeline_store()


def get_locator() -> AssetLocator:
    return get_asset_locator()


def get_resolver(
    store: TimelineStore = Depends(get_store),
    locator: AssetLocator = Depends(get_locator),
) -> PlayoutResolver:
    return PlayoutResolver(store, locator)


def get_extender() -> ScheduleExtender:
    return get_schedule_extender()


def get_registry() -> PlayoutSessionRegistry:
    return get_session_registry()
