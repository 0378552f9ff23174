"""Schedule extension errors."""

from typing import Optional


class ScheduleExtensionError(Exception):
    """Base class for errors raised before an extension writes anything."""

    def __init__(self, message: str, channel_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.channel_id = channel_id


class NoProgramsFound(ScheduleExtensionError):
    """The channel has no scheduled items to build a template from."""


class InvalidTemplate(ScheduleExtensionError):
    """The template window has no playable items or no positive duration."""


class InvalidExtensionRequest(ScheduleExtensionError):
    """The requested block count, day count or window is not usable."""


class BatchSafetyCapExceeded(ScheduleExtensionError):
    """The extension would insert more rows than the safety cap allows."""

    def __init__(self, estimated: int, cap: int, channel_id: Optional[int] = None):
        super().__init__(
            f"Extension would insert {estimated} programs (cap is {cap})",
            channel_id=channel_id,
        )
        self.estimated = estimated
        self.cap = cap
