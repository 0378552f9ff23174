"""
Schedule extension: growing channel timelines from their template.
"""

from lineartv.scheduling.errors import (
    BatchSafetyCapExceeded,
    InvalidExtensionRequest,
    InvalidTemplate,
    NoProgramsFound,
    ScheduleExtensionError,
)
from lineartv.scheduling.extender import (
    ExtensionPreview,
    ExtensionResult,
    RollForwardResult,
    ScheduleExtender,
    get_schedule_extender,
    reset_schedule_extender,
)
from lineartv.scheduling.template import ScheduleTemplate, TemplateEntry

__all__ = [
    "BatchSafetyCapExceeded",
    "InvalidExtensionRequest",
    "InvalidTemplate",
    "NoProgramsFound",
    "ScheduleExtensionError",
    "ExtensionPreview",
    "ExtensionResult",
    "RollForwardResult",
    "ScheduleExtender",
    "get_schedule_extender",
    "reset_schedule_extender",
    "ScheduleTemplate",
    "TemplateEntry",
]
