"""Schedule extension endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from ..scheduling.errors import (
    BatchSafetyCapExceeded,
    InvalidExtensionRequest,
    InvalidTemplate,
    NoProgramsFound,
    ScheduleExtensionError,
)
from ..scheduling.extender import ScheduleExtender
from ..timeline.store import TimelineStore, TimelineStoreError
from .channels import require_channel
from .dependencies import get_extender, get_store
from .schemas import ExtensionRequest, PreviewRequest, RollForwardRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/channels", tags=["Schedules"])


def extension_error_to_http(error: Exception) -> HTTPException:
    """Map an extension or store error to an HTTP error."""
    if isinstance(error, NoProgramsFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, BatchSafetyCapExceeded):
        return HTTPException(
            status_code=422,
            detail={
                "error": "batch_safety_cap_exceeded",
                "message": error.message,
                "estimated": error.estimated,
                "cap": error.cap,
            },
        )
    if isinstance(error, InvalidTemplate):
        return HTTPException(status_code=422, detail=error.message)
    if isinstance(error, InvalidExtensionRequest):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, TimelineStoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.post("/{channel_id}/schedule/preview")
async def preview_extension(
    channel_id: int,
    request: PreviewRequest,
    store: TimelineStore = Depends(get_store),
    extender: ScheduleExtender = Depends(get_extender),
) -> dict[str, Any]:
    """Preview the template and an optional extension without writing.

    Args:
        channel_id: Channel ID
        request: Optional blocks or days to project
        store: Timeline store
        extender: Schedule extender

    Returns:
        Template summary and projection
    """
    await require_channel(channel_id, store)
    try:
        preview = await extender.preview(channel_id, blocks=request.blocks, days=request.days)
    except (ScheduleExtensionError, TimelineStoreError) as e:
        raise extension_error_to_http(e)
    return preview.to_dict()


@router.post("/{channel_id}/schedule/extend", status_code=status.HTTP_201_CREATED)
async def extend_schedule(
    channel_id: int,
    request: ExtensionRequest,
    store: TimelineStore = Depends(get_store),
    extender: ScheduleExtender = Depends(get_extender),
) -> dict[str, Any]:
    """Extend a channel timeline by template blocks or by days.

    Args:
        channel_id: Channel ID
        request: Either blocks or days
        store: Timeline store
        extender: Schedule extender

    Returns:
        Extension result
    """
    await require_channel(channel_id, store)
    try:
        if request.blocks is not None:
            result = await extender.extend_blocks(channel_id, request.blocks)
        else:
            result = await extender.extend_days(channel_id, request.days)
    except (ScheduleExtensionError, TimelineStoreError) as e:
        logger.warning(f"Extension of channel {channel_id} refused: {e}")
        raise extension_error_to_http(e)
    return result.to_dict()


@router.post("/{channel_id}/schedule/roll-forward", status_code=status.HTTP_201_CREATED)
async def roll_forward(
    channel_id: int,
    request: RollForwardRequest,
    store: TimelineStore = Depends(get_store),
    extender: ScheduleExtender = Depends(get_extender),
) -> dict[str, Any]:
    """Copy the programs of a window forward by a number of days."""
    await require_channel(channel_id, store)
    try:
        result = await extender.roll_forward(
            channel_id,
            request.window_start,
            request.window_end,
            request.add_days,
        )
    except (ScheduleExtensionError, TimelineStoreError) as e:
        logger.warning(f"Roll forward of channel {channel_id} refused: {e}")
        raise extension_error_to_http(e)
    return result.to_dict()
