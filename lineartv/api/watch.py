"""
Watch endpoint.

A websocket carries one playout session: the server pushes every decision as
``{"type": "decision", ...}`` and the player reports back with
``{"event": "ended"}``, ``{"event": "error", "message": ...}`` or
``{"event": "refresh"}``.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..playout.resolver import PlayoutResolver
from ..playout.session import PlayoutSessionRegistry
from ..playout.state import PlaybackRuntimeError, PlayoutDecision, PlayoutStatus
from .dependencies import get_registry, get_resolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/channels", tags=["Watch"])

CLOSE_CHANNEL_NOT_FOUND = 4404


@router.websocket("/{channel_id}/watch")
async def watch_channel(
    websocket: WebSocket,
    channel_id: int,
    resolver: PlayoutResolver = Depends(get_resolver),
    registry: PlayoutSessionRegistry = Depends(get_registry),
) -> None:
    """Follow a channel's playout over a websocket."""
    await websocket.accept()

    async def push(decision: PlayoutDecision) -> None:
        await websocket.send_json({"type": "decision", **decision.to_dict()})

    session = None
    try:
        session = await registry.open_session(channel_id, resolver, listener=push)
        if session.status == PlayoutStatus.NO_CHANNEL:
            await websocket.close(code=CLOSE_CHANNEL_NOT_FOUND)
            return

        while True:
            message: Any = await websocket.receive_json()
            event = message.get("event") if isinstance(message, dict) else None

            if event == "ended":
                await session.notify_playback_ended()
            elif event == "error":
                await session.report_playback_error(
                    PlaybackRuntimeError(
                        str(message.get("message") or "playback error"),
                        source_url=session.decision.source_url,
                    )
                )
            elif event == "refresh":
                await session.evaluate()
            else:
                await websocket.send_json(
                    {"type": "error", "message": f"Unknown event: {event!r}"}
                )
    except WebSocketDisconnect:
        logger.debug(f"Viewer left channel {channel_id}")
    finally:
        if session is not None:
            await registry.close_session(session.session_id)
