"""Server clock and health endpoints"""

import logging
from typing import Any

from fastapi import APIRouter

from lineartv import __version__

from ..timeline.items import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/now")
async def get_now() -> dict[str, Any]:
    """Server clock, used by players to correct their own clock skew."""
    now = utc_now()
    return {
        "epoch_ms": int(now.timestamp() * 1000),
        "iso": now.isoformat(),
    }


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Basic liveness check."""
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": utc_now().isoformat(),
    }
