"""
Live Override.

A channel can be exempted from scheduling and wired to an externally hosted
live feed, either by its own ``live_override`` flag or through the
``live.channels`` configuration map. The configuration map takes precedence.
"""

import logging
from typing import Optional

from lineartv.config import LiveConfig, get_config
from lineartv.timeline.items import ChannelInfo

logger = logging.getLogger(__name__)


def live_source_for(
    channel: ChannelInfo,
    live_config: Optional[LiveConfig] = None,
) -> Optional[str]:
    """
    Get the live source of a channel, if it is in live mode.

    Args:
        channel: Channel to check
        live_config: Live configuration (defaults to the global config)

    Returns:
        The live source reference, or None if the channel follows its schedule
    """
    live_config = live_config or get_config().live

    configured = live_config.channels.get(channel.id)
    if configured and configured.strip():
        return configured.strip()

    if not channel.live_override:
        return None

    source = (channel.live_source_ref or "").strip()
    if not source:
        logger.warning(
            f"Channel {channel.id} is flagged live but has no live source; "
            f"using its schedule"
        )
        return None

    return source


def is_live(channel: ChannelInfo, live_config: Optional[LiveConfig] = None) -> bool:
    """Check if a channel is in live mode."""
    return live_source_for(channel, live_config) is not None
