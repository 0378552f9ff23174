"""
Playout sessions.

A PlayoutSession follows one viewer's channel: it holds the current decision,
re-evaluates at each boundary with a single cancellable timer task, and
reacts to the player reporting an error or the natural end of an asset.

The PlayoutSessionRegistry tracks open sessions so they can all be torn down
when the application stops.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import uuid4

from lineartv.playout.resolver import PlayoutResolver
from lineartv.playout.state import PlaybackRuntimeError, PlayoutDecision, PlayoutStatus
from lineartv.timeline.items import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[Any]]
DecisionListener = Callable[[PlayoutDecision], Any]


class PlayoutSession:
    """
    Per-viewer playout state machine.

    At most one re-evaluation timer is pending at any time; arming a new one
    cancels the previous one, and close() cancels it.

    Usage:
        session = PlayoutSession(channel_id=5, resolver=resolver)
        session.add_listener(send_to_player)
        await session.start()
        ...
        await session.notify_playback_ended()
        ...
        await session.close()
    """

    def __init__(
        self,
        channel_id: int,
        resolver: PlayoutResolver,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid4())
        self.channel_id = channel_id
        self.resolver = resolver
        self._clock = clock
        self._sleep = sleep

        self.decision = PlayoutDecision(
            channel_id=channel_id,
            status=PlayoutStatus.LOADING,
            now=clock(),
        )
        self._timer: Optional[asyncio.Task] = None
        self._timer_boundary: Optional[datetime] = None
        self._lock = asyncio.Lock()
        self._listeners: list[DecisionListener] = []
        self._closed = False

    @property
    def status(self) -> PlayoutStatus:
        return self.decision.status

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_pending_timer(self) -> bool:
        """Check if a re-evaluation timer is armed."""
        return self._timer is not None and not self._timer.done()

    @property
    def pending_boundary(self) -> Optional[datetime]:
        """Boundary of the armed timer, if any."""
        return self._timer_boundary if self.has_pending_timer else None

    def add_listener(self, listener: DecisionListener) -> None:
        """Register a callback (sync or async) invoked with every new decision."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DecisionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> PlayoutDecision:
        """Run the first evaluation."""
        logger.debug(f"Session {self.session_id[:8]} started on channel {self.channel_id}")
        return await self.evaluate()

    async def evaluate(self) -> PlayoutDecision:
        """
        Recompute the decision now and re-arm the timer.

        Any pending timer is replaced; no timer is armed when the decision
        has no boundary (unknown channel, live, error, nothing upcoming).
        """
        if self._closed:
            return self.decision

        async with self._lock:
            now = self._clock()
            decision = await self.resolver.resolve(self.channel_id, now)
            if self._closed:
                return self.decision

            self._cancel_timer()
            if decision.boundary is not None:
                self._arm_timer(decision.boundary)

            await self._publish(decision)
            return decision

    async def report_playback_error(
        self,
        error: Optional[Union[PlaybackRuntimeError, str]] = None,
    ) -> PlayoutDecision:
        """
        Handle a player failure on the current source.

        Switches once to standby, keeping the item metadata. The original
        source is not retried and the pending timer is left as it is.
        """
        if self._closed:
            return self.decision

        async with self._lock:
            current = self.decision
            if current.status != PlayoutStatus.PLAYING_SCHEDULED:
                logger.debug(
                    f"Session {self.session_id[:8]} ignoring playback error "
                    f"in state {current.status.value}"
                )
                return current

            logger.warning(
                f"Playback failed on channel {self.channel_id} "
                f"({current.source_url}): {error or 'unknown error'}"
            )
            decision = self.resolver.standby_fallback(current)
            await self._publish(decision)
            return decision

    async def notify_playback_ended(self) -> PlayoutDecision:
        """Handle the natural end of the current asset."""
        return await self.evaluate()

    async def close(self) -> None:
        """Tear the session down; no timer survives this call."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        self._listeners.clear()
        logger.debug(f"Session {self.session_id[:8]} closed")

    def _arm_timer(self, boundary: datetime) -> None:
        self._cancel_timer()
        self._timer_boundary = boundary
        self._timer = asyncio.create_task(self._run_timer(boundary))

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        self._timer_boundary = None
        # The firing timer re-evaluates from inside its own task
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    async def _run_timer(self, boundary: datetime) -> None:
        try:
            while True:
                remaining = (boundary - self._clock()).total_seconds()
                if remaining <= 0:
                    break
                await self._sleep(remaining)
            await self.evaluate()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Re-evaluation of channel {self.channel_id} failed")
            await self._publish_failure(e)

    async def _publish_failure(self, error: Exception) -> None:
        """Publish an ERROR decision after a failed re-evaluation; no timer is re-armed."""
        async with self._lock:
            # A newer evaluation already replaced this timer
            if self._closed or self._timer is not asyncio.current_task():
                return
            self._cancel_timer()
            await self._publish(
                PlayoutDecision(
                    channel_id=self.channel_id,
                    status=PlayoutStatus.ERROR,
                    now=self._clock(),
                    message=f"Re-evaluation failed: {error}",
                )
            )

    async def _publish(self, decision: PlayoutDecision) -> None:
        self.decision = decision
        for listener in list(self._listeners):
            try:
                result = listener(decision)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Playout listener error: {e}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "session_id": self.session_id,
            "channel_id": self.channel_id,
            "closed": self._closed,
            "pending_boundary": (
                self.pending_boundary.isoformat() if self.pending_boundary else None
            ),
            "decision": self.decision.to_dict(),
        }


class PlayoutSessionRegistry:
    """
    Tracks open playout sessions.

    Usage:
        registry = get_session_registry()
        session = await registry.open_session(channel_id, resolver)
        ...
        await registry.close_session(session.session_id)
    """

    def __init__(self):
        self._sessions: dict[str, PlayoutSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def open_session(
        self,
        channel_id: int,
        resolver: PlayoutResolver,
        listener: Optional[DecisionListener] = None,
        **kwargs: Any,
    ) -> PlayoutSession:
        """
        Create, register and start a session.

        A session whose first evaluation fails is closed and unregistered
        before the error propagates.

        Args:
            channel_id: Channel to follow
            resolver: Resolver the session evaluates with
            listener: Optional decision listener, registered before start
            **kwargs: Passed to PlayoutSession (clock, sleep)

        Returns:
            The started session
        """
        session = PlayoutSession(channel_id=channel_id, resolver=resolver, **kwargs)
        if listener is not None:
            session.add_listener(listener)

        async with self._lock:
            self._sessions[session.session_id] = session

        try:
            await session.start()
        except (Exception, asyncio.CancelledError):
            async with self._lock:
                self._sessions.pop(session.session_id, None)
            await session.close()
            raise

        logger.info(
            f"Playout session {session.session_id[:8]} opened on channel {channel_id} "
            f"({len(self._sessions)} open)"
        )
        return session

    def get(self, session_id: str) -> Optional[PlayoutSession]:
        return self._sessions.get(session_id)

    def sessions_for_channel(self, channel_id: int) -> list[PlayoutSession]:
        return [s for s in self._sessions.values() if s.channel_id == channel_id]

    async def close_session(self, session_id: str) -> bool:
        """Close and unregister a session. Returns False if it was unknown."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info(f"Playout session {session_id[:8]} closed ({len(self._sessions)} open)")
        return True

    async def close_all(self) -> int:
        """Close every open session. Returns how many were closed."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
        if sessions:
            logger.info(f"Closed {len(sessions)} playout sessions")
        return len(sessions)


# Global registry instance
_registry: Optional[PlayoutSessionRegistry] = None


def get_session_registry() -> PlayoutSessionRegistry:
    """Get the global PlayoutSessionRegistry."""
    global _registry
    if _registry is None:
        _registry = PlayoutSessionRegistry()
    return _registry
