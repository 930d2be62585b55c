"""Turn timer: fires an expiry event when a player takes too long."""
import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import Optional

from pokertable.game.events import EventBus, GameEvent
from pokertable.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TurnHandle:
    """One armed turn. Only the most recent handle is live."""
    player_id: str
    generation: int
    deadline: float  # time.monotonic() value


class TurnTimer:
    """Single pending turn timeout for a table.

    Arms on every ``PLAYER_TURN`` and disarms on every ``PLAYER_ACTION``.
    Arming replaces any pending handle, so at most one timeout is
    outstanding. When a live handle expires, ``PLAYER_TURN_EXPIRED`` is
    published with the player's id; the table decides what to play.

    Scheduling uses the running asyncio loop. Without one, handles are still
    tracked but nothing fires.
    """

    def __init__(
        self,
        events: EventBus,
        timeout_seconds: float,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the timer.

        Args:
            events: Table event bus.
            timeout_seconds: Seconds a player has to act; 0 disables the timer.
            loop: Event loop to schedule on; the running loop if omitted.
        """
        self._events = events
        self.timeout_seconds = timeout_seconds
        self._loop = loop
        self._generations = itertools.count(1)
        self._pending: Optional[TurnHandle] = None
        self._scheduled: Optional[asyncio.TimerHandle] = None
        self._subscriptions: list[int] = []

    @property
    def pending(self) -> Optional[TurnHandle]:
        """The live handle, if a turn is being timed."""
        return self._pending

    @property
    def enabled(self) -> bool:
        return self.timeout_seconds > 0

    def attach(self) -> None:
        """Start following turn and action events."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self._events.subscribe(GameEvent.PLAYER_TURN, self._on_player_turn),
            self._events.subscribe(GameEvent.PLAYER_ACTION, self._on_player_action),
        ]

    def detach(self) -> None:
        """Stop following events and cancel any pending timeout."""
        for subscription_id in self._subscriptions:
            self._events.unsubscribe(subscription_id)
        self._subscriptions = []
        self.cancel()

    def arm(self, player_id: str) -> Optional[TurnHandle]:
        """Start timing a player's turn, replacing any pending one.

        Returns:
            The new live handle, or None if the timer is disabled.
        """
        self.cancel()
        if not self.enabled:
            return None

        handle = TurnHandle(
            player_id=player_id,
            generation=next(self._generations),
            deadline=time.monotonic() + self.timeout_seconds,
        )
        self._pending = handle

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug(f"No running event loop; turn of {player_id} is not timed")
                return handle

        self._scheduled = loop.call_later(self.timeout_seconds, self._expire, handle)
        logger.debug(f"Waiting {self.timeout_seconds}s for player {player_id}")
        return handle

    def cancel(self) -> None:
        """Invalidate the pending handle, if any."""
        if self._scheduled is not None:
            self._scheduled.cancel()
            self._scheduled = None
        self._pending = None

    def is_live(self, handle: TurnHandle) -> bool:
        """Whether a handle is still the pending one."""
        return self._pending is not None and self._pending.generation == handle.generation

    def _expire(self, handle: TurnHandle) -> None:
        if not self.is_live(handle):
            return
        self._pending = None
        self._scheduled = None
        logger.info(f"Time is up for player {handle.player_id}")
        self._events.publish(GameEvent.PLAYER_TURN_EXPIRED, {
            "player_id": handle.player_id,
            "generation": handle.generation,
        })

    def _on_player_turn(self, _topic: GameEvent, data: dict) -> None:
        self.arm(data["player_id"])

    def _on_player_action(self, _topic: GameEvent, _data: dict) -> None:
        self.cancel()
