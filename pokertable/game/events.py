"""Synchronous publish/subscribe channel for table events."""
import itertools
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pokertable.config import config
from pokertable.utils.logger import get_logger

logger = get_logger(__name__)


class GameEvent(str, Enum):
    """Event topics published by a table."""
    PLAYER_TURN = "player_turn"
    PLAYER_ACTION = "player_action"
    PLAYER_TURN_EXPIRED = "player_turn_expired"
    GAME_STATE_CHANGED = "game_state_changed"
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    POT_UPDATED = "pot_updated"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"


EventHandler = Callable[[GameEvent, dict], Any]


@dataclass
class Subscription:
    """A registered handler."""
    subscription_id: int
    topic: GameEvent
    handler: EventHandler


class EventBus:
    """Ordered, synchronous, multi-subscriber dispatch.
    
    Handlers run in subscription order on the publisher's stack, so a
    handler may publish again or call back into the table. The subscriber
    list is copied before dispatch: handlers added during a publish see
    only later events, and handlers removed during a publish are skipped.
    """
    
    def __init__(self, max_listeners: Optional[int] = None):
        """Initialize the bus.
        
        Args:
            max_listeners: Per-topic count above which a warning is logged.
        """
        self.max_listeners = config.max_listeners if max_listeners is None else max_listeners
        self._subscribers: dict[GameEvent, list[Subscription]] = defaultdict(list)
        self._ids = itertools.count(1)
    
    def subscribe(self, topic: GameEvent, handler: EventHandler) -> int:
        """Register a handler for a topic.
        
        Args:
            topic: Event topic.
            handler: Callable receiving ``(topic, payload)``.
            
        Returns:
            Subscription id, for ``unsubscribe``.
        """
        subscription = Subscription(next(self._ids), GameEvent(topic), handler)
        subscribers = self._subscribers[subscription.topic]
        subscribers.append(subscription)
        
        if self.max_listeners and len(subscribers) > self.max_listeners:
            logger.warning(
                f"{len(subscribers)} listeners on {subscription.topic.value} "
                f"exceed max_listeners={self.max_listeners}"
            )
        return subscription.subscription_id
    
    def unsubscribe(self, subscription_id: int) -> bool:
        """Remove a handler.
        
        Returns:
            True if the subscription existed.
        """
        for subscribers in self._subscribers.values():
            for i, sub in enumerate(subscribers):
                if sub.subscription_id == subscription_id:
                    del subscribers[i]
                    return True
        return False
    
    def clear(self, topic: Optional[GameEvent] = None) -> None:
        """Remove every handler of a topic, or of all topics."""
        if topic is None:
            self._subscribers.clear()
        else:
            self._subscribers.pop(GameEvent(topic), None)
    
    def listener_count(self, topic: GameEvent) -> int:
        """Number of handlers registered for a topic."""
        return len(self._subscribers.get(GameEvent(topic), []))
    
    def publish(self, topic: GameEvent, payload: Optional[dict] = None) -> None:
        """Deliver an event to every current subscriber, in order.
        
        A failing handler is logged and does not stop delivery to the rest.
        
        Args:
            topic: Event topic.
            payload: Event data.
        """
        topic = GameEvent(topic)
        payload = payload if payload is not None else {}
        
        for sub in list(self._subscribers.get(topic, [])):
            if not self._is_subscribed(sub):
                continue
            try:
                sub.handler(topic, payload)
            except Exception:
                logger.exception(f"Handler {sub.subscription_id} failed on {topic.value}")
    
    def _is_subscribed(self, subscription: Subscription) -> bool:
        return any(s is subscription for s in self._subscribers.get(subscription.topic, []))
