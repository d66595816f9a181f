"""
Typed in-process publish/subscribe.

Events are a closed set of dataclass variants. Handlers are registered per
variant and invoked synchronously, in registration order, when an event of
that variant is published. A failing handler is logged and skipped; it never
reaches the publisher or the remaining handlers.

Delivery is best-effort and at-most-once: events are published after the
state change they describe has been committed, and nothing is persisted.
"""
import enum
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

logger = logging.getLogger(__name__)


class NotificationPriority(str, enum.Enum):
    IMMEDIATE = "IMMEDIATE"
    HIGH = "HIGH"
    LOW = "LOW"


@dataclass(frozen=True)
class NotificationEvent:
    """A user-facing message for a member or a vendor."""
    recipient_type: str  # user | vendor
    recipient_id: int
    type: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    priority: Optional[NotificationPriority] = None


@dataclass(frozen=True)
class SubscriptionSnapshot:
    id: int
    plan_code: str
    plan_name: str
    status: str
    start_at: datetime
    end_at: datetime
    features: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SubscriptionEvent:
    """Subscription lifecycle change for a vendor."""
    vendor_id: int
    event_type: str  # SubscriptionEventType value
    subscription: SubscriptionSnapshot


Event = Union[NotificationEvent, SubscriptionEvent]
EVENT_TYPES = (NotificationEvent, SubscriptionEvent)

E = TypeVar("E", NotificationEvent, SubscriptionEvent)


class EventBus:
    def __init__(self):
        self._handlers: Dict[type, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        if event_type not in EVENT_TYPES:
            raise TypeError(f"Unknown event type: {event_type!r}")
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))

    def publish(self, event: Event) -> int:
        """
        Invoke every handler registered for the event's variant.

        Returns the number of handlers that completed without raising.
        """
        event_type = type(event)
        if event_type not in EVENT_TYPES:
            raise TypeError(f"Cannot publish {event_type.__name__}: not an event variant")

        self._log_publish(event)

        delivered = 0
        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(
                    f"Event bus: handler {getattr(handler, '__qualname__', handler)!s} "
                    f"failed for {event_type.__name__}"
                )
        return delivered

    @staticmethod
    def _log_publish(event: Event) -> None:
        if isinstance(event, NotificationEvent):
            priority = event.priority.value if event.priority else "default"
            logger.info(
                f"Event bus: notification type={event.type} "
                f"recipient={event.recipient_type}:{event.recipient_id} priority={priority}"
            )
        else:
            logger.info(
                f"Event bus: subscription event={event.event_type} vendor_id={event.vendor_id} "
                f"plan={event.subscription.plan_code}"
            )
