from app.events.bus import (
    EventBus,
    NotificationEvent,
    NotificationPriority,
    SubscriptionEvent,
    SubscriptionSnapshot,
)

__all__ = [
    "EventBus",
    "NotificationEvent",
    "NotificationPriority",
    "SubscriptionEvent",
    "SubscriptionSnapshot",
]
