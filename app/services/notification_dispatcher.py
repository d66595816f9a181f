"""
Notification dispatcher.

Subscribes to the event bus, queues notifications by priority and delivers
them in-app (a Notification row) and by email. IMMEDIATE notifications are
delivered inline; everything else waits for the processing loop. Failed
deliveries are retried according to the priority's RetryPolicy.
"""
import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set, Tuple

from app.db.models.notification import Notification
from app.db.models.user import User
from app.db.models.vendor import Vendor
from app.events.bus import EventBus, NotificationEvent, NotificationPriority, SubscriptionEvent
from app.services.notification_templates import default_priority, render

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    channels: Tuple[str, ...]
    retry_attempts: int
    retry_delay_seconds: float


PRIORITY_CONFIG: Dict[NotificationPriority, RetryPolicy] = {
    NotificationPriority.IMMEDIATE: RetryPolicy(("in_app", "email"), 3, 1.0),
    NotificationPriority.HIGH: RetryPolicy(("in_app", "email"), 3, 5.0),
    NotificationPriority.LOW: RetryPolicy(("in_app",), 2, 30.0),
}

PRIORITY_ORDER = {
    NotificationPriority.IMMEDIATE: 0,
    NotificationPriority.HIGH: 1,
    NotificationPriority.LOW: 2,
}

# Subscription lifecycle events that get their own notification; activation
# is announced by the payment and approval flows.
NOTIFIED_SUBSCRIPTION_EVENTS = {"upgraded", "downgraded", "cancelled", "expired"}


@dataclass
class QueuedNotification:
    event: NotificationEvent
    attempts: int = 0
    next_attempt_at: float = 0.0
    seq: int = 0
    delivered_channels: Set[str] = field(default_factory=set)

    @property
    def sort_key(self):
        return (PRIORITY_ORDER[self.event.priority], self.seq)


class NotificationDispatcher:
    def __init__(self, session_factory: Callable, email_sender=None, clock: Callable[[], float] = time.monotonic):
        self.session_factory = session_factory
        self.email_sender = email_sender
        self.clock = clock
        self._queue: List[QueuedNotification] = []
        self._lock = threading.Lock()
        self._processing = threading.Lock()
        self._seq = 0
        self._running = False

    def register(self, bus: EventBus) -> None:
        bus.subscribe(NotificationEvent, self.handle)
        bus.subscribe(SubscriptionEvent, self.handle_subscription)
        logger.info("Notification dispatcher: event listeners registered")

    def unregister(self, bus: EventBus) -> None:
        bus.unsubscribe(NotificationEvent, self.handle)
        bus.unsubscribe(SubscriptionEvent, self.handle_subscription)

    @property
    def queue_length(self) -> int:
        with self._lock:
            return len(self._queue)

    def handle(self, event: NotificationEvent) -> None:
        priority = event.priority or default_priority(event.type)
        event = replace(event, priority=priority)

        logger.info(
            f"Notification dispatcher: received type={event.type} "
            f"recipient={event.recipient_type}:{event.recipient_id} priority={priority.value}"
        )
        item = QueuedNotification(event=event, next_attempt_at=self.clock())

        # Inline delivery touches only this notification; a failure re-queues it
        if priority == NotificationPriority.IMMEDIATE:
            self._deliver(item)
        else:
            self._enqueue(item)

    def handle_subscription(self, event: SubscriptionEvent) -> None:
        if event.event_type not in NOTIFIED_SUBSCRIPTION_EVENTS:
            return
        self.handle(NotificationEvent(
            recipient_type="vendor",
            recipient_id=event.vendor_id,
            type="subscription_changed",
            metadata={
                "planCode": event.subscription.plan_code,
                "planName": event.subscription.plan_name,
                "eventType": event.event_type,
            },
        ))

    def _enqueue(self, item: QueuedNotification) -> None:
        with self._lock:
            self._seq += 1
            item.seq = self._seq
            self._queue.append(item)
            self._queue.sort(key=lambda n: n.sort_key)

    def _take_ready(self, ignore_schedule: bool) -> List[QueuedNotification]:
        now = self.clock()
        with self._lock:
            ready = [n for n in self._queue if ignore_schedule or n.next_attempt_at <= now]
            taken = {id(n) for n in ready}
            self._queue = [n for n in self._queue if id(n) not in taken]
        return ready

    def process_queue(self, ignore_schedule: bool = False) -> int:
        """
        Deliver every notification whose retry time has come, highest
        priority first.

        Returns the number delivered. Re-entrant calls return 0.
        """
        if not self._processing.acquire(blocking=False):
            return 0
        try:
            delivered = 0
            for item in self._take_ready(ignore_schedule):
                if self._deliver(item):
                    delivered += 1
            return delivered
        finally:
            self._processing.release()

    def drain(self) -> int:
        """Deliver everything queued, retrying failures without waiting."""
        delivered = 0
        while self.queue_length:
            delivered += self.process_queue(ignore_schedule=True)
        logger.info(f"Notification dispatcher: drained, delivered={delivered}")
        return delivered

    def _deliver(self, item: QueuedNotification) -> bool:
        event = item.event
        policy = PRIORITY_CONFIG[event.priority]
        template = render(event.type, event.metadata)

        db = self.session_factory()
        try:
            if "in_app" in policy.channels and "in_app" not in item.delivered_channels:
                db.add(Notification(
                    recipient_type=event.recipient_type,
                    recipient_id=event.recipient_id,
                    type=event.type,
                    title=template.title,
                    body=template.body,
                    priority=event.priority.value,
                    extra=dict(event.metadata or {}),
                ))
                db.commit()
                item.delivered_channels.add("in_app")

            if "email" in policy.channels and self.email_sender is not None:
                address = self._recipient_email(db, event)
                if address:
                    self.email_sender.send(address, template.email_subject, template.body)
                    item.delivered_channels.add("email")
        except Exception as e:
            db.rollback()
            item.attempts += 1
            will_retry = item.attempts < policy.retry_attempts
            logger.error(
                f"Notification delivery failed: type={event.type} "
                f"recipient={event.recipient_type}:{event.recipient_id} "
                f"attempt={item.attempts}/{policy.retry_attempts} will_retry={will_retry}: {e}"
            )
            if will_retry:
                item.next_attempt_at = self.clock() + policy.retry_delay_seconds
                self._enqueue(item)
            return False
        finally:
            db.close()

        logger.info(
            f"Notification delivered: type={event.type} "
            f"recipient={event.recipient_type}:{event.recipient_id} channels={list(policy.channels)}"
        )
        return True

    @staticmethod
    def _recipient_email(db, event: NotificationEvent) -> Optional[str]:
        model = Vendor if event.recipient_type == "vendor" else User
        recipient = db.query(model).filter(model.id == event.recipient_id).first()
        return recipient.email if recipient else None

    async def run(self, interval: float = 1.0) -> None:
        """Process the queue every `interval` seconds until stop() is called."""
        self._running = True
        logger.info("Notification dispatcher: processing loop started")
        while self._running:
            await asyncio.to_thread(self.process_queue)
            await asyncio.sleep(interval)

    def stop(self) -> None:
        self._running = False
