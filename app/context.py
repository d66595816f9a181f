"""
Application context.

Built once at startup and stored on ``app.state.context``. Holds the
collaborators that would otherwise be module-level singletons: the event
bus, the notification dispatcher, the payment gateway, the email sender and
upload storage.

Startup order: bus, dispatcher subscribed to the bus, processing loop.
Shutdown order: stop the loop, drain the queue, unsubscribe.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi import Request

from app.core.config import SUBSCRIPTION_SWEEP_SECONDS
from app.events.bus import EventBus
from app.services import subscription_service
from app.services.email_service import ResendEmailSender
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.storage import LocalUploadStorage
from app.services.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    bus: EventBus
    dispatcher: NotificationDispatcher
    gateway: object
    email_sender: object
    storage: LocalUploadStorage
    session_factory: Optional[Callable] = None
    _loop_task: Optional[asyncio.Task] = field(default=None, repr=False)
    _sweep_task: Optional[asyncio.Task] = field(default=None, repr=False)
    _started: bool = field(default=False, repr=False)

    def start(self) -> None:
        if self._started:
            return
        self.dispatcher.register(self.bus)
        self._started = True
        logger.info("Application context started")

    def start_background(self, interval: float = 1.0, sweep_seconds: int = SUBSCRIPTION_SWEEP_SECONDS) -> None:
        """Run the dispatcher loop and the subscription expiry sweep on the current event loop."""
        loop = asyncio.get_running_loop()
        self._loop_task = loop.create_task(self.dispatcher.run(interval))
        if sweep_seconds > 0 and self.session_factory is not None:
            self._sweep_task = loop.create_task(self._sweep_subscriptions(sweep_seconds))

    def expire_subscriptions(self) -> int:
        db = self.session_factory()
        try:
            return subscription_service.expire_subscriptions(db, self.bus)
        finally:
            db.close()

    async def _sweep_subscriptions(self, interval: int) -> None:
        while True:
            try:
                await asyncio.to_thread(self.expire_subscriptions)
            except Exception as e:
                logger.error(f"Subscription expiry sweep failed: {e}")
            await asyncio.sleep(interval)

    async def shutdown(self) -> None:
        self.dispatcher.stop()
        for task in (self._sweep_task, self._loop_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loop_task = None
        self._sweep_task = None

        pending = self.dispatcher.queue_length
        await asyncio.to_thread(self.dispatcher.drain)
        self.dispatcher.unregister(self.bus)
        self._started = False
        logger.info(f"Application context shut down, drained {pending} queued notification(s)")


def build_context(
    session_factory: Callable,
    gateway=None,
    email_sender=None,
    storage: Optional[LocalUploadStorage] = None,
) -> AppContext:
    email_sender = email_sender if email_sender is not None else ResendEmailSender()
    return AppContext(
        bus=EventBus(),
        dispatcher=NotificationDispatcher(session_factory, email_sender),
        gateway=gateway if gateway is not None else StripeGateway(),
        email_sender=email_sender,
        storage=storage or LocalUploadStorage(),
        session_factory=session_factory,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context
