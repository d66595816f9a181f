"""
Notification copy and default priorities per notification type.
"""
from collections import defaultdict
from typing import Dict, NamedTuple

from app.events.bus import NotificationPriority


class Template(NamedTuple):
    title: str
    body: str
    email_subject: str = ""


TEMPLATES: Dict[str, Template] = {
    "vendor_approved": Template(
        "Your business is approved",
        "Congratulations! {businessName} is now live on the marketplace.",
        "Your vendor account has been approved",
    ),
    "vendor_rejected": Template(
        "Your application needs changes",
        "Your application for {businessName} was not approved. Reason: {reason}",
        "Update required for your vendor application",
    ),
    "vendor_suspended": Template(
        "Your account has been suspended",
        "{businessName} has been suspended. Reason: {reason}",
        "Your vendor account has been suspended",
    ),
    "subscription_activated": Template(
        "Subscription activated",
        "Your {planName} plan is now active.",
        "Payment received: {planName} activated",
    ),
    "subscription_changed": Template(
        "Subscription updated",
        "Your subscription is now on the {planName} plan ({eventType}).",
    ),
    "payment_failed": Template(
        "Payment failed",
        "We could not process your payment of {amount}. Please try again.",
        "Your payment could not be processed",
    ),
    "booking_created": Template(
        "New booking request",
        "You have a new booking request for {serviceTitle}.",
    ),
    "booking_confirmed": Template(
        "Booking confirmed",
        "Your booking for {serviceTitle} has been confirmed.",
    ),
    "booking_completed": Template(
        "Booking completed",
        "Your booking for {serviceTitle} is complete. Leave a review!",
    ),
    "booking_cancelled": Template(
        "Booking cancelled",
        "The booking for {serviceTitle} was cancelled.",
    ),
    "review_received": Template(
        "New review",
        "You received a {rating}-star review for {serviceTitle}.",
    ),
    "report_reviewed": Template(
        "Report reviewed",
        "Our team has reviewed your report. Thank you for keeping the community safe.",
    ),
}

DEFAULT_PRIORITY_BY_TYPE: Dict[str, NotificationPriority] = {
    "vendor_approved": NotificationPriority.HIGH,
    "vendor_rejected": NotificationPriority.HIGH,
    "vendor_suspended": NotificationPriority.IMMEDIATE,
    "subscription_activated": NotificationPriority.HIGH,
    "payment_failed": NotificationPriority.HIGH,
    "booking_created": NotificationPriority.HIGH,
    "booking_cancelled": NotificationPriority.HIGH,
}


def render(notification_type: str, metadata: dict) -> Template:
    template = TEMPLATES.get(notification_type)
    if template is None:
        title = notification_type.replace("_", " ").capitalize()
        return Template(title, title, title)

    # Missing keys render as empty strings
    values = defaultdict(str, {k: ("" if v is None else v) for k, v in (metadata or {}).items()})
    title = template.title.format_map(values)
    return Template(
        title,
        template.body.format_map(values),
        (template.email_subject or template.title).format_map(values),
    )


def default_priority(notification_type: str) -> NotificationPriority:
    return DEFAULT_PRIORITY_BY_TYPE.get(notification_type, NotificationPriority.LOW)
