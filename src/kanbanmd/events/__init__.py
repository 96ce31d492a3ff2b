"""Event Emitter - In-process event bus and outbound webhook delivery."""

from kanbanmd.events.events import Event, EventHandler, EventManager, EventType, Subscriber
from kanbanmd.events.webhooks import (
    DELIVERY_TIMEOUT,
    DeliveryFailure,
    WebhookDispatcher,
    WebhookRegistry,
    generate_webhook_id,
    log_delivery_failure,
    post_action,
    sign_payload,
    validate_webhook_url,
)
from kanbanmd.exceptions import ActionWebhookError, InvalidWebhookURLError, WebhookNotFoundError

__all__ = [
    "DELIVERY_TIMEOUT",
    "ActionWebhookError",
    "DeliveryFailure",
    "Event",
    "EventHandler",
    "EventManager",
    "EventType",
    "InvalidWebhookURLError",
    "Subscriber",
    "WebhookDispatcher",
    "WebhookNotFoundError",
    "WebhookRegistry",
    "generate_webhook_id",
    "log_delivery_failure",
    "post_action",
    "sign_payload",
    "validate_webhook_url",
]
