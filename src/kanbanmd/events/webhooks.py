"""Webhook Dispatcher - registrations and signed, detached HTTP delivery."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from kanbanmd.config.models import Webhook
from kanbanmd.config.store import ConfigStore
from kanbanmd.events.events import Event
from kanbanmd.exceptions import ActionWebhookError, InvalidWebhookURLError, WebhookNotFoundError
from kanbanmd.logging import sanitize_for_log, truncate_output

logger = logging.getLogger(__name__)

DELIVERY_TIMEOUT = 10.0  # seconds
SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"


def generate_webhook_id() -> str:
    """Return a new webhook ID, e.g. ``wh_a1b2c3d4e5f67890``."""
    return "wh_" + secrets.token_hex(8)


def sign_payload(secret: str, payload: bytes) -> str:
    """HMAC-SHA256 hex digest of ``payload`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def validate_webhook_url(url: str) -> str:
    """Check that ``url`` can be delivered to.

    Raises:
        InvalidWebhookURLError: If it does not parse or is not an absolute http(s) URL.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidWebhookURLError(f"Invalid webhook URL {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidWebhookURLError(f"Webhook URL must be an absolute http(s) URL: {url!r}")
    return url


@dataclass
class DeliveryFailure:
    """A webhook delivery that did not get a 2xx response."""

    webhook_id: str
    url: str
    event: str
    status_code: int | None = None
    error: str | None = None

    def describe(self) -> str:
        if self.status_code is not None:
            return f"HTTP {self.status_code}"
        return self.error or "unknown error"


FailureSink = Callable[[DeliveryFailure], None]


def log_delivery_failure(failure: DeliveryFailure) -> None:
    """Default failure sink: log a warning."""
    logger.warning(
        "Webhook delivery failed for %s (%s) on %s: %s",
        failure.webhook_id,
        sanitize_for_log(failure.url),
        failure.event,
        sanitize_for_log(failure.describe()),
    )


class WebhookRegistry:
    """CRUD on the ``webhooks`` list of the configuration resource."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def list_webhooks(self) -> list[Webhook]:
        return self.store.read().webhooks

    def get(self, webhook_id: str) -> Webhook:
        """Look up a webhook.

        Raises:
            WebhookNotFoundError: If no webhook has this ID.
        """
        for webhook in self.list_webhooks():
            if webhook.id == webhook_id:
                return webhook
        raise WebhookNotFoundError(f"Webhook '{webhook_id}' not found")

    def create(self, url: str, events: list[str], secret: str | None = None) -> Webhook:
        """Register a new, active webhook.

        Args:
            url: Endpoint that receives POST requests.
            events: Event names to subscribe to, or ``["*"]`` for all.
            secret: Optional HMAC-SHA256 signing key.

        Returns:
            The created webhook with its generated ID.

        Raises:
            InvalidWebhookURLError: If ``url`` is not an absolute http(s) URL.
        """
        validate_webhook_url(url)
        config = self.store.read()
        webhook = Webhook(id=generate_webhook_id(), url=url, events=events, secret=secret, active=True)
        config.webhooks.append(webhook)
        self.store.write(config)
        logger.info("Registered webhook %s -> %s (%s)", webhook.id, url, ", ".join(events))
        return webhook

    def update(
        self,
        webhook_id: str,
        *,
        url: str | None = None,
        events: list[str] | None = None,
        secret: str | None = None,
        active: bool | None = None,
    ) -> Webhook:
        """Change the provided fields of a webhook; omitted fields stay as they are."""
        config = self.store.read()
        webhook = next((w for w in config.webhooks if w.id == webhook_id), None)
        if webhook is None:
            raise WebhookNotFoundError(f"Webhook '{webhook_id}' not found")
        if url is not None:
            webhook.url = validate_webhook_url(url)
        if events is not None:
            webhook.events = events
        if secret is not None:
            webhook.secret = secret
        if active is not None:
            webhook.active = active
        self.store.write(config)
        return webhook

    def delete(self, webhook_id: str) -> None:
        config = self.store.read()
        remaining = [w for w in config.webhooks if w.id != webhook_id]
        if len(remaining) == len(config.webhooks):
            raise WebhookNotFoundError(f"Webhook '{webhook_id}' not found")
        config.webhooks = remaining
        self.store.write(config)
        logger.info("Deleted webhook %s", webhook_id)


class WebhookDispatcher:
    """Delivers events to matching webhooks as detached tasks.

    Each matching registration gets one POST of the same serialized payload.
    Deliveries are never retried and their failures never reach the caller;
    they are reported to ``on_failure`` instead.
    """

    def __init__(
        self,
        store: ConfigStore,
        client: httpx.AsyncClient | None = None,
        timeout: float = DELIVERY_TIMEOUT,
        on_failure: FailureSink | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: Config store the registrations are read from on every dispatch.
            client: HTTP client to deliver with. Created lazily when omitted.
            timeout: Per-delivery timeout in seconds.
            on_failure: Sink for failed deliveries. Defaults to a logged warning.
        """
        self.store = store
        self.timeout = timeout
        self.on_failure = on_failure or log_delivery_failure
        self._client = client
        self._owns_client = client is None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def dispatch(self, event: Event) -> int:
        """Start delivery of ``event`` to every matching webhook.

        Returns:
            Number of deliveries started. They may still be running on return.
        """
        name = event.event_type.value
        matching = [w for w in self.store.read().webhooks if w.subscribes_to(name)]
        if not matching:
            return 0

        body = event.to_json()
        for webhook in matching:
            task = asyncio.create_task(self._deliver(webhook, name, body))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        logger.debug("Dispatching %s to %d webhook(s)", name, len(matching))
        return len(matching)

    async def _deliver(self, webhook: Webhook, event: str, body: bytes) -> None:
        headers = {"Content-Type": "application/json", EVENT_HEADER: event}
        if webhook.secret:
            headers[SIGNATURE_HEADER] = f"sha256={sign_payload(webhook.secret, body)}"

        try:
            response = await self.client.post(webhook.url, content=body, headers=headers, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._report(DeliveryFailure(webhook.id, webhook.url, event, error=f"{type(e).__name__}: {e}"))
            return

        if not response.is_success:
            logger.debug("Webhook %s response: %s", webhook.id, truncate_output(response.text))
            self._report(DeliveryFailure(webhook.id, webhook.url, event, status_code=response.status_code))
            return
        logger.debug("Delivered %s to %s", event, webhook.id)

    def _report(self, failure: DeliveryFailure) -> None:
        try:
            self.on_failure(failure)
        except Exception:
            logger.exception("Webhook failure sink raised for %s", failure.webhook_id)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Finish in-flight deliveries and close the client if we created it."""
        await self.drain()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


async def post_action(client: httpx.AsyncClient, url: str, payload: dict[str, Any]) -> None:
    """POST a card action to the action webhook and wait for the response.

    Raises:
        ActionWebhookError: If the request fails or the response is not 2xx.
    """
    try:
        response = await client.post(url, json=payload, timeout=DELIVERY_TIMEOUT)
    except httpx.HTTPError as e:
        raise ActionWebhookError(f"Action webhook request failed: {e}") from e
    if not response.is_success:
        raise ActionWebhookError(f"Action webhook responded with {response.status_code}")
    logger.info("Triggered action %r via %s", payload.get("action"), url)
