"""In-process event bus for store mutations."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from kanbanmd.codec.models import now_iso

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events emitted by the repository."""

    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_MOVED = "task.moved"
    TASK_DELETED = "task.deleted"
    COMMENT_CREATED = "comment.created"
    COMMENT_UPDATED = "comment.updated"
    COMMENT_DELETED = "comment.deleted"
    COLUMN_CREATED = "column.created"
    COLUMN_UPDATED = "column.updated"
    COLUMN_DELETED = "column.deleted"
    ATTACHMENT_ADDED = "attachment.added"
    ATTACHMENT_REMOVED = "attachment.removed"
    BOARD_CREATED = "board.created"
    BOARD_UPDATED = "board.updated"
    BOARD_DELETED = "board.deleted"
    SETTINGS_UPDATED = "settings.updated"


@dataclass
class Event:
    """A store mutation, with a sanitized snapshot of what changed."""

    event_type: EventType
    data: dict[str, Any]
    board_id: str | None = None
    timestamp: str = field(default_factory=now_iso)

    def to_payload(self) -> dict[str, Any]:
        """Webhook payload shape: ``{event, timestamp, data}``."""
        return {"event": self.event_type.value, "timestamp": self.timestamp, "data": self.data}

    def to_json(self) -> bytes:
        """Serialize the payload once, as sent over the wire."""
        return json.dumps(self.to_payload(), ensure_ascii=False).encode("utf-8")


EventHandler = Callable[[Event], Awaitable[None]]


@dataclass
class Subscriber:
    """A queue-backed listener on the event stream."""

    id: str
    queue: asyncio.Queue[Event]
    board_id: str | None = None  # None means subscribe to all boards

    @classmethod
    def create(cls, board_id: str | None = None) -> Subscriber:
        """Create a new subscriber."""
        return cls(id=str(uuid4()), queue=asyncio.Queue(), board_id=board_id)


@dataclass
class EventManager:
    """Fans each emitted event out to subscribers and handlers."""

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    _handlers: list[EventHandler] = field(default_factory=list)

    def subscribe(self, board_id: str | None = None) -> Subscriber:
        """Subscribe to events.

        Args:
            board_id: Optional board ID to filter events. None means all boards.

        Returns:
            Subscriber instance for receiving events.
        """
        subscriber = Subscriber.create(board_id)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        """Remove a subscriber.

        Args:
            subscriber_id: ID of the subscriber to remove.
        """
        self._subscribers.pop(subscriber_id, None)

    def add_handler(self, handler: EventHandler) -> None:
        """Register an async callback invoked for every event."""
        self._handlers.append(handler)

    def remove_handler(self, handler: EventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def emit(self, event: Event) -> None:
        """Emit an event to all matching subscribers and every handler.

        A failing handler is logged and does not stop the others.

        Args:
            event: Event to emit.
        """
        logger.debug("Emitting %s (board=%s)", event.event_type.value, event.board_id)
        for subscriber in self._subscribers.values():
            if subscriber.board_id is None or subscriber.board_id == event.board_id:
                await subscriber.queue.put(event)

        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.event_type.value)

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)
