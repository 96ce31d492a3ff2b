"""Data models for cards and comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from kanbanmd.codec.naming import extract_numeric_id

# Format version written to every new card header
CARD_FORMAT_VERSION = 1

# Reserved status for soft-deleted cards; never a real column
DELETED_STATUS = "deleted"


class Priority(StrEnum):
    """Card priority enum."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Comment:
    """A single comment in a card's discussion thread."""

    id: str  # "c<N>"
    author: str
    created: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "id": self.id,
            "author": self.author,
            "created": self.created,
            "content": self.content,
        }


@dataclass
class Card:
    """Represents one kanban card persisted as a Markdown file."""

    id: str
    status: str
    priority: Priority = Priority.MEDIUM
    version: int = CARD_FORMAT_VERSION
    board_id: str | None = None
    assignee: str | None = None
    due_date: str | None = None
    created: str = field(default_factory=now_iso)
    modified: str = field(default_factory=now_iso)
    completed_at: str | None = None
    labels: list[str] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    order: str = "a0"
    content: str = ""
    metadata: dict[str, Any] | None = None
    actions: list[str] | None = None
    file_path: str = ""

    @property
    def numeric_id(self) -> int | None:
        """The card ID as an integer, or None for legacy non-numeric IDs."""
        return extract_numeric_id(self.id)

    def to_snapshot(self) -> dict[str, Any]:
        """Sanitized, JSON-serializable view of the card.

        Uses the on-disk camelCase field names and never includes the
        internal file path.
        """
        snapshot: dict[str, Any] = {
            "version": self.version,
            "id": self.id,
            "boardId": self.board_id,
            "status": self.status,
            "priority": str(self.priority),
            "assignee": self.assignee,
            "dueDate": self.due_date,
            "created": self.created,
            "modified": self.modified,
            "completedAt": self.completed_at,
            "labels": list(self.labels),
            "attachments": list(self.attachments),
            "comments": [c.to_dict() for c in self.comments],
            "order": self.order,
            "content": self.content,
        }
        if self.metadata:
            snapshot["metadata"] = self.metadata
        if self.actions:
            snapshot["actions"] = list(self.actions)
        return snapshot
