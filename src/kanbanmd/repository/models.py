"""Request and result models for the Card Repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from kanbanmd.codec import Card, Priority
from kanbanmd.config.models import Column


class SortOrder(StrEnum):
    """Listing sort options; the default listing is column order."""

    CREATED_ASC = "created:asc"
    CREATED_DESC = "created:desc"
    MODIFIED_ASC = "modified:asc"
    MODIFIED_DESC = "modified:desc"

    @property
    def field_name(self) -> str:
        return self.value.split(":")[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith(":desc")


class CreateCardInput(BaseModel):
    """Request model for creating a card."""

    content: str
    board_id: str | None = None
    status: str | None = None
    priority: Priority | None = None
    assignee: str | None = None
    due_date: str | None = None
    labels: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    actions: list[str] | None = None


class CardUpdate(BaseModel):
    """Request model for updating a card (partial update).

    Only fields that were explicitly set are applied, so ``assignee=None``
    clears the assignee while omitting it leaves it untouched.
    """

    status: str | None = None
    priority: Priority | None = None
    assignee: str | None = None
    due_date: str | None = None
    labels: list[str] | None = None
    attachments: list[str] | None = None
    content: str | None = None
    metadata: dict[str, Any] | None = None
    actions: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


@dataclass
class BoardInfo:
    """Summary of one board."""

    id: str
    name: str
    description: str | None = None
    columns: list[Column] = field(default_factory=list)


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation pass over a board."""

    board_id: str
    cards: list[Card] = field(default_factory=list)
    flattened: int = 0
    relocated: int = 0
    rekeyed: int = 0
    counter_advanced: bool = False

    @property
    def changed(self) -> bool:
        """Whether the pass touched anything on disk."""
        return bool(self.flattened or self.relocated or self.rekeyed or self.counter_advanced)
