"""Pydantic models for the workspace configuration file (.kanban.json)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kanbanmd.codec.models import Priority

CONFIG_VERSION = 2
DEFAULT_BOARD_ID = "default"


class _ConfigModel(BaseModel):
    """Base for config models: camelCase on disk, unknown keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Column(_ConfigModel):
    """A status column; its id doubles as the card status."""

    id: str = Field(..., min_length=1)
    name: str
    color: str = "#6b7280"


def default_columns() -> list[Column]:
    """The five columns every new workspace starts with."""
    return [
        Column(id="backlog", name="Backlog", color="#6b7280"),
        Column(id="todo", name="To Do", color="#3b82f6"),
        Column(id="in-progress", name="In Progress", color="#f59e0b"),
        Column(id="review", name="Review", color="#8b5cf6"),
        Column(id="done", name="Done", color="#22c55e"),
    ]


class LabelDefinition(_ConfigModel):
    """Display definition for a label name."""

    color: str
    group: str | None = None


class Webhook(_ConfigModel):
    """An outbound webhook registration."""

    id: str
    url: str
    events: list[str] = Field(default_factory=lambda: ["*"])
    secret: str | None = None
    active: bool = True

    def subscribes_to(self, event: str) -> bool:
        """Whether this webhook should receive the named event."""
        return self.active and ("*" in self.events or event in self.events)


class BoardConfig(_ConfigModel):
    """Per-board configuration."""

    name: str
    description: str | None = None
    columns: list[Column] = Field(default_factory=default_columns)
    next_card_id: int = Field(default=1, ge=1)
    default_status: str = "backlog"
    default_priority: Priority = Priority.MEDIUM
    final_status: str | None = None

    def column_ids(self) -> list[str]:
        return [c.id for c in self.columns]

    def get_column(self, column_id: str) -> Column | None:
        return next((c for c in self.columns if c.id == column_id), None)

    def resolved_final_status(self) -> str:
        """Status that marks a card as completed.

        An explicit ``final_status`` wins; otherwise the last column is final,
        and a board with no columns falls back to ``done``.
        """
        if self.final_status:
            return self.final_status
        if not self.columns:
            return "done"
        return self.columns[-1].id

    def is_final_status(self, status: str) -> bool:
        return status == self.resolved_final_status()


def default_board() -> BoardConfig:
    return BoardConfig(name="Default")


class DisplaySettings(_ConfigModel):
    """Global display flags plus the fallback default priority/status."""

    show_priority_badges: bool = True
    show_assignee: bool = True
    show_due_date: bool = True
    show_labels: bool = True
    show_build_with_ai: bool = Field(default=True, alias="showBuildWithAI")
    show_file_name: bool = False
    compact_mode: bool = False
    markdown_editor_mode: bool = False
    show_deleted_column: bool = False
    default_priority: Priority = Priority.MEDIUM
    default_status: str = "backlog"


_SETTINGS_FIELDS = tuple(DisplaySettings.model_fields)


class KanbanConfig(DisplaySettings):
    """The whole workspace configuration resource.

    Display settings live at the top level of the file, next to the boards,
    labels and webhooks.
    """

    version: int = CONFIG_VERSION
    boards: dict[str, BoardConfig] = Field(
        default_factory=lambda: {DEFAULT_BOARD_ID: default_board()}
    )
    default_board: str = DEFAULT_BOARD_ID
    features_directory: str = ".kanban"
    ai_agent: str = "claude"
    labels: dict[str, LabelDefinition] = Field(default_factory=dict)
    webhooks: list[Webhook] = Field(default_factory=list)
    action_webhook_url: str | None = None

    def settings(self) -> DisplaySettings:
        """Extract the display settings."""
        return DisplaySettings(**{name: getattr(self, name) for name in _SETTINGS_FIELDS})

    def apply_settings(self, settings: DisplaySettings) -> None:
        """Merge display settings back into this config."""
        for name in _SETTINGS_FIELDS:
            setattr(self, name, getattr(settings, name))

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with on-disk key names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
