"""Workspace paths and JSON persistence for the configuration resource."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from kanbanmd.config.models import (
    CONFIG_VERSION,
    DEFAULT_BOARD_ID,
    BoardConfig,
    KanbanConfig,
    default_columns,
)
from kanbanmd.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".kanban.json"
BOARDS_DIRNAME = "boards"


@dataclass(frozen=True)
class Workspace:
    """Explicit handle on where a kanban store lives.

    The kanban directory holds card files; the configuration file sits in its
    parent, the workspace root.
    """

    kanban_dir: Path

    @classmethod
    def at(cls, kanban_dir: str | Path) -> Workspace:
        return cls(kanban_dir=Path(kanban_dir).resolve())

    @property
    def root(self) -> Path:
        return self.kanban_dir.parent

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def boards_dir(self) -> Path:
        return self.kanban_dir / BOARDS_DIRNAME

    def board_dir(self, board_id: str) -> Path:
        return self.boards_dir / board_id


def migrate_config_v1(raw: dict[str, Any]) -> dict[str, Any]:
    """Convert a single-board (v1) config into the multi-board shape.

    Top-level ``columns``, ``nextCardId`` and the default status/priority move
    into ``boards.default``; every other key is carried over unchanged.
    """
    migrated = {k: v for k, v in raw.items() if k not in ("columns", "nextCardId")}
    default_board = BoardConfig(
        name="Default",
        columns=raw.get("columns") or default_columns(),
        next_card_id=raw.get("nextCardId", 1),
        default_status=raw.get("defaultStatus", "backlog"),
        default_priority=raw.get("defaultPriority", "medium"),
    )
    migrated["version"] = CONFIG_VERSION
    migrated["boards"] = {DEFAULT_BOARD_ID: default_board.model_dump(mode="json", by_alias=True, exclude_none=True)}
    migrated["defaultBoard"] = DEFAULT_BOARD_ID
    return migrated


class ConfigStore:
    """Reads and writes the configuration resource as a whole.

    Every change is a read-modify-write of the full file; the write goes
    through a temporary file and an atomic replace.
    """

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    @property
    def path(self) -> Path:
        return self.workspace.config_path

    def read(self) -> KanbanConfig:
        """Load the configuration, migrating a v1 file in place.

        Returns:
            The parsed config, or defaults when no file exists yet.

        Raises:
            ConfigError: If the file is not valid JSON or fails validation.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return KanbanConfig()
        except OSError as e:
            raise ConfigError(f"Cannot read {self.path}: {e}") from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{self.path} must contain a JSON object")

        needs_migration = raw.get("version") in (None, 1)
        try:
            if needs_migration:
                logger.info("Migrating %s from v1 to v%d", self.path, CONFIG_VERSION)
                raw = migrate_config_v1(raw)
            config = KanbanConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.path}: {e}") from e

        if not config.boards:
            config.boards = KanbanConfig().boards

        if needs_migration:
            self.write(config)
        return config

    def write(self, config: KanbanConfig) -> None:
        """Persist the configuration atomically."""
        payload = json.dumps(config.to_json_dict(), indent=2, ensure_ascii=False) + "\n"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".kanban-", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote config %s", self.path)
