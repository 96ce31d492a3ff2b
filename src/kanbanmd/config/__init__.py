"""Board Config - Workspace configuration, ID allocation and label definitions."""

from kanbanmd.config.models import (
    CONFIG_VERSION,
    DEFAULT_BOARD_ID,
    BoardConfig,
    Column,
    DisplaySettings,
    KanbanConfig,
    LabelDefinition,
    Webhook,
    default_columns,
)
from kanbanmd.config.registry import Registry, resolve_board
from kanbanmd.config.store import CONFIG_FILENAME, ConfigStore, Workspace, migrate_config_v1
from kanbanmd.exceptions import BoardNotFoundError, ConfigError

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_VERSION",
    "DEFAULT_BOARD_ID",
    "BoardConfig",
    "BoardNotFoundError",
    "Column",
    "ConfigError",
    "ConfigStore",
    "DisplaySettings",
    "KanbanConfig",
    "LabelDefinition",
    "Registry",
    "Webhook",
    "Workspace",
    "default_columns",
    "migrate_config_v1",
    "resolve_board",
]
