"""ID/Label Registry - card ID allocation and label definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from kanbanmd.config.models import BoardConfig, KanbanConfig, LabelDefinition
from kanbanmd.config.store import ConfigStore
from kanbanmd.exceptions import BoardNotFoundError

logger = logging.getLogger(__name__)


def resolve_board(config: KanbanConfig, board_id: str | None) -> tuple[str, BoardConfig]:
    """Look up a board, falling back to the configured default board.

    Raises:
        BoardNotFoundError: If the board does not exist.
    """
    resolved = board_id or config.default_board
    board = config.boards.get(resolved)
    if board is None:
        raise BoardNotFoundError(f"Board '{resolved}' not found")
    return resolved, board


class Registry:
    """Numeric card IDs and label definitions, backed by the config store."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    # Card IDs

    def allocate_card_id(self, board_id: str | None = None) -> int:
        """Reserve the next numeric card ID for a board.

        Returns:
            The allocated ID; the board's counter is advanced and persisted.
        """
        config = self.store.read()
        resolved, board = resolve_board(config, board_id)
        card_id = board.next_card_id
        board.next_card_id = card_id + 1
        self.store.write(config)
        logger.debug("Allocated card id %d on board %s", card_id, resolved)
        return card_id

    def sync_card_id_counter(self, board_id: str | None, existing_ids: Iterable[int]) -> bool:
        """Advance a board's counter past the highest existing numeric ID.

        Returns:
            True if the counter was moved.
        """
        highest = max(existing_ids, default=None)
        if highest is None:
            return False
        config = self.store.read()
        board = config.boards.get(board_id or config.default_board)
        if board is None or board.next_card_id > highest:
            return False
        logger.info("Advancing next card id on board %s to %d", board_id, highest + 1)
        board.next_card_id = highest + 1
        self.store.write(config)
        return True

    # Labels

    def get_labels(self) -> dict[str, LabelDefinition]:
        return self.store.read().labels

    def set_label(self, name: str, definition: LabelDefinition) -> None:
        """Create or replace a label definition."""
        config = self.store.read()
        config.labels[name] = definition
        self.store.write(config)

    def delete_label(self, name: str) -> bool:
        """Remove a label definition. Returns False if it was not defined."""
        config = self.store.read()
        if config.labels.pop(name, None) is None:
            return False
        self.store.write(config)
        return True

    def rename_label(self, old_name: str, new_name: str) -> bool:
        """Move a label definition to a new name, keeping its position.

        Returns:
            False if ``old_name`` had no definition.
        """
        config = self.store.read()
        if old_name not in config.labels:
            return False
        config.labels = {
            (new_name if name == old_name else name): definition
            for name, definition in config.labels.items()
            if name != new_name or old_name == new_name
        }
        self.store.write(config)
        return True

    def get_labels_in_group(self, group: str) -> list[str]:
        """Names of all labels whose definition belongs to ``group``, sorted."""
        return sorted(name for name, d in self.get_labels().items() if d.group == group)
