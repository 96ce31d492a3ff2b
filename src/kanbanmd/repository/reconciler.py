"""Migration Reconciler - heals a board's directory tree on every read.

Each pass runs the same ordered phases. Every phase is idempotent, so a pass
over a consistent tree changes nothing, and a pass interrupted by a crash or
a concurrent editor is completed by the next one.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path

from kanbanmd.codec import Card
from kanbanmd.config.registry import Registry
from kanbanmd.config.store import BOARDS_DIRNAME, Workspace
from kanbanmd.exceptions import OrderKeyError
from kanbanmd.ordering import is_legacy_order, keys_between, validate_key
from kanbanmd.repository.files import (
    load_card,
    move_card_file,
    read_md_files,
    status_dirs,
    status_from_path,
    write_card,
)
from kanbanmd.repository.models import ReconcileReport

logger = logging.getLogger(__name__)

LEGACY_IMPORT_STATUS = "backlog"


def migrate_to_multi_board(kanban_dir: Path, default_board_id: str = "default") -> bool:
    """Move a single-board layout into ``boards/<default_board_id>/``.

    Status folders directly under ``kanban_dir`` move as a whole; loose ``.md``
    files land in the backlog folder. Hidden directories stay where they are.
    Once ``boards/`` exists this is a no-op.

    Returns:
        True if a migration ran.
    """
    boards_dir = kanban_dir / BOARDS_DIRNAME
    if boards_dir.exists():
        return False

    default_dir = boards_dir / default_board_id
    default_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Migrating %s to multi-board layout", kanban_dir)
    entries = [
        e for e in sorted(kanban_dir.iterdir()) if e.name != BOARDS_DIRNAME and not e.name.startswith(".")
    ]
    for entry in entries:
        if entry.is_dir():
            entry.rename(default_dir / entry.name)

    loose_files = [e for e in entries if e.is_file() and e.suffix == ".md"]
    if loose_files:
        backlog = default_dir / LEGACY_IMPORT_STATUS
        backlog.mkdir(exist_ok=True)
        for entry in loose_files:
            entry.rename(backlog / entry.name)
    return True


def _legacy_sort_key(card: Card) -> tuple[int, int, str]:
    if is_legacy_order(card.order):
        return (0, int(card.order), "")
    return (1, 0, card.order)


def _column_needs_rekey(column: list[Card]) -> bool:
    if len({c.order for c in column}) < len(column):
        return True
    for card in column:
        try:
            validate_key(card.order)
        except OrderKeyError:
            return True
    return False


class MigrationReconciler:
    """Brings a board's files in line with the cards' declared state."""

    def __init__(self, workspace: Workspace, registry: Registry) -> None:
        self.workspace = workspace
        self.registry = registry

    def run(self, board_id: str) -> ReconcileReport:
        """Run every phase over one board.

        Args:
            board_id: Board to reconcile.

        Returns:
            The loaded cards, sorted by order key, plus what was changed.
        """
        board_dir = self.workspace.board_dir(board_id)
        board_dir.mkdir(parents=True, exist_ok=True)

        report = ReconcileReport(board_id=board_id)
        report.flattened = self.flatten(board_dir)
        report.cards = self.load(board_dir, board_id)
        report.relocated = self.reconcile_folders(report.cards, board_dir)
        report.rekeyed = self.migrate_order(report.cards)
        report.counter_advanced = self.sync_id_counter(board_id, report.cards)

        if report.changed:
            logger.info(
                "Reconciled board %s: flattened=%d relocated=%d rekeyed=%d counter_advanced=%s",
                board_id,
                report.flattened,
                report.relocated,
                report.rekeyed,
                report.counter_advanced,
            )
        report.cards.sort(key=lambda c: c.order)
        return report

    def flatten(self, board_dir: Path) -> int:
        """Move card files sitting in the board root into their status folder."""
        moved = 0
        for path in read_md_files(board_dir):
            try:
                card = load_card(path)
                if card is None:
                    continue
                move_card_file(path, board_dir, card.status, card.attachments)
                moved += 1
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not flatten %s: %s", path, e)
        return moved

    def load(self, board_dir: Path, board_id: str) -> list[Card]:
        """Decode every card file in the board's status folders.

        Files without a header block, and files that vanish or cannot be read
        mid-scan, are skipped.
        """
        cards: list[Card] = []
        for directory in status_dirs(board_dir):
            try:
                paths = read_md_files(directory)
            except OSError as e:
                logger.warning("Could not scan %s: %s", directory, e)
                continue
            for path in paths:
                try:
                    card = load_card(path)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Could not read %s: %s", path, e)
                    continue
                if card is None:
                    logger.debug("Skipping %s: no header block", path)
                    continue
                card.board_id = board_id
                cards.append(card)
        return cards

    def reconcile_folders(self, cards: list[Card], board_dir: Path) -> int:
        """Move cards whose folder disagrees with their status."""
        moved = 0
        for card in cards:
            folder_status = status_from_path(Path(card.file_path), board_dir)
            if folder_status is None or folder_status == card.status:
                continue
            try:
                card.file_path = str(move_card_file(Path(card.file_path), board_dir, card.status, card.attachments))
                moved += 1
            except OSError as e:
                logger.warning("Could not relocate card %s to %s: %s", card.id, card.status, e)
        return moved

    def migrate_order(self, cards: list[Card]) -> int:
        """Replace legacy, malformed or duplicated order values with fractional keys.

        When any card still has a legacy integer order, every column is
        re-keyed. Otherwise only columns holding an invalid or repeated key are.
        A re-keyed column keeps its current sequence, with ties left in file
        order. Only files whose key changed are rewritten.
        """
        legacy = any(is_legacy_order(c.order) for c in cards)

        by_status: dict[str, list[Card]] = defaultdict(list)
        for card in cards:
            by_status[card.status].append(card)

        rewritten = 0
        for column in by_status.values():
            if not legacy and not _column_needs_rekey(column):
                continue
            column.sort(key=_legacy_sort_key)
            for card, key in zip(column, keys_between(None, None, len(column)), strict=True):
                if card.order == key:
                    continue
                card.order = key
                try:
                    write_card(card)
                    rewritten += 1
                except OSError as e:
                    logger.warning("Could not rewrite order of card %s: %s", card.id, e)
        return rewritten

    def sync_id_counter(self, board_id: str, cards: list[Card]) -> bool:
        """Advance the board's next card ID past every numeric ID on disk."""
        numeric_ids = [n for n in (c.numeric_id for c in cards) if n is not None]
        return self.registry.sync_card_id_counter(board_id, numeric_ids)
