"""Filesystem helpers for card files inside a board directory."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from kanbanmd.codec import Card, decode_card, encode_card

logger = logging.getLogger(__name__)

CARD_SUFFIX = ".md"


def card_file_path(board_dir: Path, status: str, filename: str) -> Path:
    """Path of a card file given its status folder and file stem."""
    return board_dir / status / f"{filename}{CARD_SUFFIX}"


def read_md_files(directory: Path) -> list[Path]:
    """Card files directly inside ``directory``, sorted by name."""
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == CARD_SUFFIX)


def status_dirs(board_dir: Path) -> list[Path]:
    """Non-hidden status folders of a board."""
    if not board_dir.is_dir():
        return []
    return sorted(p for p in board_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def status_from_path(file_path: Path, board_dir: Path) -> str | None:
    """Status implied by a card file's folder.

    Returns:
        The folder name for ``<board_dir>/<status>/<file>``, else None.
    """
    try:
        parts = file_path.relative_to(board_dir).parts
    except ValueError:
        return None
    return parts[0] if len(parts) == 2 else None


def load_card(file_path: Path) -> Card | None:
    """Read and decode one card file; None when it has no header block."""
    return decode_card(file_path.read_text(encoding="utf-8"), str(file_path))


def write_card(card: Card) -> None:
    """Encode a card and write it to its ``file_path``."""
    path = Path(card.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode_card(card), encoding="utf-8")


def _free_target(target_dir: Path, filename: str) -> Path:
    target = target_dir / filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while target.exists():
        target = target_dir / f"{stem}-{counter}{suffix}"
        counter += 1
    return target


def move_card_file(
    current_path: Path,
    board_dir: Path,
    new_status: str,
    attachments: Iterable[str] = (),
) -> Path:
    """Move a card file into the folder for ``new_status``.

    Name collisions in the target folder get a numeric suffix before the
    extension (``x.md`` -> ``x-1.md``). Referenced attachments sitting next
    to the card are moved along with it; a failed attachment move is logged
    and skipped.

    Returns:
        The card file's new path.
    """
    target_dir = board_dir / new_status
    if current_path.parent == target_dir:
        return current_path

    target = _free_target(target_dir, current_path.name)
    target_dir.mkdir(parents=True, exist_ok=True)
    current_path.rename(target)
    logger.debug("Moved %s -> %s", current_path, target)

    source_dir = current_path.parent
    for name in attachments:
        source = source_dir / name
        if not source.exists():
            continue
        try:
            source.rename(target_dir / name)
        except OSError as e:
            logger.warning("Could not move attachment %s with card: %s", source, e)
    return target


def rename_card_file(current_path: Path, new_filename: str) -> Path:
    """Rename a card file in place; ``new_filename`` has no extension."""
    new_path = current_path.with_name(f"{new_filename}{CARD_SUFFIX}")
    if new_path == current_path:
        return current_path
    new_path = _free_target(current_path.parent, new_path.name)
    current_path.rename(new_path)
    return new_path


def copy_attachment(source: Path, card_dir: Path) -> str:
    """Copy ``source`` next to a card unless it already lives there.

    Returns:
        The attachment's filename.
    """
    source = source.resolve()
    if source.parent != card_dir.resolve():
        shutil.copyfile(source, card_dir / source.name)
    return source.name
