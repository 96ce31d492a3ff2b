"""Title and filename helpers for card files."""

from __future__ import annotations

import re
from pathlib import Path

_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_NUMERIC_PREFIX_RE = re.compile(r"^([0-9]+)-")
_DIGITS_RE = re.compile(r"[0-9]+")
_SLUG_MAX_LENGTH = 50


def get_title_from_content(content: str) -> str:
    """Derive a card title from its body.

    The first Markdown heading wins; otherwise the first non-empty line is used.
    """
    match = _HEADING_RE.search(content)
    if match:
        return match.group(1).strip()
    for line in content.splitlines():
        if line.strip():
            return line.strip()
    return "Untitled"


def slugify(text: str) -> str:
    """Lowercase, dash-separated slug limited to 50 characters."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:_SLUG_MAX_LENGTH].rstrip("-")


def generate_card_filename(numeric_id: int, title: str) -> str:
    """Build the file stem for a card, e.g. ``12-fix-login-bug``."""
    slug = slugify(title)
    return f"{numeric_id}-{slug}" if slug else str(numeric_id)


def extract_numeric_id(card_id: str) -> int | None:
    """Return the numeric card ID, or None for legacy string IDs."""
    return int(card_id) if _DIGITS_RE.fullmatch(card_id) else None


def id_from_filename(file_path: str | Path) -> str:
    """Card ID implied by a filename.

    ``<digits>-<slug>.md`` yields the digits; legacy files use the whole stem.
    """
    stem = Path(file_path).stem
    match = _NUMERIC_PREFIX_RE.match(stem)
    return match.group(1) if match else stem
