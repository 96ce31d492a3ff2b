"""Card file codec - converts cards to and from Markdown with a header block.

File layout::

    ---
    version: 1
    id: "12"
    status: "todo"
    ...
    ---
    <card body>

    ---
    comment: true
    id: "c1"
    author: "alice"
    created: "2025-06-01T10:00:00.000Z"
    ---
    <comment body>
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import yaml

from kanbanmd.codec.models import Card, Comment, Priority, now_iso
from kanbanmd.codec.naming import id_from_filename

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^---\n(.*?)\n---(?:\n|$)(.*)$", re.DOTALL)
_COMMENT_MARKER_RE = re.compile(r"^comment:\s*true\s*$")
SECTION_DELIMITER = "\n---\n"

_SCALAR_TYPES = (str, int, float, bool)


class _HeaderLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates and timestamps as plain strings."""


_HeaderLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _load_mapping(text: str) -> dict[str, Any] | None:
    """Parse a header block into a mapping, or None if it is not one."""
    try:
        data = yaml.load(text, Loader=_HeaderLoader)  # noqa: S506 - SafeLoader subclass
    except yaml.YAMLError as e:
        logger.debug("Unparseable header block: %s", e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def _scalar(header: dict[str, Any], key: str) -> str | None:
    value = header.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _SCALAR_TYPES):
        text = str(value)
        return text or None
    logger.debug("Rejecting non-scalar value for header field %r", key)
    return None


def _string_list(header: dict[str, Any], key: str) -> list[str] | None:
    value = header.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        logger.debug("Rejecting non-list value for header field %r", key)
        return None
    items: list[str] = []
    for item in value:
        if isinstance(item, _SCALAR_TYPES) and str(item) and str(item) not in items:
            items.append(str(item))
    return items


def _version(header: dict[str, Any]) -> int:
    value = header.get("version")
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdecimal():
        return int(value)
    return 0


def _priority(value: str | None) -> Priority:
    if value is None:
        return Priority.MEDIUM
    try:
        return Priority(value)
    except ValueError:
        logger.debug("Unknown priority %r, using medium", value)
        return Priority.MEDIUM


def _is_comment_header(section: str) -> bool:
    first_line = section.split("\n", 1)[0]
    return bool(_COMMENT_MARKER_RE.match(first_line))


def _parse_comment_header(section: str) -> dict[str, Any] | None:
    header = _load_mapping(section)
    if header is None or header.get("comment") is not True:
        return None
    return header


def _split_sections(remainder: str) -> tuple[str, list[Comment]]:
    """Separate the card body from its trailing comment sections.

    Sections are examined one at a time. A section opens a comment only when
    it starts with the ``comment: true`` marker; the section after it is that
    comment's body. Every other section continues whatever text precedes it
    (the card body, or the current comment) and is re-joined verbatim.
    """
    sections = remainder.split(SECTION_DELIMITER)
    body_parts = [sections[0]]
    pending: list[tuple[dict[str, Any], list[str]]] = []
    awaiting_body = False

    for section in sections[1:]:
        if awaiting_body:
            pending[-1][1].append(section)
            awaiting_body = False
            continue

        header = _parse_comment_header(section) if _is_comment_header(section) else None
        if header is not None:
            pending.append((header, []))
            awaiting_body = True
        elif pending:
            pending[-1][1].append(section)
        else:
            body_parts.append(section)

    comments = [
        Comment(
            id=_scalar(header, "id") or "",
            author=_scalar(header, "author") or "",
            created=_scalar(header, "created") or "",
            content=SECTION_DELIMITER.join(parts).strip(),
        )
        for header, parts in pending
    ]
    return SECTION_DELIMITER.join(body_parts).strip(), comments


def decode_card(contents: str, file_path: str) -> Card | None:
    """Decode a card file.

    Args:
        contents: Raw file contents.
        file_path: Path the contents were read from (used for the fallback ID).

    Returns:
        The decoded Card, or None if the file has no header block.
    """
    contents = contents.replace("\r\n", "\n")
    match = _HEADER_RE.match(contents)
    if not match:
        return None

    header = _load_mapping(match.group(1))
    if header is None:
        return None

    body, comments = _split_sections(match.group(2))

    metadata = header.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        logger.debug("Ignoring non-mapping metadata in %s", file_path)
        metadata = None

    now = now_iso()
    return Card(
        version=_version(header),
        id=_scalar(header, "id") or id_from_filename(file_path),
        status=_scalar(header, "status") or "backlog",
        priority=_priority(_scalar(header, "priority")),
        assignee=_scalar(header, "assignee"),
        due_date=_scalar(header, "dueDate"),
        created=_scalar(header, "created") or now,
        modified=_scalar(header, "modified") or now,
        completed_at=_scalar(header, "completedAt"),
        labels=_string_list(header, "labels") or [],
        attachments=_string_list(header, "attachments") or [],
        comments=comments,
        order=_scalar(header, "order") or "a0",
        content=body,
        metadata=metadata or None,
        actions=_string_list(header, "actions") or None,
        file_path=file_path,
    )


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _optional(value: str | None) -> str:
    return _quote(value) if value else "null"


def _inline_list(values: list[str]) -> str:
    return "[" + ", ".join(_quote(v) for v in values) + "]"


def encode_card(card: Card) -> str:
    """Encode a card into its file representation."""
    lines = [
        "---",
        f"version: {card.version}",
        f"id: {_quote(card.id)}",
        f"status: {_quote(card.status)}",
        f"priority: {_quote(str(card.priority))}",
        f"assignee: {_optional(card.assignee)}",
        f"dueDate: {_optional(card.due_date)}",
        f"created: {_quote(card.created)}",
        f"modified: {_quote(card.modified)}",
        f"completedAt: {_optional(card.completed_at)}",
        f"labels: {_inline_list(card.labels)}",
        f"attachments: {_inline_list(card.attachments)}",
        f"order: {_quote(card.order)}",
    ]
    if card.actions:
        lines.append(f"actions: {_inline_list(card.actions)}")
    if card.metadata:
        dumped = yaml.safe_dump(
            {"metadata": card.metadata},
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        lines.append(dumped.rstrip("\n"))
    lines.extend(["---", ""])

    text = "\n".join(lines) + card.content
    for comment in card.comments:
        text += (
            f"\n\n---\ncomment: true\n"
            f"id: {_quote(comment.id)}\n"
            f"author: {_quote(comment.author)}\n"
            f"created: {_quote(comment.created)}\n"
            f"---\n{comment.content}"
        )
    return text + "\n"
