"""Logging for kanbanmd: a rotating log file per workspace and redaction helpers.

Library modules only call ``logging.getLogger(__name__)``. Handlers are
attached by ``setup_logging``, which a host application (or
``CardRepository.open``) calls once.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from kanbanmd import __version__

if TYPE_CHECKING:
    from kanbanmd.config import Workspace

LOG_DIR_ENV = "KANBANMD_LOG_DIR"
LOG_LEVEL_ENV = "KANBANMD_LOG_LEVEL"
WORKSPACE_LOG_DIRNAME = ".logs"  # hidden, so the reconciler never treats it as a column
FALLBACK_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "kanbanmd.log"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_REDACTIONS = [
    (re.compile(r"sha256=[0-9a-fA-F]{64}"), "sha256=[SIGNATURE]"),
    (re.compile(r"(\"secret\"\s*:\s*)\"[^\"]*\""), r'\1"[REDACTED]"'),
    (re.compile(r"secret=[^\s&]+"), "secret=[REDACTED]"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
]


def resolve_log_dir(workspace: Workspace | None = None, log_dir: str | Path | None = None) -> Path:
    """Pick the log directory.

    An explicit ``log_dir`` wins, then ``$KANBANMD_LOG_DIR``, then
    ``<kanban dir>/.logs`` for a workspace, then ``./logs``.
    """
    if log_dir is not None:
        return Path(log_dir)
    from_env = os.environ.get(LOG_DIR_ENV)
    if from_env:
        return Path(from_env)
    if workspace is not None:
        return workspace.kanban_dir / WORKSPACE_LOG_DIRNAME
    return Path(FALLBACK_LOG_DIR)


def setup_logging(
    workspace: Workspace | None = None,
    *,
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Attach a rotating file handler (and optionally a console one) to ``kanbanmd``.

    Calling it again replaces the handlers instead of stacking them.

    Args:
        workspace: Workspace whose ``.logs`` folder holds the log file.
        log_dir: Explicit log directory; see ``resolve_log_dir``.
        log_file: Log file name.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.
        level: Level name. Defaults to ``$KANBANMD_LOG_LEVEL`` or INFO.
        console: Also log to stderr.

    Returns:
        The ``kanbanmd`` package logger.
    """
    directory = resolve_log_dir(workspace, log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("kanbanmd")
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            directory / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info("kanbanmd %s logging to %s (level=%s)", __version__, directory / log_file, level.upper())
    return logger


def truncate_output(output: str, max_length: int = 500) -> str:
    """Shorten ``output`` (e.g. an HTTP response body) to ``max_length`` chars plus a marker."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


def sanitize_for_log(text: str) -> str:
    """Redact webhook signatures, secrets and bearer tokens from ``text``."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text
