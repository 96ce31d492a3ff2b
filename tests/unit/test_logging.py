"""Unit tests for kanbanmd logging configuration."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest

from kanbanmd import __version__
from kanbanmd.config import Workspace
from kanbanmd.logging import resolve_log_dir, sanitize_for_log, setup_logging, truncate_output


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Detach handlers added by a test so log files are closed."""
    yield
    logger = logging.getLogger("kanbanmd")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.mark.unit
class TestResolveLogDir:
    """Tests for resolve_log_dir."""

    def test_explicit_dir_wins(self, tmp_path: Path, workspace: Workspace) -> None:
        """An explicit directory beats the environment and the workspace."""
        with patch.dict(os.environ, {"KANBANMD_LOG_DIR": "/elsewhere"}):
            assert resolve_log_dir(workspace, tmp_path / "mine") == tmp_path / "mine"

    def test_env_beats_workspace(self, tmp_path: Path, workspace: Workspace) -> None:
        """$KANBANMD_LOG_DIR beats the workspace default."""
        with patch.dict(os.environ, {"KANBANMD_LOG_DIR": str(tmp_path / "env")}):
            assert resolve_log_dir(workspace) == tmp_path / "env"

    def test_workspace_default(self, workspace: Workspace) -> None:
        """A workspace logs into a hidden folder of its kanban directory."""
        with patch.dict(os.environ, {}, clear=True):
            assert resolve_log_dir(workspace) == workspace.kanban_dir / ".logs"

    def test_fallback(self) -> None:
        """Without anything else, logs go to ./logs."""
        with patch.dict(os.environ, {}, clear=True):
            assert resolve_log_dir() == Path("logs")


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_workspace_log_directory(self, workspace: Workspace) -> None:
        """The workspace log folder is created on demand."""
        with patch.dict(os.environ, {}, clear=True):
            setup_logging(workspace, console=False)

        assert (workspace.kanban_dir / ".logs" / "kanbanmd.log").is_file()

    def test_startup_line_names_version(self, tmp_path: Path) -> None:
        """The first line written records the package version."""
        setup_logging(log_dir=tmp_path, console=False)

        content = (tmp_path / "kanbanmd.log").read_text()
        assert f"kanbanmd {__version__} logging to" in content

    def test_log_format(self, tmp_path: Path) -> None:
        """Log entries include level and component name."""
        setup_logging(log_dir=tmp_path, console=False)
        logging.getLogger("kanbanmd.repository.reconciler").info("component test")

        content = (tmp_path / "kanbanmd.log").read_text()
        # 2026-01-28 16:30:45 | INFO     | kanbanmd.repository.reconciler | component test
        assert " | INFO" in content
        assert " | kanbanmd.repository.reconciler | component test" in content

    def test_log_level_configurable(self, tmp_path: Path) -> None:
        """Log level filters messages appropriately."""
        setup_logging(log_dir=tmp_path, level="warning", console=False)
        logger = logging.getLogger("kanbanmd")
        logger.info("should not appear")
        logger.warning("should appear")

        content = (tmp_path / "kanbanmd.log").read_text()
        assert "should not appear" not in content
        assert "should appear" in content

    @patch.dict(os.environ, {"KANBANMD_LOG_LEVEL": "DEBUG"})
    def test_log_level_from_env(self, tmp_path: Path) -> None:
        """Log level can be set via environment variable."""
        logger = setup_logging(log_dir=tmp_path, console=False)

        assert logger.level == logging.DEBUG

    def test_handlers_replaced(self, tmp_path: Path) -> None:
        """Calling setup twice does not stack handlers."""
        setup_logging(log_dir=tmp_path, console=True)
        logger = setup_logging(log_dir=tmp_path, console=True)

        assert len(logger.handlers) == 2

    def test_rotation_settings(self, tmp_path: Path) -> None:
        """File handler uses the requested rotation settings."""
        logger = setup_logging(log_dir=tmp_path, max_bytes=1024, backup_count=3, console=False)

        [file_handler] = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert file_handler.maxBytes == 1024
        assert file_handler.backupCount == 3


@pytest.mark.unit
class TestTruncateOutput:
    """Tests for truncate_output function."""

    def test_short_output_unchanged(self) -> None:
        """Short output is returned as-is."""
        assert truncate_output("short text", max_length=100) == "short text"

    def test_long_output_truncated(self) -> None:
        """Long output is truncated with indicator."""
        result = truncate_output("x" * 200, max_length=100)
        assert len(result) < 200
        assert "100 more chars" in result


@pytest.mark.unit
class TestSanitize:
    """Tests for sanitize_for_log function."""

    def test_redacts_signature(self) -> None:
        """Webhook signatures are redacted."""
        text = "X-Webhook-Signature: sha256=" + "ab" * 32
        result = sanitize_for_log(text)
        assert "abab" not in result
        assert "sha256=[SIGNATURE]" in result

    def test_redacts_json_secret(self) -> None:
        """Secrets in JSON bodies are redacted."""
        result = sanitize_for_log('{"url": "http://x", "secret": "hunter2"}')
        assert "hunter2" not in result
        assert '"secret": "[REDACTED]"' in result

    def test_redacts_query_secret(self) -> None:
        """Secrets in query strings are redacted."""
        result = sanitize_for_log("http://hook.local/?secret=hunter2&x=1")
        assert "hunter2" not in result
        assert "&x=1" in result

    def test_redacts_bearer_tokens(self) -> None:
        """Bearer tokens are redacted."""
        result = sanitize_for_log("Authorization: Bearer abc123.def456")
        assert "abc123" not in result
        assert "Bearer [REDACTED]" in result

    def test_safe_text_unchanged(self) -> None:
        """Text without sensitive data is unchanged."""
        text = "Card 12 moved to done"
        assert sanitize_for_log(text) == text
