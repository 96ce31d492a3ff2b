"""Shared pytest fixtures and configuration."""

from pathlib import Path

import pytest

from kanbanmd.codec import Card, Comment, Priority
from kanbanmd.config import ConfigStore, Workspace


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests on a real directory tree")


# Shared fixtures


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """A workspace whose kanban directory lives under a temporary root."""
    return Workspace.at(tmp_path / ".kanban")


@pytest.fixture
def config_store(workspace: Workspace) -> ConfigStore:
    """Config store for the temporary workspace."""
    return ConfigStore(workspace)


@pytest.fixture
def sample_card() -> Card:
    """A fully populated card."""
    return Card(
        id="7",
        status="todo",
        priority=Priority.HIGH,
        assignee="alice",
        due_date="2025-07-01",
        created="2025-06-01T10:00:00.000Z",
        modified="2025-06-02T11:30:00.000Z",
        labels=["bug", "frontend"],
        attachments=["screenshot.png"],
        comments=[
            Comment(id="c1", author="bob", created="2025-06-01T12:00:00.000Z", content="Looks good."),
        ],
        order="a1",
        content="# Fix login bug\n\nThe login form rejects valid emails.",
        metadata={"sprint": "2025-Q2", "links": {"jira": "PROJ-123"}},
        file_path="/tmp/board/todo/7-fix-login-bug.md",
    )
