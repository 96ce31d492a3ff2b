"""Integration tests for the migration reconciler."""

from pathlib import Path

import pytest

from kanbanmd.codec import decode_card
from kanbanmd.config import ConfigStore, Registry, Workspace
from kanbanmd.repository import MigrationReconciler, migrate_to_multi_board

pytestmark = pytest.mark.integration


@pytest.fixture
def reconciler(workspace: Workspace, config_store: ConfigStore) -> MigrationReconciler:
    """Reconciler for the temporary workspace."""
    return MigrationReconciler(workspace, Registry(config_store))


@pytest.fixture
def board_dir(workspace: Workspace) -> Path:
    """Directory of the default board."""
    path = workspace.board_dir("default")
    path.mkdir(parents=True)
    return path


def write_card_file(directory: Path, filename: str, header: str, body: str = "Body") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(f"---\n{header}\n---\n{body}\n", encoding="utf-8")
    return path


def read_order(path: Path) -> str:
    card = decode_card(path.read_text(encoding="utf-8"), str(path))
    assert card is not None
    return card.order


class TestFlatten:
    """Tests for moving root-level files into status folders."""

    def test_root_file_moves_to_status(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """A card in the board root moves into its declared status folder."""
        write_card_file(board_dir, "3-loose.md", 'id: "3"\nstatus: "review"\norder: "a0"')

        report = reconciler.run("default")

        assert report.flattened == 1
        assert (board_dir / "review" / "3-loose.md").is_file()
        assert not (board_dir / "3-loose.md").exists()
        assert [c.status for c in report.cards] == ["review"]

    def test_headerless_root_file_left_alone(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Files without a header block are not touched."""
        (board_dir / "README.md").write_text("just notes")

        report = reconciler.run("default")

        assert report.flattened == 0
        assert (board_dir / "README.md").exists()


class TestFolderReconciliation:
    """Tests for status/folder convergence."""

    def test_mismatch_relocated_once(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """A misplaced card is moved and a second pass changes nothing."""
        write_card_file(board_dir / "todo", "5-misplaced.md", 'id: "5"\nstatus: "done"\norder: "a0"')

        first = reconciler.run("default")
        second = reconciler.run("default")

        assert first.relocated == 1
        assert (board_dir / "done" / "5-misplaced.md").is_file()
        assert not (board_dir / "todo" / "5-misplaced.md").exists()
        assert Path(first.cards[0].file_path) == board_dir / "done" / "5-misplaced.md"
        assert second.relocated == 0
        assert not second.changed

    def test_collision_gets_suffix(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """A name collision in the target folder gets a numeric suffix."""
        write_card_file(board_dir / "done", "5-card.md", 'id: "5"\nstatus: "done"\norder: "a0"')
        write_card_file(board_dir / "todo", "5-card.md", 'id: "6"\nstatus: "done"\norder: "a1"')

        reconciler.run("default")

        assert sorted(p.name for p in (board_dir / "done").iterdir()) == ["5-card-1.md", "5-card.md"]

    def test_attachments_move_with_card(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Referenced attachments follow a relocated card."""
        write_card_file(
            board_dir / "todo",
            "8-with-file.md",
            'id: "8"\nstatus: "review"\norder: "a0"\nattachments: ["diagram.svg"]',
        )
        (board_dir / "todo" / "diagram.svg").write_text("<svg/>")

        reconciler.run("default")

        assert (board_dir / "review" / "diagram.svg").read_text() == "<svg/>"
        assert not (board_dir / "todo" / "diagram.svg").exists()


class TestOrderMigration:
    """Tests for replacing legacy integer order values."""

    def test_legacy_orders_rekeyed(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Integer orders become fractional keys that keep the old sequence."""
        third = write_card_file(board_dir / "todo", "1-c.md", 'id: "1"\nstatus: "todo"\norder: 10')
        first = write_card_file(board_dir / "todo", "2-a.md", 'id: "2"\nstatus: "todo"\norder: 2')
        second = write_card_file(board_dir / "todo", "3-b.md", 'id: "3"\nstatus: "todo"\norder: 3')
        other = write_card_file(board_dir / "done", "4-d.md", 'id: "4"\nstatus: "done"\norder: 0')

        report = reconciler.run("default")

        assert report.rekeyed == 4
        assert [read_order(p) for p in (first, second, third)] == ["a0", "a1", "a2"]
        assert read_order(other) == "a0"
        assert [c.id for c in report.cards if c.status == "todo"] == ["2", "3", "1"]

    def test_fractional_orders_untouched(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Boards already on fractional keys are not rewritten."""
        path = write_card_file(board_dir / "todo", "1-a.md", 'id: "1"\nstatus: "todo"\norder: "a5"')
        before = path.read_text()

        report = reconciler.run("default")

        assert report.rekeyed == 0
        assert path.read_text() == before

    def test_missing_orders_get_distinct_keys(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Cards written without an order get distinct keys in file order."""
        first = write_card_file(board_dir / "todo", "1-a.md", 'id: "1"\nstatus: "todo"')
        second = write_card_file(board_dir / "todo", "2-b.md", 'id: "2"\nstatus: "todo"')

        report = reconciler.run("default")

        assert report.rekeyed == 1
        assert [read_order(first), read_order(second)] == ["a0", "a1"]
        assert [c.id for c in report.cards] == ["1", "2"]
        assert reconciler.run("default").rekeyed == 0

    def test_malformed_key_repaired(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """A malformed key is replaced and the column keeps its sequence."""
        good = write_card_file(board_dir / "todo", "1-a.md", 'id: "1"\nstatus: "todo"\norder: "a0"')
        bad = write_card_file(board_dir / "todo", "2-b.md", 'id: "2"\nstatus: "todo"\norder: "zz"')
        untouched = write_card_file(board_dir / "done", "3-c.md", 'id: "3"\nstatus: "done"\norder: "a5"')

        report = reconciler.run("default")

        assert report.rekeyed == 1
        assert read_order(good) == "a0"
        assert read_order(bad) == "a1"
        assert read_order(untouched) == "a5"


class TestIdCounterSync:
    """Tests for advancing the ID counter."""

    def test_counter_advanced(
        self, reconciler: MigrationReconciler, board_dir: Path, config_store: ConfigStore
    ) -> None:
        """The next ID moves past the highest numeric ID on disk."""
        write_card_file(board_dir / "todo", "41-high.md", 'id: "41"\nstatus: "todo"\norder: "a0"')
        write_card_file(board_dir / "todo", "legacy.md", 'status: "todo"\norder: "a1"')

        report = reconciler.run("default")

        assert report.counter_advanced is True
        assert config_store.read().boards["default"].next_card_id == 42


class TestRobustness:
    """Tests for files the reconciler must skip."""

    def test_undecodable_file_skipped(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Unreadable files are skipped without aborting the pass."""
        (board_dir / "todo").mkdir()
        (board_dir / "todo" / "9-binary.md").write_bytes(b"\xff\xfe\x00garbage")
        write_card_file(board_dir / "todo", "1-good.md", 'id: "1"\nstatus: "todo"\norder: "a0"')

        report = reconciler.run("default")

        assert [c.id for c in report.cards] == ["1"]

    def test_hidden_folders_ignored(self, reconciler: MigrationReconciler, board_dir: Path) -> None:
        """Hidden folders are not scanned."""
        write_card_file(board_dir / ".trash", "1-old.md", 'id: "1"\nstatus: "todo"\norder: "a0"')

        assert reconciler.run("default").cards == []


class TestMultiBoardMigration:
    """Tests for moving a single-board layout under boards/."""

    def test_migrates_layout(self, tmp_path: Path) -> None:
        """Status folders move under the default board; loose files go to backlog."""
        kanban_dir = tmp_path / ".kanban"
        write_card_file(kanban_dir / "todo", "1-a.md", 'id: "1"\nstatus: "todo"')
        write_card_file(kanban_dir, "2-loose.md", 'id: "2"\nstatus: "todo"')
        (kanban_dir / ".cache").mkdir()

        assert migrate_to_multi_board(kanban_dir) is True

        board = kanban_dir / "boards" / "default"
        assert (board / "todo" / "1-a.md").is_file()
        assert (board / "backlog" / "2-loose.md").is_file()
        assert (kanban_dir / ".cache").is_dir()
        assert migrate_to_multi_board(kanban_dir) is False

    def test_backlog_folder_and_loose_files(self, tmp_path: Path) -> None:
        """An existing backlog folder and loose files end up together."""
        kanban_dir = tmp_path / ".kanban"
        write_card_file(kanban_dir / "backlog", "1-a.md", 'id: "1"\nstatus: "backlog"')
        write_card_file(kanban_dir, "2-loose.md", 'id: "2"\nstatus: "backlog"')

        migrate_to_multi_board(kanban_dir)

        backlog = kanban_dir / "boards" / "default" / "backlog"
        assert sorted(p.name for p in backlog.iterdir()) == ["1-a.md", "2-loose.md"]
