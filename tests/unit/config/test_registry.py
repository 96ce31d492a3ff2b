"""Unit tests for the ID/label registry."""

import pytest

from kanbanmd.config import BoardNotFoundError, ConfigStore, LabelDefinition, Registry


@pytest.fixture
def registry(config_store: ConfigStore) -> Registry:
    """Registry backed by a temporary config file."""
    return Registry(config_store)


@pytest.mark.unit
class TestCardIds:
    """Tests for card ID allocation."""

    def test_allocate_sequential(self, registry: Registry, config_store: ConfigStore) -> None:
        """IDs are handed out in sequence and the counter is persisted."""
        assert registry.allocate_card_id() == 1
        assert registry.allocate_card_id() == 2
        assert config_store.read().boards["default"].next_card_id == 3

    def test_allocate_unknown_board(self, registry: Registry) -> None:
        """Allocating on a missing board fails."""
        with pytest.raises(BoardNotFoundError):
            registry.allocate_card_id("nope")

    def test_sync_advances_counter(self, registry: Registry) -> None:
        """The counter moves past the highest existing ID."""
        assert registry.sync_card_id_counter("default", [3, 10, 7]) is True
        assert registry.allocate_card_id() == 11

    def test_sync_never_moves_backwards(self, registry: Registry) -> None:
        """A counter already ahead is left alone."""
        registry.sync_card_id_counter("default", [20])

        assert registry.sync_card_id_counter("default", [4]) is False
        assert registry.allocate_card_id() == 21

    def test_sync_without_ids(self, registry: Registry) -> None:
        """Nothing happens without IDs."""
        assert registry.sync_card_id_counter("default", []) is False


@pytest.mark.unit
class TestLabels:
    """Tests for label definitions."""

    def test_set_and_get(self, registry: Registry) -> None:
        """Definitions are stored by name."""
        registry.set_label("bug", LabelDefinition(color="#f00", group="type"))

        assert registry.get_labels() == {"bug": LabelDefinition(color="#f00", group="type")}

    def test_delete(self, registry: Registry) -> None:
        """Deleting reports whether a definition existed."""
        registry.set_label("bug", LabelDefinition(color="#f00"))

        assert registry.delete_label("bug") is True
        assert registry.delete_label("bug") is False
        assert registry.get_labels() == {}

    def test_rename_keeps_position(self, registry: Registry) -> None:
        """Renaming keeps the definition and its position."""
        registry.set_label("a", LabelDefinition(color="#1"))
        registry.set_label("b", LabelDefinition(color="#2"))
        registry.set_label("c", LabelDefinition(color="#3"))

        assert registry.rename_label("b", "beta") is True
        labels = registry.get_labels()
        assert list(labels) == ["a", "beta", "c"]
        assert labels["beta"].color == "#2"

    def test_rename_missing(self, registry: Registry) -> None:
        """Renaming an undefined label reports False."""
        assert registry.rename_label("ghost", "spirit") is False

    def test_labels_in_group(self, registry: Registry) -> None:
        """Group membership is looked up through definitions."""
        registry.set_label("ui", LabelDefinition(color="#1", group="area"))
        registry.set_label("api", LabelDefinition(color="#2", group="area"))
        registry.set_label("bug", LabelDefinition(color="#3", group="type"))

        assert registry.get_labels_in_group("area") == ["api", "ui"]
        assert registry.get_labels_in_group("none") == []
