"""Card Repository - Async facade over board directories of Markdown card files."""

from kanbanmd.exceptions import (
    BoardExistsError,
    BoardNotEmptyError,
    BoardNotFoundError,
    CardNotFoundError,
    ColumnExistsError,
    ColumnNotEmptyError,
    ColumnNotFoundError,
    CommentNotFoundError,
    DefaultBoardError,
    EmptyCommentError,
    InvalidColumnOrderError,
    KanbanError,
    LastColumnError,
    ReservedColumnError,
)
from kanbanmd.repository.metadata import get_nested_value, matches_meta_filter
from kanbanmd.repository.models import (
    BoardInfo,
    CardUpdate,
    CreateCardInput,
    ReconcileReport,
    SortOrder,
)
from kanbanmd.repository.reconciler import MigrationReconciler, migrate_to_multi_board
from kanbanmd.repository.repository import CardRepository

__all__ = [
    "BoardExistsError",
    "BoardInfo",
    "BoardNotEmptyError",
    "BoardNotFoundError",
    "CardNotFoundError",
    "CardRepository",
    "CardUpdate",
    "ColumnExistsError",
    "ColumnNotEmptyError",
    "ColumnNotFoundError",
    "CommentNotFoundError",
    "CreateCardInput",
    "DefaultBoardError",
    "EmptyCommentError",
    "InvalidColumnOrderError",
    "KanbanError",
    "LastColumnError",
    "MigrationReconciler",
    "ReconcileReport",
    "ReservedColumnError",
    "SortOrder",
    "get_nested_value",
    "matches_meta_filter",
    "migrate_to_multi_board",
]
