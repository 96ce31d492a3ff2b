"""CardRepository - the public facade over a file-backed kanban store."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from kanbanmd.codec import (
    DELETED_STATUS,
    Card,
    Comment,
    Priority,
    extract_numeric_id,
    generate_card_filename,
    get_title_from_content,
    now_iso,
)
from kanbanmd.config import (
    BoardConfig,
    Column,
    ConfigStore,
    DisplaySettings,
    KanbanConfig,
    LabelDefinition,
    Registry,
    Workspace,
    default_columns,
    resolve_board,
)
from kanbanmd.events import (
    Event,
    EventManager,
    EventType,
    WebhookRegistry,
    post_action,
)
from kanbanmd.exceptions import (
    ActionWebhookError,
    BoardExistsError,
    BoardNotEmptyError,
    CardNotFoundError,
    ColumnExistsError,
    ColumnNotEmptyError,
    ColumnNotFoundError,
    CommentNotFoundError,
    DefaultBoardError,
    EmptyCommentError,
    InvalidColumnOrderError,
    LastColumnError,
    ReservedColumnError,
    ValidationError,
)
from kanbanmd.logging import setup_logging
from kanbanmd.ordering import key_between
from kanbanmd.repository.files import (
    card_file_path,
    copy_attachment,
    move_card_file,
    rename_card_file,
    write_card,
)
from kanbanmd.repository.metadata import matches_meta_filter
from kanbanmd.repository.models import (
    BoardInfo,
    CardUpdate,
    CreateCardInput,
    SortOrder,
)
from kanbanmd.repository.reconciler import MigrationReconciler, migrate_to_multi_board

if TYPE_CHECKING:
    from kanbanmd.events import WebhookDispatcher

logger = logging.getLogger(__name__)


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def _last_order(cards: list[Card], status: str, exclude_id: str | None = None) -> str | None:
    keys = [c.order for c in cards if c.status == status and c.id != exclude_id]
    return max(keys) if keys else None


def _column_data(column: Column, board_id: str) -> dict[str, Any]:
    return {**column.model_dump(mode="json", by_alias=True, exclude_none=True), "boardId": board_id}


def _drop_stale_status_refs(board: BoardConfig) -> None:
    """Point the default and final status back at columns that still exist."""
    if board.get_column(board.default_status) is None:
        board.default_status = board.columns[0].id
    if board.final_status and board.get_column(board.final_status) is None:
        board.final_status = None


class CardRepository:
    """Async facade for cards, comments, attachments, columns, boards and labels.

    Every listing first reconciles the board's directory tree. Every
    successful mutation emits exactly one event on ``events``.
    """

    def __init__(
        self,
        workspace: Workspace,
        events: EventManager | None = None,
        client: httpx.AsyncClient | None = None,
        dispatcher: WebhookDispatcher | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            workspace: Where the kanban directory and config file live.
            events: Event bus to emit on. A private one is created when omitted.
            client: HTTP client for action delivery. Created lazily when omitted.
            dispatcher: Optional webhook dispatcher, registered as an event handler.
        """
        self.workspace = workspace
        self.store = ConfigStore(workspace)
        self.registry = Registry(self.store)
        self.webhooks = WebhookRegistry(self.store)
        self.reconciler = MigrationReconciler(workspace, self.registry)
        self.events = events or EventManager()
        self._client = client
        self._owns_client = client is None
        self._migrated = False
        if dispatcher is not None:
            self.events.add_handler(dispatcher.dispatch)

    @classmethod
    def open(
        cls,
        kanban_dir: str | Path,
        *,
        log_level: str | None = None,
        **kwargs: Any,
    ) -> CardRepository:
        """Open the store rooted at ``kanban_dir``.

        Args:
            kanban_dir: The kanban directory; the config file sits in its parent.
            log_level: When set, also log to ``<kanban_dir>/.logs/kanbanmd.log``
                at this level.
            **kwargs: Passed on to the constructor.
        """
        workspace = Workspace.at(kanban_dir)
        if log_level is not None:
            setup_logging(workspace, level=log_level, console=False)
        return cls(workspace, **kwargs)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this repository created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    # --- Internal helpers ---

    def _ensure_migrated(self) -> None:
        if self._migrated:
            return
        migrate_to_multi_board(self.workspace.kanban_dir, self.store.read().default_board)
        self._migrated = True

    def _board(self, board_id: str | None) -> tuple[str, BoardConfig, KanbanConfig]:
        config = self.store.read()
        resolved, board = resolve_board(config, board_id)
        return resolved, board, config

    def _board_dir(self, board_id: str) -> Path:
        return self.workspace.board_dir(board_id)

    @staticmethod
    def _check_status(board: BoardConfig, status: str) -> None:
        if status != DELETED_STATUS and board.get_column(status) is None:
            raise ColumnNotFoundError(f"Column '{status}' not found")

    async def _emit(self, event_type: EventType, data: dict[str, Any], board_id: str | None) -> None:
        await self.events.emit(Event(event_type=event_type, data=data, board_id=board_id))

    @staticmethod
    def _find(cards: list[Card], card_id: str) -> Card | None:
        exact = next((c for c in cards if c.id == card_id), None)
        if exact is not None:
            return exact
        return next((c for c in cards if card_id in c.id), None)

    async def init(self, board_id: str | None = None) -> None:
        """Create the board directory and one folder per column."""
        self._ensure_migrated()
        resolved, board, _ = self._board(board_id)
        board_dir = self._board_dir(resolved)
        for column_id in board.column_ids():
            (board_dir / column_id).mkdir(parents=True, exist_ok=True)

    # --- Cards ---

    async def list_cards(
        self,
        statuses: list[str] | None = None,
        board_id: str | None = None,
        metadata_filter: dict[str, str] | None = None,
        sort: SortOrder | str | None = None,
    ) -> list[Card]:
        """List a board's cards after reconciling its directory tree.

        Args:
            statuses: Only return cards in these statuses.
            board_id: Board to list. Defaults to the default board.
            metadata_filter: Dot-path to substring map; all entries must match.
            sort: One of the ``SortOrder`` values. Defaults to column order,
                then order key within each column.

        Returns:
            Matching cards, soft-deleted ones included unless filtered out.
        """
        self._ensure_migrated()
        resolved, board, _ = self._board(board_id)
        cards = self.reconciler.run(resolved).cards
        if statuses is not None:
            cards = [c for c in cards if c.status in statuses]
        if metadata_filter:
            cards = [c for c in cards if matches_meta_filter(c.metadata, metadata_filter)]

        if sort is not None:
            try:
                order = SortOrder(sort)
            except ValueError as e:
                raise ValidationError(f"Unknown sort order: {sort!r}") from e
            cards.sort(key=lambda c: getattr(c, order.field_name), reverse=order.descending)
        else:
            positions = {column_id: i for i, column_id in enumerate(board.column_ids())}
            cards.sort(key=lambda c: (positions.get(c.status, len(positions)), c.order))
        return cards

    async def get_card(self, card_id: str, board_id: str | None = None) -> Card:
        """Find a card by exact ID, else by the first ID containing ``card_id``.

        Raises:
            CardNotFoundError: If nothing matches.
        """
        card = self._find(await self.list_cards(board_id=board_id), card_id)
        if card is None:
            raise CardNotFoundError(f"Card '{card_id}' not found")
        return card

    async def create_card(self, data: CreateCardInput) -> Card:
        """Create a card at the end of its column.

        Status and priority default to the board's defaults, then the global
        ones. The numeric ID comes from the board's counter.
        """
        resolved, board, config = self._board(data.board_id)
        status = data.status or board.default_status or config.default_status or "backlog"
        priority = data.priority or board.default_priority or config.default_priority or Priority.MEDIUM
        self._check_status(board, status)

        # Listing first advances the counter past card files already on disk
        cards = await self.list_cards(board_id=resolved)
        numeric_id = self.registry.allocate_card_id(resolved)
        now = now_iso()
        card = Card(
            id=str(numeric_id),
            board_id=resolved,
            status=status,
            priority=priority,
            assignee=data.assignee,
            due_date=data.due_date,
            created=now,
            modified=now,
            completed_at=now if board.is_final_status(status) else None,
            labels=_dedupe(data.labels),
            attachments=_dedupe(data.attachments),
            order=key_between(_last_order(cards, status), None),
            content=data.content,
            metadata=data.metadata or None,
            actions=data.actions or None,
        )
        filename = generate_card_filename(numeric_id, get_title_from_content(data.content))
        card.file_path = str(card_file_path(self._board_dir(resolved), status, filename))
        write_card(card)

        logger.info("Created card %s in %s/%s", card.id, resolved, status)
        await self._emit(EventType.TASK_CREATED, card.to_snapshot(), resolved)
        return card

    async def update_card(self, card_id: str, update: CardUpdate, board_id: str | None = None) -> Card:
        """Apply the fields set on ``update`` to a card.

        A status change maintains ``completed_at``, places the card at the end
        of its new column and moves the file. A title change renames the file
        of a numeric-ID card.
        """
        cards = await self.list_cards(board_id=board_id)
        card = self._find(cards, card_id)
        if card is None:
            raise CardNotFoundError(f"Card '{card_id}' not found")
        resolved, board, _ = self._board(card.board_id)

        changes = update.changes()
        old_status = card.status
        old_title = get_title_from_content(card.content)
        if "status" in changes:
            if changes["status"] is None:
                del changes["status"]
            else:
                self._check_status(board, changes["status"])
        if changes.get("priority") is None:
            changes.pop("priority", None)
        if changes.get("content") is None:
            changes.pop("content", None)
        for list_field in ("labels", "attachments"):
            if list_field in changes:
                changes[list_field] = _dedupe(changes[list_field] or [])
        if "metadata" in changes:
            changes["metadata"] = changes["metadata"] or None
        if "actions" in changes:
            changes["actions"] = changes["actions"] or None

        for name, value in changes.items():
            setattr(card, name, value)
        card.modified = now_iso()

        status_changed = card.status != old_status
        if status_changed:
            card.completed_at = card.modified if board.is_final_status(card.status) else None
            card.order = key_between(_last_order(cards, card.status, exclude_id=card.id), None)

        write_card(card)

        new_title = get_title_from_content(card.content)
        numeric_id = extract_numeric_id(card.id)
        if numeric_id is not None and new_title != old_title:
            card.file_path = str(rename_card_file(Path(card.file_path), generate_card_filename(numeric_id, new_title)))
        if status_changed:
            card.file_path = str(
                move_card_file(Path(card.file_path), self._board_dir(resolved), card.status, card.attachments)
            )

        await self._emit(EventType.TASK_UPDATED, card.to_snapshot(), resolved)
        return card

    async def move_card(
        self,
        card_id: str,
        status: str,
        position: int | None = None,
        board_id: str | None = None,
    ) -> Card:
        """Move a card to ``position`` within the ``status`` column.

        Args:
            card_id: Card to move.
            status: Target column.
            position: Zero-based index among the target column's other cards,
                clamped to the valid range. Defaults to the end.
            board_id: Board the card is on.

        Returns:
            The moved card.
        """
        cards = await self.list_cards(board_id=board_id)
        card = self._find(cards, card_id)
        if card is None:
            raise CardNotFoundError(f"Card '{card_id}' not found")
        resolved, board, _ = self._board(card.board_id)
        self._check_status(board, status)

        siblings = sorted(
            (c for c in cards if c.status == status and c.id != card.id),
            key=lambda c: c.order,
        )
        pos = len(siblings) if position is None else max(0, min(position, len(siblings)))
        before = siblings[pos - 1].order if pos > 0 else None
        after = siblings[pos].order if pos < len(siblings) else None

        old_status = card.status
        card.status = status
        card.order = key_between(before, after)
        card.modified = now_iso()
        if status != old_status:
            card.completed_at = card.modified if board.is_final_status(status) else None

        write_card(card)
        if status != old_status:
            new_path = move_card_file(Path(card.file_path), self._board_dir(resolved), status, card.attachments)
            card.file_path = str(new_path)

        logger.info("Moved card %s: %s -> %s (position %d)", card.id, old_status, status, pos)
        await self._emit(EventType.TASK_MOVED, card.to_snapshot(), resolved)
        return card

    async def delete_card(self, card_id: str, board_id: str | None = None) -> Card:
        """Soft-delete a card: its status becomes ``deleted`` and the file is kept."""
        cards = await self.list_cards(board_id=board_id)
        card = self._find(cards, card_id)
        if card is None:
            raise CardNotFoundError(f"Card '{card_id}' not found")
        resolved = card.board_id or self._board(board_id)[0]

        if card.status != DELETED_STATUS:
            card.order = key_between(_last_order(cards, DELETED_STATUS), None)
        card.status = DELETED_STATUS
        card.completed_at = None
        card.modified = now_iso()
        write_card(card)
        card.file_path = str(
            move_card_file(Path(card.file_path), self._board_dir(resolved), DELETED_STATUS, card.attachments)
        )

        logger.info("Soft-deleted card %s on board %s", card.id, resolved)
        await self._emit(EventType.TASK_DELETED, card.to_snapshot(), resolved)
        return card

    async def permanently_delete_card(self, card_id: str, board_id: str | None = None) -> None:
        """Remove a card's file from disk."""
        card = await self.get_card(card_id, board_id)
        Path(card.file_path).unlink()
        logger.info("Permanently deleted card %s", card.id)
        await self._emit(EventType.TASK_DELETED, card.to_snapshot(), card.board_id)

    async def transfer_card(
        self,
        card_id: str,
        from_board: str,
        to_board: str,
        target_status: str | None = None,
    ) -> Card:
        """Move a card to another board.

        The card keeps its ID unless the target board already has a card with
        that ID, in which case a fresh one is allocated there.
        """
        if from_board == to_board:
            raise ValidationError(f"Card is already on board '{to_board}'")
        config = self.store.read()
        resolve_board(config, from_board)
        _, target = resolve_board(config, to_board)
        card = await self.get_card(card_id, from_board)

        status = target_status or target.default_status or (target.columns[0].id if target.columns else "backlog")
        self._check_status(target, status)

        target_cards = await self.list_cards(board_id=to_board)
        if any(c.id == card.id for c in target_cards):
            new_id = self.registry.allocate_card_id(to_board)
            logger.info("Card id %s taken on board %s, reassigning %d", card.id, to_board, new_id)
            card.id = str(new_id)
            filename = generate_card_filename(new_id, get_title_from_content(card.content))
            card.file_path = str(rename_card_file(Path(card.file_path), filename))

        card.file_path = str(move_card_file(Path(card.file_path), self._board_dir(to_board), status, card.attachments))
        card.status = status
        card.board_id = to_board
        card.order = key_between(_last_order(target_cards, status), None)
        card.modified = now_iso()
        card.completed_at = card.modified if target.is_final_status(status) else None
        write_card(card)

        logger.info("Transferred card %s from %s to %s/%s", card.id, from_board, to_board, status)
        await self._emit(EventType.TASK_MOVED, card.to_snapshot(), to_board)
        return card

    async def get_cards_by_status(self, status: str, board_id: str | None = None) -> list[Card]:
        return await self.list_cards(statuses=[status], board_id=board_id)

    async def get_unique_assignees(self, board_id: str | None = None) -> list[str]:
        cards = await self.list_cards(board_id=board_id)
        return sorted({c.assignee for c in cards if c.assignee})

    async def get_unique_labels(self, board_id: str | None = None) -> list[str]:
        cards = await self.list_cards(board_id=board_id)
        return sorted({label for c in cards for label in c.labels})

    # --- Attachments ---

    async def add_attachment(self, card_id: str, source_path: str | Path, board_id: str | None = None) -> Card:
        """Copy a file next to the card (unless already there) and reference it."""
        card = await self.get_card(card_id, board_id)
        name = copy_attachment(Path(source_path), Path(card.file_path).parent)
        if name not in card.attachments:
            card.attachments.append(name)
        card.modified = now_iso()
        write_card(card)
        await self._emit(EventType.ATTACHMENT_ADDED, card.to_snapshot(), card.board_id)
        return card

    async def remove_attachment(self, card_id: str, attachment: str, board_id: str | None = None) -> Card:
        """Drop an attachment reference. The file itself is left on disk."""
        card = await self.get_card(card_id, board_id)
        card.attachments = [a for a in card.attachments if a != attachment]
        card.modified = now_iso()
        write_card(card)
        await self._emit(EventType.ATTACHMENT_REMOVED, card.to_snapshot(), card.board_id)
        return card

    async def list_attachments(self, card_id: str, board_id: str | None = None) -> list[str]:
        return list((await self.get_card(card_id, board_id)).attachments)

    # --- Comments ---

    async def list_comments(self, card_id: str, board_id: str | None = None) -> list[Comment]:
        return list((await self.get_card(card_id, board_id)).comments)

    @staticmethod
    def _next_comment_id(comments: list[Comment]) -> str:
        highest = 0
        for comment in comments:
            suffix = comment.id.removeprefix("c")
            if suffix.isdecimal():
                highest = max(highest, int(suffix))
        return f"c{highest + 1}"

    @staticmethod
    def _find_comment(card: Card, comment_id: str) -> Comment:
        for comment in card.comments:
            if comment.id == comment_id:
                return comment
        raise CommentNotFoundError(f"Comment '{comment_id}' not found on card '{card.id}'")

    async def add_comment(self, card_id: str, author: str, content: str, board_id: str | None = None) -> Comment:
        """Append a comment; its ID is one past the highest existing one.

        Raises:
            EmptyCommentError: If ``content`` is blank.
        """
        if not content.strip():
            raise EmptyCommentError("Comment content must not be empty")
        card = await self.get_card(card_id, board_id)
        comment = Comment(
            id=self._next_comment_id(card.comments),
            author=author,
            created=now_iso(),
            content=content.strip(),
        )
        card.comments.append(comment)
        card.modified = comment.created
        write_card(card)
        await self._emit(EventType.COMMENT_CREATED, {**comment.to_dict(), "cardId": card.id}, card.board_id)
        return comment

    async def update_comment(
        self,
        card_id: str,
        comment_id: str,
        content: str,
        board_id: str | None = None,
    ) -> Comment:
        if not content.strip():
            raise EmptyCommentError("Comment content must not be empty")
        card = await self.get_card(card_id, board_id)
        comment = self._find_comment(card, comment_id)
        comment.content = content.strip()
        card.modified = now_iso()
        write_card(card)
        await self._emit(EventType.COMMENT_UPDATED, {**comment.to_dict(), "cardId": card.id}, card.board_id)
        return comment

    async def delete_comment(self, card_id: str, comment_id: str, board_id: str | None = None) -> None:
        card = await self.get_card(card_id, board_id)
        comment = self._find_comment(card, comment_id)
        card.comments.remove(comment)
        card.modified = now_iso()
        write_card(card)
        await self._emit(EventType.COMMENT_DELETED, {**comment.to_dict(), "cardId": card.id}, card.board_id)

    # --- Columns ---

    async def list_columns(self, board_id: str | None = None) -> list[Column]:
        return self._board(board_id)[1].columns

    async def add_column(self, column: Column, board_id: str | None = None) -> list[Column]:
        """Append a column to a board.

        Raises:
            ReservedColumnError: If the column ID is ``deleted``.
            ColumnExistsError: If the board already has this column.
        """
        if column.id == DELETED_STATUS:
            raise ReservedColumnError(f"'{DELETED_STATUS}' is reserved and cannot be a column")
        resolved, board, config = self._board(board_id)
        if board.get_column(column.id) is not None:
            raise ColumnExistsError(f"Column '{column.id}' already exists on board '{resolved}'")
        board.columns.append(column)
        self.store.write(config)
        await self._emit(EventType.COLUMN_CREATED, _column_data(column, resolved), resolved)
        return board.columns

    async def update_column(
        self,
        column_id: str,
        *,
        name: str | None = None,
        color: str | None = None,
        board_id: str | None = None,
    ) -> Column:
        resolved, board, config = self._board(board_id)
        column = board.get_column(column_id)
        if column is None:
            raise ColumnNotFoundError(f"Column '{column_id}' not found on board '{resolved}'")
        if name is not None:
            column.name = name
        if color is not None:
            column.color = color
        self.store.write(config)
        await self._emit(EventType.COLUMN_UPDATED, _column_data(column, resolved), resolved)
        return column

    async def remove_column(self, column_id: str, board_id: str | None = None) -> list[Column]:
        """Remove an empty column.

        Raises:
            ReservedColumnError: If the column ID is ``deleted``.
            ColumnNotFoundError: If the board has no such column.
            ColumnNotEmptyError: If any card is still in the column.
            LastColumnError: If it is the board's only column.
        """
        if column_id == DELETED_STATUS:
            raise ReservedColumnError(f"'{DELETED_STATUS}' is reserved and cannot be removed")
        resolved, board, _ = self._board(board_id)
        if board.get_column(column_id) is None:
            raise ColumnNotFoundError(f"Column '{column_id}' not found on board '{resolved}'")
        if len(board.columns) == 1:
            raise LastColumnError(f"Cannot remove '{column_id}': it is the only column on board '{resolved}'")

        occupants = await self.list_cards(statuses=[column_id], board_id=resolved)
        if occupants:
            raise ColumnNotEmptyError(
                f"Cannot remove column '{column_id}': {len(occupants)} card(s) still in this column"
            )

        # Re-read: listing may have advanced the ID counter
        resolved, board, config = self._board(resolved)
        column = board.get_column(column_id)
        board.columns = [c for c in board.columns if c.id != column_id]
        _drop_stale_status_refs(board)
        self.store.write(config)
        await self._emit(EventType.COLUMN_DELETED, _column_data(column, resolved), resolved)
        return board.columns

    async def reorder_columns(self, column_ids: list[str], board_id: str | None = None) -> list[Column]:
        """Reorder a board's columns.

        Raises:
            ColumnNotFoundError: If an ID is not a column of the board.
            InvalidColumnOrderError: If ``column_ids`` is not a permutation of
                the existing columns.
        """
        resolved, board, config = self._board(board_id)
        by_id = {c.id: c for c in board.columns}
        for column_id in column_ids:
            if column_id not in by_id:
                raise ColumnNotFoundError(f"Column '{column_id}' not found on board '{resolved}'")
        if len(column_ids) != len(by_id) or len(set(column_ids)) != len(column_ids):
            raise InvalidColumnOrderError("Must include every column ID exactly once when reordering")

        board.columns = [by_id[column_id] for column_id in column_ids]
        self.store.write(config)
        await self._emit(
            EventType.COLUMN_UPDATED,
            {"boardId": resolved, "columns": [_column_data(c, resolved) for c in board.columns]},
            resolved,
        )
        return board.columns

    # --- Boards ---

    async def list_boards(self) -> list[BoardInfo]:
        config = self.store.read()
        return [
            BoardInfo(id=board_id, name=board.name, description=board.description, columns=board.columns)
            for board_id, board in config.boards.items()
        ]

    async def create_board(
        self,
        board_id: str,
        name: str,
        *,
        description: str | None = None,
        columns: list[Column] | None = None,
        default_status: str | None = None,
        default_priority: Priority | None = None,
    ) -> BoardInfo:
        """Create a board; columns default to a copy of the default board's.

        Raises:
            ValidationError: If ``board_id`` is not a usable directory name.
            BoardExistsError: If the board already exists.
        """
        if not board_id or board_id.startswith(".") or "/" in board_id or "\\" in board_id:
            raise ValidationError(f"Invalid board id: {board_id!r}")
        self._ensure_migrated()
        config = self.store.read()
        if board_id in config.boards:
            raise BoardExistsError(f"Board '{board_id}' already exists")

        if columns is None:
            template = config.boards.get(config.default_board)
            columns = [c.model_copy() for c in template.columns] if template else default_columns()
        board = BoardConfig(
            name=name,
            description=description,
            columns=columns,
            default_status=default_status or (columns[0].id if columns else "backlog"),
            default_priority=default_priority or config.default_priority,
        )
        self._check_status(board, board.default_status)
        config.boards[board_id] = board
        self.store.write(config)
        self._board_dir(board_id).mkdir(parents=True, exist_ok=True)

        info = BoardInfo(id=board_id, name=name, description=description, columns=board.columns)
        logger.info("Created board %s", board_id)
        await self._emit(EventType.BOARD_CREATED, {"id": board_id, "name": name, "description": description}, board_id)
        return info

    async def get_board(self, board_id: str) -> BoardConfig:
        return resolve_board(self.store.read(), board_id)[1]

    async def update_board(
        self,
        board_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        columns: list[Column] | None = None,
        default_status: str | None = None,
        default_priority: Priority | None = None,
        final_status: str | None = None,
    ) -> BoardConfig:
        """Change the provided board fields. The ID counter is never touched here.

        Replacing the columns resets a default status that no longer exists to
        the first column and clears a pinned final status that no longer exists.

        Raises:
            ReservedColumnError: If a new column uses the ``deleted`` ID.
            LastColumnError: If ``columns`` is empty.
            ColumnNotFoundError: If ``default_status`` or ``final_status`` is not a column.
        """
        config = self.store.read()
        _, board = resolve_board(config, board_id)
        if name is not None:
            board.name = name
        if description is not None:
            board.description = description
        if columns is not None:
            if any(c.id == DELETED_STATUS for c in columns):
                raise ReservedColumnError(f"'{DELETED_STATUS}' is reserved and cannot be a column")
            if not columns:
                raise LastColumnError(f"Board '{board_id}' must keep at least one column")
            board.columns = columns
            _drop_stale_status_refs(board)
        if default_status is not None:
            self._check_status(board, default_status)
            board.default_status = default_status
        if default_priority is not None:
            board.default_priority = default_priority
        if final_status is not None:
            self._check_status(board, final_status)
            board.final_status = final_status
        self.store.write(config)
        await self._emit(
            EventType.BOARD_UPDATED,
            {"id": board_id, **board.model_dump(mode="json", by_alias=True, exclude_none=True)},
            board_id,
        )
        return board

    async def delete_board(self, board_id: str) -> None:
        """Delete an empty, non-default board and its directory.

        Raises:
            BoardNotFoundError: If the board does not exist.
            DefaultBoardError: If it is the default board.
            BoardNotEmptyError: If it still holds cards (soft-deleted included).
        """
        config = self.store.read()
        resolve_board(config, board_id)
        if config.default_board == board_id:
            raise DefaultBoardError(f"Cannot delete the default board '{board_id}'")

        cards = await self.list_cards(board_id=board_id)
        if cards:
            raise BoardNotEmptyError(f"Cannot delete board '{board_id}': {len(cards)} card(s) still exist")

        board_dir = self._board_dir(board_id)
        if board_dir.exists():
            shutil.rmtree(board_dir)
        config = self.store.read()
        config.boards.pop(board_id, None)
        self.store.write(config)
        logger.info("Deleted board %s", board_id)
        await self._emit(EventType.BOARD_DELETED, {"id": board_id}, board_id)

    # --- Labels ---

    async def get_labels(self) -> dict[str, LabelDefinition]:
        return self.registry.get_labels()

    async def _emit_labels(self) -> None:
        labels = {name: d.model_dump(mode="json", exclude_none=True) for name, d in self.registry.get_labels().items()}
        await self._emit(EventType.SETTINGS_UPDATED, {"labels": labels}, None)

    async def set_label(self, name: str, color: str, group: str | None = None) -> LabelDefinition:
        """Create or replace a label definition."""
        definition = LabelDefinition(color=color, group=group)
        self.registry.set_label(name, definition)
        await self._emit_labels()
        return definition

    async def _rewrite_labels(self, old_name: str, new_name: str | None) -> int:
        """Replace (or drop, when ``new_name`` is None) a label on every card."""
        rewritten = 0
        for board_id in list(self.store.read().boards):
            for card in await self.list_cards(board_id=board_id):
                if old_name not in card.labels:
                    continue
                labels = [new_name if label == old_name else label for label in card.labels]
                card.labels = _dedupe([label for label in labels if label is not None])
                card.modified = now_iso()
                write_card(card)
                rewritten += 1
        return rewritten

    async def delete_label(self, name: str) -> None:
        """Delete a label definition and strip the label from every card."""
        self.registry.delete_label(name)
        count = await self._rewrite_labels(name, None)
        logger.info("Deleted label %r (removed from %d card(s))", name, count)
        await self._emit_labels()

    async def rename_label(self, old_name: str, new_name: str) -> None:
        """Rename a label definition and every card's use of it."""
        if old_name == new_name:
            return
        self.registry.rename_label(old_name, new_name)
        count = await self._rewrite_labels(old_name, new_name)
        logger.info("Renamed label %r to %r on %d card(s)", old_name, new_name, count)
        await self._emit_labels()

    async def get_labels_in_group(self, group: str) -> list[str]:
        return self.registry.get_labels_in_group(group)

    async def filter_cards_by_label_group(self, group: str, board_id: str | None = None) -> list[Card]:
        """Cards carrying at least one label from ``group``."""
        names = set(self.registry.get_labels_in_group(group))
        if not names:
            return []
        return [c for c in await self.list_cards(board_id=board_id) if names.intersection(c.labels)]

    # --- Settings ---

    async def get_settings(self) -> DisplaySettings:
        return self.store.read().settings()

    async def update_settings(self, settings: DisplaySettings) -> DisplaySettings:
        config = self.store.read()
        config.apply_settings(settings)
        self.store.write(config)
        await self._emit(
            EventType.SETTINGS_UPDATED,
            settings.model_dump(mode="json", by_alias=True, exclude_none=True),
            None,
        )
        return settings

    # --- Actions ---

    async def trigger_action(self, card_id: str, action: str, board_id: str | None = None) -> None:
        """Send a named card action to the configured action webhook.

        Raises:
            ActionWebhookError: If no URL is configured or the POST fails.
        """
        url = self.store.read().action_webhook_url
        if not url:
            raise ActionWebhookError("No action webhook URL configured")
        card = await self.get_card(card_id, board_id)
        payload = {
            "action": action,
            "board": card.board_id,
            "list": card.status,
            "card": card.to_snapshot(),
        }
        await post_action(self.client, url, payload)
