"""Exception hierarchy shared by all kanbanmd components."""


class KanbanError(Exception):
    """Base exception for kanbanmd errors."""


# --- Not found ---


class NotFoundError(KanbanError):
    """A referenced entity does not exist."""


class CardNotFoundError(NotFoundError):
    """Card with given ID does not exist on the board."""


class ColumnNotFoundError(NotFoundError):
    """Column with given ID does not exist on the board."""


class CommentNotFoundError(NotFoundError):
    """Comment with given ID does not exist on the card."""


class BoardNotFoundError(NotFoundError):
    """Board with given ID does not exist."""


class WebhookNotFoundError(NotFoundError):
    """Webhook with given ID is not registered."""


# --- Validation ---


class ValidationError(KanbanError):
    """A request violates a store constraint."""


class ColumnExistsError(ValidationError):
    """Column with given ID already exists on the board."""


class ReservedColumnError(ValidationError):
    """The reserved 'deleted' status cannot be used as a real column."""


class InvalidColumnOrderError(ValidationError):
    """Column reorder is not a complete permutation of existing columns."""


class ColumnNotEmptyError(ValidationError):
    """Cannot remove a column that still holds cards."""


class EmptyCommentError(ValidationError):
    """Comment content must not be empty."""


class BoardExistsError(ValidationError):
    """Board with given ID already exists."""


class DefaultBoardError(ValidationError):
    """The default board cannot be deleted."""


class BoardNotEmptyError(ValidationError):
    """Cannot delete a board that still holds cards."""


class LastColumnError(ValidationError):
    """A board must keep at least one column."""


class InvalidWebhookURLError(ValidationError):
    """Webhook URL is not an absolute http(s) URL."""


# --- Other ---


class ConfigError(KanbanError):
    """Board configuration file is unreadable or invalid."""


class OrderKeyError(KanbanError):
    """Order key is malformed or the requested range is empty."""


class ActionWebhookError(KanbanError):
    """Card action could not be delivered to the action webhook."""
