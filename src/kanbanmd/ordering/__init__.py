"""Ordering Engine - Fractional keys for reordering cards without rewriting siblings."""

from kanbanmd.exceptions import OrderKeyError
from kanbanmd.ordering.keys import (
    INITIAL_KEY,
    is_legacy_order,
    key_between,
    keys_between,
    validate_key,
)

__all__ = [
    "INITIAL_KEY",
    "OrderKeyError",
    "is_legacy_order",
    "key_between",
    "keys_between",
    "validate_key",
]
