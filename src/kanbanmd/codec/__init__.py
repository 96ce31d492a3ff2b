"""Card Codec - Converts cards and their comment threads to and from Markdown files."""

from kanbanmd.codec.models import (
    CARD_FORMAT_VERSION,
    DELETED_STATUS,
    Card,
    Comment,
    Priority,
    now_iso,
)
from kanbanmd.codec.naming import (
    extract_numeric_id,
    generate_card_filename,
    get_title_from_content,
    id_from_filename,
    slugify,
)
from kanbanmd.codec.parser import SECTION_DELIMITER, decode_card, encode_card

__all__ = [
    "CARD_FORMAT_VERSION",
    "DELETED_STATUS",
    "SECTION_DELIMITER",
    "Card",
    "Comment",
    "Priority",
    "decode_card",
    "encode_card",
    "extract_numeric_id",
    "generate_card_filename",
    "get_title_from_content",
    "id_from_filename",
    "now_iso",
    "slugify",
]
