"""
Chat export reading.

Turns an exported archive into conversation records for the
synchronization engine.
"""

from chatsync.export.code_items import extract_code_items
from chatsync.export.reader import (
    ExportReader,
    format_message_id,
    parse_iso_timestamp,
    parse_timestamp,
)

__all__ = [
    "ExportReader",
    "extract_code_items",
    "format_message_id",
    "parse_iso_timestamp",
    "parse_timestamp",
]
