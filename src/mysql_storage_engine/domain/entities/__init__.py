"""Domain entities."""

from mysql_storage_engine.domain.entities.entry import Entry, decode_document, encode_document

__all__ = [
    "Entry",
    "decode_document",
    "encode_document",
]
