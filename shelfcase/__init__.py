"""shelfcase: catalog collections of books, videos and bibliographies."""
from __future__ import annotations

__version__ = "0.3.0"

from .collection import Collection, CollectionType
from .document import Document
from .entry import Entry
from .field import Field, FieldFlag, FieldType
from .presets import create_collection

__all__ = [
    "Collection",
    "CollectionType",
    "Document",
    "Entry",
    "Field",
    "FieldFlag",
    "FieldType",
    "create_collection",
]
