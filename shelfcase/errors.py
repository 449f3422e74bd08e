"""
errors.py
--------------------
Exception and warning classes for shelfcase.

Exception Hierarchy:
    Exception (built-in)
    └── ShelfcaseError
        ├── DocumentError - Base for load/save failures
        │   ├── DownloadError - Source could not be reached
        │   ├── ReadError - Source reached but content unreadable
        │   └── FormatError - Content is not a recognized document
        ├── SchemaError - Collection lacks fields an operation requires
        ├── UnknownFieldError - Get/set on a field name not in the schema
        ├── DuplicateFieldError - Field name already used in a collection
        ├── DuplicateKeyError - Citation key collision (BibTeX)
        ├── TransformError - Template engine failure
        └── ImportCancelled - Cooperative cancellation of a translator

    UserWarning (built-in)
    └── ShelfcaseWarning
        ├── MultiCollectionWarning - Extra collections ignored on load
        └── SkippedEntryWarning - An entry or value was dropped

Usage:
    from shelfcase.errors import FormatError, ReadError

    try:
        doc.open_document(path)
    except FormatError as e:
        logger.error(f"Not a shelfcase document: {e}")
"""
from __future__ import annotations

from typing import Optional


class ShelfcaseError(Exception):
    """Base class for every error raised by shelfcase."""

    pass


class DocumentError(ShelfcaseError):
    """
    Base exception for document load/save failures.

    Attributes:
        source: Path or URL the operation was working on, if known
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class DownloadError(DocumentError):
    """The source location could not be reached."""

    pass


class ReadError(DocumentError):
    """The source was reached but its content could not be read."""

    pass


class FormatError(DocumentError):
    """The content is not a document this translator understands."""

    pass


class SchemaError(ShelfcaseError):
    """
    Raised when a collection is missing fields an operation depends on.

    Examples:
        >>> raise SchemaError("no field defines the bibtex entry-type")
    """

    pass


class UnknownFieldError(ShelfcaseError, KeyError):
    """
    Raised when a value is read or written for a field name that is not
    part of the entry's collection.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown field: {self.name!r}"


class DuplicateFieldError(ShelfcaseError):
    """Raised by ``Collection.add_field`` when the name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"field already exists: {name!r}")
        self.name = name


class DuplicateKeyError(ShelfcaseError):
    """Raised when two exported entries share one citation key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"duplicate citation key: {key!r}")
        self.key = key


class TransformError(ShelfcaseError):
    """Raised when a template transformation cannot be completed."""

    pass


class ImportCancelled(ShelfcaseError):
    """Raised when a translator notices its cancellation token was set."""

    pass


class ShelfcaseWarning(UserWarning):
    """Base class for non-fatal diagnostics collected during translation."""

    pass


class MultiCollectionWarning(ShelfcaseWarning):
    """A document held more than one collection; only the first was used."""

    pass


class SkippedEntryWarning(ShelfcaseWarning):
    """An entry, or one of its values, was left out of the result."""

    pass
