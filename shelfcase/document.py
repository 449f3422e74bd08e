"""
The document: the open collection, where it came from and whether it
changed since it was last saved.

Lifecycle: empty -> loaded (one collection) -> modified -> saved -> closed.
Every mutation that goes through the document sets the modified flag and
is announced to document observers; a failed or cancelled import leaves
the document exactly as it was.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .borrower import Borrower, Loan
from .collection import Collection, CollectionObserver, CollectionType
from .config import AppConfig
from .entry import Entry
from .errors import FormatError, ShelfcaseError, ShelfcaseWarning
from .field import Field
from .fieldformat import FormatOptions
from .filehandler import ByteSink, ByteSource, as_sink, as_source
from . import presets
from .translators import get_exporter, get_importer, format_for_path
from .translators.base import CancelToken, ProgressCallback
from .translators.html import export_html as _export_html
from .translators.xmldoc import XMLExporter, export_grouped_xml


logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes, ByteSource]
Target = Union[str, Path, ByteSink]


class DocumentObserver:
    """No-op base for document notifications; override what you need."""

    def modified_changed(self, document: "Document", modified: bool) -> None:
        pass

    def collection_added(self, document: "Document", collection: Collection) -> None:
        pass

    def collection_removed(self, document: "Document", collection: Collection) -> None:
        pass

    def collection_renamed(self, document: "Document", collection: Collection) -> None:
        pass


class _ModifiedTracker(CollectionObserver):
    """Marks the document modified on any change inside its collections."""

    def __init__(self, document: "Document") -> None:
        self._document = document

    def field_added(self, collection, field):
        self._document.set_modified(True)

    def field_modified(self, collection, old, new):
        self._document.set_modified(True)

    def field_removed(self, collection, field):
        self._document.set_modified(True)

    def entries_added(self, collection, entries):
        self._document.set_modified(True)

    def entries_modified(self, collection, entries):
        self._document.set_modified(True)

    def entries_removed(self, collection, entries):
        self._document.set_modified(True)


class Document:
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config or AppConfig()
        self.format_options = FormatOptions.from_config(self.config)
        self.collections: List[Collection] = []
        self.url: Optional[str] = None
        self.warnings: List[ShelfcaseWarning] = []
        self._modified = False
        self._next_collection_id = 1
        self._observers: List[Any] = []
        self._tracker = _ModifiedTracker(self)

    def __repr__(self) -> str:
        return f"Document(url={self.url!r}, collections={len(self.collections)}, modified={self._modified})"

    # -----------------------------
    # Observers / state
    # -----------------------------

    def add_observer(self, observer: Any) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Any) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, event: str, *args: Any) -> None:
        for obs in list(self._observers):
            handler = getattr(obs, event, None)
            if handler is not None:
                handler(self, *args)

    @property
    def modified(self) -> bool:
        return self._modified

    def set_modified(self, modified: bool) -> None:
        if modified != self._modified:
            self._modified = modified
            self._notify("modified_changed", modified)

    @property
    def collection(self) -> Optional[Collection]:
        """The current collection; documents hold at most one."""
        return self.collections[0] if self.collections else None

    def _require_collection(self) -> Collection:
        if not self.collections:
            raise ShelfcaseError("the document holds no collection")
        return self.collections[0]

    def is_empty(self) -> bool:
        """A collection with fields but no entries still counts as empty."""
        return all(len(c) == 0 for c in self.collections)

    def collection_by_id(self, collection_id: int) -> Optional[Collection]:
        for c in self.collections:
            if c.id == collection_id:
                return c
        return None

    # -----------------------------
    # Collections
    # -----------------------------

    def add_collection(self, coll: Collection) -> Collection:
        coll.id = self._next_collection_id
        self._next_collection_id += 1
        if coll.format_options != self.format_options:
            coll.format_options = self.format_options
            coll.refresh_grouping()
        self.collections.append(coll)
        coll.add_observer(self._tracker)
        self._notify("collection_added", coll)
        self.set_modified(True)
        return coll

    def remove_collection(self, coll: Collection) -> bool:
        if coll not in self.collections:
            return False
        # observers may still read the collection
        self._notify("collection_removed", coll)
        self.collections.remove(coll)
        coll.remove_observer(self._tracker)
        coll.clear()
        self.set_modified(True)
        return True

    def rename_collection(self, coll: Collection, title: str) -> None:
        if coll not in self.collections:
            raise ShelfcaseError(f"collection {coll.id} is not part of this document")
        if coll.title == title:
            return
        coll.title = title
        self._notify("collection_renamed", coll)
        self.set_modified(True)

    def replace_collection(self, coll: Collection) -> Collection:
        self.delete_contents()
        return self.add_collection(coll)

    def append_collection(self, other: Collection) -> List[Entry]:
        """
        Copy the entries of ``other`` into the current collection, adding
        the fields it lacks first. Returns the new entries.
        """
        current = self.collection
        if current is None:
            self.add_collection(other)
            return other.entries

        current.merge_fields(other.fields)
        for name, value in other.macros.items():
            current.macros.setdefault(name, value)
        copies = [e.copy_to(current) for e in other.entries]
        with current.deferred_grouping():
            added = current.add_entries(copies)
        self.set_modified(True)
        return added

    def merge_collection(self, other: Collection, threshold: int = 3) -> List[Entry]:
        """
        Like ``append_collection`` but entries scoring at least
        ``threshold`` against an existing entry are left out.
        """
        current = self.collection
        if current is None:
            return self.append_collection(other)
        fresh = [
            e for e in other.entries
            if not any(current.same_entry_score(e, mine) >= threshold for mine in current.entries)
        ]
        logger.info("merge: %d of %d entries are new", len(fresh), len(other))
        current.merge_fields(other.fields)
        copies = [e.copy_to(current) for e in fresh]
        added = current.add_entries(copies)
        if added:
            self.set_modified(True)
        return added

    # -----------------------------
    # Lifecycle
    # -----------------------------

    def delete_contents(self) -> None:
        for coll in list(self.collections):
            self.remove_collection(coll)
        self.warnings = []

    def new_document(self, kind: Union[str, CollectionType, None] = None) -> Collection:
        """Discard everything and start with one empty default collection."""
        self.delete_contents()
        coll = presets.create_collection(kind or self.config.default_collection)
        self.add_collection(coll)
        self.url = None
        self.set_modified(False)
        return coll

    def open_document(
        self,
        source: Source,
        *,
        format_id: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Collection:
        """
        Load ``source`` and make its collection the document's collection.

        Raises DownloadError, ReadError or FormatError, and ImportCancelled
        when ``cancel`` fires; in every case the current contents are kept.
        """
        src = as_source(source)
        if format_id is None:
            format_id = "xml"
            if isinstance(source, (str, Path)):
                try:
                    format_id = format_for_path(source)
                except KeyError:
                    logger.debug("no format for %s, reading it as a document", source)

        kwargs: Dict[str, Any] = {"progress": progress, "cancel": cancel}
        if format_id == "ris":
            kwargs["template"] = self.collection
        try:
            importer = get_importer(format_id, **kwargs)
        except KeyError as e:
            raise FormatError(f"{format_id} files cannot be opened", src.name) from e

        data = src.read()
        coll = importer.collection(data)

        # nothing above touched the document
        self.delete_contents()
        self.add_collection(coll)
        self.warnings = list(importer.warnings)
        if format_id == "xml":
            self.url = src.name
            self.set_modified(False)
        else:
            # imported data has not been saved as a document yet
            self.url = None
            self.set_modified(True)
        logger.info("opened %s: %d entries", src.name, len(coll))
        return coll

    def save_document(self, target: Optional[Target] = None) -> str:
        """
        Write the document format to ``target`` (default: where it was
        loaded from). Returns the name of what was written.
        """
        if target is None:
            if not self.url:
                raise ShelfcaseError("the document has no location to save to")
            target = self.url
        sink = as_sink(target)
        data = XMLExporter().export(self._require_collection())
        sink.write(data)
        if isinstance(target, (str, Path)):
            self.url = sink.name
        self.set_modified(False)
        logger.info("saved %s", sink.name)
        return sink.name

    def close_document(self) -> None:
        self.delete_contents()
        self.url = None
        self.set_modified(False)

    # -----------------------------
    # Entries / fields
    # -----------------------------

    def add_entries(self, entries: Sequence[Entry]) -> List[Entry]:
        return self._require_collection().add_entries(entries)

    def modify_entry(self, entry: Entry, values: Optional[Dict[str, str]] = None) -> bool:
        """Apply ``values`` and re-file the entry; adds it if it is new."""
        coll = self._require_collection()
        for name, value in (values or {}).items():
            entry.set_field(name, value)
        if entry not in coll:
            coll.add_entry(entry)
            return True
        coll.update_entry(entry)
        return True

    def remove_entries(self, entries: Sequence[Entry]) -> int:
        return self._require_collection().remove_entries(entries)

    def add_field(self, field: Field) -> Field:
        return self._require_collection().add_field(field)

    def modify_field(self, field: Field) -> Field:
        return self._require_collection().modify_field(field)

    def remove_field(self, field: Union[str, Field], force: bool = False) -> bool:
        return self._require_collection().remove_field(field, force=force)

    def check_out(self, entries: Sequence[Entry], borrower: Union[str, Borrower], **kwargs: Any) -> List[Loan]:
        loans = self._require_collection().check_out(entries, borrower, **kwargs)
        if loans:
            self.set_modified(True)
        return loans

    def check_in(self, entries: Sequence[Entry]) -> int:
        n = self._require_collection().check_in(entries)
        if n:
            self.set_modified(True)
        return n

    # -----------------------------
    # Exports
    # -----------------------------

    def export_xml(self, entries: Optional[Sequence[Entry]] = None, *, formatted: bool = False) -> bytes:
        return XMLExporter(formatted=formatted).export(self._require_collection(), entries)

    def export_grouped_xml(self, group_name: Optional[str] = None, *, formatted: bool = True) -> bytes:
        return export_grouped_xml(self._require_collection(), group_name, formatted=formatted)

    def export_html(
        self,
        template: Union[str, Path, None] = None,
        group_name: Optional[str] = None,
        *,
        formatted: bool = True,
    ) -> Optional[str]:
        """HTML text, or None if the transform failed."""
        doc_url = Path(self.url).name if self.url else "Untitled"
        return _export_html(self._require_collection(), template, group_name=group_name,
                            formatted=formatted, params={"doc-url": doc_url})

    def export(
        self,
        format_id: str,
        target: Target,
        entries: Optional[Sequence[Entry]] = None,
        **options: Any,
    ) -> str:
        """Write the collection through any exporter; the modified flag is kept."""
        if format_id == "bibtex":
            exporter = get_exporter(format_id, **{
                "quote_style": self.config.bibtex_quote_style,
                "expand_macros": self.config.bibtex_expand_macros,
                "url_package": self.config.bibtex_url_package,
                "skip_empty_keys": self.config.bibtex_skip_empty_keys,
                **options,
            })
        elif format_id == "bibliography":
            exporter = get_exporter(format_id, **{"style": self.config.csl_style, **options})
        else:
            exporter = get_exporter(format_id, **options)
        data = exporter.export(self._require_collection(), entries)
        sink = as_sink(target)
        sink.write(data)
        self.warnings.extend(getattr(exporter, "warnings", []))
        return sink.name
