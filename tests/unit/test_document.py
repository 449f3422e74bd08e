"""
test_document.py
----------------
Unit tests for the Document lifecycle: new, open, save, close, and the
modified flag.
"""
import pytest
from lxml import etree

from shelfcase.collection import CollectionType
from shelfcase.config import AppConfig
from shelfcase.document import Document, DocumentObserver
from shelfcase.errors import (
    DownloadError,
    FormatError,
    ImportCancelled,
    MultiCollectionWarning,
    ShelfcaseError,
)
from shelfcase.field import Field
from shelfcase.presets import create_collection
from shelfcase.translators.base import CancelToken
from shelfcase.translators.xmldoc import XMLExporter


class Recorder(DocumentObserver):
    def __init__(self):
        self.events = []

    def modified_changed(self, document, modified):
        self.events.append(("modified", modified))

    def collection_added(self, document, collection):
        self.events.append(("added", collection.title))

    def collection_removed(self, document, collection):
        # still readable while being removed
        self.events.append(("removed", collection.title, len(collection)))


@pytest.fixture
def doc():
    d = Document()
    d.new_document()
    return d


@pytest.fixture
def saved_doc(tmp_path, book_collection):
    path = tmp_path / "shelf.xml"
    path.write_bytes(XMLExporter().export(book_collection))
    d = Document()
    d.open_document(path)
    return d, path


class TestNewDocument:
    """Test new_document and is_empty."""

    def test_default_book_collection(self, doc):
        assert doc.collection.type == CollectionType.BOOK
        assert len(doc.collections) == 1
        assert not doc.modified
        assert doc.url is None

    def test_default_kind_from_config(self):
        d = Document(AppConfig(default_collection="video"))
        d.new_document()
        assert d.collection.type == CollectionType.VIDEO

    def test_empty_with_schema(self, doc):
        assert doc.collection.fields
        assert doc.is_empty()

    def test_empty_without_collections(self):
        assert Document().is_empty()

    def test_not_empty_with_entries(self, doc):
        doc.add_entries([doc.collection.new_entry({"title": "x"})])
        assert not doc.is_empty()


class TestOpenDocument:
    """Test opening documents and imports."""

    def test_open_xml(self, saved_doc):
        d, path = saved_doc
        assert d.url == str(path)
        assert len(d.collection) == 3
        assert not d.modified

    def test_open_ris_is_modified(self, ris_file):
        d = Document()
        coll = d.open_document(ris_file)
        assert coll.type == CollectionType.BIBTEX
        assert len(coll) == 2
        assert d.modified
        assert d.url is None

    def test_explicit_format(self, tmp_path, sample_ris):
        path = tmp_path / "refs.txt"
        path.write_text(sample_ris, encoding="utf-8")
        d = Document()
        assert len(d.open_document(path, format_id="ris")) == 2

    def test_open_bytes(self, book_collection):
        d = Document()
        d.open_document(XMLExporter().export(book_collection))
        assert len(d.collection) == 3

    def test_missing_file_keeps_contents(self, doc, tmp_path):
        before = doc.collection
        with pytest.raises(DownloadError):
            doc.open_document(tmp_path / "missing.xml")
        assert doc.collection is before

    def test_bad_markup_keeps_contents(self, doc, tmp_path):
        path = tmp_path / "bad.xml"
        path.write_text("<library/>", encoding="utf-8")
        before = doc.collection
        with pytest.raises(FormatError):
            doc.open_document(path)
        assert doc.collection is before
        assert not doc.modified

    def test_export_only_format_rejected(self, doc, tmp_path):
        path = tmp_path / "refs.bib"
        path.write_text("@book{x}", encoding="utf-8")
        with pytest.raises(FormatError):
            doc.open_document(path)

    def test_cancelled_import_keeps_contents(self, doc, tmp_path):
        path = tmp_path / "many.ris"
        path.write_text("TY  - BOOK\nTI  - x\nER  -\n" * 20, encoding="utf-8")
        before = doc.collection
        token = CancelToken()
        token.cancel()
        with pytest.raises(ImportCancelled):
            doc.open_document(path, cancel=token)
        assert doc.collection is before
        assert before.fields

    def test_warnings_copied(self, book_collection):
        root = etree.fromstring(XMLExporter().export(book_collection))
        root.append(etree.fromstring(etree.tostring(root.find("collection"))))
        d = Document()
        d.open_document(etree.tostring(root))
        assert isinstance(d.warnings[0], MultiCollectionWarning)

    def test_progress(self, ris_file):
        seen = []
        Document().open_document(ris_file, progress=seen.append)
        assert seen[-1] == 1.0


class TestSaveDocument:
    """Test saving and the modified flag."""

    def test_save_clears_modified(self, doc, tmp_path):
        doc.add_entries([doc.collection.new_entry({"title": "x"})])
        assert doc.modified
        path = tmp_path / "doc.xml"
        assert doc.save_document(path) == str(path)
        assert not doc.modified
        assert doc.url == str(path)

    def test_save_without_location(self, doc):
        with pytest.raises(ShelfcaseError):
            doc.save_document()

    def test_save_to_url_makes_backup(self, saved_doc):
        d, path = saved_doc
        old = path.read_bytes()
        d.collection.entries[0].set_field("title", "Changed")
        d.modify_entry(d.collection.entries[0])
        d.save_document()
        assert path.with_name(path.name + "~").read_bytes() == old
        assert b"Changed" in path.read_bytes()

    def test_saved_document_reopens(self, doc, tmp_path):
        doc.add_field(Field("shelf", "Shelf"))
        doc.add_entries([doc.collection.new_entry({"title": "x", "shelf": "A3"})])
        path = tmp_path / "doc.xml"
        doc.save_document(path)
        other = Document()
        other.open_document(path)
        assert other.collection.entries[0].field("shelf") == "A3"


class TestModifiedTracking:
    """Every change through the document marks it modified."""

    def test_field_changes(self, doc):
        doc.add_field(Field("shelf"))
        assert doc.modified

    def test_remove_entries(self, saved_doc):
        d, _ = saved_doc
        assert d.remove_entries(d.collection.entries[:1]) == 1
        assert d.modified

    def test_modify_entry_values(self, saved_doc):
        d, _ = saved_doc
        entry = d.collection.entries[2]
        d.modify_entry(entry, {"author": "Asimov, Isaac"})
        assert d.modified
        assert entry in d.collection.group_index("author").entries("Asimov, Isaac")

    def test_modify_entry_adds_new(self, doc):
        entry = doc.collection.new_entry({"title": "fresh"})
        doc.modify_entry(entry)
        assert entry in doc.collection

    def test_loans(self, saved_doc):
        d, _ = saved_doc
        assert d.check_out(d.collection.entries[:1], "Alice")
        assert d.modified
        d.save_document()
        assert d.check_in(d.collection.entries[:1]) == 1
        assert d.modified

    def test_observer_events(self, doc):
        rec = Recorder()
        doc.add_observer(rec)
        doc.add_entries([doc.collection.new_entry({"title": "x"})])
        doc.close_document()
        assert rec.events == [
            ("modified", True),
            ("removed", "My Books", 1),
            ("modified", False),
        ]


class TestCollections:
    """Test collection-level operations."""

    def test_rename(self, doc):
        doc.rename_collection(doc.collection, "Library")
        assert doc.collection.title == "Library"
        assert doc.modified

    def test_rename_unknown(self, doc):
        with pytest.raises(ShelfcaseError):
            doc.rename_collection(create_collection("book"), "x")

    def test_replace(self, doc):
        new = create_collection("video", "Films")
        doc.replace_collection(new)
        assert doc.collections == [new]
        assert doc.collection_by_id(new.id) is new

    def test_append_adds_missing_fields(self, saved_doc):
        d, _ = saved_doc
        other = create_collection("bibtex")
        other.macros["jan"] = "January"
        other.add_entry(other.new_entry({"title": "Paper", "journal": "Nature"}))
        added = d.append_collection(other)
        assert len(added) == 1
        assert d.collection.has_field("journal")
        assert added[0].field("journal") == "Nature"
        assert d.collection.macros == {"jan": "January"}
        assert len(d.collection) == 4

    def test_merge_skips_duplicates(self, saved_doc, book_collection):
        d, _ = saved_doc
        copy = create_collection("book")
        copy.add_entry(copy.new_entry({"title": "On Basilisk Station", "author": "Weber, David"}))
        copy.add_entry(copy.new_entry({"title": "New Book"}))
        added = d.merge_collection(copy)
        assert [e.title for e in added] == ["New Book"]

    def test_delete_contents_notifies_before_removal(self, saved_doc):
        d, _ = saved_doc
        rec = Recorder()
        d.add_observer(rec)
        d.delete_contents()
        assert ("removed", "Shelf", 3) in rec.events
        assert d.collections == []


class TestExports:
    """Test document-level exports."""

    def test_export_bibtex(self, ris_file, tmp_path):
        d = Document(AppConfig(bibtex_quote_style="quotes"))
        d.open_document(ris_file)
        out = tmp_path / "refs.bib"
        d.export("bibtex", out)
        text = out.read_text(encoding="utf-8")
        assert '@book{weber-on1993,' in text
        assert 'title = "On Basilisk Station"' in text

    def test_export_does_not_touch_modified(self, saved_doc, tmp_path):
        d, _ = saved_doc
        d.export("xlsx", tmp_path / "shelf.xlsx")
        assert not d.modified
        assert (tmp_path / "shelf.xlsx").exists()

    def test_export_html(self, saved_doc):
        d, _ = saved_doc
        html = d.export_html()
        assert "shelf.xml" in html
        assert "On Basilisk Station" in html

    def test_export_html_failure(self, saved_doc, tmp_path):
        d, _ = saved_doc
        assert d.export_html(tmp_path / "missing.xsl") is None

    def test_export_grouped_xml(self, saved_doc):
        d, _ = saved_doc
        root = etree.fromstring(d.export_grouped_xml("read"))
        assert root.find("collection/groups").get("attribute") == "read"

    def test_export_xml_selection(self, saved_doc):
        d, _ = saved_doc
        root = etree.fromstring(d.export_xml(d.collection.entries[:2]))
        assert len(root.findall("collection/book")) == 2

    def test_no_collection(self):
        with pytest.raises(ShelfcaseError):
            Document().export_xml()
