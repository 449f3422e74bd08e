"""
test_ris.py
-----------
Unit tests for RIS import and export.
"""
import pytest

from shelfcase.collection import CollectionType
from shelfcase.errors import ImportCancelled, SkippedEntryWarning
from shelfcase.field import Field
from shelfcase.presets import create_collection
from shelfcase.translators.base import CancelToken
from shelfcase.translators.ris import (
    RISExporter,
    RISImporter,
    TAG_MAP,
    entry_to_ris_lines,
)


def read(text, **kwargs):
    return RISImporter(**kwargs).read_text(text)


class TestImport:
    """Test reading RIS records."""

    def test_two_records(self, sample_ris):
        coll = read(sample_ris)
        assert coll.type == CollectionType.BIBTEX
        assert len(coll) == 2
        book, article = coll.entries
        assert book.field("entry-type") == "book"
        assert article.field("entry-type") == "Journal"

    def test_unknown_type_becomes_allowed(self, sample_ris):
        coll = read(sample_ris)
        assert "Journal" in coll.field_by_name("entry-type").allowed

    def test_year_before_slash(self, sample_ris):
        assert read(sample_ris).entries[0].field("year") == "1993"

    def test_continuation_line(self, sample_ris):
        article = read(sample_ris).entries[1]
        assert article.field("abstract") == "Programs are meant to be read by humans."

    def test_repeated_tags_accumulate(self, sample_ris):
        article = read(sample_ris).entries[1]
        assert article.values("keyword") == ["literate", "programming"]

    def test_values_by_tag(self, sample_ris):
        book, article = read(sample_ris).entries
        assert book.field("publisher") == "Baen"
        assert book.field("author") == "Weber, David"
        assert article.field("journal") == "The Computer Journal"

    def test_book_title_routing(self):
        text = (
            "TY  - BOOK\nBT  - Whole Book\nER  -\n"
            "TY  - CHAP\nTI  - A Chapter\nBT  - Container\nER  -\n"
        )
        book, chapter = read(text).entries
        assert book.field("title") == "Whole Book"
        assert chapter.field("title") == "A Chapter"
        assert chapter.field("booktitle") == "Container"

    def test_volume_and_issue(self):
        entry = read("TY  - JOUR\nVL  - 12\nIS  - 3\nER  -\n").entries[0]
        assert entry.field("volume") == "12"
        assert entry.field("number") == "3"

    def test_unmapped_tags_dropped(self):
        entry = read("TY  - GEN\nTI  - x\nZZ  - nothing\nM3  - nothing\nER  -\n").entries[0]
        assert entry.to_dict() == {"title": "x", "entry-type": "Generic"}

    def test_missing_end_record(self):
        importer = RISImporter()
        coll = importer.read_text("TY  - BOOK\nTI  - Open Ended\n")
        assert [e.title for e in coll.entries] == ["Open Ended"]
        assert isinstance(importer.warnings[0], SkippedEntryWarning)

    def test_bytes_with_bom(self):
        data = "\ufeffTY  - BOOK\nTI  - Café\nER  -\n".encode("utf-8")
        assert RISImporter().collection(data).entries[0].title == "Café"

    def test_latin1_bytes(self):
        data = "TY  - BOOK\nTI  - Café\nER  -\n".encode("cp1252")
        assert RISImporter().collection(data).entries[0].title == "Café"

    def test_template_fields_take_precedence(self):
        template = create_collection("bibtex")
        template.add_field(Field("call_number", "Call Number", properties={"ris": "CN"}))
        entry = read("TY  - BOOK\nCN  - QA76\nER  -\n", template=template).entries[0]
        assert entry.field("call_number") == "QA76"

    def test_tag_table_is_read_only(self):
        with pytest.raises(TypeError):
            TAG_MAP["XX"] = "x"

    def test_cancel(self):
        token = CancelToken()
        token.cancel()
        text = "TY  - BOOK\nTI  - x\nER  -\n" * 10
        with pytest.raises(ImportCancelled):
            read(text, cancel=token)

    def test_progress(self):
        seen = []
        read("TY  - BOOK\nTI  - x\nER  -\n" * 10, progress=seen.append)
        assert seen[-1] == 1.0


class TestExport:
    """Test writing RIS records."""

    def test_lines(self, bibtex_collection):
        lines = entry_to_ris_lines(bibtex_collection.entries[1])
        assert lines[0] == "TY  - MGZN"
        assert "TI  - Literate Programming" in lines
        assert "SP  - 97" in lines
        assert "EP  - 111" in lines
        assert lines[-1] == "ER  - "

    def test_book_type(self, bibtex_collection):
        assert entry_to_ris_lines(bibtex_collection.entries[0])[0] == "TY  - BOOK"

    def test_book_collection_defaults_to_book(self, book_collection):
        text = RISExporter().export(book_collection).decode("utf-8")
        assert text.count("TY  - BOOK") == 3
        assert "AU  - Ringo, John" in text

    def test_round_trip(self, sample_ris):
        coll = read(sample_ris)
        back = read(RISExporter().export(coll).decode("utf-8"))
        assert [e.to_dict() for e in back.entries] == [e.to_dict() for e in coll.entries]
