"""
test_csl.py
-----------
Unit tests for the CSL-JSON adapter, the citeproc renderer and style
discovery.
"""
import pytest

from shelfcase.csl.adapter import csl_name, entries_to_csl_items, entry_to_csl_item
from shelfcase.csl.renderer import render_bibliography, render_bibliography_text
from shelfcase.csl.styles import discover_csl_styles, list_styles, read_csl_style_title
from shelfcase.presets import create_collection
from shelfcase.translators.bibliography import BibliographyExporter


STYLE_XML = """<?xml version="1.0" encoding="utf-8"?>
<style xmlns="http://purl.org/net/xbiblio/csl" version="1.0" class="in-text">
  <info><title>{title}</title><id>x</id></info>
</style>
"""


class TestCslName:
    """Test name conversion."""

    def test_family_given(self):
        assert csl_name("Weber, David") == {"family": "Weber", "given": "David"}

    def test_suffix(self):
        assert csl_name("Swift, Jr., Tom") == {"family": "Swift", "suffix": "Jr.", "given": "Tom"}

    def test_literal(self):
        assert csl_name("Plato") == {"literal": "Plato"}

    def test_empty(self):
        assert csl_name("  ") is None


class TestItems:
    """Test entry to CSL-JSON item conversion."""

    def test_bibliography_entry(self, bibtex_collection):
        item = entry_to_csl_item(bibtex_collection.entries[1])
        assert item["id"] == "knuth1984"
        assert item["type"] == "article-journal"
        assert item["title"] == "Literate Programming"
        assert item["container-title"] == "The Computer Journal"
        assert item["page"] == "97-111"
        assert item["issued"] == {"date-parts": [[1984]]}
        assert item["author"] == [{"family": "Knuth", "given": "Donald E."}]

    def test_book_collection_uses_bibtex_properties(self, book_collection):
        item = entry_to_csl_item(book_collection.entries[1])
        assert item["type"] == "book"
        assert item["issued"] == {"date-parts": [[2001]]}
        assert [a["family"] for a in item["author"]] == ["Weber", "Ringo"]
        assert item["id"] == f"entry-{book_collection.entries[1].id}"

    def test_video_default_type(self):
        coll = create_collection("video")
        coll.add_entry(coll.new_entry({"title": "Alien"}))
        assert entry_to_csl_item(coll.entries[0])["type"] == "motion_picture"

    def test_ids_made_unique(self, bibtex_collection):
        bibtex_collection.entries[1].set_field("bibtex-key", "weber1993")
        ids = [it["id"] for it in entries_to_csl_items(bibtex_collection)]
        assert ids == ["weber1993", "weber1993-1"]


class TestRenderer:
    """Test rendering through citeproc-py with the bundled style."""

    def test_one_reference_per_item(self, bibtex_collection):
        lines = render_bibliography("harvard1", entries_to_csl_items(bibtex_collection))
        assert len(lines) == 2
        assert any("Weber" in ln for ln in lines)
        assert any("Knuth" in ln for ln in lines)

    def test_no_items(self):
        assert render_bibliography("harvard1", []) == []

    def test_text(self, bibtex_collection):
        text = render_bibliography_text("harvard1", entries_to_csl_items(bibtex_collection))
        assert text.count("\n") == 1

    def test_missing_style_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            render_bibliography(tmp_path / "nope.csl", [{"id": "a", "type": "book"}])

    def test_exporter(self, bibtex_collection):
        text = BibliographyExporter().export(bibtex_collection).decode("utf-8")
        assert "Basilisk" in text
        html = BibliographyExporter(html=True).export(bibtex_collection).decode("utf-8")
        assert html.startswith("<ol>")
        assert html.count("<li>") == 2


class TestStyles:
    """Test discovery of user styles."""

    def test_title_read_from_file(self, tmp_path):
        path = tmp_path / "my-style.csl"
        path.write_text(STYLE_XML.format(title="My Style"), encoding="utf-8")
        assert read_csl_style_title(path) == "My Style"

    def test_broken_file_falls_back_to_stem(self, tmp_path):
        path = tmp_path / "broken.csl"
        path.write_text("<style", encoding="utf-8")
        assert read_csl_style_title(path) == "broken"

    def test_first_folder_wins(self, tmp_path):
        a, b = tmp_path / "a", tmp_path / "b"
        a.mkdir()
        b.mkdir()
        (a / "apa.csl").write_text(STYLE_XML.format(title="From A"), encoding="utf-8")
        (b / "apa.csl").write_text(STYLE_XML.format(title="From B"), encoding="utf-8")
        styles = discover_csl_styles([a, b])
        assert [s.name for s in styles] == ["From A"]

    def test_list_styles_includes_bundled(self, tmp_path):
        (tmp_path / "extra.csl").write_text(STYLE_XML.format(title="Extra"), encoding="utf-8")
        styles = list_styles(tmp_path)
        assert [s.key for s in styles if s.kind == "bundled"] == ["harvard1"]
        extra = next(s for s in styles if s.key == "extra")
        assert extra.selector == str((tmp_path / "extra.csl").resolve())
