"""
test_html.py
------------
Unit tests for the XSLT-based HTML export.
"""
import pytest

from shelfcase.errors import TransformError
from shelfcase.translators.html import HTMLExporter, default_template, export_html


IDENTITY_TEMPLATE = """<?xml version="1.0"?>
<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
  <xsl:output method="text"/>
  <xsl:param name="greeting" select="'none'"/>
  <xsl:template match="/">
    <xsl:value-of select="$greeting"/>
    <xsl:for-each select="//group">[<xsl:value-of select="@title"/>]</xsl:for-each>
  </xsl:template>
</xsl:stylesheet>
"""


class TestExportHTML:
    """Test export_html with the bundled and custom templates."""

    def test_default_template_shipped(self):
        assert default_template().is_file()

    def test_default_template(self, book_collection):
        html = export_html(book_collection)
        assert "<html>" in html
        assert "Shelf" in html
        assert "Weber, David" in html
        assert "On Basilisk Station" in html

    def test_custom_template_and_params(self, book_collection, tmp_path):
        path = tmp_path / "groups.xsl"
        path.write_text(IDENTITY_TEMPLATE, encoding="utf-8")
        text = export_html(book_collection, path, params={"greeting": "hi"})
        assert text.startswith("hi")
        assert "[Ringo, John]" in text

    def test_bad_template_gives_none(self, book_collection, tmp_path):
        path = tmp_path / "broken.xsl"
        path.write_text("<xsl:stylesheet", encoding="utf-8")
        assert export_html(book_collection, path) is None

    def test_missing_template_gives_none(self, book_collection, tmp_path):
        assert export_html(book_collection, tmp_path / "nope.xsl") is None


class TestHTMLExporter:
    """The exporter raises instead of returning None."""

    def test_export_bytes(self, book_collection):
        data = HTMLExporter(group_name="read").export(book_collection)
        assert b"On Basilisk Station" in data

    def test_bad_template_raises(self, book_collection, tmp_path):
        path = tmp_path / "broken.xsl"
        path.write_text("not a stylesheet", encoding="utf-8")
        with pytest.raises(TransformError):
            HTMLExporter(path).export(book_collection)
