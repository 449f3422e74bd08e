"""
test_presets.py
---------------
Unit tests for the standard collection kinds.
"""
import pytest

from shelfcase.collection import CollectionType
from shelfcase.field import Field
from shelfcase.presets import (
    create_collection,
    get_preset,
    is_standard,
    list_presets,
    preset_for_unit,
)


class TestPresets:
    """Test preset lookup and collection creation."""

    def test_list_presets(self):
        assert list_presets() == {"book": "Books", "video": "Videos", "bibtex": "Bibliography"}

    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            get_preset("stamps")

    def test_preset_for_unit(self):
        assert preset_for_unit("video").kind == CollectionType.VIDEO
        assert preset_for_unit("stamp") is None

    @pytest.mark.parametrize("kind,unit,group", [
        ("book", "book", "author"),
        ("video", "video", "genre"),
        ("bibtex", "entry", "author"),
    ])
    def test_create_collection(self, kind, unit, group):
        coll = create_collection(kind)
        assert coll.type == CollectionType(kind)
        assert coll.unit_name == unit
        assert coll.default_group_field == group
        assert group in coll.group_names()

    def test_custom_collection_is_empty(self):
        coll = create_collection("custom", "Stamps")
        assert coll.title == "Stamps"
        assert coll.fields == []

    def test_without_fields(self):
        coll = create_collection("book", with_fields=False)
        assert coll.fields == []
        assert coll.default_group_field == ""

    def test_collections_do_not_share_fields(self):
        a = create_collection("book")
        b = create_collection("book")
        assert a.field_by_name("title") is not b.field_by_name("title")

    def test_bibtex_distinguished_fields(self):
        coll = create_collection("bibtex")
        assert coll.field_by_name("entry-type").property("bibtex") == "entry-type"
        assert coll.field_by_name("bibtex-key").property("bibtex") == "key"
        assert coll.field_by_name("crossref").property("bibtex") == "crossref"


class TestIsStandard:
    """Test detection of unchanged preset schemas."""

    def test_fresh_collection_is_standard(self):
        assert is_standard(create_collection("video"))

    def test_added_field_is_not_standard(self):
        coll = create_collection("video")
        coll.add_field(Field("shelf"))
        assert not is_standard(coll)

    def test_extended_choice_is_not_standard(self):
        coll = create_collection("book")
        coll.field_by_name("binding").add_allowed("Spiral")
        assert not is_standard(coll)

    def test_changed_property_is_not_standard(self):
        coll = create_collection("bibtex")
        coll.field_by_name("title").set_property("ris", "T1")
        assert not is_standard(coll)

    def test_custom_is_never_standard(self):
        assert not is_standard(create_collection("custom"))
