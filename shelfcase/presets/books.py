from __future__ import annotations

from typing import List

from ..collection import CollectionType
from ..field import Field, FieldFlag, FieldType
from ..fieldformat import FormatFlag
from .base import Preset


_PEOPLE = FieldFlag.ALLOW_MULTIPLE | FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION
_GROUPED = FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION


def _fields() -> List[Field]:
    return [
        Field("title", "Title", flags=FieldFlag.NO_DELETE, format=FormatFlag.TITLE,
              properties={"ris": "TI", "bibtex": "title"}),
        Field("subtitle", "Subtitle", format=FormatFlag.TITLE),
        Field("author", "Author", flags=_PEOPLE, format=FormatFlag.NAME,
              properties={"ris": "AU", "bibtex": "author"}),
        Field("editor", "Editor", flags=_PEOPLE, format=FormatFlag.NAME,
              properties={"ris": "ED", "bibtex": "editor"}),
        Field("binding", "Binding", FieldType.CHOICE, flags=FieldFlag.ALLOW_GROUPED,
              allowed=["Hardback", "Paperback", "Trade Paperback", "E-Book", "Magazine", "Journal"]),
        Field("pur_date", "Purchase Date", FieldType.DATE, "Personal", format=FormatFlag.DATE),
        Field("pur_price", "Purchase Price", category="Personal"),

        Field("publisher", "Publisher", category="Publishing", flags=_GROUPED,
              properties={"ris": "PB", "bibtex": "publisher"}),
        Field("edition", "Edition", category="Publishing", flags=_GROUPED,
              properties={"bibtex": "edition"}),
        Field("cr_year", "Copyright Year", FieldType.NUMBER, "Publishing",
              flags=FieldFlag.ALLOW_MULTIPLE | FieldFlag.ALLOW_GROUPED),
        Field("pub_year", "Publication Year", FieldType.NUMBER, "Publishing",
              flags=FieldFlag.ALLOW_GROUPED, properties={"ris": "PY", "bibtex": "year"}),
        Field("isbn", "ISBN#", category="Publishing", description="International Standard Book Number",
              properties={"ris": "SN", "bibtex": "isbn"}),
        Field("lccn", "LCCN#", category="Publishing", description="Library of Congress Control Number"),
        Field("pages", "Pages", FieldType.NUMBER, "Publishing"),
        Field("translator", "Translator", category="Publishing", flags=_PEOPLE, format=FormatFlag.NAME),
        Field("language", "Language", category="Publishing", flags=_PEOPLE),
        Field("series", "Series", category="Publishing", flags=_GROUPED, format=FormatFlag.TITLE,
              properties={"bibtex": "series"}),
        Field("series_num", "Series Number", FieldType.NUMBER, "Publishing"),

        Field("genre", "Genre", category="Classification", flags=_PEOPLE),
        Field("keyword", "Keywords", category="Classification", flags=_PEOPLE,
              properties={"ris": "KW", "bibtex": "keywords", "bibtex-separator": ", "}),

        Field("condition", "Condition", FieldType.CHOICE, "Personal", allowed=["New", "Used"]),
        Field("signed", "Signed", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("read", "Read", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("gift", "Gift", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("loaned", "Loaned", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("rating", "Rating", FieldType.RATING, "Personal", flags=FieldFlag.ALLOW_GROUPED,
              properties={"minimum": "1", "maximum": "5"}),
        Field("cover", "Front Cover", FieldType.IMAGE, "Front Cover"),
        Field("comments", "Comments", FieldType.PARA, "Comments", properties={"bibtex": "note"}),
    ]


PRESET = Preset(
    kind=CollectionType.BOOK,
    display_name="Books",
    unit="book",
    unit_title="Book",
    default_group="author",
    build_fields=_fields,
    match_fields=("author", "pub_year", "publisher", "isbn"),
)
