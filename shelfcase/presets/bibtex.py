from __future__ import annotations

from typing import List

from ..collection import CollectionType
from ..field import Field, FieldFlag, FieldType
from ..fieldformat import FormatFlag
from .base import Preset


ENTRY_TYPES = [
    "article", "book", "booklet", "inbook", "incollection", "inproceedings",
    "manual", "mastersthesis", "misc", "phdthesis", "proceedings", "techreport",
    "unpublished", "periodical", "conference",
]

_PEOPLE = FieldFlag.ALLOW_MULTIPLE | FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION
_GROUPED = FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION


def _bib(name: str, *args, bibtex: str = "", ris: str = "", **kwargs) -> Field:
    props = dict(kwargs.pop("properties", {}))
    props["bibtex"] = bibtex or name
    if ris:
        props["ris"] = ris
    return Field(name, *args, properties=props, **kwargs)


def _fields() -> List[Field]:
    return [
        _bib("title", "Title", flags=FieldFlag.NO_DELETE, format=FormatFlag.TITLE, ris="TI"),
        _bib("entry-type", "Entry Type", FieldType.CHOICE,
             flags=FieldFlag.ALLOW_GROUPED | FieldFlag.NO_DELETE,
             allowed=list(ENTRY_TYPES), bibtex="entry-type",
             description="These entry types are specific to bibtex. See the bibtex documentation."),
        _bib("author", "Author", flags=_PEOPLE, format=FormatFlag.NAME, ris="AU"),
        _bib("bibtex-key", "Bibtex Key", flags=FieldFlag.NO_DELETE, bibtex="key", ris="ID"),
        _bib("booktitle", "Book Title", format=FormatFlag.TITLE, ris="T2"),
        _bib("editor", "Editor", flags=_PEOPLE, format=FormatFlag.NAME, ris="ED"),
        _bib("organization", "Organization", flags=_GROUPED),

        _bib("journal", "Journal", category="Publishing", flags=_GROUPED, ris="JO"),
        _bib("address", "Address", category="Publishing", flags=_GROUPED, ris="AD"),
        _bib("edition", "Edition", category="Publishing", flags=FieldFlag.ALLOW_COMPLETION),
        _bib("pages", "Pages", category="Publishing"),
        _bib("year", "Year", FieldType.NUMBER, "Publishing", flags=FieldFlag.ALLOW_GROUPED, ris="PY"),
        _bib("isbn", "ISBN#", category="Publishing", ris="SN",
             description="International Standard Book Number"),
        _bib("publisher", "Publisher", category="Publishing", flags=_GROUPED, ris="PB"),
        _bib("chapter", "Chapter", FieldType.NUMBER, "Publishing"),
        _bib("series", "Series", category="Publishing", flags=_GROUPED, format=FormatFlag.TITLE),
        _bib("volume", "Volume", FieldType.NUMBER, "Publishing", ris="VL"),
        _bib("number", "Number", FieldType.NUMBER, "Publishing", ris="IS"),
        _bib("howpublished", "How Published", category="Publishing"),
        _bib("institution", "Institution", category="Publishing", flags=_GROUPED),
        _bib("school", "School", category="Publishing", flags=_GROUPED),
        _bib("month", "Month", category="Publishing", flags=FieldFlag.ALLOW_GROUPED),
        _bib("crossref", "Cross-Reference", category="Misc", bibtex="crossref"),
        _bib("doi", "DOI", category="Misc", description="Digital Object Identifier"),
        _bib("url", "URL", FieldType.URL, "Misc", ris="UR"),

        _bib("keyword", "Keywords", category="Classification", flags=_PEOPLE,
             bibtex="keywords", ris="KW", properties={"bibtex-separator": ", "}),
        _bib("note", "Notes", FieldType.PARA, "Notes", ris="N1"),
        _bib("annote", "Annotation", FieldType.PARA, "Notes"),
    ]


PRESET = Preset(
    kind=CollectionType.BIBTEX,
    display_name="Bibliography",
    unit="entry",
    unit_title="Entry",
    default_group="author",
    build_fields=_fields,
    match_fields=("author", "year", "entry-type", "bibtex-key"),
)
