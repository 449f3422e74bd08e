from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from ..collection import Collection, CollectionType
from ..entry import Entry
from ..errors import SkippedEntryWarning
from ..field import Field, FieldFlag, FieldType
from ..fieldformat import DELIMITER, split_values
from ..filehandler import decode_text
from .. import presets
from .base import TranslatorBase, selected_entries


logger = logging.getLogger(__name__)

RIS_PROP = "ris"

# "TY  - JOUR": two-character tag, two spaces, a dash. Some sites omit the
# space after the final "ER  -", so the value is stripped afterwards.
RIS_LINE_RE = re.compile(r"^(\w\w)\s\s-(.*)$")

# BT is routed separately, to title or booktitle depending on the entry-type
TAG_MAP: Mapping[str, str] = MappingProxyType({
    "TY": "entry-type",
    "ID": "bibtex-key",
    "T1": "title",
    "TI": "title",
    "T2": "booktitle",
    "A1": "author",
    "AU": "author",
    "ED": "editor",
    "YR": "year",
    "PY": "year",
    "N1": "note",
    "AB": "abstract",
    "N2": "abstract",
    "KW": "keyword",
    "JF": "journal",
    "JO": "journal",
    "JA": "journal",
    "VL": "volume",
    "IS": "number",
    "PB": "publisher",
    "SN": "isbn",
    "AD": "address",
    "UR": "url",
    "L1": "pdf",
})

# bibtex type names stay lower case, everything else is capitalized
TYPE_MAP: Mapping[str, str] = MappingProxyType({
    "ABST": "Abstract",
    "ADVS": "Audiovisual material",
    "ART": "Art Work",
    "BILL": "Bill/Resolution",
    "BOOK": "book",
    "CASE": "Case",
    "CHAP": "Book chapter",
    "COMP": "Computer program",
    "CONF": "proceedings",
    "CTLG": "Catalog",
    "DATA": "Data file",
    "ELEC": "Electronic Citation",
    "GEN": "Generic",
    "HEAR": "Hearing",
    "ICOMM": "Internet Communication",
    "INPR": "In Press",
    "JFULL": "Journal (full)",
    "JOUR": "Journal",
    "MAP": "Map",
    "MGZN": "article",
    "MPCT": "Motion picture",
    "MUSIC": "Music score",
    "NEWS": "Newspaper",
    "PAMP": "Pamphlet",
    "PAT": "Patent",
    "PCOMM": "Personal communication",
    "RPRT": "Report",
    "SER": "Serial (BookMonograph)",
    "SLIDE": "Slide",
    "SOUND": "Sound recording",
    "STAT": "Statute",
    "THES": "phdthesis",
    "UNBILL": "Unenacted bill/resolution",
    "UNPB": "unpublished",
    "VIDEO": "Video recording",
})

# reverse tables for writing; a few bibtex types have no RIS code of their own
TYPE_TO_RIS: Mapping[str, str] = MappingProxyType({
    **{v: k for k, v in TYPE_MAP.items()},
    "inproceedings": "CONF",
    "incollection": "CHAP",
    "inbook": "CHAP",
    "mastersthesis": "THES",
    "techreport": "RPRT",
    "misc": "GEN",
})

FIELD_TO_TAG: Mapping[str, str] = MappingProxyType({
    "bibtex-key": "ID",
    "title": "TI",
    "booktitle": "T2",
    "author": "AU",
    "editor": "ED",
    "year": "PY",
    "note": "N1",
    "abstract": "AB",
    "keyword": "KW",
    "journal": "JO",
    "pages": "SP",
    "volume": "VL",
    "number": "IS",
    "publisher": "PB",
    "isbn": "SN",
    "address": "AD",
    "url": "UR",
    "pdf": "L1",
})


def _extra_field(tag: str) -> Optional[Field]:
    """Fields created on demand when a record uses a tag the schema lacks."""
    multi = FieldFlag.ALLOW_MULTIPLE | FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION
    if tag in ("AB", "N2"):
        return Field("abstract", "Abstract", FieldType.PARA,
                     properties={"bibtex": "abstract", RIS_PROP: "AB"})
    if tag == "KW":
        return Field("keyword", "Keywords", category="Classification", flags=multi,
                     properties={RIS_PROP: "KW"})
    if tag == "SN":
        return Field("isbn", "ISBN#", category="Publishing",
                     description="International Standard Book Number",
                     properties={"bibtex": "isbn", RIS_PROP: "SN"})
    if tag == "UR":
        return Field("url", "URL", FieldType.URL, "Unknown", properties={RIS_PROP: "UR"})
    if tag == "L1":
        return Field("pdf", "PDF", FieldType.URL, "Unknown", properties={RIS_PROP: "L1"})
    return None


# -----------------------------
# Reading
# -----------------------------

class RISImporter(TranslatorBase):
    """
    Reads RIS records into a new bibliography collection.

    Fields of ``template`` (normally the collection currently open) that
    carry an ``ris`` property are copied into the result and take
    precedence over the static tag table.
    """

    format_id = "ris"

    def __init__(self, template: Optional[Collection] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.template = template

    def _template_fields(self, coll: Collection) -> Dict[str, Field]:
        ris_fields: Dict[str, Field] = {}
        if self.template is None:
            return ris_fields
        for f in self.template.fields:
            tag = f.property(RIS_PROP)
            if not tag:
                continue
            mine = coll.field_by_name(f.name)
            if mine is None:
                mine = coll.add_field(f.copy())
            mine.set_property(RIS_PROP, tag)
            ris_fields[tag] = mine
        return ris_fields

    def _field_by_tag(self, coll: Collection, tag: str) -> Optional[Field]:
        name = TAG_MAP.get(tag)
        if name:
            f = coll.field_by_name(name)
            if f is not None:
                if not f.property(RIS_PROP):
                    f.set_property(RIS_PROP, tag)
                return f
        f = _extra_field(tag)
        if f is None:
            return None
        logger.debug("adding field %r for RIS tag %s", f.name, tag)
        return coll.add_field(f)

    def collection(self, data: bytes) -> Collection:
        text, _enc = decode_text(data)
        return self.read_text(text)

    def read_text(self, text: str) -> Collection:
        coll = presets.create_collection(CollectionType.BIBTEX)
        ris_fields = self._template_fields(coll)

        lines = text.splitlines()
        total = len(lines)
        entry = coll.new_entry()
        i = 0
        with coll.deferred_grouping():
            while i < total:
                m = RIS_LINE_RE.match(lines[i])
                i += 1
                self._step(i, total)
                if not m:
                    continue
                tag, value = m.group(1), m.group(2).strip()
                # a following non-empty line that is not a tag line continues the value
                while i < total and lines[i].strip() and not RIS_LINE_RE.match(lines[i]):
                    value = f"{value} {lines[i].strip()}".strip()
                    i += 1

                if tag == "ER":
                    coll.add_entry(entry)
                    entry = coll.new_entry()
                    continue
                if tag == "TY":
                    value = TYPE_MAP.get(value, value)
                elif tag in ("YR", "PY"):
                    # only the year part of "2001/05/12/"
                    value = value.split("/", 1)[0]

                f = ris_fields.get(tag)
                if f is None:
                    if tag == "BT":
                        name = "title" if entry.field("entry-type") == "book" else "booktitle"
                        f = coll.field_by_name(name)
                    else:
                        f = self._field_by_tag(coll, tag)
                if f is None:
                    continue

                if f.is_multiple and entry.has_value(f.name):
                    value = entry.field(f.name) + DELIMITER + value
                entry.set_field(f.name, value)

            if entry.to_dict():
                self._warn(SkippedEntryWarning(
                    f"last record {entry.title!r} has no ER tag, added anyway"))
                coll.add_entry(entry)

        self._finish()
        return coll


# -----------------------------
# Writing
# -----------------------------

def _format_ris_line(tag: str, value: str) -> str:
    return f"{tag}  - {value}"


def _field_tag(f: Field) -> str:
    return f.property(RIS_PROP) or FIELD_TO_TAG.get(f.name, "")


def entry_to_ris_lines(entry: Entry, *, default_type: str = "GEN") -> List[str]:
    """
    Convert one entry to RIS lines: TY first, then every field that maps
    to a tag, one line per value, ER last.
    """
    coll = entry.collection
    lines: List[str] = []

    etype = entry.field("entry-type") if coll.has_field("entry-type") else ""
    lines.append(_format_ris_line("TY", TYPE_TO_RIS.get(etype, default_type)))

    for f in coll.fields:
        if f.name == "entry-type":
            continue
        tag = _field_tag(f)
        if not tag or tag == "TY" or not entry.has_value(f.name):
            continue
        if tag == "SP":
            m = re.match(r"^\s*(\d+)\s*[-–]+\s*(\d+)\s*$", entry.field(f.name))
            if m:
                lines.append(_format_ris_line("SP", m.group(1)))
                lines.append(_format_ris_line("EP", m.group(2)))
                continue
        values = split_values(entry.field(f.name)) if f.is_multiple else [entry.field(f.name)]
        for v in values:
            # RIS values are single lines
            lines.append(_format_ris_line(tag, " ".join(v.split())))

    lines.append(_format_ris_line("ER", ""))
    return lines


class RISExporter(TranslatorBase):
    format_id = "ris"
    extension = "ris"

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        default_type = "BOOK" if coll.type == CollectionType.BOOK else "GEN"
        chosen = selected_entries(coll, entries)
        out_lines: List[str] = []
        total = len(chosen)
        for i, entry in enumerate(chosen, 1):
            out_lines.extend(entry_to_ris_lines(entry, default_type=default_type))
            out_lines.append("")  # blank line between records
            self._step(i, total)
        self._finish()
        text = "\n".join(out_lines).rstrip() + "\n"
        return text.encode("utf-8")
