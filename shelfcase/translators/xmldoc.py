"""
The native document format.

    <bookcase version="2">
      <collection title=".." unit="book" unitTitle="Book" type="book">
        <attributes> <attribute name=".." type="1" flags="7" .../> </attributes>
        <book id="1"> <title>..</title> <author>..</author> <read/> </book>
        <macros>, <preamble>, <borrowers>
      </collection>
    </bookcase>

Field descriptors are written only when the schema differs from the
preset schema of the collection's kind. Multi-valued fields repeat their
element once per value, table rows hold one ``column`` child per column
and checkbox fields are an empty element when checked.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from lxml import etree

from ..borrower import Borrower, Loan
from ..collection import Collection, CollectionType
from ..entry import Entry
from ..errors import (
    DuplicateFieldError,
    FormatError,
    MultiCollectionWarning,
    SkippedEntryWarning,
)
from ..field import Field, FieldType
from ..fieldformat import COLUMN_DELIMITER, join_values, split_columns, split_values
from .. import presets
from .base import TranslatorBase, selected_entries


logger = logging.getLogger(__name__)

ROOT_TAG = "bookcase"
DOC_VERSION = "2"

# names that can not be used for field elements inside an entry
_RESERVED = {"attributes", "macros", "preamble", "borrowers"}

_PARSER = etree.XMLParser(no_network=True, resolve_entities=False, remove_blank_text=True)


# -----------------------------
# Writing
# -----------------------------

def _field_element(f: Field) -> etree._Element:
    el = etree.Element(
        "attribute",
        name=f.name,
        title=f.title,
        category=f.category,
        type=str(int(f.type)),
        flags=str(int(f.flags)),
        format=str(int(f.format)),
    )
    if f.allowed:
        el.set("allowed", join_values(f.allowed))
    if f.description:
        el.set("description", f.description)
    for key in sorted(f.properties):
        prop = etree.SubElement(el, "prop", name=key)
        prop.text = f.properties[key]
    return el


def _append_values(parent: etree._Element, f: Field, text: str) -> None:
    if f.type == FieldType.BOOL:
        etree.SubElement(parent, f.name)
        return
    if f.type == FieldType.TABLE:
        for row in split_values(text):
            row_el = etree.SubElement(parent, f.name)
            for col in split_columns(row):
                etree.SubElement(row_el, "column").text = col
        return
    values = split_values(text) if f.is_multiple else [text]
    for v in values:
        etree.SubElement(parent, f.name).text = v


def entry_element(entry: Entry, unit: str, *, formatted: bool = False) -> etree._Element:
    el = etree.Element(unit, id=str(entry.id))
    coll = entry.collection
    for f in coll.fields:
        text = entry.field(f.name, formatted=formatted and f.type != FieldType.BOOL)
        if text:
            _append_values(el, f, text)
    return el


def _collection_element(coll: Collection, *, with_fields: bool) -> etree._Element:
    el = etree.Element(
        "collection",
        title=coll.title,
        unit=coll.unit_name,
        unitTitle=coll.unit_title,
        type=coll.type.value,
    )
    if coll.default_group_field:
        el.set("defaultGroup", coll.default_group_field)
    if with_fields:
        attrs = etree.SubElement(el, "attributes")
        for f in coll.fields:
            attrs.append(_field_element(f))
    return el


def _bibliography_elements(parent: etree._Element, coll: Collection) -> None:
    if coll.macros:
        macros = etree.SubElement(parent, "macros")
        for name in sorted(coll.macros):
            etree.SubElement(macros, "macro", name=name).text = coll.macros[name]
    if coll.preamble:
        etree.SubElement(parent, "preamble").text = coll.preamble


def _borrowers_element(coll: Collection, entry_ids: set) -> Optional[etree._Element]:
    el = etree.Element("borrowers")
    for b in coll.borrowers:
        loans = [l for l in b.loans if l.entry_id in entry_ids]
        if not loans:
            continue
        b_el = etree.SubElement(el, "borrower", name=b.name, uid=b.uid)
        for loan in loans:
            l_el = etree.SubElement(
                b_el, "loan",
                uid=loan.uid,
                entryRef=str(loan.entry_id),
                loanDate=loan.loan_date.isoformat(),
            )
            if loan.due_date:
                l_el.set("dueDate", loan.due_date.isoformat())
            if loan.in_calendar:
                l_el.set("calendar", "true")
            if loan.note:
                l_el.text = loan.note
    return el if len(el) else None


def _tostring(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


class XMLExporter(TranslatorBase):
    format_id = "xml"
    extension = "xml"

    def __init__(self, *, formatted: bool = False, include_loans: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.formatted = formatted
        self.include_loans = include_loans

    def build_tree(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> etree._Element:
        chosen = selected_entries(coll, entries)
        root = etree.Element(ROOT_TAG, version=DOC_VERSION)
        c_el = _collection_element(coll, with_fields=not presets.is_standard(coll))
        root.append(c_el)

        total = len(chosen)
        for i, entry in enumerate(chosen, 1):
            c_el.append(entry_element(entry, coll.unit_name, formatted=self.formatted))
            self._step(i, total)

        _bibliography_elements(c_el, coll)
        if self.include_loans:
            b_el = _borrowers_element(coll, {e.id for e in chosen})
            if b_el is not None:
                c_el.append(b_el)
        self._finish()
        return root

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        return _tostring(self.build_tree(coll, entries))


def grouped_tree(
    coll: Collection,
    group_name: Optional[str] = None,
    entries: Optional[Sequence[Entry]] = None,
    *,
    formatted: bool = True,
) -> etree._Element:
    """
    Projection used by templates: entries are nested under their group
    key instead of listed flat. An entry in several groups is repeated.
    Field descriptors are always included so templates can show titles.
    """
    index = coll.group_index(group_name)
    chosen = {e.id for e in selected_entries(coll, entries)}

    root = etree.Element(ROOT_TAG, version=DOC_VERSION)
    c_el = _collection_element(coll, with_fields=True)
    root.append(c_el)

    groups = etree.SubElement(c_el, "groups", attribute=index.field_name, title=index.title)
    for key, members in index.items():
        members = [e for e in members if e.id in chosen]
        if not members:
            continue
        g_el = etree.SubElement(groups, "group", title=key, count=str(len(members)))
        for entry in members:
            g_el.append(entry_element(entry, coll.unit_name, formatted=formatted))
    return root


def export_grouped_xml(coll: Collection, group_name: Optional[str] = None,
                       entries: Optional[Sequence[Entry]] = None, *, formatted: bool = True) -> bytes:
    return _tostring(grouped_tree(coll, group_name, entries, formatted=formatted))


# -----------------------------
# Reading
# -----------------------------

def _parse_int(value: Optional[str], default: int = 0) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _read_field(el: etree._Element) -> Field:
    props = {p.get("name"): (p.text or "") for p in el.findall("prop") if p.get("name")}
    return Field(
        el.get("name", ""),
        el.get("title", ""),
        _parse_int(el.get("type"), 1),
        el.get("category") or "General",
        flags=_parse_int(el.get("flags")),
        format=_parse_int(el.get("format")),
        allowed=split_values(el.get("allowed", "")),
        description=el.get("description", ""),
        properties=props,
    )


class XMLImporter(TranslatorBase):
    format_id = "xml"

    def collection(self, data: bytes) -> Collection:
        try:
            root = etree.fromstring(data, parser=_PARSER)
        except etree.XMLSyntaxError as e:
            raise FormatError(f"not a well-formed document: {e}") from e
        if root.tag != ROOT_TAG:
            raise FormatError(f"unexpected root element <{root.tag}>")

        colls = root.findall("collection")
        if not colls:
            raise FormatError("the document holds no collection")
        if len(colls) > 1:
            self._warn(MultiCollectionWarning(
                f"the document holds {len(colls)} collections, only the first is loaded"))

        coll = self._read_collection(colls[0])
        self._finish()
        return coll

    def _read_collection(self, c_el: etree._Element) -> Collection:
        type_attr = c_el.get("type", "")
        try:
            kind = CollectionType(type_attr)
        except ValueError:
            preset = presets.preset_for_unit(c_el.get("unit", ""))
            kind = preset.kind if preset else CollectionType.CUSTOM

        attrs = c_el.find("attributes")
        if attrs is not None:
            coll = presets.create_collection(kind, c_el.get("title"), with_fields=False)
            if kind == CollectionType.CUSTOM:
                coll.unit_name = c_el.get("unit") or coll.unit_name
                coll.unit_title = c_el.get("unitTitle") or coll.unit_title
            for f_el in attrs.findall("attribute"):
                self._add_field(coll, f_el)
        elif kind != CollectionType.CUSTOM:
            coll = presets.create_collection(kind, c_el.get("title"))
        else:
            raise FormatError("a custom collection must declare its fields")

        default_group = c_el.get("defaultGroup", "")
        if default_group in coll.group_names():
            coll.default_group_field = default_group
        elif coll.default_group_field not in coll.group_names():
            names = coll.group_names()
            coll.default_group_field = names[0] if names else ""

        unit = c_el.get("unit") or coll.unit_name
        entry_els = c_el.findall(unit)
        total = len(entry_els)
        with coll.deferred_grouping():
            for i, e_el in enumerate(entry_els, 1):
                coll.add_entry(self._read_entry(coll, e_el))
                self._step(i, total)

        macros = c_el.find("macros")
        if macros is not None:
            for m in macros.findall("macro"):
                if m.get("name"):
                    coll.macros[m.get("name")] = m.text or ""
        preamble = c_el.find("preamble")
        if preamble is not None:
            coll.preamble = preamble.text or ""

        borrowers = c_el.find("borrowers")
        if borrowers is not None:
            self._read_borrowers(coll, borrowers)
        return coll

    def _add_field(self, coll: Collection, f_el: etree._Element) -> None:
        try:
            coll.add_field(_read_field(f_el))
        except (ValueError, DuplicateFieldError) as e:
            self._warn(SkippedEntryWarning(f"field {f_el.get('name')!r} skipped: {e}"))

    def _read_entry(self, coll: Collection, e_el: etree._Element) -> Entry:
        entry_id = _parse_int(e_el.get("id"), 0) or None
        entry = Entry(coll, entry_id)
        collected: Dict[str, List[str]] = {}
        for child in e_el:
            if not isinstance(child.tag, str):
                continue
            f = coll.field_by_name(child.tag)
            if f is None or child.tag in _RESERVED:
                logger.debug("entry %s: no field named %r", entry_id, child.tag)
                continue
            if f.type == FieldType.BOOL:
                collected[f.name] = ["1"]
            elif f.type == FieldType.TABLE:
                cols = [c.text or "" for c in child.findall("column")]
                collected.setdefault(f.name, []).append(COLUMN_DELIMITER.join(cols))
            else:
                collected.setdefault(f.name, []).append(child.text or "")

        for name, values in collected.items():
            f = coll.field_by_name(name)
            if f.is_multiple or f.type == FieldType.TABLE:
                entry.set_field(name, join_values(values))
            else:
                # single values are stored as written, ';' included
                entry.set_field(name, values[0])
        return entry

    def _read_borrowers(self, coll: Collection, el: etree._Element) -> None:
        for b_el in el.findall("borrower"):
            borrower = Borrower(b_el.get("name", ""))
            if b_el.get("uid"):
                borrower.uid = b_el.get("uid")
            for l_el in b_el.findall("loan"):
                entry_id = _parse_int(l_el.get("entryRef"))
                if coll.entry_by_id(entry_id) is None:
                    self._warn(SkippedEntryWarning(
                        f"loan to {borrower.name!r} refers to missing entry {entry_id}"))
                    continue
                loan = Loan(
                    entry_id=entry_id,
                    loan_date=_parse_date(l_el.get("loanDate")) or date.today(),
                    due_date=_parse_date(l_el.get("dueDate")),
                    note=l_el.text or "",
                    in_calendar=l_el.get("calendar") == "true",
                )
                if l_el.get("uid"):
                    loan.uid = l_el.get("uid")
                borrower.add_loan(loan)
            if not borrower.is_empty:
                coll.add_borrower(borrower)
