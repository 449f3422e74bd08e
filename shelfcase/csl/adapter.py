from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from ..collection import Collection, CollectionType
from ..entry import Entry


# --- entry-type -> CSL type mapping ---
# CSL type reference (common ones):
# article-journal, book, chapter, paper-conference, thesis, report, webpage, article
ENTRY_TYPE_TO_CSL_TYPE: Dict[str, str] = {
    "article": "article-journal",
    "journal": "article-journal",
    "journal (full)": "article-journal",
    "book": "book",
    "manual": "book",
    "booklet": "pamphlet",
    "pamphlet": "pamphlet",
    "inbook": "chapter",
    "incollection": "chapter",
    "book chapter": "chapter",
    "inproceedings": "paper-conference",
    "proceedings": "paper-conference",
    "conference": "paper-conference",
    "phdthesis": "thesis",
    "mastersthesis": "thesis",
    "techreport": "report",
    "report": "report",
    "unpublished": "manuscript",
    "newspaper": "article-newspaper",
    "patent": "patent",
    "map": "map",
    "motion picture": "motion_picture",
}

# bibtex name of a field -> CSL variable holding its text
_TEXT_VARIABLES: Dict[str, str] = {
    "title": "title",
    "volume": "volume",
    "number": "issue",
    "pages": "page",
    "publisher": "publisher",
    "address": "publisher-place",
    "edition": "edition",
    "isbn": "ISBN",
    "doi": "DOI",
    "url": "URL",
    "abstract": "abstract",
    "note": "note",
    "series": "collection-title",
}

_YEAR_RE = re.compile(r"(\d{4})")


def _strip_or_none(s: Any) -> Optional[str]:
    if s is None:
        return None
    s = str(s).strip()
    return s or None


class _Lookup:
    """Reads entry values by their bibtex name, whatever the field is called."""

    def __init__(self, coll: Collection) -> None:
        self.by_prop: Dict[str, str] = {}
        for f in coll.fields:
            prop = f.property("bibtex")
            if prop and prop not in self.by_prop:
                self.by_prop[prop] = f.name
        # fall back to same-named fields for collections without bibtex properties
        for f in coll.fields:
            self.by_prop.setdefault(f.name, f.name)

    def text(self, entry: Entry, prop: str, formatted: bool = False) -> Optional[str]:
        name = self.by_prop.get(prop)
        if not name:
            return None
        return _strip_or_none(entry.field(name, formatted=formatted))

    def values(self, entry: Entry, prop: str) -> List[str]:
        name = self.by_prop.get(prop)
        if not name:
            return []
        return entry.values(name, formatted=True)


def csl_name(value: str) -> Optional[Dict[str, Any]]:
    """
    CSL name object from a formatted "Last, First" name:
      - {"family":..., "given":...} (plus "suffix" for "Last, Jr., First")
      - {"literal":...} when the name has no comma
    """
    value = value.strip()
    if not value:
        return None
    parts = [p.strip() for p in value.split(",")]
    if len(parts) == 1:
        return {"literal": value}
    out: Dict[str, Any] = {"family": parts[0]}
    if len(parts) >= 3:
        out["suffix"] = parts[1]
        given = ", ".join(parts[2:])
    else:
        given = parts[1]
    if given:
        out["given"] = given
    return out


def _names(lookup: _Lookup, entry: Entry, prop: str) -> Optional[List[Dict[str, Any]]]:
    out = [n for n in (csl_name(v) for v in lookup.values(entry, prop)) if n]
    return out or None


def _issued(lookup: _Lookup, entry: Entry) -> Optional[Dict[str, Any]]:
    """
    CSL-JSON issued format:
      "issued": { "date-parts": [[YYYY]] }
    """
    year = lookup.text(entry, "year")
    if not year:
        return None
    m = _YEAR_RE.search(year)
    if not m:
        return {"literal": year}
    return {"date-parts": [[int(m.group(1))]]}


def _csl_type(lookup: _Lookup, entry: Entry, coll: Collection) -> str:
    etype = lookup.text(entry, "entry-type")
    if etype:
        return ENTRY_TYPE_TO_CSL_TYPE.get(etype.lower(), "article")
    if coll.type == CollectionType.BOOK:
        return "book"
    if coll.type == CollectionType.VIDEO:
        return "motion_picture"
    return "article"


def item_id(lookup: _Lookup, entry: Entry) -> str:
    return lookup.text(entry, "key") or f"entry-{entry.id}"


def entry_to_csl_item(entry: Entry, lookup: Optional[_Lookup] = None) -> Dict[str, Any]:
    """
    Convert an entry -> CSL-JSON item dict.

    Fields are found through their bibtex property, so any collection
    whose fields carry one can be rendered.
    """
    coll = entry.collection
    lookup = lookup or _Lookup(coll)
    item: Dict[str, Any] = {
        "id": item_id(lookup, entry),
        "type": _csl_type(lookup, entry, coll),
    }

    for prop, var in _TEXT_VARIABLES.items():
        value = lookup.text(entry, prop)
        if value:
            item[var] = value

    for role in ("author", "editor"):
        names = _names(lookup, entry, role)
        if names:
            item[role] = names

    issued = _issued(lookup, entry)
    if issued:
        item["issued"] = issued

    # Container (journal/book title)
    container = lookup.text(entry, "journal") or lookup.text(entry, "booktitle")
    if container:
        item["container-title"] = container

    # thesis and report publishers are the school or institution
    if "publisher" not in item:
        inst = lookup.text(entry, "school") or lookup.text(entry, "institution")
        if inst:
            item["publisher"] = inst

    return item


def entries_to_csl_items(coll: Collection, entries: Optional[Sequence[Entry]] = None) -> List[Dict[str, Any]]:
    lookup = _Lookup(coll)
    chosen = coll.entries if entries is None else list(entries)
    items = [entry_to_csl_item(e, lookup) for e in chosen]

    # citeproc needs unique ids
    seen: Dict[str, int] = {}
    for it in items:
        n = seen.get(it["id"], 0)
        seen[it["id"]] = n + 1
        if n:
            it["id"] = f"{it['id']}-{n}"
    return items
