from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..collection import Collection
from ..entry import Entry
from ..errors import DuplicateKeyError, SchemaError, SkippedEntryWarning
from ..field import Field, FieldFlag, FieldType
from ..fieldformat import DELIMITER, FormatFlag, split_values
from .base import TranslatorBase, selected_entries


logger = logging.getLogger(__name__)

BIBTEX_PROP = "bibtex"
SEPARATOR_PROP = "bibtex-separator"

BANNER = "@comment{Generated by shelfcase}"

_TAG_RE = re.compile(r"<.*?>", re.DOTALL)
_PAGES_RE = re.compile(r"(\d)-(\d)")
_KEY_CLEAN_RE = re.compile(r"[^0-9a-z]")


class QuoteStyle(str, Enum):
    BRACES = "braces"
    QUOTES = "quotes"


# -----------------------------
# Text helpers
# -----------------------------

def _quote(text: str, style: QuoteStyle) -> str:
    if style == QuoteStyle.BRACES:
        return "{" + text + "}"
    # a bare double quote would end the value early
    return '"' + text.replace('"', '{"}') + '"'


def export_text(text: str, macros: Iterable[str] = (), style: QuoteStyle = QuoteStyle.BRACES) -> str:
    """
    Quote a value. Parts separated by '#' that name a known macro are left
    bare so BibTeX expands them, e.g. ``jan # " 1"``.
    """
    macros = set(macros)
    if not macros:
        return _quote(text, style)
    out: List[str] = []
    for token in text.split("#"):
        bare = token.strip()
        out.append(bare if bare in macros else _quote(token, style))
    return " # ".join(out)


def bibtex_key(author: str, title: str, year: str) -> str:
    """
    Citation key synthesized from the first author's surname, the first
    word of the title and the year: "Weber, David", "On Basilisk Station",
    "1993" -> "weber-on1993".
    """
    key = ""
    first_author = split_values(author)[0] if author else ""
    if first_author:
        if "," in first_author:
            surname = first_author.split(",", 1)[0]
        else:
            surname = first_author.split(" ")[-1]
        key = _KEY_CLEAN_RE.sub("", surname.lower())
    words = [w for w in title.lower().split() if w]
    if words:
        word = _KEY_CLEAN_RE.sub("", words[0])
        key = f"{key}-{word}" if key else word
    return key + _KEY_CLEAN_RE.sub("", year.lower())


def _unique_key(key: str, used: Set[str]) -> str:
    new_key = key
    n = 0
    while new_key in used:
        # a, b, c ... then aa, ab, ...
        new_key = key + _suffix(n)
        n += 1
    used.add(new_key)
    return new_key


def _suffix(n: int) -> str:
    letters = ""
    n += 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("a") + rem) + letters
    return letters


# -----------------------------
# Exporter
# -----------------------------

class BibtexExporter(TranslatorBase):
    format_id = "bibtex"
    extension = "bib"

    def __init__(
        self,
        *,
        quote_style: QuoteStyle = QuoteStyle.BRACES,
        expand_macros: bool = False,
        url_package: bool = True,
        skip_empty_keys: bool = False,
        formatted: bool = False,
        resolve_duplicate_keys: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.quote_style = QuoteStyle(quote_style)
        self.expand_macros = expand_macros
        self.url_package = url_package
        self.skip_empty_keys = skip_empty_keys
        self.formatted = formatted
        self.resolve_duplicate_keys = resolve_duplicate_keys

    @classmethod
    def from_config(cls, cfg, **kwargs) -> "BibtexExporter":
        return cls(
            quote_style=QuoteStyle(cfg.bibtex_quote_style),
            expand_macros=cfg.bibtex_expand_macros,
            url_package=cfg.bibtex_url_package,
            skip_empty_keys=cfg.bibtex_skip_empty_keys,
            **kwargs,
        )

    # --- schema ---

    @staticmethod
    def schema(coll: Collection) -> Tuple[Field, Field, Optional[Field], List[Field]]:
        """
        (entry-type field, key field, crossref field, value fields).
        Raises SchemaError when the collection can not be exported.
        """
        type_field = key_field = crossref_field = None
        fields: List[Field] = []
        for f in coll.fields:
            prop = f.property(BIBTEX_PROP)
            if prop == "entry-type":
                type_field = f
            elif prop == "key":
                key_field = f
            elif prop == "crossref":
                # still written as a value
                crossref_field = f
                fields.append(f)
            elif prop:
                fields.append(f)

        if type_field is None or key_field is None:
            raise SchemaError("the collection must have fields defining the entry-type "
                              "and the key of the entry")
        if not fields:
            raise SchemaError("no bibtex field mapping exists in the collection")
        return type_field, key_field, crossref_field, fields

    # --- text ---

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        return self.export_text(coll, entries).encode("utf-8")

    def export_text(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> str:
        type_field, key_field, crossref_field, fields = self.schema(coll)
        chosen = selected_entries(coll, entries)
        macros = [] if self.expand_macros else list(coll.macros)

        parts: List[str] = [BANNER + "\n\n"]
        if coll.preamble:
            parts.append("@preamble{" + coll.preamble + "}\n\n")
        if not self.expand_macros:
            for name, value in coll.macros.items():
                if value:
                    parts.append(f"@string{{{name}={export_text(value, macros, self.quote_style)}}}\n\n")

        # keys referenced by some crossref field
        crossref_keys: Set[str] = set()
        if crossref_field is not None:
            crossref_keys = {e.field(crossref_field.name) for e in chosen} - {""}

        used: Set[str] = set()
        deferred: List[Entry] = []
        total = len(chosen)
        for i, entry in enumerate(chosen, 1):
            self._step(i, total)
            etype = entry.field(type_field.name)
            if not etype:
                self._warn(SkippedEntryWarning(
                    f"the entry for {entry.title!r} has no entry-type, skipping it"))
                continue

            key = entry.field(key_field.name)
            if not key:
                if self.skip_empty_keys:
                    logger.info("skipping %r, it has no citation key", entry.title)
                    continue
                key = self._synthesize_key(coll, entry)
            elif key in crossref_keys:
                # referenced entries go after the ones referring to them
                deferred.append(entry)
                continue

            parts.append(self._entry_text(entry, fields, etype, self._claim_key(key, used), macros))

        for entry in deferred:
            key = self._claim_key(entry.field(key_field.name), used)
            parts.append(self._entry_text(entry, fields, entry.field(type_field.name), key, macros))

        self._finish()
        return "".join(parts)

    def _claim_key(self, key: str, used: Set[str]) -> str:
        if key in used and not self.resolve_duplicate_keys:
            raise DuplicateKeyError(key)
        return _unique_key(key, used)

    @staticmethod
    def _synthesize_key(coll: Collection, entry: Entry) -> str:
        def first(prop: str) -> str:
            for f in coll.fields_with_property(BIBTEX_PROP, prop):
                value = entry.field(f.name, formatted=True)
                if value:
                    return value
            return ""
        return bibtex_key(first("author") or first("editor"), entry.title, first("year"))

    def _value_text(self, entry: Entry, f: Field, macros: List[str]) -> str:
        value = entry.field(f.name, formatted=self.formatted)
        if not value:
            return ""

        if f.format == FormatFlag.NAME and f.has_flag(FieldFlag.ALLOW_MULTIPLE):
            value = value.replace(DELIMITER, " and ")
        elif f.has_flag(FieldFlag.ALLOW_MULTIPLE):
            sep = f.property(SEPARATOR_PROP)
            if sep:
                value = value.replace(DELIMITER, sep)
        elif f.type == FieldType.PARA:
            value = _TAG_RE.sub("", value)
        elif f.property(BIBTEX_PROP) == "pages":
            value = _PAGES_RE.sub(r"\1--\2", value)

        if self.url_package and f.type == FieldType.URL:
            return _quote("\\url{" + value + "}", self.quote_style)
        if f.type == FieldType.NUMBER:
            # numbers carry no macros and need no quoting
            return value
        return export_text(value, macros, self.quote_style)

    def _entry_text(self, entry: Entry, fields: List[Field], etype: str, key: str,
                    macros: List[str]) -> str:
        out = ["@" + etype + "{" + key]
        for f in fields:
            value = self._value_text(entry, f, macros)
            if value:
                out.append(",\n  " + f.property(BIBTEX_PROP) + " = " + value)
        out.append("\n}\n\n")
        return "".join(out)
