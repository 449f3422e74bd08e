from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple


# -----------------------------
# Storage conventions
# -----------------------------

# Several values of one field are stored in a single string joined by this
# delimiter. A stored value never contains a bare ';'.
DELIMITER = "; "
# Columns of a table row
COLUMN_DELIMITER = "::"

_SPLIT_RE = re.compile(r"\s*;\s*")
_SPACE_RE = re.compile(r"\s+")
_COMMA_RE = re.compile(r"\s*,\s*")
_DATE_RE = re.compile(r"^\s*(\d{4})[-/](\d{1,2})[-/](\d{1,2})\s*$")
_BARE_STRIP = ",.:;!?()[]\"'"


class FormatFlag(IntEnum):
    """How a field's values are projected for display and grouping."""
    PLAIN = 0
    TITLE = 1
    NAME = 2
    DATE = 3
    NONE = 4


@dataclass(frozen=True)
class FormatOptions:
    """
    Formatting preferences shared by every formatted projection.
    Built from the user configuration with ``from_config``.
    """
    auto_capitalize: bool = True
    auto_format: bool = True
    articles: Tuple[str, ...] = ("the", "l'")
    no_capitalization: Tuple[str, ...] = (
        "a", "an", "and", "in", "of", "the", "to", "de", "et", "du", "la", "le", "les",
    )
    name_suffixes: Tuple[str, ...] = ("jr.", "jr", "sr.", "sr", "ii", "iii", "iv")
    surname_prefixes: Tuple[str, ...] = ("de", "van", "von", "der", "da", "di", "du", "la", "le")

    @classmethod
    def from_config(cls, cfg: Any) -> "FormatOptions":
        return cls(
            auto_capitalize=bool(cfg.auto_capitalize),
            auto_format=bool(cfg.auto_format),
            articles=tuple(cfg.articles),
            no_capitalization=tuple(cfg.no_capitalization),
            name_suffixes=tuple(cfg.name_suffixes),
            surname_prefixes=tuple(cfg.surname_prefixes),
        )


DEFAULT_OPTIONS = FormatOptions()


# -----------------------------
# Multi-value helpers
# -----------------------------

def _clean_spaces(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = s.replace("\u00a0", " ").strip()
    s = _SPACE_RE.sub(" ", s)
    return s or None


def split_values(text: Optional[str]) -> List[str]:
    """Split stored text into its individual values, dropping empties."""
    if not text:
        return []
    return [v for v in _SPLIT_RE.split(text.strip()) if v]


def sanitize_value(value: str) -> str:
    """Make a single value safe to store next to others."""
    return value.replace(";", ",").strip()


def join_values(values: Iterable[str]) -> str:
    out = [sanitize_value(v) for v in values if v is not None]
    return DELIMITER.join(v for v in out if v)


def split_columns(row: str) -> List[str]:
    return row.split(COLUMN_DELIMITER)


# -----------------------------
# Projections
# -----------------------------

def _upper_first(word: str) -> str:
    for i, ch in enumerate(word):
        if ch.isalpha():
            return word[:i] + ch.upper() + word[i + 1:]
    return word


def _bare(word: str) -> str:
    return word.lower().strip(_BARE_STRIP)


def _capitalize_word(word: str, apostrophe_articles: Tuple[str, ...]) -> str:
    lower = word.lower()
    for art in apostrophe_articles:
        if lower.startswith(art) and len(word) > len(art):
            n = len(art)
            return word[:n] + _upper_first(word[n:])
    return _upper_first(word)


def capitalize(text: str, opts: Optional[FormatOptions] = None) -> str:
    """
    Capitalize each word, except words in the no-capitalization list
    that are not the first word. Letters already upper case are kept.
    """
    opts = opts or DEFAULT_OPTIONS
    if not text:
        return text
    no_cap = {w.lower() for w in opts.no_capitalization}
    apostrophes = tuple(a.lower() for a in opts.articles if a.endswith("'"))

    out: List[str] = []
    first = True
    for word in text.split(" "):
        if not word:
            out.append(word)
            continue
        if not first and _bare(word) in no_cap:
            out.append(word)
        else:
            out.append(_capitalize_word(word, apostrophes))
        first = False
    return " ".join(out)


def title(text: str, opts: Optional[FormatOptions] = None) -> str:
    """
    Title projection: "the return of the king" -> "Return of the King, The".
    Only the first column of a table row is touched.
    """
    opts = opts or DEFAULT_OPTIONS
    if not text:
        return text
    if COLUMN_DELIMITER in text:
        head, sep, rest = text.partition(COLUMN_DELIMITER)
        return title(head, opts) + sep + rest

    text = _clean_spaces(text) or ""
    if opts.auto_format:
        text = _COMMA_RE.sub(", ", text)
        lower = text.lower()
        for article in opts.articles:
            art = article.lower()
            if art.endswith("'"):
                matched = lower.startswith(art) and len(text) > len(art)
                rest_start = len(art)
            else:
                matched = lower.startswith(art + " ")
                rest_start = len(art) + 1
            if not matched:
                continue
            head = text[:len(art)]
            rest = text[rest_start:].strip()
            if opts.auto_capitalize:
                return capitalize(rest, opts) + ", " + capitalize(head, opts)
            return rest + ", " + head

    if opts.auto_capitalize:
        return capitalize(text, opts)
    return text


def _capitalize_surname(last: str, prefixes: set) -> str:
    return " ".join(w if w.lower() in prefixes else _upper_first(w) for w in last.split(" "))


def name(text: str, opts: Optional[FormatOptions] = None) -> str:
    """
    Name projection: "tom swift, jr." -> "Swift, Jr., Tom".
    Names already written as "Last, First" are only capitalized.
    """
    opts = opts or DEFAULT_OPTIONS
    text = _clean_spaces(text) or ""
    if not text:
        return text
    if COLUMN_DELIMITER in text:
        head, sep, rest = text.partition(COLUMN_DELIMITER)
        return name(head, opts) + sep + rest

    suffixes = {s.lower() for s in opts.name_suffixes}
    prefixes = {p.lower() for p in opts.surname_prefixes}

    parts = [p.strip() for p in text.split(",")]
    suffix = ""
    if len(parts) == 2 and parts[1].lower() in suffixes:
        main, suffix = parts[0], parts[1]
        inverted = False
    else:
        main = text
        inverted = len(parts) > 1

    if opts.auto_format and not inverted:
        words = main.split(" ")
        if len(words) > 1:
            i = len(words) - 1
            # surname prefixes travel with the surname, at least one given name stays
            while i > 1 and words[i - 1].lower() in prefixes:
                i -= 1
            first = " ".join(words[:i])
            last = " ".join(words[i:])
            if opts.auto_capitalize:
                last = _capitalize_surname(last, prefixes)
                first = capitalize(first, opts)
                suffix = capitalize(suffix, opts)
            return ", ".join([last] + ([suffix] if suffix else []) + [first])

    if opts.auto_capitalize:
        return capitalize(text, opts)
    return text


def date(text: str, opts: Optional[FormatOptions] = None) -> str:
    """Normalize Y-M-D or Y/M/D to a zero-padded ISO date; leave anything else."""
    if not text:
        return text
    m = _DATE_RE.match(text)
    if not m:
        return text
    y, mo, d = m.group(1), int(m.group(2)), int(m.group(3))
    return f"{y}-{mo:02d}-{d:02d}"


def plain(text: str, opts: Optional[FormatOptions] = None) -> str:
    opts = opts or DEFAULT_OPTIONS
    if opts.auto_capitalize:
        return capitalize(text, opts)
    return text


_FORMATTERS: Dict[FormatFlag, Callable[[str, Optional[FormatOptions]], str]] = {
    FormatFlag.PLAIN: plain,
    FormatFlag.TITLE: title,
    FormatFlag.NAME: name,
    FormatFlag.DATE: date,
}


def format_value(
    value: str,
    fmt: FormatFlag,
    *,
    multiple: bool = False,
    opts: Optional[FormatOptions] = None,
) -> str:
    """
    Pure projection of stored text. Multi-valued text is formatted value
    by value and joined back with the delimiter.
    """
    if not value or fmt == FormatFlag.NONE:
        return value
    func = _FORMATTERS[FormatFlag(fmt)]
    if not multiple:
        return func(value, opts)
    return DELIMITER.join(func(v, opts) for v in split_values(value))
