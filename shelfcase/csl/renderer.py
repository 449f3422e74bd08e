from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

# citeproc-py
from citeproc import Citation, CitationItem, CitationStylesBibliography, CitationStylesStyle, formatter
from citeproc.source.json import CiteProcJSON

from ..errors import TransformError


def _style_ref(style: Union[str, Path]) -> str:
    """
    A style is either the name of a style bundled with citeproc-py
    ("harvard1") or the path of a .csl file.
    """
    s = str(style)
    if s.endswith(".csl") or "/" in s or "\\" in s:
        p = Path(s).expanduser().resolve()
        if not p.exists():
            raise FileNotFoundError(f"CSL style not found: {p}")
        return str(p)
    return s


@lru_cache(maxsize=32)
def _load_style_cached(style: str, locale: str) -> CitationStylesStyle:
    """
    Parsing a style is expensive, so it is cached per (style, locale).
    """
    try:
        return CitationStylesStyle(style, validate=False, locale=locale)
    except (OSError, ValueError) as e:
        raise TransformError(f"could not load CSL style {style!r}: {e}") from e


def render_bibliography(
    style: Union[str, Path],
    items: Sequence[Dict[str, Any]],
    *,
    locale: str = "en-US",
    as_plain_text: bool = True,
) -> List[str]:
    """
    CSL style + CSL-JSON items -> one formatted reference per item.

    ``items`` are what ``csl.adapter.entries_to_csl_items`` returns.
    """
    if not items:
        return []
    source = CiteProcJSON(list(items))
    style_obj = _load_style_cached(_style_ref(style), locale)
    bibliography = CitationStylesBibliography(
        style_obj, source, formatter.plain if as_plain_text else formatter.html)

    # a bibliography only lists cited items, so every item is cited once
    bibliography.register(Citation([CitationItem(item["id"]) for item in items if "id" in item]))

    lines = [str(e).strip() for e in bibliography.bibliography()]
    return [ln for ln in lines if ln]


def render_bibliography_text(
    style: Union[str, Path],
    items: Sequence[Dict[str, Any]],
    *,
    locale: str = "en-US",
    as_plain_text: bool = True,
) -> str:
    return "\n".join(render_bibliography(style, items, locale=locale, as_plain_text=as_plain_text))
