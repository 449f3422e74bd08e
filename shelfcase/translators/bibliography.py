from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from ..collection import Collection
from ..csl.adapter import entries_to_csl_items
from ..csl.renderer import render_bibliography
from ..entry import Entry
from .base import TranslatorBase, selected_entries


logger = logging.getLogger(__name__)


class BibliographyExporter(TranslatorBase):
    """Formatted reference list through a CSL style, one reference per line."""

    format_id = "bibliography"
    extension = "txt"

    def __init__(
        self,
        style: Union[str, Path] = "harvard1",
        *,
        locale: str = "en-US",
        html: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.style = style
        self.locale = locale
        self.html = html
        if html:
            self.extension = "html"

    def render(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> str:
        chosen = selected_entries(coll, entries)
        self._check_cancel()
        items = entries_to_csl_items(coll, chosen)
        logger.debug("rendering %d references with %s", len(items), self.style)
        lines = render_bibliography(self.style, items, locale=self.locale,
                                    as_plain_text=not self.html)
        self._finish()
        if self.html:
            return "<ol>\n" + "".join(f"  <li>{ln}</li>\n" for ln in lines) + "</ol>\n"
        return "\n".join(lines) + ("\n" if lines else "")

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        return self.render(coll, entries).encode("utf-8")
