from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from lxml import etree

from ..collection import Collection
from ..entry import Entry
from ..errors import TransformError
from ..paths import app_data_dir
from .base import TranslatorBase
from .xmldoc import grouped_tree


logger = logging.getLogger(__name__)


def default_template() -> Path:
    return app_data_dir() / "entry-list.xsl"


@lru_cache(maxsize=16)
def _load_transform(template_path: str) -> etree.XSLT:
    """
    Parsing a stylesheet is not free, so transforms are cached by path.
    """
    try:
        style = etree.parse(template_path)
        return etree.XSLT(style)
    except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as e:
        raise TransformError(f"bad template {template_path}: {e}") from e


def transform(
    tree: etree._Element,
    template: Union[str, Path, None] = None,
    params: Optional[Dict[str, str]] = None,
) -> str:
    """(grouped XML, template) -> HTML text. Raises TransformError."""
    path = str(Path(template).expanduser().resolve()) if template else str(default_template())
    xslt = _load_transform(path)
    # string parameters must be quoted for the XSLT engine
    args = {k: etree.XSLT.strparam(v) for k, v in (params or {}).items()}
    try:
        result = xslt(tree, **args)
    except etree.XSLTApplyError as e:
        raise TransformError(f"transform failed: {e}") from e
    text = str(result)
    if not text.strip():
        raise TransformError(f"template {path} produced no output")
    return text


def export_html(
    coll: Collection,
    template: Union[str, Path, None] = None,
    *,
    group_name: Optional[str] = None,
    entries: Optional[Sequence[Entry]] = None,
    formatted: bool = True,
    params: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    HTML for the grouped view of ``coll``, or None when the template or
    the transform fails. Never returns partial output.
    """
    tree = grouped_tree(coll, group_name, entries, formatted=formatted)
    try:
        return transform(tree, template, params)
    except TransformError as e:
        logger.error("HTML export of %r failed: %s", coll.title, e)
        return None


class HTMLExporter(TranslatorBase):
    format_id = "html"
    extension = "html"

    def __init__(
        self,
        template: Union[str, Path, None] = None,
        *,
        group_name: Optional[str] = None,
        formatted: bool = True,
        params: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.template = template
        self.group_name = group_name
        self.formatted = formatted
        self.params = params

    def export(self, coll: Collection, entries: Optional[Sequence[Entry]] = None) -> bytes:
        tree = grouped_tree(coll, self.group_name, entries, formatted=self.formatted)
        text = transform(tree, self.template, self.params)
        self._finish()
        return text.encode("utf-8")
