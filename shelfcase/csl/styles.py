from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional

from lxml import etree

from ..paths import user_styles_dir


logger = logging.getLogger(__name__)

StyleKind = Literal["bundled", "csl"]

# styles shipped inside citeproc-py
BUNDLED_STYLES: Dict[str, str] = {
    "harvard1": "Harvard reference format 1 (author-date)",
}


@dataclass(frozen=True)
class StyleRef:
    kind: StyleKind
    key: str
    name: str
    path: Optional[str] = None

    @property
    def selector(self) -> str:
        """Value accepted by ``csl.renderer`` as a style."""
        return self.path or self.key


def _local(tag: str) -> str:
    return tag.split("}", 1)[-1] if "}" in tag else tag


def read_csl_style_title(csl_path: Path) -> str:
    fallback = csl_path.stem
    try:
        root = etree.parse(str(csl_path)).getroot()
    except (OSError, etree.XMLSyntaxError) as e:
        logger.warning("unreadable CSL style %s: %s", csl_path, e)
        return fallback

    for el in root.iter():
        if isinstance(el.tag, str) and _local(el.tag) == "info":
            for child in el.iter():
                if isinstance(child.tag, str) and _local(child.tag) == "title":
                    return (child.text or "").strip() or fallback
            break
    return fallback


def discover_csl_styles_in_dir(styles_dir: Path) -> List[StyleRef]:
    d = styles_dir.expanduser().resolve()
    if not d.is_dir():
        return []
    return [
        StyleRef(kind="csl", key=p.stem, name=read_csl_style_title(p), path=str(p))
        for p in sorted(d.glob("*.csl"), key=lambda x: x.name.lower())
    ]


def discover_csl_styles(styles_dirs: Iterable[Path]) -> List[StyleRef]:
    """
    Scan several folders; when two files share a stem the folder listed
    first wins.
    """
    chosen: Dict[str, StyleRef] = {}
    for d in styles_dirs:
        for s in discover_csl_styles_in_dir(d):
            chosen.setdefault(s.key.lower(), s)
    return list(chosen.values())


def list_styles(extra_csl_dir: Optional[Path] = None) -> List[StyleRef]:
    styles = [StyleRef(kind="bundled", key=k, name=v) for k, v in BUNDLED_STYLES.items()]
    dirs: List[Path] = []
    if extra_csl_dir is not None:
        dirs.append(extra_csl_dir)
    dirs.append(user_styles_dir())
    styles.extend(discover_csl_styles(dirs))
    styles.sort(key=lambda s: (s.kind, s.name.lower()))
    return styles
