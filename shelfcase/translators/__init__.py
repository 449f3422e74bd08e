from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Union

from .base import CancelToken, Exporter, Importer, ProgressCallback
from .bibliography import BibliographyExporter
from .bibtex import BibtexExporter, QuoteStyle
from .html import HTMLExporter, export_html
from .ris import RISExporter, RISImporter
from .spreadsheet import SpreadsheetExporter
from .xmldoc import XMLExporter, XMLImporter, export_grouped_xml


_IMPORTERS: Dict[str, Callable[..., Importer]] = {
    "xml": XMLImporter,
    "ris": RISImporter,
}

_EXPORTERS: Dict[str, Callable[..., Exporter]] = {
    "xml": XMLExporter,
    "html": HTMLExporter,
    "bibtex": BibtexExporter,
    "ris": RISExporter,
    "xlsx": SpreadsheetExporter,
    "bibliography": BibliographyExporter,
}

_EXTENSIONS: Dict[str, str] = {
    ".xml": "xml",
    ".bc": "xml",
    ".ris": "ris",
    ".bib": "bibtex",
    ".html": "html",
    ".htm": "html",
    ".xlsx": "xlsx",
}


def get_importer(format_id: str, **kwargs) -> Importer:
    if format_id not in _IMPORTERS:
        raise KeyError(f"Unknown import format: {format_id}")
    return _IMPORTERS[format_id](**kwargs)


def get_exporter(format_id: str, **kwargs) -> Exporter:
    if format_id not in _EXPORTERS:
        raise KeyError(f"Unknown export format: {format_id}")
    return _EXPORTERS[format_id](**kwargs)


def format_for_path(path: Union[str, Path]) -> str:
    ext = Path(path).suffix.lower()
    if ext not in _EXTENSIONS:
        raise KeyError(f"No format known for {ext or 'files without extension'}")
    return _EXTENSIONS[ext]


def importer_for_path(path: Union[str, Path], **kwargs) -> Importer:
    return get_importer(format_for_path(path), **kwargs)


def list_formats() -> Dict[str, Dict[str, bool]]:
    """format_id -> {"import": .., "export": ..}"""
    ids = sorted(set(_IMPORTERS) | set(_EXPORTERS))
    return {i: {"import": i in _IMPORTERS, "export": i in _EXPORTERS} for i in ids}


__all__ = [
    "BibliographyExporter",
    "BibtexExporter",
    "CancelToken",
    "Exporter",
    "HTMLExporter",
    "Importer",
    "ProgressCallback",
    "QuoteStyle",
    "RISExporter",
    "RISImporter",
    "SpreadsheetExporter",
    "XMLExporter",
    "XMLImporter",
    "export_grouped_xml",
    "export_html",
    "format_for_path",
    "get_exporter",
    "get_importer",
    "importer_for_path",
    "list_formats",
]
