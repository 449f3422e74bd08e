from __future__ import annotations

from typing import Dict, List, Optional, Union

from ..collection import Collection, CollectionType
from ..field import Field
from ..fieldformat import FormatOptions
from .base import Preset
from .bibtex import PRESET as _BIBTEX
from .books import PRESET as _BOOKS
from .videos import PRESET as _VIDEOS


_PRESETS: Dict[CollectionType, Preset] = {
    CollectionType.BOOK: _BOOKS,
    CollectionType.VIDEO: _VIDEOS,
    CollectionType.BIBTEX: _BIBTEX,
}


def get_preset(kind: Union[str, CollectionType]) -> Preset:
    try:
        key = CollectionType(kind)
    except ValueError:
        raise KeyError(f"Unknown collection kind: {kind}") from None
    if key not in _PRESETS:
        raise KeyError(f"Unknown collection kind: {kind}")
    return _PRESETS[key]


def list_presets() -> Dict[str, str]:
    """kind -> display_name"""
    return {k.value: v.display_name for k, v in _PRESETS.items()}


def preset_for_unit(unit: str) -> Optional[Preset]:
    for p in _PRESETS.values():
        if p.unit == unit:
            return p
    return None


def default_fields(kind: Union[str, CollectionType]) -> List[Field]:
    return get_preset(kind).fields()


def create_collection(
    kind: Union[str, CollectionType] = CollectionType.BOOK,
    title: Optional[str] = None,
    *,
    with_fields: bool = True,
    collection_id: int = 0,
    format_options: Optional[FormatOptions] = None,
) -> Collection:
    """New collection of a standard kind; ``custom`` gives an empty schema."""
    if CollectionType(kind) == CollectionType.CUSTOM:
        return Collection(title or "My Collection", collection_id=collection_id,
                          format_options=format_options)
    return get_preset(kind).create(title, with_fields=with_fields,
                                   collection_id=collection_id, format_options=format_options)


def is_standard(collection: Collection) -> bool:
    """
    True when the schema is exactly the preset schema of its kind, so a
    document may omit the field descriptors.
    """
    if collection.type == CollectionType.CUSTOM:
        return False
    mine = [f.signature() for f in collection.fields]
    ref = [f.signature() for f in get_preset(collection.type).fields()]
    return mine == ref
