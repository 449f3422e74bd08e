from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..collection import Collection, CollectionType
from ..field import Field
from ..fieldformat import FormatOptions


@dataclass(frozen=True)
class Preset:
    """
    A ready-made collection kind: its schema plus the defaults a new
    collection of that kind starts with.
    """
    kind: CollectionType
    display_name: str
    unit: str
    unit_title: str
    default_group: str
    build_fields: Callable[[], List[Field]]
    match_fields: Tuple[str, ...] = ()

    def fields(self) -> List[Field]:
        # fresh objects every time, collections never share Field instances
        return self.build_fields()

    def create(
        self,
        title: Optional[str] = None,
        *,
        with_fields: bool = True,
        collection_id: int = 0,
        format_options: Optional[FormatOptions] = None,
    ) -> Collection:
        coll = Collection(
            title or f"My {self.display_name}",
            self.unit,
            self.unit_title,
            collection_id=collection_id,
            type=self.kind,
            fields=self.fields() if with_fields else None,
            format_options=format_options,
        )
        coll.default_group_field = self.default_group if with_fields else ""
        coll.match_fields = self.match_fields
        return coll
