from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from .errors import ShelfcaseError, UnknownFieldError
from .field import Field, FieldType
from .fieldformat import (
    COLUMN_DELIMITER,
    FormatOptions,
    join_values,
    split_columns,
    split_values,
)

if TYPE_CHECKING:
    from .collection import Collection


logger = logging.getLogger(__name__)

BOOL_TRUE = "1"


class Entry:
    """
    One record of a collection.

    Values are kept as text keyed by field name. A multi-valued field holds
    all of its values in one string (see ``fieldformat.DELIMITER``) and is
    split when read. The entry keeps its collection alive until the
    collection removes it and calls ``detach()``.
    """

    def __init__(self, collection: "Collection", entry_id: Optional[int] = None) -> None:
        self._collection: Optional["Collection"] = collection
        self.id = entry_id
        self._values: Dict[str, str] = {}

    def __repr__(self) -> str:
        return f"Entry(id={self.id}, title={self.title!r})"

    # -----------------------------
    # Collection link
    # -----------------------------

    @property
    def collection(self) -> Optional["Collection"]:
        return self._collection

    def _require_collection(self) -> "Collection":
        coll = self.collection
        if coll is None:
            raise ShelfcaseError(f"entry {self.id} no longer belongs to a collection")
        return coll

    def _schema_field(self, name: str) -> Field:
        f = self._require_collection().field_by_name(name)
        if f is None:
            raise UnknownFieldError(name)
        return f

    def detach(self) -> None:
        """Called by the owning collection once the entry is removed."""
        self._collection = None

    @property
    def is_attached(self) -> bool:
        return self.collection is not None

    # -----------------------------
    # Reading
    # -----------------------------

    def field(self, name: str, formatted: bool = False, opts: Optional[FormatOptions] = None) -> str:
        """Stored text for ``name`` ("" when unset)."""
        f = self._schema_field(name)
        value = self._values.get(name, "")
        if formatted and value:
            coll = self._require_collection()
            return f.format_value(value, opts or coll.format_options)
        return value

    def formatted(self, name: str, opts: Optional[FormatOptions] = None) -> str:
        return self.field(name, formatted=True, opts=opts)

    def values(self, name: str, formatted: bool = False) -> List[str]:
        f = self._schema_field(name)
        text = self.field(name, formatted=formatted)
        if not f.is_multiple:
            return [text] if text else []
        return split_values(text)

    def table_rows(self, name: str) -> List[List[str]]:
        return [split_columns(row) for row in self.values(name)]

    def has_value(self, name: str) -> bool:
        return bool(self._values.get(name))

    def is_checked(self, name: str) -> bool:
        return self._values.get(name) == BOOL_TRUE

    @property
    def title(self) -> str:
        return self._values.get("title", "")

    @property
    def field_names(self) -> List[str]:
        """Names of the fields holding a value, in schema order."""
        coll = self.collection
        if coll is None:
            return list(self._values)
        return [n for n in coll.field_names if n in self._values]

    def items(self) -> Iterable[tuple]:
        for n in self.field_names:
            yield n, self._values[n]

    # -----------------------------
    # Writing
    # -----------------------------

    def _normalize(self, f: Field, value: Optional[str]) -> str:
        value = (value or "").strip()
        if not value:
            return ""
        if f.type == FieldType.BOOL:
            return BOOL_TRUE
        if f.type == FieldType.TABLE:
            rows = [
                COLUMN_DELIMITER.join(c.strip() for c in split_columns(r))
                for r in split_values(value)
            ]
            return join_values(rows)
        if f.is_multiple:
            return join_values(split_values(value))
        return value

    def set_field(self, name: str, value: Optional[str]) -> bool:
        """
        Store ``value`` for field ``name``. An empty value clears the field.
        Choice fields learn values they did not allow yet.
        Returns True if the stored value changed.
        """
        f = self._schema_field(name)
        new = self._normalize(f, value)
        old = self._values.get(name, "")
        if new == old:
            return False

        if new:
            f.add_allowed(new)
            self._values[name] = new
        else:
            del self._values[name]

        coll = self.collection
        if coll is not None and self.id is not None:
            coll._entry_value_changed(self, f)
        return True

    def set_values(self, name: str, values: Iterable[str]) -> bool:
        """Store a list of values; ';' inside a value is replaced."""
        return self.set_field(name, join_values(values))

    def add_value(self, name: str, value: str) -> bool:
        f = self._schema_field(name)
        if not f.is_multiple:
            return self.set_field(name, value)
        current = self.values(name)
        if value in current:
            return False
        return self.set_values(name, current + [value])

    def set_checked(self, name: str, checked: bool) -> bool:
        return self.set_field(name, BOOL_TRUE if checked else "")

    def _drop_field(self, name: str) -> None:
        """Forget the value of a field removed from the schema."""
        self._values.pop(name, None)

    # -----------------------------
    # Copies / comparison
    # -----------------------------

    def copy_to(self, collection: "Collection") -> "Entry":
        """
        New, unattached-id entry of ``collection`` holding the values this
        entry has for fields that ``collection`` also defines.
        """
        other = Entry(collection)
        for name, value in self._values.items():
            if collection.has_field(name):
                other.set_field(name, value)
            else:
                logger.debug("dropping %r while copying entry %s", name, self.id)
        return other

    def to_dict(self) -> Dict[str, str]:
        return dict(self.items())

    def compare_value(self, other: "Entry", name: str) -> int:
        """
        1 when both entries hold the same (case-insensitive) non-empty
        value for ``name``, 0 otherwise.
        """
        a = self._values.get(name, "").lower()
        b = other._values.get(name, "").lower()
        return 1 if a and a == b else 0
