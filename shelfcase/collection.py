from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .borrower import Borrower, Loan
from .entry import Entry
from .errors import DuplicateFieldError, SchemaError, ShelfcaseError, UnknownFieldError
from .field import Field, FieldFlag, FieldType
from .fieldformat import COLUMN_DELIMITER, DEFAULT_OPTIONS, FormatOptions, format_value


logger = logging.getLogger(__name__)


class CollectionType(str, Enum):
    CUSTOM = "custom"
    BOOK = "book"
    VIDEO = "video"
    BIBTEX = "bibtex"


# Pseudo-group spanning every groupable person-name field
PEOPLE_GROUP = "_people"
# Bucket for entries without a value in the grouped field
EMPTY_GROUP = "(Empty)"


class CollectionObserver:
    """
    Receives collection change notifications. Every method is a no-op;
    override the ones you need.

    Removals are announced before the entries are detached, so handlers
    can still read their values. Additions are announced after the
    entries are stored and indexed.
    """

    def field_added(self, collection: "Collection", field: Field) -> None:
        pass

    def field_modified(self, collection: "Collection", old: Field, new: Field) -> None:
        pass

    def field_removed(self, collection: "Collection", field: Field) -> None:
        pass

    def entries_added(self, collection: "Collection", entries: List[Entry]) -> None:
        pass

    def entries_modified(self, collection: "Collection", entries: List[Entry]) -> None:
        pass

    def entries_removed(self, collection: "Collection", entries: List[Entry]) -> None:
        pass

    def grouping_refreshed(self, collection: "Collection") -> None:
        pass


class GroupIndex:
    """
    Group key -> entries sharing that key, for one grouping attribute.

    An example for a book collection would be the group "Weber, David"
    of the "author" index. Entries keep insertion order inside a group,
    and a group disappears with its last entry.
    """

    def __init__(self, field_name: str, title: str = "") -> None:
        self.field_name = field_name
        self.title = title or field_name
        self._groups: Dict[str, List[Entry]] = {}
        self._keys_by_entry: Dict[int, List[str]] = {}

    def __repr__(self) -> str:
        return f"GroupIndex({self.field_name!r}, groups={len(self._groups)})"

    def add(self, entry: Entry, keys: Sequence[str]) -> None:
        keys = list(dict.fromkeys(k for k in keys if k)) or [EMPTY_GROUP]
        self._keys_by_entry[entry.id] = keys
        for k in keys:
            self._groups.setdefault(k, []).append(entry)

    def remove(self, entry: Entry) -> List[str]:
        keys = self._keys_by_entry.pop(entry.id, [])
        for k in keys:
            bucket = self._groups.get(k)
            if bucket is None:
                continue
            bucket[:] = [e for e in bucket if e is not entry]
            if not bucket:
                del self._groups[k]
        return keys

    def keys_for(self, entry: Entry) -> List[str]:
        return list(self._keys_by_entry.get(entry.id, []))

    def entries(self, key: str) -> List[Entry]:
        return list(self._groups.get(key, []))

    def keys(self) -> List[str]:
        return list(self._groups)

    def items(self) -> Iterator[Tuple[str, List[Entry]]]:
        for k, bucket in self._groups.items():
            yield k, list(bucket)

    def entry_ids(self) -> set:
        return set(self._keys_by_entry)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._groups))

    def __len__(self) -> int:
        return len(self._groups)


EntryArg = Union[Entry, Iterable[Entry]]


def _as_list(entries: EntryArg) -> List[Entry]:
    if isinstance(entries, Entry):
        return [entries]
    return list(entries)


class Collection:
    """
    A schema (ordered fields) plus the entries sharing it.

    The collection owns its entries in an id-keyed table and maintains a
    ``GroupIndex`` for every grouping attribute that has been asked for.
    """

    def __init__(
        self,
        title: str = "",
        unit: str = "entry",
        unit_title: str = "Entry",
        *,
        collection_id: int = 0,
        type: CollectionType = CollectionType.CUSTOM,
        fields: Optional[Iterable[Field]] = None,
        default_group_field: str = "",
        format_options: Optional[FormatOptions] = None,
    ) -> None:
        self.id = collection_id
        self.title = title or "My Collection"
        self.unit_name = unit
        self.unit_title = unit_title
        self.type = CollectionType(type)
        self.format_options = format_options or DEFAULT_OPTIONS

        # bibliography data
        self.preamble = ""
        self.macros: Dict[str, str] = {}

        # fields that, with the title, identify the same item twice
        self.match_fields: Tuple[str, ...] = ()

        self.borrowers: List[Borrower] = []

        self._fields: List[Field] = []
        self._field_map: Dict[str, Field] = {}
        self._entries: Dict[int, Entry] = {}
        self._next_entry_id = 1
        self._indices: Dict[str, GroupIndex] = {}
        self._defer_grouping = 0
        self._observers: List[Any] = []

        if fields:
            self.add_fields(fields)
        self.default_group_field = default_group_field

    def __repr__(self) -> str:
        return (f"Collection(id={self.id}, title={self.title!r}, type={self.type.value}, "
                f"fields={len(self._fields)}, entries={len(self._entries)})")

    # -----------------------------
    # Observers
    # -----------------------------

    def add_observer(self, observer: Any) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Any) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, event: str, *args: Any) -> None:
        for obs in list(self._observers):
            handler = getattr(obs, event, None)
            if handler is not None:
                handler(self, *args)

    # -----------------------------
    # Schema
    # -----------------------------

    @property
    def fields(self) -> List[Field]:
        return list(self._fields)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self._fields]

    def field_by_name(self, name: str) -> Optional[Field]:
        return self._field_map.get(name)

    def has_field(self, name: str) -> bool:
        return name in self._field_map

    def field_by_title(self, title: str) -> Optional[Field]:
        for f in self._fields:
            if f.title == title:
                return f
        return None

    def fields_with_property(self, key: str, value: Optional[str] = None) -> List[Field]:
        out = []
        for f in self._fields:
            prop = f.property(key)
            if prop and (value is None or prop == value):
                out.append(f)
        return out

    def fields_by_category(self) -> Dict[str, List[Field]]:
        out: Dict[str, List[Field]] = {}
        for f in self._fields:
            out.setdefault(f.category, []).append(f)
        return out

    @property
    def people_fields(self) -> List[Field]:
        return [f for f in self._fields if f.is_person and f.is_groupable]

    @property
    def image_fields(self) -> List[Field]:
        return [f for f in self._fields if f.type == FieldType.IMAGE]

    def group_names(self) -> List[str]:
        names = [f.name for f in self._fields if f.is_groupable]
        if self.people_fields:
            names.append(PEOPLE_GROUP)
        return names

    def add_field(self, field: Field) -> Field:
        """
        Append a field. Raises DuplicateFieldError if the name is taken;
        the caller decides whether that means update-in-place instead.
        """
        if field.name in self._field_map:
            raise DuplicateFieldError(field.name)
        self._fields.append(field)
        self._field_map[field.name] = field
        if field.is_person:
            self._indices.pop(PEOPLE_GROUP, None)
        self._notify("field_added", field)
        return field

    def add_fields(self, fields: Iterable[Field]) -> None:
        for f in fields:
            self.add_field(f)

    def merge_fields(self, fields: Iterable[Field]) -> List[Field]:
        """
        Add copies of the fields this collection lacks; for choice fields
        it already has, learn the missing allowed values. Returns the
        fields that were added.
        """
        added = []
        for f in fields:
            mine = self._field_map.get(f.name)
            if mine is None:
                added.append(self.add_field(f.copy()))
            elif mine.type == FieldType.CHOICE:
                for v in f.allowed:
                    mine.add_allowed(v)
        return added

    def modify_field(self, field: Field) -> Field:
        """Replace the field of the same name, keeping its position."""
        old = self._field_map.get(field.name)
        if old is None:
            raise UnknownFieldError(field.name)
        pos = self._fields.index(old)
        self._fields[pos] = field
        self._field_map[field.name] = field
        self._indices.pop(field.name, None)
        if old.is_person or field.is_person:
            self._indices.pop(PEOPLE_GROUP, None)
        if self.default_group_field == field.name and not field.is_groupable:
            self.default_group_field = self._fallback_group()
        self._notify("field_modified", old, field)
        return old

    def remove_field(self, field: Union[str, Field], force: bool = False) -> bool:
        """
        Remove a field and strip its values from every entry. Fields
        flagged NO_DELETE are kept unless ``force`` is set.
        """
        name = field.name if isinstance(field, Field) else field
        f = self._field_map.get(name)
        if f is None:
            return False
        if f.has_flag(FieldFlag.NO_DELETE) and not force:
            logger.warning("field %r can not be deleted", name)
            return False

        self._fields.remove(f)
        del self._field_map[name]
        for entry in self._entries.values():
            entry._drop_field(name)
        self._indices.pop(name, None)
        if f.is_person:
            self._indices.pop(PEOPLE_GROUP, None)
        if self.default_group_field == name:
            self.default_group_field = self._fallback_group()
        self._notify("field_removed", f)
        return True

    def reorder_fields(self, names: Sequence[str]) -> None:
        if sorted(names) != sorted(self._field_map):
            raise ValueError("field order must name every field exactly once")
        self._fields = [self._field_map[n] for n in names]

    def _fallback_group(self) -> str:
        names = self.group_names()
        return names[0] if names else ""

    # -----------------------------
    # Entries
    # -----------------------------

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries.values())

    @property
    def entry_ids(self) -> List[int]:
        return list(self._entries)

    def entry_by_id(self, entry_id: int) -> Optional[Entry]:
        return self._entries.get(entry_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries.values()))

    def __contains__(self, entry: object) -> bool:
        if not isinstance(entry, Entry) or entry.id is None:
            return False
        return self._entries.get(entry.id) is entry

    def new_entry(self, values: Optional[Dict[str, str]] = None) -> Entry:
        """Create an entry bound to this schema; it is not added yet."""
        entry = Entry(self)
        for name, value in (values or {}).items():
            entry.set_field(name, value)
        return entry

    def add_entries(self, entries: EntryArg) -> List[Entry]:
        added: List[Entry] = []
        for entry in _as_list(entries):
            if entry.collection is not self:
                raise ShelfcaseError("entry belongs to another collection")
            if entry in self:
                continue
            if entry.id is None or entry.id in self._entries:
                entry.id = self._next_entry_id
            self._next_entry_id = max(self._next_entry_id, entry.id + 1)
            self._entries[entry.id] = entry
            added.append(entry)

        if not added:
            return added
        if not self._defer_grouping:
            for name, index in self._indices.items():
                for entry in added:
                    index.add(entry, self.group_keys(entry, name))
        self._notify("entries_added", added)
        return added

    def add_entry(self, entry: Entry) -> Entry:
        self.add_entries([entry])
        return entry

    def remove_entries(self, entries: EntryArg) -> int:
        targets = [e for e in _as_list(entries) if e in self]
        if not targets:
            return 0
        # observers must still be able to read the entries
        self._notify("entries_removed", targets)
        for entry in targets:
            for index in self._indices.values():
                index.remove(entry)
            self._remove_loans_for(entry)
            del self._entries[entry.id]
            entry.detach()
        return len(targets)

    def remove_entry(self, entry: Entry) -> bool:
        return self.remove_entries([entry]) == 1

    def update_entry(self, entry: Entry) -> None:
        """Re-file an entry in every index and announce the modification."""
        if entry not in self:
            raise ShelfcaseError(f"entry {entry.id} is not part of this collection")
        if not self._defer_grouping:
            for name, index in self._indices.items():
                index.remove(entry)
                index.add(entry, self.group_keys(entry, name))
        self._notify("entries_modified", [entry])

    def _entry_value_changed(self, entry: Entry, field: Field) -> None:
        if self._defer_grouping or entry not in self:
            return
        affected = [field.name]
        if field.is_person:
            affected.append(PEOPLE_GROUP)
        for name in affected:
            index = self._indices.get(name)
            if index is not None:
                index.remove(entry)
                index.add(entry, self.group_keys(entry, name))

    def clear(self) -> None:
        """Release every entry and derived structure."""
        if self._entries:
            self._notify("entries_removed", self.entries)
        for entry in self._entries.values():
            entry.detach()
        self._entries.clear()
        self._indices.clear()
        self.borrowers.clear()

    # -----------------------------
    # Grouping
    # -----------------------------

    def group_keys(self, entry: Entry, group_name: str) -> List[str]:
        """The key(s) ``entry`` is filed under in the ``group_name`` index."""
        if group_name == PEOPLE_GROUP:
            keys: List[str] = []
            for f in self.people_fields:
                keys.extend(self._field_keys(entry, f))
            return list(dict.fromkeys(keys))
        f = self._field_map.get(group_name)
        if f is None:
            raise UnknownFieldError(group_name)
        return self._field_keys(entry, f)

    def _field_keys(self, entry: Entry, f: Field) -> List[str]:
        if f.type == FieldType.BOOL:
            return [f.title] if entry.is_checked(f.name) else []
        raw = entry.values(f.name)
        if f.type == FieldType.TABLE:
            raw = [row.split(COLUMN_DELIMITER)[0].strip() for row in raw]
        keys = [format_value(v, f.format, opts=self.format_options) for v in raw if v]
        return list(dict.fromkeys(k for k in keys if k))

    def _build_index(self, name: str) -> GroupIndex:
        if name == PEOPLE_GROUP:
            index = GroupIndex(name, "People")
        else:
            index = GroupIndex(name, self._field_map[name].title)
        for entry in self._entries.values():
            index.add(entry, self.group_keys(entry, name))
        return index

    def group_index(self, name: Optional[str] = None) -> GroupIndex:
        """
        Index for a grouping attribute, built on first use and then kept
        current. Defaults to the collection's default group field.
        """
        name = name or self.default_group_field
        if name not in self.group_names():
            raise SchemaError(f"{name!r} is not a grouping field of {self.title!r}")
        if self._defer_grouping:
            return self._build_index(name)
        index = self._indices.get(name)
        if index is None:
            index = self._indices[name] = self._build_index(name)
        return index

    @contextmanager
    def deferred_grouping(self):
        """
        Suspend index maintenance for bulk loads; all indices are rebuilt
        once when the outermost block exits.
        """
        self._defer_grouping += 1
        self._indices.clear()
        try:
            yield self
        finally:
            self._defer_grouping -= 1
            if not self._defer_grouping:
                self.refresh_grouping()

    def refresh_grouping(self) -> None:
        self._indices.clear()
        if self.default_group_field in self.group_names():
            self.group_index(self.default_group_field)
        self._notify("grouping_refreshed")

    # -----------------------------
    # Borrowers / loans
    # -----------------------------

    def borrower_by_uid(self, uid: str) -> Optional[Borrower]:
        for b in self.borrowers:
            if b.uid == uid:
                return b
        return None

    def borrower_by_name(self, name: str) -> Optional[Borrower]:
        for b in self.borrowers:
            if b.name == name:
                return b
        return None

    def add_borrower(self, borrower: Borrower) -> Borrower:
        existing = self.borrower_by_uid(borrower.uid)
        if existing is not None:
            return existing
        self.borrowers.append(borrower)
        return borrower

    def loans_for(self, entry: Entry) -> List[Loan]:
        return [l for b in self.borrowers for l in b.loans if l.entry_id == entry.id]

    def loan_entry(self, loan: Loan) -> Optional[Entry]:
        return self._entries.get(loan.entry_id)

    def check_out(
        self,
        entries: EntryArg,
        borrower: Union[str, Borrower],
        *,
        due_date: Optional[date] = None,
        note: str = "",
        loan_date: Optional[date] = None,
    ) -> List[Loan]:
        if isinstance(borrower, str):
            borrower = self.borrower_by_name(borrower) or Borrower(borrower)
        borrower = self.add_borrower(borrower)

        loans: List[Loan] = []
        for entry in _as_list(entries):
            if entry not in self:
                raise ShelfcaseError(f"entry {entry.id} is not part of this collection")
            if self.loans_for(entry):
                logger.info("entry %s is already loaned", entry.id)
                continue
            loan = Loan(entry_id=entry.id, due_date=due_date, note=note,
                        loan_date=loan_date or date.today())
            borrower.add_loan(loan)
            loans.append(loan)
            if self._is_loan_flag(entry):
                entry.set_checked("loaned", True)
        if not borrower.loans:
            self.borrowers.remove(borrower)
        return loans

    def check_in(self, entries: EntryArg) -> int:
        count = 0
        for entry in _as_list(entries):
            count += len(self._remove_loans_for(entry))
            if self._is_loan_flag(entry) and entry.is_attached:
                entry.set_checked("loaned", False)
        return count

    def _is_loan_flag(self, entry: Entry) -> bool:
        f = self._field_map.get("loaned")
        return f is not None and f.type == FieldType.BOOL

    def _remove_loans_for(self, entry: Entry) -> List[Loan]:
        gone: List[Loan] = []
        for b in self.borrowers:
            gone.extend(b.remove_loans_for_entry(entry.id))
        self.borrowers = [b for b in self.borrowers if not b.is_empty]
        return gone

    # -----------------------------
    # Misc
    # -----------------------------

    def same_entry_score(self, a: Entry, b: Entry) -> int:
        """
        Rough likelihood that two entries describe the same item. The title
        weighs three times as much as each of ``match_fields``.
        """
        score = 0
        if self.has_field("title"):
            score += 3 * a.compare_value(b, "title")
        for name in self.match_fields:
            if self.has_field(name):
                score += a.compare_value(b, name)
        return score

    def values_of(self, name: str) -> List[str]:
        """Every distinct value used for ``name``, in first-seen order."""
        if name not in self._field_map:
            raise UnknownFieldError(name)
        seen: Dict[str, None] = {}
        for entry in self._entries.values():
            for v in entry.values(name):
                seen.setdefault(v, None)
        return list(seen)
