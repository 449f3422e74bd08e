from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Dict, List, Optional

from .fieldformat import FormatFlag, FormatOptions, format_value, split_values


# -----------------------------
# Enums / Types
# -----------------------------

class FieldType(IntEnum):
    """Semantic type of a field. Values are the ones written to document files."""
    LINE = 1
    PARA = 2
    CHOICE = 3
    BOOL = 4
    NUMBER = 6
    URL = 7
    TABLE = 8
    IMAGE = 10
    DATE = 12
    RATING = 14


class FieldFlag(IntFlag):
    NONE = 0
    ALLOW_MULTIPLE = 1
    ALLOW_GROUPED = 2
    ALLOW_COMPLETION = 4
    NO_DELETE = 8


# field names double as XML element names
_NAME_RE = re.compile(r"^[A-Za-z_][-A-Za-z0-9_.]*$")


@dataclass(eq=False)
class Field:
    """
    Schema descriptor for one attribute of every entry in a collection.

    ``name`` is the identity of the field: it is the lookup key everywhere
    and can not be changed once the field exists.
    """
    name: str
    title: str = ""
    type: FieldType = FieldType.LINE
    category: str = "General"
    flags: FieldFlag = FieldFlag.NONE
    format: FormatFlag = FormatFlag.PLAIN
    allowed: List[str] = field(default_factory=list)
    description: str = ""
    properties: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name or not _NAME_RE.match(self.name):
            raise ValueError(f"invalid field name: {self.name!r}")
        self.type = FieldType(self.type)
        self.flags = FieldFlag(self.flags)
        self.format = FormatFlag(self.format)
        if not self.title:
            self.title = self.name.replace("-", " ").replace("_", " ").title()
        if self.type == FieldType.BOOL:
            # a checkbox holds a single presence flag
            self.flags &= ~FieldFlag.ALLOW_MULTIPLE

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "name" and "name" in self.__dict__:
            raise AttributeError("a field name can not be changed")
        object.__setattr__(self, key, value)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, type={self.type.name})"

    # --- flags ---

    def has_flag(self, flag: FieldFlag) -> bool:
        return bool(self.flags & flag)

    @property
    def is_multiple(self) -> bool:
        return self.has_flag(FieldFlag.ALLOW_MULTIPLE) or self.type == FieldType.TABLE

    @property
    def is_groupable(self) -> bool:
        return self.has_flag(FieldFlag.ALLOW_GROUPED)

    @property
    def is_person(self) -> bool:
        return self.format == FormatFlag.NAME

    # --- allowed values ---

    def add_allowed(self, value: str) -> bool:
        """
        Extend the allowed list of a choice field. Values are only ever
        appended. Returns True if the list changed.
        """
        if self.type != FieldType.CHOICE or not value:
            return False
        changed = False
        values = split_values(value) if self.is_multiple else [value]
        for v in values:
            if v not in self.allowed:
                self.allowed.append(v)
                changed = True
        return changed

    # --- properties ---

    def property(self, key: str) -> str:
        return self.properties.get(key, "")

    def set_property(self, key: str, value: str) -> None:
        if value:
            self.properties[key] = value
        else:
            self.properties.pop(key, None)

    # --- misc ---

    def format_value(self, value: str, opts: Optional[FormatOptions] = None) -> str:
        return format_value(value, self.format, multiple=self.is_multiple, opts=opts)

    def copy(self) -> "Field":
        return copy.deepcopy(self)

    def signature(self) -> tuple:
        """Everything that must match for two fields to be the same schema."""
        return (
            self.name, self.title, int(self.type), self.category, int(self.flags), int(self.format),
            tuple(self.allowed), self.description, tuple(sorted(self.properties.items())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "type": int(self.type),
            "category": self.category,
            "flags": int(self.flags),
            "format": int(self.format),
            "allowed": list(self.allowed),
            "description": self.description,
            "properties": dict(self.properties),
        }
