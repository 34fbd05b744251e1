#!/usr/bin/env python3
"""
Type definitions for the schema model.

A SchemaModel is built once per fetch and treated as immutable for the
whole analysis pass; a new connection produces a new SchemaModel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ColumnRef:
    """Target of a foreign-key column."""
    table: str
    column: str


@dataclass(frozen=True)
class Column:
    """Represents a single table column."""
    name: str
    data_type: str = "unknown"
    is_nullable: bool = True
    default_value: Optional[str] = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    references: Optional[ColumnRef] = None  # present iff is_foreign_key


@dataclass(frozen=True)
class TableInfo:
    """Represents a database table. The name is the node identity everywhere."""
    name: str
    schema: str = "public"
    columns: Tuple[Column, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_keys(self) -> List[str]:
        return [c.name for c in self.columns if c.is_primary_key]

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on the table name or any column name."""
        if not query:
            return True
        q = query.lower()
        if q in self.name.lower():
            return True
        return any(q in c.name.lower() for c in self.columns)


@dataclass(frozen=True)
class ForeignKey:
    """A directed edge source_table -> target_table."""
    constraint_name: str
    source_table: str
    source_column: str
    target_table: str
    target_column: str

    @property
    def label(self) -> str:
        return f"{self.source_column} → {self.target_column}"

    @property
    def is_self_reference(self) -> bool:
        return self.source_table == self.target_table


@dataclass(frozen=True)
class EnumDef:
    """Enum type definition (carried along, not analyzed)."""
    name: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaModel:
    """Represents a complete database schema snapshot."""
    tables: Tuple[TableInfo, ...] = ()
    foreign_keys: Tuple[ForeignKey, ...] = ()
    enums: Tuple[EnumDef, ...] = ()
    table_index: Dict[str, TableInfo] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        # First occurrence wins for duplicate names; the loader warns about them.
        index: Dict[str, TableInfo] = {}
        for table in self.tables:
            index.setdefault(table.name, table)
        object.__setattr__(self, "table_index", index)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[TableInfo]:
        return self.table_index.get(name)

    def has_table(self, name: str) -> bool:
        return name in self.table_index
