#!/usr/bin/env python3
"""
Loader for schema snapshots.

A snapshot is the JSON document produced by the schema fetch step:
{"tables": [...], "foreignKeys": [...], "enums": [...]} with camelCase keys.
JSONL files hold one snapshot per line and are read with a generator.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from schemagraph.common.types import (
    Column,
    ColumnRef,
    EnumDef,
    ForeignKey,
    SchemaModel,
    TableInfo,
)

logger = logging.getLogger(__name__)


def _parse_column(raw: Dict[str, Any]) -> Column:
    references = raw.get("references")
    ref = None
    if references and references.get("table"):
        ref = ColumnRef(table=references["table"], column=references.get("column", ""))
    default = raw.get("defaultValue")
    return Column(
        name=raw["name"],
        data_type=raw.get("dataType") or "unknown",
        is_nullable=bool(raw.get("isNullable", True)),
        default_value=None if default is None else str(default),
        is_primary_key=bool(raw.get("isPrimaryKey", False)),
        is_foreign_key=ref is not None,
        is_unique=bool(raw.get("isUnique", False)),
        references=ref,
    )


def _parse_table(raw: Dict[str, Any]) -> TableInfo:
    name = raw["name"]
    columns: List[Column] = []
    seen = set()
    for raw_col in raw.get("columns", []):
        column = _parse_column(raw_col)
        if column.name in seen:
            logger.warning("Table %s: duplicate column %s ignored", name, column.name)
            continue
        seen.add(column.name)
        columns.append(column)
    return TableInfo(name=name, schema=raw.get("schema", "public"), columns=tuple(columns))


def _parse_foreign_key(raw: Dict[str, Any]) -> ForeignKey:
    source_table = raw["sourceTable"]
    source_column = raw["sourceColumn"]
    return ForeignKey(
        constraint_name=raw.get("constraintName") or f"{source_table}_{source_column}_fkey",
        source_table=source_table,
        source_column=source_column,
        target_table=raw["targetTable"],
        target_column=raw["targetColumn"],
    )


def schema_from_dict(data: Optional[Dict[str, Any]]) -> SchemaModel:
    """
    Build a SchemaModel from a decoded snapshot.

    Duplicate table names keep the first occurrence. Foreign keys are kept
    as-is, including ones pointing at unknown tables; the analysis layer
    drops those.

    Raises:
        ValueError: if data is None
    """
    if data is None:
        raise ValueError("Schema snapshot is required")

    tables: List[TableInfo] = []
    seen = set()
    for raw_table in data.get("tables", []):
        table = _parse_table(raw_table)
        if table.name in seen:
            logger.warning("Duplicate table %s ignored", table.name)
            continue
        seen.add(table.name)
        tables.append(table)

    foreign_keys = [_parse_foreign_key(raw) for raw in data.get("foreignKeys", [])]
    enums = [
        EnumDef(name=raw["name"], values=tuple(raw.get("values", [])))
        for raw in data.get("enums", [])
    ]
    logger.debug(
        "Loaded schema: %d tables, %d foreign keys, %d enums",
        len(tables), len(foreign_keys), len(enums),
    )
    return SchemaModel(tables=tuple(tables), foreign_keys=tuple(foreign_keys), enums=tuple(enums))


def schema_to_dict(schema: SchemaModel) -> Dict[str, Any]:
    """Inverse of schema_from_dict, for dumping snapshots."""
    def column_dict(c: Column) -> Dict[str, Any]:
        out = {
            "name": c.name,
            "dataType": c.data_type,
            "isNullable": c.is_nullable,
            "defaultValue": c.default_value,
            "isPrimaryKey": c.is_primary_key,
            "isForeignKey": c.is_foreign_key,
            "isUnique": c.is_unique,
        }
        if c.references is not None:
            out["references"] = {"table": c.references.table, "column": c.references.column}
        return out

    return {
        "tables": [
            {"name": t.name, "schema": t.schema, "columns": [column_dict(c) for c in t.columns]}
            for t in schema.tables
        ],
        "foreignKeys": [
            {
                "constraintName": fk.constraint_name,
                "sourceTable": fk.source_table,
                "sourceColumn": fk.source_column,
                "targetTable": fk.target_table,
                "targetColumn": fk.target_column,
            }
            for fk in schema.foreign_keys
        ],
        "enums": [{"name": e.name, "values": list(e.values)} for e in schema.enums],
    }


def load_schema(file_path: str | Path) -> SchemaModel:
    """
    Read a single snapshot from a JSON file.

    Args:
        file_path: Path to the snapshot JSON

    Returns:
        SchemaModel
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Schema snapshot not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return schema_from_dict(json.load(f))


def iter_schemas(file_path: str | Path) -> Iterator[SchemaModel]:
    """
    Read a JSONL file line by line and yield one SchemaModel per line.
    Invalid lines are skipped with a warning.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping invalid JSON at line %d: %s", line_num, e)
                continue
            yield schema_from_dict(data)
