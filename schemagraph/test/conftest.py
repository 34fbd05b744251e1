from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from schemagraph.common.types import Column, ColumnRef, ForeignKey, SchemaModel, TableInfo


def _make_schema(
    tables: List[str] | Dict[str, List[str]],
    fks: List[Tuple[str, str, str, str]] | List[Tuple[str, str]] = (),
) -> SchemaModel:
    """
    tables: names, or name -> column names
    fks: (src, src_col, dst, dst_col) or (src, dst) with default columns
    """
    if not isinstance(tables, dict):
        tables = {name: ["id"] for name in tables}

    foreign_keys = []
    refs: Dict[Tuple[str, str], ColumnRef] = {}
    for i, fk in enumerate(fks):
        if len(fk) == 2:
            src, dst = fk
            src_col, dst_col = f"{dst.lower()}_id", "id"
        else:
            src, src_col, dst, dst_col = fk
        foreign_keys.append(ForeignKey(
            constraint_name=f"{src}_{src_col}_fkey_{i}",
            source_table=src,
            source_column=src_col,
            target_table=dst,
            target_column=dst_col,
        ))
        refs[(src, src_col)] = ColumnRef(table=dst, column=dst_col)

    table_infos = []
    for name, col_names in tables.items():
        columns = [
            Column(
                name=c,
                data_type="uuid" if c == "id" else "text",
                is_primary_key=(c == "id"),
                is_foreign_key=(name, c) in refs,
                references=refs.get((name, c)),
            )
            for c in col_names
        ]
        table_infos.append(TableInfo(name=name, columns=tuple(columns)))
    return SchemaModel(tables=tuple(table_infos), foreign_keys=tuple(foreign_keys))


@pytest.fixture
def make_schema():
    return _make_schema


@pytest.fixture
def shop_schema() -> SchemaModel:
    """A small e-commerce schema with one isolated table."""
    return _make_schema(
        {
            "users": ["id", "email", "name"],
            "profiles": ["id", "user_id", "bio"],
            "products": ["id", "title", "price", "category_id"],
            "categories": ["id", "label"],
            "orders": ["id", "user_id", "created_at"],
            "order_items": ["id", "order_id", "product_id", "quantity"],
            "settings": ["id", "key", "value"],
        },
        [
            ("profiles", "user_id", "users", "id"),
            ("products", "category_id", "categories", "id"),
            ("orders", "user_id", "users", "id"),
            ("order_items", "order_id", "orders", "id"),
            ("order_items", "product_id", "products", "id"),
        ],
    )
