#!/usr/bin/env python3
"""
Dependency graph builder from a schema snapshot.

Builds, for a filtered table subset:
- Dependencies: table -> set of distinct tables it references (no self-edges)
- Neighbors: undirected multiplicity counts, one per FK per direction
- In/out degree per table
- Foreign keys restricted to the subset, in input order

Foreign keys that point at tables outside the subset (or unknown to the
schema) are dropped silently; this is tolerated producer noise. Two maps
are taken before the drop, since they describe the subset tables against
the whole schema:
- declared_parents: target of each subset table's first non-self FK
- connection_degree: FK endpoints on each subset table, whatever the
  other end is
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

import networkx as nx

from schemagraph.common.types import ForeignKey, SchemaModel, TableInfo

logger = logging.getLogger(__name__)

TableFilter = Callable[[TableInfo], bool]


@dataclass
class DependencyGraph:
    """Derived adjacency structures for one analysis pass."""
    tables: List[TableInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    dependencies: Dict[str, Set[str]] = field(default_factory=dict)
    neighbors: Dict[str, Dict[str, int]] = field(default_factory=dict)
    in_degree: Dict[str, int] = field(default_factory=dict)
    out_degree: Dict[str, int] = field(default_factory=dict)
    index: Dict[str, int] = field(default_factory=dict)
    declared_parents: Dict[str, str] = field(default_factory=dict)
    connection_degree: Dict[str, int] = field(default_factory=dict)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def __len__(self) -> int:
        return len(self.tables)

    def __contains__(self, name: object) -> bool:
        return name in self.index

    def degree(self, name: str) -> int:
        return self.in_degree.get(name, 0) + self.out_degree.get(name, 0)

    def get_table(self, name: str) -> Optional[TableInfo]:
        idx = self.index.get(name)
        return None if idx is None else self.tables[idx]

    def edges(self, include_self: bool = False) -> List[ForeignKey]:
        """Foreign keys inside the subset, optionally without self-references."""
        if include_self:
            return list(self.foreign_keys)
        return [fk for fk in self.foreign_keys if not fk.is_self_reference]

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export as a MultiDiGraph.

        Nodes carry the table and its column count; each FK is one edge
        keyed by its constraint name with the join columns as attributes.
        """
        G = nx.MultiDiGraph()
        for table in self.tables:
            G.add_node(table.name, table=table, column_count=len(table.columns))
        for fk in self.foreign_keys:
            G.add_edge(
                fk.source_table, fk.target_table,
                key=fk.constraint_name,
                source_col=fk.source_column,
                target_col=fk.target_column,
            )
        return G


def filter_tables(schema: SchemaModel, query: str = "") -> List[TableInfo]:
    """Tables whose name or any column name contains query (case-insensitive)."""
    if schema is None:
        raise ValueError("Schema model is required")
    return [t for t in schema.tables if t.matches(query)]


def build_dependency_graph(
    tables: Iterable[TableInfo],
    foreign_keys: Iterable[ForeignKey],
    table_filter: Optional[TableFilter] = None,
) -> DependencyGraph:
    """
    Build adjacency structures for the tables accepted by table_filter.

    Runs in O(T + F).

    Args:
        tables: Table list in presentation order
        foreign_keys: Foreign key list in input order
        table_filter: Optional predicate selecting the subset

    Returns:
        DependencyGraph over the filtered subset
    """
    graph = DependencyGraph()
    known: Set[str] = set()
    for table in tables:
        if table.name in known:
            continue
        known.add(table.name)
        if table_filter is not None and not table_filter(table):
            continue
        graph.index[table.name] = len(graph.tables)
        graph.tables.append(table)
        graph.dependencies[table.name] = set()
        graph.neighbors[table.name] = {}
        graph.in_degree[table.name] = 0
        graph.out_degree[table.name] = 0
        graph.connection_degree[table.name] = 0

    dropped = 0
    for fk in foreign_keys:
        src, dst = fk.source_table, fk.target_table
        if src in graph.index:
            graph.connection_degree[src] += 1
            if src != dst and dst in known:
                graph.declared_parents.setdefault(src, dst)
        if dst in graph.index:
            graph.connection_degree[dst] += 1
        if src not in graph.index or dst not in graph.index:
            dropped += 1
            continue
        graph.foreign_keys.append(fk)
        graph.out_degree[src] += 1
        graph.in_degree[dst] += 1
        if src == dst:
            continue
        graph.dependencies[src].add(dst)
        graph.neighbors[src][dst] = graph.neighbors[src].get(dst, 0) + 1
        graph.neighbors[dst][src] = graph.neighbors[dst].get(src, 0) + 1

    if dropped:
        logger.debug("Dropped %d foreign keys outside the table subset", dropped)
    return graph


def build_graph(schema: SchemaModel, query: str = "") -> DependencyGraph:
    """Filter schema tables by a search query and build the dependency graph."""
    if schema is None:
        raise ValueError("Schema model is required")
    return build_dependency_graph(
        schema.tables,
        schema.foreign_keys,
        table_filter=(lambda t: t.matches(query)) if query else None,
    )
