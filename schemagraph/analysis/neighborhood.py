#!/usr/bin/env python3
"""
Relationship queries around a single table: direct relationships,
depends-on / depended-by lists, and the multi-hop drill neighborhood.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.types import ForeignKey, TableInfo


@dataclass
class DependencySummary:
    table: str
    depends_on: List[str] = field(default_factory=list)
    depended_by: List[str] = field(default_factory=list)


@dataclass
class Neighborhood:
    center: str
    tables: List[TableInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]


def relationships_of(graph: DependencyGraph, table: str) -> List[ForeignKey]:
    """FKs with table at either end, in input order."""
    return [
        fk for fk in graph.foreign_keys
        if fk.source_table == table or fk.target_table == table
    ]


def dependency_summary(graph: DependencyGraph, table: str) -> DependencySummary:
    summary = DependencySummary(table=table)
    for fk in graph.foreign_keys:
        if fk.source_table == table:
            summary.depends_on.append(fk.target_table)
        if fk.target_table == table:
            summary.depended_by.append(fk.source_table)
    return summary


def drill_neighborhood(graph: DependencyGraph, center: str, hops: int = 2) -> Neighborhood:
    """
    Tables within `hops` undirected FK steps of center, with the FKs
    among them. Unknown center gives an empty neighborhood.
    """
    result = Neighborhood(center=center)
    if center not in graph:
        return result

    related = {center}
    frontier = [center]
    for _ in range(max(hops, 0)):
        next_frontier = []
        for name in frontier:
            for neighbor in graph.neighbors[name]:
                if neighbor not in related:
                    related.add(neighbor)
                    next_frontier.append(neighbor)
        frontier = next_frontier

    result.tables = [t for t in graph.tables if t.name in related]
    result.foreign_keys = [
        fk for fk in graph.foreign_keys
        if fk.source_table in related and fk.target_table in related
    ]
    return result
