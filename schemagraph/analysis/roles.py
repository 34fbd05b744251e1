#!/usr/bin/env python3
"""
Classify tables by their role in the schema from FK in/out degree.

- reference:  referenced, references nothing (lookup tables)
- core:       both referenced and referencing
- junction:   references two or more tables, never referenced (join tables)
- standalone: no relationships
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.types import TableInfo

ROLE_LABELS = {
    "reference": "Reference / Lookup",
    "core": "Core Entities",
    "junction": "Junction / Bridge",
    "standalone": "Standalone",
}
ROLE_ORDER = ["reference", "core", "junction", "standalone"]


@dataclass
class RoleGroup:
    role: str
    label: str
    tables: List[TableInfo] = field(default_factory=list)


def classify_table(in_degree: int, out_degree: int) -> str:
    if in_degree == 0 and out_degree == 0:
        return "standalone"
    if out_degree >= 2 and in_degree == 0:
        return "junction"
    if in_degree > 0 and out_degree == 0:
        return "reference"
    return "core"


def table_roles(graph: DependencyGraph) -> Dict[str, str]:
    return {
        name: classify_table(graph.in_degree[name], graph.out_degree[name])
        for name in graph.table_names
    }


def group_by_role(graph: DependencyGraph) -> List[RoleGroup]:
    """Non-empty role groups in fixed order; tables keep graph order."""
    groups = {role: RoleGroup(role=role, label=ROLE_LABELS[role]) for role in ROLE_ORDER}
    roles = table_roles(graph)
    for table in graph.tables:
        groups[roles[table.name]].tables.append(table)
    return [groups[role] for role in ROLE_ORDER if groups[role].tables]
