#!/usr/bin/env python3
"""
Rooted forest for tree layouts.

Each table's primary parent is the target of the first foreign key (input
order) whose source is that table. Tables without one are root
candidates; several candidates hang under a synthetic virtual root.

The reduction is lossy on purpose: a table with many FKs gets one parent.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.types import SchemaModel, TableInfo

logger = logging.getLogger(__name__)

VIRTUAL_ROOT_ID = "__root__"


@dataclass
class HierarchyNode:
    id: str
    parent_id: Optional[str]
    table: Optional[TableInfo]  # None for the virtual root
    children: List[str] = field(default_factory=list)
    depth: int = 0

    @property
    def is_virtual(self) -> bool:
        return self.table is None


@dataclass
class Hierarchy:
    root_id: str
    nodes: Dict[str, HierarchyNode] = field(default_factory=dict)

    @property
    def has_virtual_root(self) -> bool:
        return self.root_id == VIRTUAL_ROOT_ID

    @property
    def root(self) -> HierarchyNode:
        return self.nodes[self.root_id]

    def children(self, node_id: str) -> List[str]:
        node = self.nodes.get(node_id)
        return list(node.children) if node else []

    def parent(self, node_id: str) -> Optional[str]:
        node = self.nodes.get(node_id)
        return node.parent_id if node else None

    def iter_preorder(self) -> Iterator[HierarchyNode]:
        stack = [self.root_id]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def real_nodes(self) -> List[HierarchyNode]:
        """Nodes backed by tables, in pre-order; the virtual root is left out."""
        return [n for n in self.iter_preorder() if not n.is_virtual]

    def links(self) -> List[tuple]:
        """(parent, child) pairs between real nodes."""
        return [
            (n.parent_id, n.id) for n in self.real_nodes()
            if n.parent_id is not None and n.parent_id != VIRTUAL_ROOT_ID
        ]


def _primary_parents(graph: DependencyGraph, schema: Optional[SchemaModel]) -> Dict[str, str]:
    """First non-self FK target per source table, in FK input order."""
    if schema is None:
        return dict(graph.declared_parents)
    parents: Dict[str, str] = {}
    for fk in schema.foreign_keys:
        if not schema.has_table(fk.target_table):
            continue
        if fk.is_self_reference or fk.source_table not in graph:
            continue
        parents.setdefault(fk.source_table, fk.target_table)
    return parents


def build_hierarchy(
    graph: DependencyGraph,
    schema: Optional[SchemaModel] = None,
) -> Optional[Hierarchy]:
    """
    Derive a rooted tree from the first-found-parent reduction.

    Parents are declared from every foreign key, not only those inside the
    filtered subset, so a table whose parent was filtered out is reparented
    to the root instead of becoming a root itself. The graph records these
    declarations when it is built; pass schema to read them from a wider
    schema than the graph was built from.

    Returns:
        Hierarchy, or None when no hierarchy is available (no tables, or
        no table without an outgoing dependency).
    """
    names = graph.table_names
    declared = _primary_parents(graph, schema)
    roots = [n for n in names if n not in declared]

    if not roots:
        logger.info("No hierarchy available: %d tables, no root candidate", len(names))
        return None

    hierarchy = Hierarchy(root_id=VIRTUAL_ROOT_ID if len(roots) > 1 else roots[0])
    root_id = hierarchy.root_id

    parent_of: Dict[str, Optional[str]] = {}
    if hierarchy.has_virtual_root:
        parent_of[VIRTUAL_ROOT_ID] = None
        for name in roots:
            parent_of[name] = VIRTUAL_ROOT_ID
    else:
        parent_of[root_id] = None

    for name in names:
        if name in parent_of:
            continue
        parent = declared.get(name)
        parent_of[name] = parent if parent in graph else root_id

    _break_parent_cycles(names, parent_of, root_id, graph.index)

    for node_id, parent_id in parent_of.items():
        hierarchy.nodes[node_id] = HierarchyNode(
            id=node_id,
            parent_id=parent_id,
            table=graph.get_table(node_id) if node_id != VIRTUAL_ROOT_ID else None,
        )
    for node_id, parent_id in parent_of.items():
        if parent_id is not None:
            hierarchy.nodes[parent_id].children.append(node_id)

    queue = deque([root_id])
    while queue:
        node = hierarchy.nodes[queue.popleft()]
        for child_id in node.children:
            hierarchy.nodes[child_id].depth = node.depth + 1
            queue.append(child_id)

    return hierarchy


def _break_parent_cycles(
    names: List[str],
    parent_of: Dict[str, Optional[str]],
    root_id: str,
    order: Dict[str, int],
) -> None:
    """Reattach to the root the earliest-ordered member of each parent cycle."""
    resolved = {root_id}
    for name in names:
        path: List[str] = []
        on_path = set()
        current = name
        while current not in resolved:
            if current in on_path:
                cycle = path[path.index(current):]
                breaker = min(cycle, key=lambda n: order[n])
                logger.debug("Parent cycle through %s: reattached to root", breaker)
                parent_of[breaker] = root_id
                break
            path.append(current)
            on_path.add(current)
            current = parent_of[current]
        resolved.update(path)
