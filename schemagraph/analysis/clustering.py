#!/usr/bin/env python3
"""
Connected-component clustering of tables over foreign-key edges.
Union-find with path compression; cluster names come from domain keywords.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.types import ForeignKey, TableInfo

# Ordered: first match wins.
DOMAIN_PATTERNS = [
    (("user", "profile", "auth", "account", "role", "permission"), "Users & Auth"),
    (("order", "cart", "payment", "invoice", "transaction", "checkout"), "Orders & Payments"),
    (("product", "item", "catalog", "category", "inventory"), "Products & Catalog"),
    (("post", "comment", "article", "blog", "content", "media"), "Content"),
    (("message", "notification", "email", "chat"), "Communication"),
    (("setting", "config", "preference", "option"), "Configuration"),
    (("log", "event", "audit", "history", "analytics"), "Logging & Analytics"),
]


class UnionFind:
    """
    Disjoint sets keyed by table name.

    A name is its own parent until first touched. union(a, b) reparents
    find(a)'s root under find(b)'s root.
    """

    def __init__(self) -> None:
        self.parent: Dict[str, str] = {}

    def find(self, x: str) -> str:
        root = self.parent.setdefault(x, x)
        while root != self.parent[root]:
            root = self.parent[root]
        # Path compression
        while x != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: str, b: str) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a != root_b:
            self.parent[root_a] = root_b

    def connected(self, a: str, b: str) -> bool:
        return self.find(a) == self.find(b)


@dataclass
class Cluster:
    """A connected component. cluster_id is the root table's name."""
    cluster_id: str
    tables: List[TableInfo] = field(default_factory=list)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def __len__(self) -> int:
        return len(self.tables)


@dataclass
class ClusterSummary:
    """Structural outline of a cluster used for guided walkthroughs."""
    cluster_id: str
    anchor: str
    relationships: List[ForeignKey] = field(default_factory=list)
    hubs: List[str] = field(default_factory=list)
    edge_tables: List[str] = field(default_factory=list)
    column_count: int = 0


def find_clusters(graph: DependencyGraph) -> List[Cluster]:
    """
    Partition the graph's tables into connected components.

    Returns:
        Clusters sorted by descending size, ties by cluster_id.
        Members keep the graph's table order.
    """
    uf = UnionFind()
    for table in graph.tables:
        uf.find(table.name)
    for fk in graph.foreign_keys:
        uf.union(fk.source_table, fk.target_table)

    groups: Dict[str, Cluster] = {}
    for table in graph.tables:
        root = uf.find(table.name)
        if root not in groups:
            groups[root] = Cluster(cluster_id=root)
        groups[root].tables.append(table)

    return sorted(groups.values(), key=lambda c: (-len(c.tables), c.cluster_id))


def cluster_partition(clusters: List[Cluster]) -> Dict[str, str]:
    """Map table_name -> cluster_id."""
    return {t.name: c.cluster_id for c in clusters for t in c.tables}


def name_cluster(cluster: Cluster) -> str:
    """
    Human-readable cluster name from domain keywords in member names.
    Falls back to "<root> Domain", or the bare root for singletons.
    """
    names = [t.name.lower() for t in cluster.tables]
    for keywords, label in DOMAIN_PATTERNS:
        if any(k in n for n in names for k in keywords):
            return label
    if len(cluster.tables) == 1:
        return cluster.cluster_id
    return f"{cluster.cluster_id} Domain"


def summarize_cluster(cluster: Cluster, graph: DependencyGraph) -> Optional[ClusterSummary]:
    """
    Summarize a cluster's internal structure.

    - anchor: first member with no outgoing FK into the cluster
    - hubs: members targeted by at least two internal FKs
    - edge_tables: members no internal FK targets
    """
    if not cluster.tables:
        return None
    members = set(cluster.table_names)
    rels = [
        fk for fk in graph.foreign_keys
        if fk.source_table in members and fk.target_table in members
    ]
    targeted: Dict[str, int] = {}
    has_outgoing = set()
    for fk in rels:
        targeted[fk.target_table] = targeted.get(fk.target_table, 0) + 1
        has_outgoing.add(fk.source_table)

    anchor = next((n for n in cluster.table_names if n not in has_outgoing), cluster.table_names[0])
    return ClusterSummary(
        cluster_id=cluster.cluster_id,
        anchor=anchor,
        relationships=rels,
        hubs=[n for n in cluster.table_names if targeted.get(n, 0) >= 2],
        edge_tables=[n for n in cluster.table_names if n not in targeted],
        column_count=sum(len(t.columns) for t in cluster.tables),
    )
