#!/usr/bin/env python3
"""
Symmetric table x table connection-strength matrix for heat-map views.

Each foreign key between two distinct tables adds 1 to both M[a][b] and
M[b][a]. The diagonal stays 0. Contributing edges are kept per unordered
pair in FK input order for detail display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from schemagraph.analysis.graph_builder import DependencyGraph

PairKey = Tuple[str, str]


@dataclass(frozen=True)
class ConnectionDetail:
    source_table: str
    target_table: str
    source_column: str
    target_column: str

    @property
    def via(self) -> str:
        return f"{self.source_column} → {self.target_column}"


@dataclass(frozen=True)
class TableConnectionStats:
    table: str
    connections: int  # row sum
    connected_to: int  # non-zero cells in the row


def _pair_key(a: str, b: str) -> PairKey:
    return (a, b) if a <= b else (b, a)


class ConnectionMatrix:
    """
    Connection counts between tables.

    weight() and ranking() are O(1) after construction.
    """

    def __init__(self, graph: DependencyGraph):
        self.tables: List[str] = graph.table_names
        self.index: Dict[str, int] = dict(graph.index)
        n = len(self.tables)
        self.matrix = np.zeros((n, n), dtype=np.int64)
        self.details: Dict[PairKey, List[ConnectionDetail]] = {}

        for fk in graph.edges(include_self=False):
            i = self.index[fk.source_table]
            j = self.index[fk.target_table]
            self.matrix[i, j] += 1
            self.matrix[j, i] += 1
            self.details.setdefault(_pair_key(fk.source_table, fk.target_table), []).append(
                ConnectionDetail(
                    source_table=fk.source_table,
                    target_table=fk.target_table,
                    source_column=fk.source_column,
                    target_column=fk.target_column,
                )
            )

        totals = self.matrix.sum(axis=1) if n else np.zeros(0, dtype=np.int64)
        partners = (self.matrix > 0).sum(axis=1) if n else np.zeros(0, dtype=np.int64)
        stats = [
            TableConnectionStats(table=name, connections=int(totals[i]), connected_to=int(partners[i]))
            for i, name in enumerate(self.tables)
        ]
        # Stable sort keeps table order among ties.
        self._ranking = sorted(stats, key=lambda s: -s.connections)
        self._stats = {s.table: s for s in stats}
        self.max_weight = int(self.matrix.max()) if n else 0

    def __len__(self) -> int:
        return len(self.tables)

    def weight(self, a: str, b: str) -> int:
        """Number of FKs between a and b in either direction; 0 for unknown tables."""
        i = self.index.get(a)
        j = self.index.get(b)
        if i is None or j is None:
            return 0
        return int(self.matrix[i, j])

    def intensity(self, a: str, b: str) -> float:
        """weight(a, b) scaled to [0, 1] by the largest cell (at least 1)."""
        return min(self.weight(a, b) / max(1, self.max_weight), 1.0)

    def pair_details(self, a: str, b: str) -> List[ConnectionDetail]:
        return list(self.details.get(_pair_key(a, b), []))

    def ranking(self) -> List[TableConnectionStats]:
        """Tables by descending total connections, ties in table order."""
        return list(self._ranking)

    def stats(self, table: str) -> TableConnectionStats:
        return self._stats.get(table, TableConnectionStats(table=table, connections=0, connected_to=0))

    def connected_tables(self, table: str) -> List[str]:
        """Tables with a non-zero cell in table's row, in table order."""
        i = self.index.get(table)
        if i is None:
            return []
        return [name for j, name in enumerate(self.tables) if self.matrix[i, j] > 0]

    def to_dict(self) -> Dict[str, object]:
        return {
            "tables": list(self.tables),
            "matrix": self.matrix.tolist(),
            "details": {
                f"{a}:{b}": [
                    {"from": d.source_table, "to": d.target_table, "via": d.via}
                    for d in entries
                ]
                for (a, b), entries in self.details.items()
            },
        }


def build_connection_matrix(graph: DependencyGraph) -> ConnectionMatrix:
    return ConnectionMatrix(graph)
