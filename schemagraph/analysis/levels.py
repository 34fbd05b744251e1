#!/usr/bin/env python3
"""
Dependency depth assignment by iterative topological stratification.

Each pass places every unplaced table whose dependencies are all placed.
When a pass places nothing (a cycle), all remaining tables are forced
into that level so the loop always terminates within T passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from schemagraph.analysis.graph_builder import DependencyGraph

logger = logging.getLogger(__name__)


@dataclass
class DependencyLevels:
    """Levels of table names; level 0 has no dependencies."""
    levels: List[List[str]] = field(default_factory=list)
    forced_levels: List[int] = field(default_factory=list)  # indices placed by the cycle fallback

    @property
    def depth(self) -> Dict[str, int]:
        return {name: i for i, level in enumerate(self.levels) for name in level}

    @property
    def has_cycles(self) -> bool:
        return bool(self.forced_levels)

    def __len__(self) -> int:
        return len(self.levels)


def assign_levels(graph: DependencyGraph) -> DependencyLevels:
    """
    Stratify graph tables by dependency depth.

    Within a level, tables keep the graph's input order.
    """
    result = DependencyLevels()
    names = graph.table_names
    placed = set()

    while len(placed) < len(names):
        level = [
            name for name in names
            if name not in placed and graph.dependencies[name] <= placed
        ]
        if not level:
            level = [name for name in names if name not in placed]
            result.forced_levels.append(len(result.levels))
            logger.warning(
                "Dependency cycle: forcing %d tables into level %d",
                len(level), len(result.levels),
            )
        placed.update(level)
        result.levels.append(level)

    return result
