#!/usr/bin/env python3
"""
Level-grid layout for the process-flow view.

Each dependency level becomes a row, centred on x = 0. Edges run from the
referenced table to the referencing one, the direction data flows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.analysis.levels import DependencyLevels, assign_levels
from schemagraph.common.config import FlowLayoutConfig


@dataclass
class FlowNode:
    name: str
    level: int
    x: float
    y: float


@dataclass
class FlowEdge:
    source: str  # referenced table
    target: str  # referencing table
    source_column: str
    target_column: str


@dataclass
class FlowLayout:
    nodes: Dict[str, FlowNode] = field(default_factory=dict)
    edges: List[FlowEdge] = field(default_factory=list)


def compute_flow_layout(
    graph: DependencyGraph,
    levels: Optional[DependencyLevels] = None,
    config: Optional[FlowLayoutConfig] = None,
) -> FlowLayout:
    cfg = config or FlowLayoutConfig()
    levels = levels if levels is not None else assign_levels(graph)
    layout = FlowLayout()

    for li, level in enumerate(levels.levels):
        total_width = len(level) * cfg.node_width + (len(level) - 1) * cfg.gap_x
        start_x = -total_width / 2
        for idx, name in enumerate(level):
            if name not in graph:
                continue
            layout.nodes[name] = FlowNode(
                name=name,
                level=li,
                x=start_x + idx * (cfg.node_width + cfg.gap_x),
                y=li * (cfg.node_height + cfg.gap_y),
            )

    for fk in graph.foreign_keys:
        layout.edges.append(FlowEdge(
            source=fk.target_table,
            target=fk.source_table,
            source_column=fk.target_column,
            target_column=fk.source_column,
        ))
    return layout
