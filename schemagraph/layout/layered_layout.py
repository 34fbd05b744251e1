#!/usr/bin/env python3
"""
Layered (Sugiyama-style) layout for the directed diagram views.

Pipeline:
1. Cycle removal: break each remaining cycle at its closing edge
2. Ranking: longest path, then sources pulled down next to their successors
3. Dummy nodes for edges spanning more than one rank
4. Ordering: barycenter sweeps, keeping the order with fewest crossings
5. Positioning: nodes packed per rank with fixed separation, nudged toward
   their upper neighbors without ever overlapping

Node height grows with column count, so taller tables push their rank
apart. The layout is a pure function of the graph passed in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import networkx as nx

from schemagraph.analysis.graph_builder import DependencyGraph
from schemagraph.common.config import LayeredLayoutConfig

logger = logging.getLogger(__name__)

DUMMY_PREFIX = "__dummy__"


@dataclass
class LayoutNode:
    name: str
    x: float  # top-left corner
    y: float
    width: float
    height: float
    rank: int
    order: int

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class LayoutEdge:
    source: str
    target: str
    constraint_name: str
    label: str
    points: List[Tuple[float, float]] = field(default_factory=list)  # bend points


@dataclass
class LayeredLayout:
    direction: str
    nodes: Dict[str, LayoutNode] = field(default_factory=dict)
    edges: List[LayoutEdge] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0

    def ranks(self) -> List[List[str]]:
        out: List[List[str]] = []
        for node in sorted(self.nodes.values(), key=lambda n: (n.rank, n.order)):
            while len(out) <= node.rank:
                out.append([])
            out[node.rank].append(node.name)
        return out


def _acyclic(names: List[str], edges: List[Tuple[str, str]]) -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_nodes_from(names)
    G.add_edges_from(edges)
    while True:
        try:
            cycle = nx.find_cycle(G)
        except nx.NetworkXNoCycle:
            return G
        u, v = cycle[-1][0], cycle[-1][1]
        G.remove_edge(u, v)
        if not G.has_edge(v, u):
            G.add_edge(v, u)
        logger.debug("Reversed edge %s -> %s to break a cycle", u, v)


def assign_ranks(names: List[str], edges: List[Tuple[str, str]]) -> Dict[str, int]:
    """Longest-path ranks with sources tightened toward their successors."""
    dag = _acyclic(names, edges)
    order = list(nx.topological_sort(dag))
    rank: Dict[str, int] = {}
    for node in order:
        preds = list(dag.predecessors(node))
        rank[node] = max((rank[p] + 1 for p in preds), default=0)
    for node in reversed(order):
        succs = list(dag.successors(node))
        if succs and dag.in_degree(node) == 0:
            rank[node] = min(rank[s] for s in succs) - 1
    return rank


def _count_crossings(upper: List[str], lower: List[str], links: List[Tuple[str, str]]) -> int:
    upos = {n: i for i, n in enumerate(upper)}
    lpos = {n: i for i, n in enumerate(lower)}
    pairs = [(upos[a], lpos[b]) for a, b in links if a in upos and b in lpos]
    crossings = 0
    for i in range(len(pairs)):
        for j in range(i + 1, len(pairs)):
            (a1, b1), (a2, b2) = pairs[i], pairs[j]
            if (a1 - a2) * (b1 - b2) < 0:
                crossings += 1
    return crossings


def _total_crossings(layers: List[List[str]], links: List[Tuple[str, str]]) -> int:
    return sum(_count_crossings(layers[r], layers[r + 1], links) for r in range(len(layers) - 1))


def _barycenter_sort(layer: List[str], fixed: List[str], neighbors: Dict[str, List[str]]) -> List[str]:
    pos = {n: i for i, n in enumerate(fixed)}
    keys = {}
    for i, node in enumerate(layer):
        adjacent = [pos[m] for m in neighbors.get(node, []) if m in pos]
        keys[node] = sum(adjacent) / len(adjacent) if adjacent else float(i)
    return sorted(layer, key=lambda n: keys[n])


def order_layers(
    layers: List[List[str]],
    links: List[Tuple[str, str]],
    sweeps: int,
) -> List[List[str]]:
    """Barycenter down/up sweeps; returns the ordering with fewest crossings."""
    up: Dict[str, List[str]] = {}
    down: Dict[str, List[str]] = {}
    for a, b in links:
        down.setdefault(a, []).append(b)
        up.setdefault(b, []).append(a)

    best = [list(layer) for layer in layers]
    best_crossings = _total_crossings(best, links)
    current = [list(layer) for layer in layers]
    for sweep in range(sweeps):
        if sweep % 2 == 0:
            for r in range(1, len(current)):
                current[r] = _barycenter_sort(current[r], current[r - 1], up)
        else:
            for r in range(len(current) - 2, -1, -1):
                current[r] = _barycenter_sort(current[r], current[r + 1], down)
        crossings = _total_crossings(current, links)
        if crossings < best_crossings:
            best = [list(layer) for layer in current]
            best_crossings = crossings
    return best


def compute_layered_layout(
    graph: DependencyGraph,
    config: Optional[LayeredLayoutConfig] = None,
) -> LayeredLayout:
    """
    Rank and position every table in the graph.

    Args:
        graph: Filtered dependency graph
        config: Sizes, spacing and direction ("TB" or "LR")

    Returns:
        LayeredLayout with top-left node coordinates starting at (0, 0)
    """
    cfg = config or LayeredLayoutConfig()
    cfg.validate()
    horizontal = cfg.direction == "LR"
    result = LayeredLayout(direction=cfg.direction)
    if not graph.tables:
        return result

    names = graph.table_names
    fks = graph.edges(include_self=False)
    distinct = list(dict.fromkeys((fk.source_table, fk.target_table) for fk in fks))

    rank = assign_ranks(names, distinct)
    shift = -min(rank.values())
    rank = {n: r + shift for n, r in rank.items()}

    sizes: Dict[str, Tuple[float, float]] = {}
    for table in graph.tables:
        sizes[table.name] = (cfg.node_width, cfg.node_height(len(table.columns)))

    # Chains of dummy nodes for long edges, keyed by (source, target)
    chains: Dict[Tuple[str, str], List[str]] = {}
    links: List[Tuple[str, str]] = []
    dummies: List[str] = []
    for a, b in distinct:
        lo, hi = (a, b) if rank[a] <= rank[b] else (b, a)
        chain = [lo]
        for r in range(rank[lo] + 1, rank[hi]):
            dummy = f"{DUMMY_PREFIX}{len(dummies)}"
            dummies.append(dummy)
            rank[dummy] = r
            sizes[dummy] = (0.0, 0.0)
            chain.append(dummy)
        chain.append(hi)
        chains[(a, b)] = chain if lo == a else list(reversed(chain))
        links.extend(zip(chain, chain[1:]))

    layers: List[List[str]] = [[] for _ in range(max(rank.values()) + 1)]
    for node in names + dummies:
        layers[rank[node]].append(node)

    layers = order_layers(layers, links, cfg.ordering_sweeps)

    def cross_size(node: str) -> float:
        w, h = sizes[node]
        return h if horizontal else w

    def main_size(node: str) -> float:
        w, h = sizes[node]
        return w if horizontal else h

    # Cross-axis placement
    up: Dict[str, List[str]] = {}
    for a, b in links:
        up.setdefault(b, []).append(a)
    cross: Dict[str, float] = {}
    for r, layer in enumerate(layers):
        packed: List[float] = []
        cursor = 0.0
        for node in layer:
            packed.append(cursor + cross_size(node) / 2)
            cursor += cross_size(node) + cfg.node_sep
        offset = (cursor - cfg.node_sep) / 2
        packed = [p - offset for p in packed]

        desired = []
        for node, p in zip(layer, packed):
            anchors = sorted(cross[m] for m in up.get(node, []) if m in cross) if r else []
            desired.append(anchors[len(anchors) // 2] if anchors else p)

        placed: List[float] = []
        for i, node in enumerate(layer):
            x = desired[i]
            if i:
                prev = layer[i - 1]
                min_x = placed[-1] + (cross_size(prev) + cross_size(node)) / 2 + cfg.node_sep
                x = max(x, min_x)
            placed.append(x)
        drift = sum(p - d for p, d in zip(placed, desired)) / len(layer) if layer else 0.0
        for node, p in zip(layer, placed):
            cross[node] = p - drift

    # Main-axis placement
    main: Dict[str, float] = {}
    offset = 0.0
    for layer in layers:
        thickness = max((main_size(n) for n in layer), default=0.0)
        for node in layer:
            main[node] = offset + thickness / 2
        offset += thickness + cfg.rank_sep

    centers = {
        n: ((main[n], cross[n]) if horizontal else (cross[n], main[n]))
        for n in rank
    }
    min_x = min(centers[n][0] - sizes[n][0] / 2 for n in names)
    min_y = min(centers[n][1] - sizes[n][1] / 2 for n in names)

    for r, layer in enumerate(layers):
        real = [n for n in layer if n in graph]
        for i, node in enumerate(real):
            cx, cy = centers[node]
            w, h = sizes[node]
            result.nodes[node] = LayoutNode(
                name=node, x=cx - w / 2 - min_x, y=cy - h / 2 - min_y,
                width=w, height=h, rank=r, order=i,
            )
    # Keep table order for nodes
    result.nodes = {n: result.nodes[n] for n in names}

    for fk in fks:
        chain = chains[(fk.source_table, fk.target_table)]
        result.edges.append(LayoutEdge(
            source=fk.source_table,
            target=fk.target_table,
            constraint_name=fk.constraint_name,
            label=fk.label,
            points=[(centers[d][0] - min_x, centers[d][1] - min_y) for d in chain[1:-1]],
        ))

    result.width = max(n.x + n.width for n in result.nodes.values())
    result.height = max(n.y + n.height for n in result.nodes.values())
    return result
