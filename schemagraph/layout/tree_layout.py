#!/usr/bin/env python3
"""
Tidy tree coordinates for a Hierarchy.

Leaves are laid out left to right in pre-order; siblings are spaced by
sibling_separation node slots, other neighbors by cousin_separation.
Parents sit centred over their first and last child.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from schemagraph.analysis.hierarchy import Hierarchy
from schemagraph.common.config import TreeLayoutConfig


@dataclass
class TreeLayout:
    positions: Dict[str, Tuple[float, float]] = field(default_factory=dict)  # node centre-top
    links: List[Tuple[str, str]] = field(default_factory=list)
    node_width: float = 0.0
    node_height: float = 0.0


def compute_tree_layout(
    hierarchy: Optional[Hierarchy],
    config: Optional[TreeLayoutConfig] = None,
) -> Optional[TreeLayout]:
    """
    Position hierarchy nodes. Returns None when no hierarchy is available.

    The virtual root takes part in the arrangement but is left out of the
    returned positions and links.
    """
    if hierarchy is None:
        return None
    cfg = config or TreeLayoutConfig()
    slot_x = cfg.node_width + cfg.h_gap
    slot_y = cfg.node_height + cfg.v_gap

    x: Dict[str, float] = {}
    last_leaf: List[Optional[str]] = [None]

    def place_leaf(node_id: str) -> None:
        prev = last_leaf[0]
        if prev is None:
            x[node_id] = 0.0
        else:
            same_parent = hierarchy.parent(prev) == hierarchy.parent(node_id)
            sep = cfg.sibling_separation if same_parent else cfg.cousin_separation
            x[node_id] = x[prev] + sep * slot_x
        last_leaf[0] = node_id

    # Iterative post-order to avoid recursion limits on deep chains
    stack: List[Tuple[str, bool]] = [(hierarchy.root_id, False)]
    while stack:
        node_id, expanded = stack.pop()
        children = hierarchy.nodes[node_id].children
        if not children:
            place_leaf(node_id)
        elif expanded:
            x[node_id] = (x[children[0]] + x[children[-1]]) / 2
        else:
            stack.append((node_id, True))
            for child_id in reversed(children):
                stack.append((child_id, False))

    layout = TreeLayout(node_width=cfg.node_width, node_height=cfg.node_height)
    root_x = x[hierarchy.root_id]
    for node in hierarchy.real_nodes():
        layout.positions[node.id] = (x[node.id] - root_x, node.depth * slot_y)
    layout.links = hierarchy.links()
    return layout
