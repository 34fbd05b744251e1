#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from typing import Any, Dict

from tqdm import tqdm

from schemagraph.analysis.clustering import find_clusters, name_cluster, summarize_cluster
from schemagraph.analysis.connection_matrix import build_connection_matrix
from schemagraph.analysis.graph_builder import DependencyGraph, build_graph
from schemagraph.analysis.hierarchy import build_hierarchy
from schemagraph.analysis.levels import assign_levels
from schemagraph.analysis.neighborhood import dependency_summary, drill_neighborhood
from schemagraph.analysis.roles import group_by_role
from schemagraph.common.config import (
    DIRECTIONS,
    ForceLayoutConfig,
    LayeredLayoutConfig,
    configure_logging,
)
from schemagraph.common.loader import load_schema
from schemagraph.common.types import SchemaModel
from schemagraph.layout.flow_layout import compute_flow_layout
from schemagraph.layout.force_layout import ForceSimulation
from schemagraph.layout.layered_layout import compute_layered_layout
from schemagraph.layout.tree_layout import compute_tree_layout

logger = logging.getLogger("schemagraph")

VIEWS = ["levels", "clusters", "hierarchy", "matrix", "roles", "force", "layered", "flow", "tree", "drill"]


def run_levels(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    levels = assign_levels(graph)
    for i, level in enumerate(levels.levels):
        forced = " (cycle)" if i in levels.forced_levels else ""
        print(f"  Level {i}{forced}: {', '.join(level)}")
    return {"levels": levels.levels, "forced_levels": levels.forced_levels}


def run_clusters(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    clusters = find_clusters(graph)
    out = []
    for cluster in clusters:
        summary = summarize_cluster(cluster, graph)
        name = name_cluster(cluster)
        print(f"  [{name}] {len(cluster)} tables, anchor={summary.anchor}: {', '.join(cluster.table_names)}")
        out.append({
            "id": cluster.cluster_id,
            "name": name,
            "tables": cluster.table_names,
            "anchor": summary.anchor,
            "hubs": summary.hubs,
        })
    return {"clusters": out}


def run_hierarchy(graph: DependencyGraph, args: argparse.Namespace, schema: SchemaModel) -> Dict[str, Any]:
    hierarchy = build_hierarchy(graph, schema)
    if hierarchy is None:
        print("  No hierarchy available (no root table)")
        return {"hierarchy": None}
    for node in hierarchy.iter_preorder():
        label = "(schema)" if node.is_virtual else node.id
        print(f"  {'  ' * node.depth}{label}")
    return {
        "root": hierarchy.root_id,
        "virtual_root": hierarchy.has_virtual_root,
        "nodes": {n.id: {"parent": n.parent_id, "children": n.children, "depth": n.depth}
                  for n in hierarchy.nodes.values()},
    }


def run_matrix(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    matrix = build_connection_matrix(graph)
    for stats in matrix.ranking()[:10]:
        print(f"  {stats.table}: {stats.connections} connections to {stats.connected_to} tables")
    return matrix.to_dict()


def run_roles(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    groups = group_by_role(graph)
    for group in groups:
        print(f"  {group.label}: {', '.join(t.name for t in group.tables)}")
    return {"roles": {g.role: [t.name for t in g.tables] for g in groups}}


def run_force(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    config = ForceLayoutConfig(max_iterations=args.iterations)
    simulation = ForceSimulation(graph, config)
    with tqdm(total=config.max_iterations, desc="Force layout") as bar:
        layout = simulation.run(progress=lambda _: bar.update(1))
    print(f"  Settled after {layout.iterations} iterations ({len(layout.positions)} nodes)")
    return {"positions": layout.positions, "links": [asdict(l) for l in layout.links]}


def run_layered(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    layout = compute_layered_layout(graph, LayeredLayoutConfig(direction=args.direction))
    for rank, names in enumerate(layout.ranks()):
        print(f"  Rank {rank}: {', '.join(names)}")
    print(f"  Canvas: {layout.width:.0f} x {layout.height:.0f}")
    return {
        "direction": layout.direction,
        "nodes": {n: asdict(node) for n, node in layout.nodes.items()},
        "edges": [asdict(e) for e in layout.edges],
    }


def run_flow(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    layout = compute_flow_layout(graph)
    print(f"  {len(layout.nodes)} nodes, {len(layout.edges)} flow edges")
    return {
        "nodes": {n: asdict(node) for n, node in layout.nodes.items()},
        "edges": [asdict(e) for e in layout.edges],
    }


def run_tree(graph: DependencyGraph, args: argparse.Namespace, schema: SchemaModel) -> Dict[str, Any]:
    layout = compute_tree_layout(build_hierarchy(graph, schema))
    if layout is None:
        print("  No hierarchy available (no root table)")
        return {"tree": None}
    print(f"  {len(layout.positions)} nodes, {len(layout.links)} links")
    return {"positions": layout.positions, "links": layout.links}


def run_drill(graph: DependencyGraph, args: argparse.Namespace) -> Dict[str, Any]:
    if not args.table:
        raise SystemExit("--table is required for the drill view")
    hood = drill_neighborhood(graph, args.table, hops=args.hops)
    deps = dependency_summary(graph, args.table)
    print(f"  {args.table} depends on: {', '.join(deps.depends_on) or '-'}")
    print(f"  {args.table} depended by: {', '.join(deps.depended_by) or '-'}")
    print(f"  Neighborhood ({args.hops} hops): {', '.join(hood.table_names) or '-'}")
    return {
        "center": args.table,
        "tables": hood.table_names,
        "foreign_keys": [fk.constraint_name for fk in hood.foreign_keys],
        "depends_on": deps.depends_on,
        "depended_by": deps.depended_by,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Schema graph analysis and layouts")
    parser.add_argument("snapshot", help="Path to a schema snapshot JSON")
    parser.add_argument("--view", default="levels", choices=VIEWS, help="Analysis to run")
    parser.add_argument("--filter", default="", help="Case-insensitive table/column search")
    parser.add_argument("--direction", default="TB", choices=DIRECTIONS, help="Layered layout direction")
    parser.add_argument("--iterations", type=int, default=ForceLayoutConfig.max_iterations,
                        help="Force layout iteration budget")
    parser.add_argument("--table", default="", help="Center table for the drill view")
    parser.add_argument("--hops", type=int, default=2, help="Drill neighborhood radius")
    parser.add_argument("--output", default="", help="Write the result as JSON")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    configure_logging(args.log_level)

    schema = load_schema(args.snapshot)
    graph = build_graph(schema, args.filter)
    print(f"Schema: {len(schema.tables)} tables, {len(schema.foreign_keys)} foreign keys")
    if args.filter:
        print(f"Filter '{args.filter}': {len(graph)} tables, {len(graph.foreign_keys)} foreign keys")
    print(f"View: {args.view}")

    if args.view == "hierarchy":
        result = run_hierarchy(graph, args, schema)
    elif args.view == "tree":
        result = run_tree(graph, args, schema)
    else:
        runner = {
            "levels": run_levels,
            "clusters": run_clusters,
            "matrix": run_matrix,
            "roles": run_roles,
            "force": run_force,
            "layered": run_layered,
            "flow": run_flow,
            "drill": run_drill,
        }[args.view]
        result = runner(graph, args)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info("Saved %s result to %s", args.view, args.output)
        print(f"Saved to {args.output}")


if __name__ == "__main__":
    main()
