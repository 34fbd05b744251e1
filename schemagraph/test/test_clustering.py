"""Tests for union-find clustering, naming and summaries."""
import itertools

import networkx as nx

from schemagraph.analysis.clustering import (
    Cluster,
    UnionFind,
    cluster_partition,
    find_clusters,
    name_cluster,
    summarize_cluster,
)
from schemagraph.analysis.graph_builder import build_graph


def test_union_reparents_first_root_under_second():
    uf = UnionFind()
    uf.union("a", "b")
    assert uf.find("a") == "b"
    uf.union("b", "c")
    assert uf.find("a") == "c"
    # path compression flattened a directly under c
    assert uf.parent["a"] == "c"


def test_clusters_are_connected_components(shop_schema):
    graph = build_graph(shop_schema)
    clusters = find_clusters(graph)
    partition = cluster_partition(clusters)

    # Every table in exactly one cluster
    assert sorted(partition) == sorted(graph.table_names)
    assert sum(len(c) for c in clusters) == len(graph)

    G = build_graph(shop_schema).to_networkx().to_undirected()
    for a, b in itertools.combinations(graph.table_names, 2):
        assert (partition[a] == partition[b]) == nx.has_path(G, a, b)


def test_cluster_order_and_ids(shop_schema):
    clusters = find_clusters(build_graph(shop_schema))

    assert [len(c) for c in clusters] == [6, 1]
    big, single = clusters
    # Members keep table order
    assert big.table_names == ["users", "profiles", "products", "categories", "orders", "order_items"]
    assert single.cluster_id == "settings"


def test_ties_broken_by_cluster_id(make_schema):
    schema = make_schema(["d", "c", "b", "a"], [("d", "c"), ("b", "a")])
    clusters = find_clusters(build_graph(schema))
    # union(d, c) roots at c, union(b, a) roots at a
    assert [c.cluster_id for c in clusters] == ["a", "c"]


def test_empty_input_gives_no_clusters(make_schema):
    assert find_clusters(build_graph(make_schema([], []))) == []


def test_naming_uses_first_matching_keyword_group(shop_schema):
    clusters = find_clusters(build_graph(shop_schema))
    # "users" matches the first pattern even though orders/products are present
    assert name_cluster(clusters[0]) == "Users & Auth"


def test_naming_fallbacks(make_schema):
    schema = make_schema(["alpha", "beta", "gamma"], [("alpha", "beta")])
    clusters = find_clusters(build_graph(schema))

    assert name_cluster(clusters[0]) == "beta Domain"
    assert name_cluster(clusters[1]) == "gamma"


def test_summary_finds_anchor_hubs_and_edges(make_schema):
    schema = make_schema(
        ["customers", "orders", "invoices", "shipments"],
        [("orders", "customers"), ("invoices", "orders"), ("shipments", "orders")],
    )
    graph = build_graph(schema)
    summary = summarize_cluster(find_clusters(graph)[0], graph)

    assert summary.anchor == "customers"
    assert summary.hubs == ["orders"]
    assert summary.edge_tables == ["invoices", "shipments"]
    assert len(summary.relationships) == 3
    assert summary.column_count == 4


def test_summary_of_empty_cluster_is_none(make_schema):
    graph = build_graph(make_schema([], []))
    assert summarize_cluster(Cluster(cluster_id="x"), graph) is None
