"""Tests for the connection matrix."""
import numpy as np

from schemagraph.analysis.connection_matrix import build_connection_matrix
from schemagraph.analysis.graph_builder import build_graph


def test_duplicate_foreign_keys_add_weight(make_schema):
    schema = make_schema(["X", "Y"], [("X", "a", "Y", "id"), ("X", "b", "Y", "id2")])
    matrix = build_connection_matrix(build_graph(schema))

    assert matrix.weight("X", "Y") == 2
    assert matrix.weight("Y", "X") == 2
    details = matrix.pair_details("Y", "X")
    assert len(details) == 2
    assert [d.via for d in details] == ["a → id", "b → id2"]
    assert details[0].source_table == "X"


def test_symmetric_with_zero_diagonal(shop_schema):
    graph = build_graph(shop_schema)
    matrix = build_connection_matrix(graph)

    assert np.array_equal(matrix.matrix, matrix.matrix.T)
    assert not np.diagonal(matrix.matrix).any()
    upper = np.triu(matrix.matrix, k=1).sum()
    assert upper == len(graph.edges())


def test_self_reference_leaves_diagonal_empty(make_schema):
    schema = make_schema(["nodes", "trees"], [("nodes", "parent_id", "nodes", "id"), ("nodes", "trees")])
    matrix = build_connection_matrix(build_graph(schema))

    assert matrix.weight("nodes", "nodes") == 0
    assert matrix.weight("nodes", "trees") == 1
    assert np.triu(matrix.matrix, k=1).sum() == 1


def test_ranking_by_total_connections(shop_schema):
    matrix = build_connection_matrix(build_graph(shop_schema))
    ranking = matrix.ranking()

    assert [s.table for s in ranking[:2]] == ["users", "products"]
    assert ranking[0].connections == 2
    assert ranking[-1].table == "settings"
    assert ranking[-1].connections == 0
    # ties keep table order
    tied = [s.table for s in ranking if s.connections == 1]
    assert tied == ["profiles", "categories"]


def test_connected_tables_and_stats(shop_schema):
    matrix = build_connection_matrix(build_graph(shop_schema))
    assert matrix.connected_tables("order_items") == ["products", "orders"]
    assert matrix.stats("order_items").connected_to == 2
    assert matrix.intensity("order_items", "orders") == 1.0


def test_unknown_tables_weigh_nothing(shop_schema):
    matrix = build_connection_matrix(build_graph(shop_schema))
    assert matrix.weight("users", "ghost") == 0
    assert matrix.pair_details("users", "ghost") == []
    assert matrix.connected_tables("ghost") == []


def test_filter_restricts_matrix(shop_schema):
    matrix = build_connection_matrix(build_graph(shop_schema, "order"))
    assert matrix.tables == ["orders", "order_items"]
    assert matrix.matrix.tolist() == [[0, 1], [1, 0]]


def test_empty_matrix(make_schema):
    matrix = build_connection_matrix(build_graph(make_schema([], [])))
    assert len(matrix) == 0
    assert matrix.matrix.shape == (0, 0)
    assert matrix.ranking() == []
    assert matrix.max_weight == 0
    assert matrix.to_dict() == {"tables": [], "matrix": [], "details": {}}


def test_ranking_cannot_be_mutated_by_callers(shop_schema):
    matrix = build_connection_matrix(build_graph(shop_schema))
    ranking = matrix.ranking()
    ranking.reverse()
    ranking.clear()

    assert [s.table for s in matrix.ranking()[:2]] == ["users", "products"]
