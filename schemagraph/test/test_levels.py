"""Tests for dependency level assignment."""
from schemagraph.analysis.graph_builder import build_graph
from schemagraph.analysis.levels import assign_levels


def test_siblings_share_a_level_in_input_order(make_schema):
    schema = make_schema(["A", "B", "C"], [("B", "A"), ("C", "A")])
    result = assign_levels(build_graph(schema))

    assert result.levels == [["A"], ["B", "C"]]
    assert not result.has_cycles


def test_order_follows_tables_not_foreign_keys(make_schema):
    schema = make_schema(["C", "A", "B"], [("B", "A"), ("C", "A")])
    assert assign_levels(build_graph(schema)).levels == [["A"], ["C", "B"]]


def test_acyclic_levels_respect_dependencies(shop_schema):
    graph = build_graph(shop_schema)
    result = assign_levels(graph)
    depth = result.depth

    assert result.levels[0] == ["users", "categories", "settings"]
    for table, targets in graph.dependencies.items():
        for target in targets:
            assert depth[table] > depth[target]


def test_every_table_placed_once(shop_schema):
    graph = build_graph(shop_schema)
    result = assign_levels(graph)
    placed = [name for level in result.levels for name in level]

    assert sorted(placed) == sorted(graph.table_names)
    assert len(result) <= len(graph)


def test_cycle_is_forced_into_one_level(make_schema):
    schema = make_schema(["root", "A", "B", "leaf"], [("A", "B"), ("B", "A"), ("A", "root"), ("leaf", "A")])
    result = assign_levels(build_graph(schema))

    # A and B wait on each other; after root is placed both are forced
    # together, along with leaf which is still unplaced.
    assert result.levels == [["root"], ["A", "B", "leaf"]]
    assert result.forced_levels == [1]
    assert result.has_cycles


def test_long_cycle_terminates_within_table_count(make_schema):
    names = [f"t{i}" for i in range(8)]
    fks = [(names[i], names[(i + 1) % 8]) for i in range(8)]
    graph = build_graph(make_schema(names, fks))
    result = assign_levels(graph)

    assert len(result) <= len(graph)
    assert result.levels == [names]


def test_self_reference_does_not_stall(make_schema):
    schema = make_schema(["employees", "teams"], [("employees", "manager_id", "employees", "id"), ("employees", "teams")])
    result = assign_levels(build_graph(schema))
    assert result.levels == [["teams"], ["employees"]]
    assert not result.has_cycles


def test_empty_input_has_no_levels(make_schema):
    result = assign_levels(build_graph(make_schema([], [])))
    assert result.levels == []
    assert len(result) == 0
