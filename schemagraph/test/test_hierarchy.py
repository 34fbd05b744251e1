"""Tests for the first-found-parent hierarchy."""
from schemagraph.analysis.graph_builder import build_dependency_graph, build_graph
from schemagraph.analysis.hierarchy import VIRTUAL_ROOT_ID, build_hierarchy


def test_chain_has_single_real_root(make_schema):
    schema = make_schema(["A", "B", "C"], [("B", "A"), ("C", "B")])
    hierarchy = build_hierarchy(build_graph(schema), schema)

    assert hierarchy.root_id == "A"
    assert not hierarchy.has_virtual_root
    assert VIRTUAL_ROOT_ID not in hierarchy.nodes
    assert hierarchy.children("A") == ["B"]
    assert hierarchy.children("B") == ["C"]
    assert hierarchy.nodes["C"].depth == 2


def test_several_roots_get_a_virtual_root(make_schema):
    schema = make_schema(["A", "B"], [])
    hierarchy = build_hierarchy(build_graph(schema), schema)

    assert hierarchy.has_virtual_root
    assert hierarchy.root.is_virtual
    assert hierarchy.children(VIRTUAL_ROOT_ID) == ["A", "B"]
    assert [n.id for n in hierarchy.real_nodes()] == ["A", "B"]
    assert hierarchy.links() == []


def test_first_foreign_key_wins(make_schema):
    schema = make_schema(
        ["users", "teams", "members"],
        [("members", "teams"), ("members", "users"), ("teams", "users")],
    )
    hierarchy = build_hierarchy(build_graph(schema), schema)

    assert hierarchy.parent("members") == "teams"
    assert hierarchy.parent("teams") == "users"
    assert hierarchy.links() == [("users", "teams"), ("teams", "members")]


def test_no_root_candidate_is_unavailable(make_schema):
    schema = make_schema(["A", "B"], [("A", "B"), ("B", "A")])
    assert build_hierarchy(build_graph(schema), schema) is None


def test_empty_input_is_unavailable(make_schema):
    schema = make_schema([], [])
    assert build_hierarchy(build_graph(schema), schema) is None


def test_filtered_out_parents_leave_no_root(shop_schema):
    graph = build_graph(shop_schema, "product")
    assert graph.table_names == ["products", "order_items"]
    # Both declare parents (categories, orders) that the filter removed,
    # so neither is a root candidate.
    assert build_hierarchy(graph, shop_schema) is None


def test_filtered_out_parent_reparents_to_root(shop_schema):
    graph = build_graph(shop_schema, "o")
    hierarchy = build_hierarchy(graph, shop_schema)

    assert graph.table_names == ["profiles", "products", "categories", "orders", "order_items"]
    assert hierarchy.root_id == "categories"
    # users is filtered out: its dependents hang off the root
    assert hierarchy.parent("profiles") == "categories"
    assert hierarchy.parent("orders") == "categories"
    assert hierarchy.parent("order_items") == "orders"


def test_missing_parent_attaches_to_real_root(make_schema):
    schema = make_schema(["A", "B", "C", "hidden"], [("B", "A"), ("C", "hidden")])
    graph = build_dependency_graph(schema.tables, schema.foreign_keys, lambda t: t.name != "hidden")
    hierarchy = build_hierarchy(graph, schema)

    assert hierarchy.root_id == "A"
    assert hierarchy.children("A") == ["B", "C"]


def test_unknown_table_parent_is_ignored(make_schema):
    schema = make_schema(["A", "B"], [("B", "ghost"), ("B", "A")])
    hierarchy = build_hierarchy(build_graph(schema), schema)
    assert hierarchy.root_id == "A"
    assert hierarchy.parent("B") == "A"


def test_parent_cycle_is_reattached_to_root(make_schema):
    schema = make_schema(["root", "A", "B"], [("A", "B"), ("B", "A")])
    hierarchy = build_hierarchy(build_graph(schema), schema)

    assert hierarchy.root_id == "root"
    assert hierarchy.parent("A") == "root"
    assert hierarchy.parent("B") == "A"
    assert len(list(hierarchy.iter_preorder())) == 3


def test_self_reference_does_not_count_as_parent(make_schema):
    schema = make_schema(["employees"], [("employees", "manager_id", "employees", "id")])
    hierarchy = build_hierarchy(build_graph(schema), schema)
    assert hierarchy.root_id == "employees"


def test_filtered_graph_without_schema_keeps_declared_parents(make_schema):
    schema = make_schema(["A", "B", "C"], [("B", "A"), ("C", "B")])
    graph = build_dependency_graph(schema.tables, schema.foreign_keys, lambda t: t.name != "A")

    # B still declares A as its parent, so it is not a root candidate
    assert build_hierarchy(graph) is None
    assert build_hierarchy(graph, schema) is None


def test_filtered_graph_without_schema_reparents_to_root(shop_schema):
    graph = build_graph(shop_schema, "o")
    hierarchy = build_hierarchy(graph)

    assert hierarchy.root_id == "categories"
    assert hierarchy.parent("profiles") == "categories"
    assert hierarchy.parent("orders") == "categories"
    assert hierarchy.parent("order_items") == "orders"
