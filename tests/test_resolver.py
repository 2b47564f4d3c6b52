from accessgraph.features.closure.resolver import (
    GroupClosureResolver,
    VisitState,
    build_closure,
    resolve_members,
)
from accessgraph.features.relations.store import EdgeKind, RelationEdge, load_store


def test_effective_set_contains_direct_members():
    resolver = GroupClosureResolver({"g1": ["u1", "u2"]}, {})

    assert resolver.effective("g1") == {"u1", "u2"}


def test_subgroup_members_are_included_in_parent():
    store = load_store([
        RelationEdge.of(EdgeKind.GROUP_MEMBER, "U3", "G1"),
        RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MEMBER, "G1", "G2"),
    ])
    closure = build_closure(store)

    assert closure.members["G1"] == {"U3"}
    assert "U3" in closure.members["G2"]


def test_cycle_terminates_and_keeps_direct_members():
    resolver = GroupClosureResolver(
        {"A": ["ua"], "B": ["ub"]},
        {"A": ["B"], "B": ["A"]},
    )
    resolved = resolver.resolve_all()

    assert resolved["A"] == {"ua", "ub"}
    assert "ub" in resolved["B"]
    assert resolver.cycle_edges_skipped == 1
    assert resolver.state("A") is VisitState.DONE
    assert resolver.state("B") is VisitState.DONE


def test_self_loop_resolves_to_direct_members():
    resolver = GroupClosureResolver({"A": ["u1"]}, {"A": ["A"]})

    assert resolver.effective("A") == {"u1"}


def test_diamond_includes_shared_descendant_once():
    resolver = GroupClosureResolver(
        {"D": ["d"], "C1": ["c1"]},
        {"P": ["C1", "C2"], "C1": ["D"], "C2": ["D"]},
    )

    assert resolver.effective("P") == {"d", "c1"}
    assert resolver.cycle_edges_skipped == 0


def test_group_known_only_as_child_resolves_to_empty():
    resolver = GroupClosureResolver({"P": ["u1"]}, {"P": ["C"]})
    resolved = resolver.resolve_all()

    assert resolved["C"] == frozenset()
    assert resolved["P"] == {"u1"}


def test_unknown_group_is_expanded_lazily():
    resolver = GroupClosureResolver({"A": ["u1"]}, {})

    assert resolver.state("Z") is VisitState.NOT_VISITED
    assert resolver.effective("Z") == frozenset()
    assert resolver.state("Z") is VisitState.DONE


def test_deep_chain_does_not_recurse():
    depth = 5000
    children = {f"g{i}": [f"g{i + 1}"] for i in range(depth)}
    resolver = GroupClosureResolver({f"g{depth}": ["leaf"]}, children)

    assert resolver.effective("g0") == {"leaf"}


def test_resolution_is_idempotent():
    store = load_store([
        RelationEdge.of(EdgeKind.GROUP_MEMBER, "u1", "g1"),
        RelationEdge.of(EdgeKind.GROUP_MEMBER, "u2", "g2"),
        RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MEMBER, "g1", "g2"),
        RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MEMBER, "g2", "g1"),
    ])

    assert build_closure(store).members == build_closure(store).members


def test_managers_follow_manager_subgroups_only():
    store = load_store([
        RelationEdge.of(EdgeKind.GROUP_MANAGER, "u1", "g1"),
        RelationEdge.of(EdgeKind.GROUP_MEMBER, "u2", "g1"),
        RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MANAGER, "g1", "g2"),
    ])
    closure = build_closure(store)

    assert closure.managers["g2"] == {"u1"}
    assert closure.members["g1"] == {"u1", "u2"}
    assert closure.members_of("g2") == frozenset()


def test_resolve_members_falls_back_to_direct_members():
    closure = {"G": frozenset({"a"}), "E": frozenset()}
    direct = {"G": ["b"], "H": ["c"], "E": ["e"]}

    assert resolve_members("G", closure, direct) == {"a"}
    assert resolve_members("H", closure, direct) == {"c"}
    assert resolve_members("E", closure, direct) == {"e"}
    assert resolve_members("X", closure, direct) == frozenset()
