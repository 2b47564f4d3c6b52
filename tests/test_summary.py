import logging

from accessgraph.features.relations.store import EdgeKind, RelationEdge, load_store
from accessgraph.features.relations.summary import log_relation_fanouts, relation_fanouts, summarize_relation


def test_summary_samples_are_ordered_by_count_then_id():
    counts = {"1": 5, "2": 1, "3": 3, "10": 1, "4": 2}
    summary = summarize_relation("org->users", "org_id", "users", counts)

    assert summary.node_count == 5
    assert summary.average == 12 / 5
    assert summary.fewest == [("2", 1), ("10", 1), ("4", 2)]
    assert summary.typical == [("10", 1), ("4", 2), ("3", 3)]
    assert summary.most == [("4", 2), ("3", 3), ("1", 5)]


def test_summary_of_nothing_is_empty():
    summary = summarize_relation("group->users", "group_id", "users", {})

    assert summary.node_count == 0
    assert summary.fewest == []


def test_fanouts_count_distinct_neighbours():
    store = load_store([
        RelationEdge.of(EdgeKind.ORG_ADMIN, "u1", "o1"),
        RelationEdge.of(EdgeKind.ORG_MEMBER, "u1", "o1"),
        RelationEdge.of(EdgeKind.ORG_MEMBER, "u2", "o1"),
        RelationEdge.of(EdgeKind.ORG_MEMBER, "u1", "o2"),
    ])
    by_name = {summary.name: summary for summary in relation_fanouts(store)}

    assert by_name["org->users"].most[-1] == ("o1", 2)
    assert by_name["user->orgs"].most[-1] == ("u1", 2)
    assert by_name["user->resources"].node_count == 0


def test_fanout_logging_reports_every_relation(caplog):
    store = load_store([RelationEdge.of(EdgeKind.ORG_MEMBER, "u1", "o1")])

    with caplog.at_level(logging.INFO):
        summaries = log_relation_fanouts(store)

    assert len(summaries) == 6
    assert any(r.getMessage().startswith("relation org->users") for r in caplog.records)
