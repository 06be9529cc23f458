"""
test_relationships.py

Tests for parent/child/dependency views of a chain.
"""

import pytest

from causal_trace.chain import Chain
from causal_trace.errors import EventNotFoundError
from causal_trace.event import Event, EventType
from causal_trace.relationships import (
    RelationshipGraph,
    build_adjacency,
    get_children,
    get_events_by_experiment,
    get_events_by_stage,
    get_leaf_events,
    get_parent,
    get_root_events,
)


def node(event_id, **kwargs):
    return Event(EventType.PATTERN_APPLIED, f"Decision {event_id}", "Reason", id=event_id, **kwargs)


@pytest.fixture
def tree():
    """root -> (mid -> leaf), other_leaf."""
    return Chain("Tree", events=(
        node("root"),
        node("mid", parent_id="root"),
        node("leaf", parent_id="mid"),
        node("other_leaf", parent_id="root", depends_on=("mid",)),
    ))


# =============================================================================
# Children / parent
# =============================================================================

class TestChildrenAndParent:

    def test_children(self, tree):
        children = get_children(tree, "root").unwrap()
        assert [e.id for e in children] == ["mid", "other_leaf"]

    def test_no_children_is_empty(self, tree):
        result = get_children(tree, "leaf")
        assert result.ok
        assert result.value == ()

    def test_children_of_unknown_event(self, tree):
        result = get_children(tree, "non-existent-id")
        assert not result.ok
        assert isinstance(result.error, EventNotFoundError)
        assert result.error.event_id == "non-existent-id"

    def test_children_of_unknown_event_in_empty_chain(self):
        assert not get_children(Chain("Empty"), "x").ok

    def test_parent(self, tree):
        assert get_parent(tree, "leaf").unwrap().id == "mid"

    def test_parent_of_root_is_none(self, tree):
        result = get_parent(tree, "root")
        assert result.ok
        assert result.value is None

    def test_dangling_parent_is_none(self):
        chain = Chain("Dangling", events=(node("orphan", parent_id="ghost"),))
        result = get_parent(chain, "orphan")
        assert result.ok
        assert result.value is None

    def test_parent_of_unknown_event(self, tree):
        result = get_parent(tree, "nope")
        assert isinstance(result.error, EventNotFoundError)


# =============================================================================
# Roots / leaves
# =============================================================================

class TestRootsAndLeaves:

    def test_root_mid_leaf(self):
        chain = Chain("Line", events=(
            node("Root"),
            node("Mid", parent_id="Root"),
            node("Leaf", parent_id="Mid"),
        ))
        assert [e.id for e in get_root_events(chain)] == ["Root"]
        assert [e.id for e in get_leaf_events(chain)] == ["Leaf"]

    def test_roots_keep_insertion_order(self):
        chain = Chain("Flat", events=(node("b"), node("a"), node("c", parent_id="a")))
        assert [e.id for e in get_root_events(chain)] == ["b", "a"]

    def test_leaves_ignore_dependencies(self, tree):
        """Only parent_id references make an event a non-leaf."""
        assert [e.id for e in get_leaf_events(tree)] == ["leaf", "other_leaf"]

    def test_self_parent_is_still_a_leaf(self):
        chain = Chain("Self", events=(node("x", parent_id="x"),))
        assert [e.id for e in get_leaf_events(chain)] == ["x"]
        assert get_root_events(chain) == ()

    def test_empty_chain(self):
        assert get_root_events(Chain("Empty")) == ()
        assert get_leaf_events(Chain("Empty")) == ()


# =============================================================================
# Filters
# =============================================================================

class TestGroupingFilters:

    @pytest.fixture
    def tagged(self):
        return Chain("Tagged", events=(
            node("1", stage_id="stage-a", experiment_id="exp-001"),
            node("2", stage_id="stage-a", experiment_id="exp-002"),
            node("3", stage_id="stage-b", experiment_id="exp-001"),
        ))

    def test_by_stage(self, tagged):
        assert [e.id for e in get_events_by_stage(tagged, "stage-a")] == ["1", "2"]
        assert get_events_by_stage(tagged, "stage-x") == ()

    def test_by_experiment(self, tagged):
        assert [e.id for e in get_events_by_experiment(tagged, "exp-001")] == ["1", "3"]


# =============================================================================
# RelationshipGraph
# =============================================================================

class TestRelationshipGraph:

    def test_contains_and_get(self, tree):
        graph = RelationshipGraph(tree)
        assert "mid" in graph
        assert "ghost" not in graph
        assert graph.get("leaf").parent_id == "mid"
        assert graph.get("ghost") is None
        assert graph.chain is tree

    def test_ancestors(self, tree):
        graph = RelationshipGraph(tree)
        assert [e.id for e in graph.ancestors("leaf")] == ["mid", "root"]
        assert graph.ancestors("root") == ()
        assert graph.ancestors("ghost") == ()

    def test_ancestors_stop_on_cycle(self):
        chain = Chain("Loop", events=(node("a", parent_id="b"), node("b", parent_id="a")))
        assert [e.id for e in RelationshipGraph(chain).ancestors("a")] == ["b"]

    def test_descendants(self, tree):
        graph = RelationshipGraph(tree)
        assert [e.id for e in graph.descendants("root")] == ["mid", "other_leaf", "leaf"]
        assert graph.descendants("leaf") == ()

    def test_descendants_of_wide_tree(self):
        """20k direct children of one root, visited in chain order."""
        children = [node(f"c{i}", parent_id="root") for i in range(20_000)]
        chain = Chain("Wide", events=[node("root")] + children)
        found = RelationshipGraph(chain).descendants("root")
        assert len(found) == 20_000
        assert found[0].id == "c0"
        assert found[-1].id == "c19999"

    def test_adjacency(self, tree):
        assert build_adjacency(tree) == {
            "root": [],
            "mid": ["root"],
            "leaf": ["mid"],
            "other_leaf": ["root", "mid"],
        }
        assert list(build_adjacency(tree)) == ["root", "mid", "leaf", "other_leaf"]
