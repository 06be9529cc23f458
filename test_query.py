"""
test_query.py

Tests for search, boolean queries and aggregation.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from causal_trace.chain import Chain
from causal_trace.event import Event, EventType
from causal_trace.query import aggregate_by, query, search_events, search_regex

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def chain():
    return Chain("Query", events=(
        Event(EventType.HYPOTHESIS_FORMED, "Use GenServer", "State management",
              id="g", confidence=0.9, timestamp=T0, stage_id="design"),
        Event(EventType.PATTERN_APPLIED, "Apply Supervisor", "Fault tolerance",
              id="s", confidence=0.5, timestamp=T0 + timedelta(minutes=1), stage_id="design"),
        Event(EventType.TRAINING_STARTED, "Train model", "Start training",
              id="t", confidence=0.7, timestamp=T0 + timedelta(minutes=2),
              stage_id="training", experiment_id="exp-1"),
        Event(EventType.AMBIGUITY_FLAGGED, "Unclear timeout", "Docs are silent",
              id="u", confidence=0.3, timestamp=T0 + timedelta(minutes=3)),
    ))


def ids(events):
    return [e.id for e in events]


# =============================================================================
# search_events
# =============================================================================

class TestSearchEvents:

    def test_decision_substring(self, chain):
        assert ids(search_events(chain, "GenServer")) == ["g"]

    def test_reasoning_substring(self, chain):
        assert ids(search_events(chain, "Fault tolerance")) == ["s"]

    def test_case_insensitive(self, chain):
        assert ids(search_events(chain, "genserver")) == ["g"]

    def test_no_match(self, chain):
        assert search_events(chain, "nonexistent") == []

    def test_empty_content_matches_all(self, chain):
        assert len(search_events(chain, "")) == 4

    def test_filter_by_type(self, chain):
        assert ids(search_events(chain, "", type=EventType.TRAINING_STARTED)) == ["t"]
        assert ids(search_events(chain, "", type=["hypothesis_formed", "pattern_applied"])) == ["g", "s"]

    def test_filter_by_confidence(self, chain):
        assert ids(search_events(chain, "", min_confidence=0.7)) == ["g", "t"]
        assert ids(search_events(chain, "", max_confidence=0.5)) == ["s", "u"]
        assert ids(search_events(chain, "", min_confidence=0.5, max_confidence=0.7)) == ["s", "t"]

    def test_filter_by_time(self, chain):
        since = T0 + timedelta(minutes=1)
        until = T0 + timedelta(minutes=2)
        assert ids(search_events(chain, "", since=since, until=until)) == ["s", "t"]

    def test_filter_by_stage_and_experiment(self, chain):
        assert ids(search_events(chain, "", stage_id="design")) == ["g", "s"]
        assert ids(search_events(chain, "", experiment_id="exp-1")) == ["t"]


class TestSearchRegex:

    def test_string_pattern(self, chain):
        assert ids(search_regex(chain, r"^Use")) == ["g"]

    def test_compiled_pattern_with_filters(self, chain):
        pattern = re.compile(r"s(tate|ilent)", re.IGNORECASE)
        assert ids(search_regex(chain, pattern)) == ["g", "u"]
        assert ids(search_regex(chain, pattern, max_confidence=0.5)) == ["u"]


# =============================================================================
# query
# =============================================================================

class TestQuery:

    def test_direct_conditions(self, chain):
        assert ids(query(chain, {"stage_id": "design", "confidence": ("gt", 0.6)})) == ["g"]

    def test_or_conditions(self, chain):
        spec = {
            "or": [
                {"content": re.compile("genserver", re.I), "confidence": ("gte", 0.8)},
                {"type": EventType.AMBIGUITY_FLAGGED},
            ]
        }
        assert ids(query(chain, spec)) == ["g", "u"]

    def test_and_with_or(self, chain):
        spec = {
            "and": [{"stage_id": "design"}],
            "or": [{"content": "supervisor"}, {"confidence": ("eq", 0.9)}],
        }
        assert ids(query(chain, spec)) == ["g", "s"]

    @pytest.mark.parametrize("op,expected", [
        ("gte", ["g", "t"]),
        ("gt", ["g"]),
        ("lte", ["s", "t", "u"]),
        ("lt", ["s", "u"]),
        ("eq", ["t"]),
    ])
    def test_confidence_operators(self, chain, op, expected):
        assert ids(query(chain, {"confidence": (op, 0.7)})) == expected

    def test_empty_query_matches_all(self, chain):
        assert len(query(chain, {})) == 4

    def test_unknown_condition_ignored(self, chain):
        assert len(query(chain, {"colour": "blue"})) == 4


# =============================================================================
# aggregate_by
# =============================================================================

class TestAggregateBy:

    def test_count_by_type(self, chain):
        counts = aggregate_by(chain, "type", len)
        assert counts[EventType.HYPOTHESIS_FORMED] == 1
        assert len(counts) == 4

    def test_average_by_stage_skips_none(self, chain):
        averages = aggregate_by(
            chain,
            "stage_id",
            lambda events: sum(e.confidence for e in events) / len(events),
        )
        assert averages == {"design": pytest.approx(0.7), "training": 0.7}
