"""
Causal Trace: Decision Chain Comparison and Integrity
=====================================================

Causal Trace analyzes the reasoning chains an LLM records while
generating code: ordered Events, each carrying a decision, its
rationale, the alternatives weighed and a confidence.

What's Public
-------------
Everything exported in ``__all__``:

- **Model**: Event, EventType, Chain, ChainStatistics
- **Comparison**: compare, DiffEngine, CompareOptions, ChainDiff,
  MatchStrategy, build_event_maps
- **Relationships**: RelationshipGraph, get_children, get_parent,
  get_root_events, get_leaf_events
- **Integrity**: validate, IntegrityValidator, find_cycle
- **Errors**: TraceError and subclasses, returned inside ``Result``

Example
-------
::

    from causal_trace import Chain, Event, EventType, compare, validate

    base = Event(EventType.HYPOTHESIS_FORMED, "Use X", "Fits the design", confidence=0.8)
    a = Chain("run-1", events=(base,))
    b = a.add_event(Event(EventType.PATTERN_APPLIED, "Use Y", "Reuse", confidence=0.9))

    diff = compare(a, b).unwrap()
    print(diff.summary)          # 1 added, 0 removed, 0 modified

    if not validate(b).ok:
        ...
"""

import logging

__version__ = "0.3.0"

__all__ = [
    "__version__",

    # --- Model ---
    "Event",
    "EventType",
    "EventValidationError",
    "InvalidEventTypeError",
    "InvalidConfidenceError",
    "MissingRequiredFieldError",
    "Chain",
    "ChainStatistics",
    "ChainValidationError",
    "DecisionPoint",

    # --- Results and Errors ---
    "Result",
    "TraceError",
    "EventNotFoundError",
    "MissingReferenceError",
    "CycleDetectedError",
    "InvalidMatchStrategyError",

    # --- Matching and Diff ---
    "MatchStrategy",
    "build_event_maps",
    "CompareOptions",
    "FieldChange",
    "ModifiedEvent",
    "ChainDiff",
    "DiffEngine",
    "compare",

    # --- Relationships ---
    "RelationshipGraph",
    "get_children",
    "get_parent",
    "get_root_events",
    "get_leaf_events",
    "get_events_by_stage",
    "get_events_by_experiment",
    "build_adjacency",

    # --- Integrity ---
    "IntegrityValidator",
    "validate",
    "find_cycle",

    # --- Query ---
    "search_events",
    "search_regex",
    "query",
    "aggregate_by",
]

from causal_trace.chain import Chain, ChainStatistics, ChainValidationError, DecisionPoint
from causal_trace.diff import (
    ChainDiff,
    CompareOptions,
    DiffEngine,
    FieldChange,
    ModifiedEvent,
    compare,
)
from causal_trace.errors import (
    CycleDetectedError,
    EventNotFoundError,
    InvalidMatchStrategyError,
    MissingReferenceError,
    TraceError,
)
from causal_trace.event import (
    Event,
    EventType,
    EventValidationError,
    InvalidConfidenceError,
    InvalidEventTypeError,
    MissingRequiredFieldError,
)
from causal_trace.integrity import IntegrityValidator, find_cycle, validate
from causal_trace.matcher import MatchStrategy, build_event_maps
from causal_trace.query import aggregate_by, query, search_events, search_regex
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
from causal_trace.result import Result

logging.getLogger(__name__).addHandler(logging.NullHandler())
