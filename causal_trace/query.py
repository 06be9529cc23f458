"""
query.py

Search, boolean queries and aggregation over the events of one chain.

Example:
    query(chain, {
        "or": [
            {"content": re.compile("genserver", re.I), "confidence": ("gte", 0.8)},
            {"type": EventType.AMBIGUITY_FLAGGED},
        ],
        "and": [{"stage_id": "training"}],
    })
"""

import operator
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Union

from causal_trace.chain import Chain
from causal_trace.event import Event, EventType

TypeFilter = Union[EventType, str, Sequence[Union[EventType, str]]]

CONFIDENCE_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    "gte": operator.ge,
    "gt": operator.gt,
    "lte": operator.le,
    "lt": operator.lt,
    "eq": operator.eq,
}


def _contains(event: Event, content: str) -> bool:
    needle = content.lower()
    return needle in event.decision.lower() or needle in event.reasoning.lower()


def _matches_pattern(event: Event, pattern: Pattern) -> bool:
    return bool(pattern.search(event.decision) or pattern.search(event.reasoning))


def _type_set(types: TypeFilter) -> set:
    if isinstance(types, (EventType, str)):
        return {EventType.parse(types)}
    return {EventType.parse(t) for t in types}


def apply_filters(
    events: Iterable[Event],
    *,
    type: Optional[TypeFilter] = None,
    min_confidence: Optional[float] = None,
    max_confidence: Optional[float] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    stage_id: Optional[str] = None,
    experiment_id: Optional[str] = None,
) -> List[Event]:
    """Keep events passing every given filter; None means no filter."""
    types = _type_set(type) if type is not None else None
    result = []

    for event in events:
        if types is not None and event.type not in types:
            continue
        if min_confidence is not None and event.confidence < min_confidence:
            continue
        if max_confidence is not None and event.confidence > max_confidence:
            continue
        if since is not None and event.timestamp < since:
            continue
        if until is not None and event.timestamp > until:
            continue
        if stage_id is not None and event.stage_id != stage_id:
            continue
        if experiment_id is not None and event.experiment_id != experiment_id:
            continue
        result.append(event)

    return result


def search_events(chain: Chain, content: str, **filters: Any) -> List[Event]:
    """
    Case-insensitive substring search over decision and reasoning.

    An empty content string matches every event, which makes this a plain
    filter call. Accepts the keyword filters of apply_filters().
    """
    events = chain.events
    if content:
        events = [e for e in events if _contains(e, content)]
    return apply_filters(events, **filters)


def search_regex(chain: Chain, pattern: Union[str, Pattern], **filters: Any) -> List[Event]:
    """Regex search over decision and reasoning."""
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return apply_filters(
        (e for e in chain.events if _matches_pattern(e, compiled)),
        **filters,
    )


# =============================================================================
# Boolean queries
# =============================================================================

def _matches_field(event: Event, key: str, value: Any) -> bool:
    if key == "type":
        return event.type in _type_set(value)
    if key == "content":
        if isinstance(value, str):
            return _contains(event, value)
        return _matches_pattern(event, value)
    if key == "confidence":
        op_name, threshold = value
        return CONFIDENCE_OPERATORS[op_name](event.confidence, threshold)
    if key == "stage_id":
        return event.stage_id == value
    if key == "experiment_id":
        return event.experiment_id == value
    # Unknown keys do not constrain the match
    return True


def _matches_condition(event: Event, condition: Dict[str, Any]) -> bool:
    return all(_matches_field(event, k, v) for k, v in condition.items())


def matches_query(event: Event, spec: Dict[str, Any]) -> bool:
    """Direct conditions AND all of spec["and"] AND any of spec["or"]."""
    and_conditions = spec.get("and", [])
    or_conditions = spec.get("or", [])
    direct = {k: v for k, v in spec.items() if k not in ("and", "or")}

    if direct and not _matches_condition(event, direct):
        return False
    if and_conditions and not all(_matches_condition(event, c) for c in and_conditions):
        return False
    if or_conditions and not any(_matches_condition(event, c) for c in or_conditions):
        return False
    return True


def query(chain: Chain, spec: Dict[str, Any]) -> List[Event]:
    return [e for e in chain.events if matches_query(e, spec)]


def aggregate_by(
    chain: Chain,
    field_name: str,
    aggregation: Callable[[List[Event]], Any],
) -> Dict[Any, Any]:
    """
    Group events by an attribute and reduce each group.

    Events whose attribute is None are skipped.
    """
    groups: Dict[Any, List[Event]] = {}
    for event in chain.events:
        key = getattr(event, field_name)
        if key is None:
            continue
        groups.setdefault(key, []).append(event)
    return {key: aggregation(group) for key, group in groups.items()}
