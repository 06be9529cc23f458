"""
matcher.py

Builds keyed correspondences between the events of two chains.

Each strategy maps a chain's events to keys; events in different chains
that share a key are considered the same event for diffing purposes.
Duplicate keys within one chain collapse to the last event.
"""

from enum import Enum
from typing import Dict, Hashable, Sequence, Tuple

from causal_trace.event import Event


class MatchStrategy(str, Enum):
    """How events of two chains are paired."""
    ID = "id"
    POSITION = "position"
    CONTENT = "content"
    AUTO = "auto"

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)


EventMap = Dict[Hashable, Event]


def event_key(event: Event, position: int, strategy: MatchStrategy) -> Hashable:
    """Key of one event under a concrete (non-auto) strategy."""
    if strategy == MatchStrategy.ID:
        return event.id
    if strategy == MatchStrategy.POSITION:
        return position
    if strategy == MatchStrategy.CONTENT:
        return (event.type.value, event.decision)
    raise ValueError(f"event_key needs a concrete strategy, got {strategy!r}")


def build_event_map(events: Sequence[Event], strategy: MatchStrategy) -> EventMap:
    return {
        event_key(event, position, strategy): event
        for position, event in enumerate(events)
    }


def resolve_strategy(
    events1: Sequence[Event],
    events2: Sequence[Event],
    strategy: MatchStrategy,
) -> MatchStrategy:
    """
    Turn AUTO into a concrete strategy.

    Chains generated independently never share ids, so AUTO uses content
    matching when the id sets are disjoint and id matching otherwise.
    """
    if strategy != MatchStrategy.AUTO:
        return strategy

    ids1 = {event.id for event in events1}
    if any(event.id in ids1 for event in events2):
        return MatchStrategy.ID
    return MatchStrategy.CONTENT


def build_event_maps(
    events1: Sequence[Event],
    events2: Sequence[Event],
    strategy: MatchStrategy = MatchStrategy.AUTO,
) -> Tuple[EventMap, EventMap]:
    """Key both event sequences under the same (resolved) strategy."""
    concrete = resolve_strategy(events1, events2, strategy)
    return build_event_map(events1, concrete), build_event_map(events2, concrete)
