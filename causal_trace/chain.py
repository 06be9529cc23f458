"""
chain.py

A Chain is an ordered, immutable collection of Events forming the
complete reasoning trace of one code generation session.

Insertion order is meaningful: position-based matching and root/leaf
queries follow it. Every "update" returns a new Chain.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from causal_trace.event import (
    Event,
    EventType,
    freeze_metadata,
    generate_id,
    parse_timestamp,
    thaw_metadata,
    utc_now,
)


class ChainValidationError(Exception):
    """Raised when a Chain is constructed from invalid parts."""

    def __init__(self, message: str, *, error_code: str = "C000"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.format())

    def format(self) -> str:
        return f"[{self.error_code}] Chain validation failed: {self.message}"


@dataclass(frozen=True)
class ChainStatistics:
    """Summary numbers for a chain."""
    total_events: int
    event_type_counts: Dict[EventType, int]
    avg_confidence: float
    duration_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_events": self.total_events,
            "event_type_counts": {t.value: n for t, n in self.event_type_counts.items()},
            "avg_confidence": self.avg_confidence,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class DecisionPoint:
    """A decision where alternatives were weighed."""
    decision: str
    alternatives: Tuple[str, ...]
    reasoning: str
    confidence: float
    timestamp: datetime


@dataclass(frozen=True)
class Chain:
    """
    Immutable, ordered record of Events.

    Example:
        chain = Chain("API endpoint implementation")
        chain = chain.add_event(Event(EventType.HYPOTHESIS_FORMED, "Use Plug", "Simple"))
        print(chain.statistics().total_events)
    """
    name: str
    id: str = field(default_factory=generate_id)
    description: Optional[str] = None
    events: Tuple[Event, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ChainValidationError("name must be a non-empty string", error_code="C001")

        events = tuple(self.events)
        for i, event in enumerate(events):
            if not isinstance(event, Event):
                raise ChainValidationError(
                    f"events[{i}] must be Event, got {type(event).__name__}",
                    error_code="C002",
                )

        object.__setattr__(self, "events", events)
        object.__setattr__(self, "metadata", freeze_metadata(self.metadata))
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)

    # =========================================================================
    # Length and Iteration
    # =========================================================================

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    # =========================================================================
    # Copy-on-write updates
    # =========================================================================

    def add_event(self, event: Event) -> "Chain":
        """Return a new Chain with the event appended."""
        return replace(self, events=self.events + (event,), updated_at=utc_now())

    def add_events(self, events: List[Event]) -> "Chain":
        """Return a new Chain with all events appended in order."""
        return replace(self, events=self.events + tuple(events), updated_at=utc_now())

    def merge(self, other: "Chain") -> "Chain":
        """Combine events of both chains; other's metadata wins on key clashes."""
        metadata = dict(self.metadata)
        metadata.update(other.metadata)
        return replace(
            self,
            events=self.events + other.events,
            metadata=metadata,
            updated_at=utc_now(),
        )

    def filter_events(self, predicate: Callable[[Event], bool]) -> "Chain":
        """Return a new Chain keeping only events matching predicate."""
        return replace(self, events=tuple(e for e in self.events if predicate(e)))

    def sort_by_timestamp(self, descending: bool = False) -> "Chain":
        """Return a new Chain with events ordered by timestamp."""
        ordered = sorted(self.events, key=lambda e: e.timestamp, reverse=descending)
        return replace(self, events=tuple(ordered))

    # =========================================================================
    # Lookup
    # =========================================================================

    def event_index(self) -> Dict[str, int]:
        """Map event id to its position; the first occurrence wins."""
        index: Dict[str, int] = {}
        for position, event in enumerate(self.events):
            index.setdefault(event.id, position)
        return index

    def get_event(self, event_id: str) -> Optional[Event]:
        """Get event by id, or None if not found."""
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def get_events_by_type(self, event_type: Union[EventType, str]) -> List[Event]:
        event_type = EventType.parse(event_type)
        return [e for e in self.events if e.type == event_type]

    def get_events_in_range(self, start: datetime, end: datetime) -> List[Event]:
        """Events with start <= timestamp <= end."""
        return [e for e in self.events if start <= e.timestamp <= end]

    def find_decision_points(self) -> List[DecisionPoint]:
        """Hypotheses and rejected alternatives, in chain order."""
        kinds = (EventType.ALTERNATIVE_REJECTED, EventType.HYPOTHESIS_FORMED)
        return [
            DecisionPoint(
                decision=e.decision,
                alternatives=e.alternatives,
                reasoning=e.reasoning,
                confidence=e.confidence,
                timestamp=e.timestamp,
            )
            for e in self.events
            if e.type in kinds
        ]

    def find_low_confidence(self, threshold: float = 0.7) -> List[Event]:
        """Events with confidence strictly below threshold."""
        return [e for e in self.events if e.confidence < threshold]

    # =========================================================================
    # Statistics
    # =========================================================================

    def statistics(self) -> ChainStatistics:
        if not self.events:
            return ChainStatistics(
                total_events=0,
                event_type_counts={},
                avg_confidence=0.0,
                duration_seconds=0,
            )

        counts: Dict[EventType, int] = {}
        for event in self.events:
            counts[event.type] = counts.get(event.type, 0) + 1

        avg_confidence = sum(e.confidence for e in self.events) / len(self.events)

        duration = 0
        if len(self.events) > 1:
            delta = self.events[-1].timestamp - self.events[0].timestamp
            duration = int(delta.total_seconds())

        return ChainStatistics(
            total_events=len(self.events),
            event_type_counts=counts,
            avg_confidence=avg_confidence,
            duration_seconds=duration,
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "events": [e.to_dict() for e in self.events],
            "metadata": thaw_metadata(self.metadata),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "statistics": self.statistics().to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chain":
        """Reconstruct a Chain; statistics in the input are ignored."""
        created_at = parse_timestamp(data.get("created_at"))
        return cls(
            id=data.get("id") or generate_id(),
            name=data.get("name"),
            description=data.get("description"),
            events=tuple(Event.from_dict(e) for e in data.get("events") or ()),
            metadata=dict(data.get("metadata") or {}),
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updated_at") or created_at),
        )

    def __repr__(self) -> str:
        return f"Chain(id={self.id[:8]}..., name={self.name!r}, events={len(self.events)})"
