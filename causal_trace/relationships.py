"""
relationships.py

Structural views over one chain's parent/dependency relationships.

Graph representation:
  index:    event_id -> position in chain.events   (first occurrence)
  children: event_id -> [positions of events whose parent_id is event_id]

Relationships are weak: ids are resolved through the index, never held
as object references. Accessors here are lenient about dangling ids;
integrity.validate reports them.
"""

from collections import deque
from typing import Dict, List, Optional, Tuple

from causal_trace.chain import Chain
from causal_trace.errors import EventNotFoundError
from causal_trace.event import Event
from causal_trace.result import Result


class RelationshipGraph:
    """Parent/child/dependency index built once from a Chain."""

    __slots__ = ("_chain", "_index", "_children")

    def __init__(self, chain: Chain):
        self._chain = chain
        self._index: Dict[str, int] = chain.event_index()
        self._children: Dict[str, List[int]] = {}

        for position, event in enumerate(chain.events):
            if event.parent_id is not None:
                self._children.setdefault(event.parent_id, []).append(position)

    @property
    def chain(self) -> Chain:
        return self._chain

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._index

    def get(self, event_id: str) -> Optional[Event]:
        """Get event by id, or None if not found."""
        position = self._index.get(event_id)
        if position is None:
            return None
        return self._chain.events[position]

    # --- Traversal methods ---

    def children(self, event_id: str) -> Result[Tuple[Event, ...]]:
        """Events whose parent_id is event_id; NotFound for unknown ids."""
        if event_id not in self._index:
            return Result.failure(EventNotFoundError(event_id, self._chain.id))
        events = self._chain.events
        return Result.success(tuple(events[p] for p in self._children.get(event_id, ())))

    def parent(self, event_id: str) -> Result[Optional[Event]]:
        """
        Parent of event_id.

        None when parent_id is unset or points outside the chain.
        """
        event = self.get(event_id)
        if event is None:
            return Result.failure(EventNotFoundError(event_id, self._chain.id))
        if event.parent_id is None:
            return Result.success(None)
        return Result.success(self.get(event.parent_id))

    def roots(self) -> Tuple[Event, ...]:
        """Events without parent_id, in chain order."""
        return tuple(e for e in self._chain.events if e.parent_id is None)

    def leaves(self) -> Tuple[Event, ...]:
        """Events no other event names as parent, in chain order."""
        referenced = {
            e.parent_id for e in self._chain.events
            if e.parent_id is not None and e.parent_id != e.id
        }
        return tuple(e for e in self._chain.events if e.id not in referenced)

    def events_by_stage(self, stage_id: str) -> Tuple[Event, ...]:
        return tuple(e for e in self._chain.events if e.stage_id == stage_id)

    def events_by_experiment(self, experiment_id: str) -> Tuple[Event, ...]:
        return tuple(e for e in self._chain.events if e.experiment_id == experiment_id)

    def ancestors(self, event_id: str) -> Tuple[Event, ...]:
        """Parent, grandparent, ... of event_id (nearest first)."""
        ancestors = []
        current = self.get(event_id)
        if current is None:
            return ()

        visited = {event_id}
        parent_id = current.parent_id

        while parent_id is not None and parent_id not in visited:
            visited.add(parent_id)
            parent = self.get(parent_id)
            if parent is None:
                break
            ancestors.append(parent)
            parent_id = parent.parent_id

        return tuple(ancestors)

    def descendants(self, event_id: str) -> Tuple[Event, ...]:
        """All transitive children of event_id (breadth-first)."""
        descendants = []
        queue = deque(self._children.get(event_id, ()))
        visited = {event_id}

        while queue:
            event = self._chain.events[queue.popleft()]
            if event.id in visited:
                continue
            visited.add(event.id)
            descendants.append(event)
            queue.extend(self._children.get(event.id, ()))

        return tuple(descendants)

    def adjacency(self) -> Dict[str, List[str]]:
        """
        event_id -> [parent_id?, *depends_on], keyed in chain order.

        Edges point from an event to what it relies on.
        """
        adjacency: Dict[str, List[str]] = {}
        for event in self._chain.events:
            edges = adjacency.setdefault(event.id, [])
            if event.parent_id is not None:
                edges.append(event.parent_id)
            edges.extend(event.depends_on)
        return adjacency


# =============================================================================
# Module-level operations
# =============================================================================

def get_children(chain: Chain, event_id: str) -> Result[Tuple[Event, ...]]:
    return RelationshipGraph(chain).children(event_id)


def get_parent(chain: Chain, event_id: str) -> Result[Optional[Event]]:
    return RelationshipGraph(chain).parent(event_id)


def get_root_events(chain: Chain) -> Tuple[Event, ...]:
    return RelationshipGraph(chain).roots()


def get_leaf_events(chain: Chain) -> Tuple[Event, ...]:
    return RelationshipGraph(chain).leaves()


def get_events_by_stage(chain: Chain, stage_id: str) -> Tuple[Event, ...]:
    return RelationshipGraph(chain).events_by_stage(stage_id)


def get_events_by_experiment(chain: Chain, experiment_id: str) -> Tuple[Event, ...]:
    return RelationshipGraph(chain).events_by_experiment(experiment_id)


def build_adjacency(chain: Chain) -> Dict[str, List[str]]:
    return RelationshipGraph(chain).adjacency()
