"""
diff.py

Compares two reasoning chains.

Shows how LLM reasoning changes between runs, models or prompt
variations: which decisions appeared or disappeared, which were
revised, and how confidence moved.

Design Invariants:
- Read-only (inputs are never mutated)
- Deterministic: added, removed and modified are ordered by match key
- Exact field equality (no epsilon on confidence)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional, Tuple, Union

from causal_trace.chain import Chain
from causal_trace.errors import InvalidMatchStrategyError
from causal_trace.event import Event
from causal_trace.matcher import EventMap, MatchStrategy, build_event_maps, resolve_strategy
from causal_trace.result import Result

logger = logging.getLogger(__name__)

COMPARED_FIELDS = ("decision", "reasoning", "confidence", "alternatives")
DELTA_PRECISION = 6


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class CompareOptions:
    """Options for chain comparison."""
    match_by: Union[MatchStrategy, str] = MatchStrategy.AUTO
    ignore_timestamps: bool = True


@dataclass(frozen=True)
class FieldChange:
    """One field that differs between two matched events."""
    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "old": _plain(self.old_value),
            "new": _plain(self.new_value),
        }


@dataclass(frozen=True)
class ModifiedEvent:
    """A matched event pair with at least one differing field."""
    key: Hashable
    changes: Tuple[FieldChange, ...]

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(change.field for change in self.changes)

    def change_for(self, field_name: str) -> Optional[FieldChange]:
        for change in self.changes:
            if change.field == field_name:
                return change
        return None


@dataclass(frozen=True)
class ChainDiff:
    """
    Structured difference between chain A (old) and chain B (new).

    similarity_score is |common keys| / max(|events A|, |events B|).
    Under content matching, events sharing (type, decision) collapse into
    one key, so chains with repeated identical decisions score lower than
    their overlap suggests.
    """
    added: Tuple[Event, ...]
    removed: Tuple[Event, ...]
    modified: Tuple[ModifiedEvent, ...]
    confidence_deltas: Dict[Hashable, float]
    similarity_score: float
    summary: str
    match_strategy: MatchStrategy = MatchStrategy.ID
    common_keys: Tuple[Hashable, ...] = field(default=(), repr=False)

    @property
    def is_identical(self) -> bool:
        """True if nothing was added, removed or modified."""
        return not self.added and not self.removed and not self.modified

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for renderers."""
        return {
            "added": [e.to_dict() for e in self.added],
            "removed": [e.to_dict() for e in self.removed],
            "modified": [
                {
                    "key": _key_str(m.key),
                    "changes": [c.to_dict() for c in m.changes],
                }
                for m in self.modified
            ],
            "confidence_deltas": {_key_str(k): v for k, v in self.confidence_deltas.items()},
            "similarity_score": self.similarity_score,
            "summary": self.summary,
            "match_strategy": self.match_strategy.value,
        }


# =============================================================================
# Helpers
# =============================================================================

def _key_str(key: Hashable) -> Union[str, int]:
    if isinstance(key, tuple):
        return ":".join(str(part) for part in key)
    return key


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def compare_events(old: Event, new: Event, ignore_timestamps: bool = True) -> Tuple[FieldChange, ...]:
    """Field-level changes between two matched events."""
    changes = []
    for name in COMPARED_FIELDS:
        old_value = getattr(old, name)
        new_value = getattr(new, name)
        if old_value != new_value:
            changes.append(FieldChange(name, old_value, new_value))

    if not ignore_timestamps and old.timestamp != new.timestamp:
        changes.append(FieldChange("timestamp", old.timestamp, new.timestamp))

    return tuple(changes)


def similarity(events_a: int, events_b: int, common: int) -> float:
    total = max(events_a, events_b)
    if total == 0:
        return 1.0
    return common / total


def format_summary(added: int, removed: int, modified: int) -> str:
    """Fixed-order, script-parseable summary line."""
    return f"{added} added, {removed} removed, {modified} modified"


def _parse_strategy(value: Union[MatchStrategy, str]) -> Optional[MatchStrategy]:
    if isinstance(value, MatchStrategy):
        return value
    try:
        return MatchStrategy(value)
    except ValueError:
        return None


# =============================================================================
# DiffEngine
# =============================================================================

class DiffEngine:
    """
    Computes ChainDiffs.

    Example:
        engine = DiffEngine(CompareOptions(match_by="content"))
        result = engine.compare(run_1, run_2)
        if result.ok:
            print(result.value.summary)
            # => "2 added, 1 removed, 3 modified"
    """

    def __init__(self, options: Optional[CompareOptions] = None):
        self.options = options or CompareOptions()

    def compare(
        self,
        chain_a: Chain,
        chain_b: Chain,
        options: Optional[CompareOptions] = None,
    ) -> Result[ChainDiff]:
        """
        Compare chain_a (old) with chain_b (new).

        Returns:
            Result carrying a ChainDiff, or InvalidMatchStrategyError if
            options.match_by is not a known strategy.
        """
        options = options or self.options

        strategy = _parse_strategy(options.match_by)
        if strategy is None:
            error = InvalidMatchStrategyError(options.match_by, MatchStrategy.values())
            logger.debug("Rejected compare: %s", error.format())
            return Result.failure(error)

        events_a, events_b = chain_a.events, chain_b.events
        concrete = resolve_strategy(events_a, events_b, strategy)
        map_a, map_b = build_event_maps(events_a, events_b, concrete)

        diff = self._diff_maps(
            map_a,
            map_b,
            len(events_a),
            len(events_b),
            concrete,
            options.ignore_timestamps,
        )

        logger.debug(
            "Compared chains %s and %s: %s",
            chain_a.id,
            chain_b.id,
            diff.summary,
            extra={
                "match_strategy": concrete.value,
                "similarity_score": diff.similarity_score,
            },
        )
        return Result.success(diff)

    def _diff_maps(
        self,
        map_a: EventMap,
        map_b: EventMap,
        count_a: int,
        count_b: int,
        strategy: MatchStrategy,
        ignore_timestamps: bool,
    ) -> ChainDiff:
        keys_a = set(map_a)
        keys_b = set(map_b)

        added_keys = sorted(keys_b - keys_a)
        removed_keys = sorted(keys_a - keys_b)
        common_keys = sorted(keys_a & keys_b)

        modified = []
        deltas: Dict[Hashable, float] = {}

        for key in common_keys:
            old, new = map_a[key], map_b[key]
            changes = compare_events(old, new, ignore_timestamps)
            if not changes:
                continue
            modified.append(ModifiedEvent(key=key, changes=changes))
            if old.confidence != new.confidence:
                deltas[key] = round(new.confidence - old.confidence, DELTA_PRECISION)

        return ChainDiff(
            added=tuple(map_b[k] for k in added_keys),
            removed=tuple(map_a[k] for k in removed_keys),
            modified=tuple(modified),
            confidence_deltas=deltas,
            similarity_score=similarity(count_a, count_b, len(common_keys)),
            summary=format_summary(len(added_keys), len(removed_keys), len(modified)),
            match_strategy=strategy,
            common_keys=tuple(common_keys),
        )


_default_engine = DiffEngine()


def compare(
    chain_a: Chain,
    chain_b: Chain,
    options: Optional[CompareOptions] = None,
) -> Result[ChainDiff]:
    """Compare two chains with default options unless overridden."""
    return _default_engine.compare(chain_a, chain_b, options)
